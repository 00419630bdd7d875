"""
scoring_engine/case.py
======================
Case Record — the unit of work for the chargeback review engine.

A case arrives from the ingestion feed as a camelCase JSON payload and is
normalized exactly once, here, into frozen dataclasses. Every optional count,
rate or flag is resolved to a concrete default at this boundary so nothing
downstream ever has to guard against a missing value:

  linkage counts / rates / percentages   → 0
  fulfillment + digital-goods flags       → Flag.UNKNOWN
  evidence                                → empty tuple

Updates are copy-on-write: callers build a new record with
`dataclasses.replace` (see `CaseRecord.updated`) rather than mutating fields.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Literal, Optional


Recommendation = Literal["approve", "reject", "review", "merchant_investigation"]
HumanDecision = Literal["approve", "reject", "investigate", "send_to_merchant"]

RECOMMENDATIONS = ("approve", "reject", "review", "merchant_investigation")
HUMAN_DECISIONS = ("approve", "reject", "investigate", "send_to_merchant")

CASE_STATUSES = (
    "pending",
    "analyzing",
    "review",
    "completed",
    "pending_risk_review",
    "internal_analyzing",
    "merchant_investigation",
    "representment_raised",
    "admitted_closed",
    "representment_win_back",
    "representment_lost",
)

PRIORITIES = ("low", "medium", "high", "critical")


class Category(str, Enum):
    """Dispute category. UNKNOWN covers both unset and unrecognized values."""

    FRAUD_UNAUTHORIZED = "FRAUD_UNAUTHORIZED"
    MERCHANT_MERCHANDISE = "MERCHANT_MERCHANDISE"
    PROCESSING_ISSUES = "PROCESSING_ISSUES"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        if isinstance(value, Category):
            return value
        if not value:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.UNKNOWN


class Flag(str, Enum):
    """Tri-state Y/N flag as it appears on the wire."""

    YES = "Y"
    NO = "N"
    UNKNOWN = "N/A"

    @classmethod
    def parse(cls, value: Any) -> "Flag":
        if isinstance(value, Flag):
            return value
        if value is True:
            return cls.YES
        if value is False:
            return cls.NO
        text = str(value or "").strip().upper()
        if text in ("Y", "YES", "TRUE", "1"):
            return cls.YES
        if text in ("N", "NO", "FALSE", "0"):
            return cls.NO
        return cls.UNKNOWN


# ── Coercion helpers ──────────────────────────────────────────────────────────

def _int(value: Any, default: int = 0) -> int:
    number = _number(value, float("nan"))
    return int(number) if math.isfinite(number) else default


def _number(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return max(Decimal("0"), amount)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _first(*sources: dict, key: str) -> Any:
    """Return the first non-empty value for `key` across the given mappings."""
    for source in sources:
        value = source.get(key)
        if value not in (None, "", 0):
            return value
    return None


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# ── Records ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Evidence:
    id: str = ""
    type: str = "other"
    file_name: str = ""
    upload_date: str = ""
    description: str = ""

    @classmethod
    def from_payload(cls, payload: dict) -> "Evidence":
        return cls(
            id=str(payload.get("id", "")),
            type=str(payload.get("type", "other")),
            file_name=str(payload.get("fileName", "")),
            upload_date=str(payload.get("uploadDate", "")),
            description=str(payload.get("description", "")),
        )

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "fileName": self.file_name,
            "uploadDate": self.upload_date,
            "description": self.description,
        }


@dataclass(frozen=True)
class Transaction:
    id: str = ""
    amount: Decimal = Decimal("0")
    currency: str = "USD"
    merchant_name: str = ""
    merchant_category: str = ""
    transaction_date: str = ""
    location: str = ""
    card_last4: str = ""
    same_card_orders: int = 0
    same_address_orders: int = 0
    same_ip_orders: int = 0
    same_device_orders: int = 0
    item_shipped: Flag = Flag.UNKNOWN
    item_delivered: Flag = Flag.UNKNOWN
    digital_goods: Flag = Flag.UNKNOWN

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "amount": float(self.amount),
            "currency": self.currency,
            "merchantName": self.merchant_name,
            "merchantCategory": self.merchant_category,
            "transactionDate": self.transaction_date,
            "location": self.location,
            "cardLast4": self.card_last4,
            "sameCardSuccessOrders": self.same_card_orders,
            "sameAddressSuccessOrders": self.same_address_orders,
            "sameIpSuccessOrders": self.same_ip_orders,
            "sameDeviceSuccessOrders": self.same_device_orders,
            "itemShipped": self.item_shipped.value,
            "itemDelivered": self.item_delivered.value,
            "digitalGoods": self.digital_goods.value,
        }


@dataclass(frozen=True)
class Customer:
    id: str = ""
    name: str = ""
    email: str = ""
    phone: str = ""
    account_type: str = ""
    credit_score: int = 0
    previous_disputes: int = 0
    disputes_won: int = 0
    dispute_percentage: float = 0.0
    linked_customers: int = 0
    linked_dispute_rate: float = 0.0

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "accountType": self.account_type,
            "creditScore": self.credit_score,
            "previousDisputes": self.previous_disputes,
            "disputeCustomerWon": self.disputes_won,
            "disputePercentage": self.dispute_percentage,
            "linkedCustomersCount": self.linked_customers,
            "linkedCustomersDisputeRate": self.linked_dispute_rate,
        }


@dataclass(frozen=True)
class CaseRecord:
    """
    A single dispute case. Frozen: use `updated()` to derive a new version.

    `risk_score` and `ai_confidence` are clamped to [0, 100] on ingestion and
    on every update.
    """

    case_number: str
    id: str = ""
    transaction: Transaction = field(default_factory=Transaction)
    customer: Customer = field(default_factory=Customer)
    dispute_reason: str = ""
    dispute_description: str = ""
    category: Category = Category.UNKNOWN
    subcategory: str = ""
    reason_code: str = ""
    card_network: str = ""
    priority: str = "medium"
    evidence: tuple[Evidence, ...] = ()
    risk_score: int = 0
    ai_recommendation: Recommendation = "review"
    ai_confidence: int = 0
    ai_analysis: str = ""
    human_decision: Optional[HumanDecision] = None
    analyst_feedback: Optional[str] = None
    status: str = "pending"
    created_at: str = ""
    updated_at: str = ""

    # Fields whose change must refresh updated_at.
    TRACKED_FIELDS = ("risk_score", "ai_recommendation", "status", "human_decision")

    @property
    def is_closed(self) -> bool:
        return self.human_decision is not None

    @classmethod
    def from_payload(cls, payload: dict) -> "CaseRecord":
        """
        Normalize a wire payload into a CaseRecord.

        Linkage counts may sit on the transaction or at the top level of the
        payload; the transaction wins when both are present and non-zero.
        """
        txn = payload.get("transaction") or {}
        cust = payload.get("customer") or {}

        transaction = Transaction(
            id=str(txn.get("id", "")),
            amount=_decimal(txn.get("amount")),
            currency=str(txn.get("currency") or "USD"),
            merchant_name=str(txn.get("merchantName", "")),
            merchant_category=str(txn.get("merchantCategory", "")),
            transaction_date=str(txn.get("transactionDate", "")),
            location=str(txn.get("location", "")),
            card_last4=str(txn.get("cardLast4", "")),
            same_card_orders=max(0, _int(_first(txn, payload, key="sameCardSuccessOrders"))),
            same_address_orders=max(0, _int(_first(txn, payload, key="sameAddressSuccessOrders"))),
            same_ip_orders=max(0, _int(_first(txn, payload, key="sameIpSuccessOrders"))),
            same_device_orders=max(0, _int(_first(txn, payload, key="sameDeviceSuccessOrders"))),
            item_shipped=Flag.parse(txn.get("itemShipped")),
            item_delivered=Flag.parse(txn.get("itemDelivered")),
            digital_goods=Flag.parse(txn.get("digitalGoods")),
        )

        customer = Customer(
            id=str(cust.get("id", "")),
            name=str(cust.get("name", "")),
            email=str(cust.get("email", "")),
            phone=str(cust.get("phone", "")),
            account_type=str(cust.get("accountType", "")),
            credit_score=_int(cust.get("creditScore")),
            previous_disputes=max(0, _int(cust.get("previousDisputes"))),
            disputes_won=max(0, _int(cust.get("disputeCustomerWon"))),
            dispute_percentage=clamp(_number(cust.get("disputePercentage")), 0.0, 100.0),
            linked_customers=max(0, _int(cust.get("linkedCustomersCount"))),
            linked_dispute_rate=clamp(_number(cust.get("linkedCustomersDisputeRate")), 0.0, 100.0),
        )

        recommendation = payload.get("aiRecommendation")
        if recommendation not in RECOMMENDATIONS:
            recommendation = "review"
        decision = payload.get("humanDecision")
        if decision not in HUMAN_DECISIONS:
            decision = None

        return cls(
            case_number=str(payload.get("caseNumber") or payload.get("id") or ""),
            id=str(payload.get("id") or payload.get("caseNumber") or ""),
            transaction=transaction,
            customer=customer,
            dispute_reason=str(payload.get("disputeReason") or ""),
            dispute_description=str(payload.get("disputeDescription") or ""),
            category=Category.parse(payload.get("category")),
            subcategory=str(payload.get("subcategory") or ""),
            reason_code=str(payload.get("reasonCode") or ""),
            card_network=str(payload.get("cardNetwork") or ""),
            priority=payload.get("priority") if payload.get("priority") in PRIORITIES else "medium",
            evidence=tuple(Evidence.from_payload(e) for e in (payload.get("evidence") or [])),
            risk_score=int(clamp(_int(payload.get("riskScore")), 0, 100)),
            ai_recommendation=recommendation,
            ai_confidence=int(clamp(_int(payload.get("aiConfidence")), 0, 100)),
            ai_analysis=str(payload.get("aiAnalysis") or ""),
            human_decision=decision,
            analyst_feedback=payload.get("analystFeedback") or None,
            status=str(payload.get("status") or "pending"),
            created_at=str(payload.get("createdAt") or ""),
            updated_at=str(payload.get("updatedAt") or ""),
        )

    def to_payload(self) -> dict:
        payload = {
            "id": self.id,
            "caseNumber": self.case_number,
            "transaction": self.transaction.to_payload(),
            "customer": self.customer.to_payload(),
            "disputeReason": self.dispute_reason,
            "disputeDescription": self.dispute_description,
            "category": None if self.category is Category.UNKNOWN else self.category.value,
            "subcategory": self.subcategory,
            "reasonCode": self.reason_code,
            "cardNetwork": self.card_network,
            "priority": self.priority,
            "evidence": [e.to_payload() for e in self.evidence],
            "riskScore": self.risk_score,
            "aiRecommendation": self.ai_recommendation,
            "aiConfidence": self.ai_confidence,
            "aiAnalysis": self.ai_analysis,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.human_decision is not None:
            payload["humanDecision"] = self.human_decision
        if self.analyst_feedback is not None:
            payload["analystFeedback"] = self.analyst_feedback
        return payload

    def updated(self, now: Callable[[], str] = utc_now_iso, **changes: Any) -> "CaseRecord":
        """
        Return a new record with `changes` applied.

        Scores are clamped; `updated_at` is refreshed whenever a tracked field
        actually changes.
        """
        if "risk_score" in changes:
            changes["risk_score"] = int(clamp(changes["risk_score"], 0, 100))
        if "ai_confidence" in changes:
            changes["ai_confidence"] = int(clamp(changes["ai_confidence"], 0, 100))

        touched = any(
            name in changes and changes[name] != getattr(self, name)
            for name in self.TRACKED_FIELDS
        )
        if touched and "updated_at" not in changes:
            changes["updated_at"] = now()
        return replace(self, **changes)
