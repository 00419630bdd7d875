"""
scoring_engine/explain.py
=========================
Explanation Renderer — turns the aggregator's intermediate values into the
narrative shown in the reviewer's detail panel and stored in the audit log.

Every function here is a pure formatter over a CaseRecord (plus feedback
text for the acknowledgment block). Output is line-structured and
byte-identical across runs; the only time-dependent text is an optional
caller-supplied `generated_at` stamp appended after the body.

Also builds the supporting-factor and warning-flag bullet lists that travel
with the score in the outbound AnalysisResult.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from scoring_engine.case import CaseRecord, Category, Flag
from scoring_engine.factors import FactorSet, extract_factors
from scoring_engine.legitimacy import FraudStrategy
from scoring_engine.model import (
    HIGH_RISK_MERCHANTS,
    MEDIUM_RISK_MERCHANTS,
    ScoringResult,
    compute_score,
)
from scoring_engine.recommendation import displayed_recommendation


_SEPARATOR = "─" * 70

ANALYST_FACTORS = ["Analyst expertise incorporated", "Additional context considered"]


@dataclass
class AnalysisResult:
    """Outbound tuple consumed by the presentation layer."""

    risk_score: int
    recommendation: str
    confidence: int
    analysis: str
    key_factors: list[str] = field(default_factory=list)
    warning_flags: list[str] = field(default_factory=list)

    def to_payload(self) -> dict:
        return {
            "riskScore": self.risk_score,
            "recommendation": self.recommendation,
            "confidence": self.confidence,
            "analysis": self.analysis,
            "keyFactors": list(self.key_factors),
            "warningFlags": list(self.warning_flags),
        }


def _pct(value: float) -> str:
    return f"{value:g}%"


def _weight_pct(weight) -> str:
    return f"{int(weight * 100)}% weight"


# ── Per-factor blocks ─────────────────────────────────────────────────────────

def _amount_block(f: FactorSet, d: dict) -> list[str]:
    score = d["score"]
    if score == 10:
        verdict = "Low risk amount - Small transactions typically have lower fraud risk"
    elif score == 25:
        verdict = "Moderate risk amount - Standard transaction range"
    elif score == 50:
        verdict = "Elevated risk amount - Higher value requires more scrutiny"
    else:
        verdict = "High risk amount - Large transactions often targeted by fraudsters"
    return [
        f"  Amount            : ${f.amount:,.2f}",
        f"  Assessment        : {verdict}",
    ]


def _customer_block(f: FactorSet, d: dict) -> list[str]:
    if f.credit_score > 750:
        credit = "Excellent (Low risk) - High creditworthiness indicates reliable customer"
    elif f.credit_score > 650:
        credit = "Good (Moderate risk) - Standard creditworthiness"
    else:
        credit = "Fair/Poor (High risk) - Lower creditworthiness increases risk"
    if f.previous_disputes == 0:
        history = "No previous disputes - Positive indicator"
    elif f.previous_disputes <= 2:
        history = "Limited disputes - Normal customer behavior"
    else:
        history = "Multiple disputes - Concerning pattern that increases risk"
    return [
        f"  Credit Score      : {f.credit_score}",
        f"  Credit Assessment : {credit}",
        f"  Previous Disputes : {f.previous_disputes}",
        f"  Dispute History   : {history}",
    ]


def _merchant_block(f: FactorSet, d: dict) -> list[str]:
    if f.merchant_category in HIGH_RISK_MERCHANTS:
        verdict = "High risk industry - These categories have higher chargeback rates historically"
    elif f.merchant_category in MEDIUM_RISK_MERCHANTS:
        verdict = "Medium risk industry - Moderate chargeback rates in this sector"
    else:
        verdict = "Low risk industry - Stable sector with lower chargeback rates"
    return [
        f"  Merchant Category : {f.merchant_category or 'N/A'}",
        f"  Category Risk     : {verdict}",
    ]


def _reason_block(f: FactorSet, d: dict) -> list[str]:
    score = d["score"]
    if score == 80:
        verdict = "High risk - Fraud-related disputes require immediate investigation"
    elif score == 50:
        verdict = "Medium risk - Common dispute type requiring verification"
    else:
        verdict = "Low risk - Service/product related dispute typically easier to resolve"
    return [
        f"  Dispute Reason    : {f.dispute_reason or 'N/A'}",
        f"  Reason Risk       : {verdict}",
    ]


def _evidence_block(f: FactorSet, d: dict) -> list[str]:
    if f.evidence_count == 0:
        verdict = "No evidence provided - High risk, difficult to defend"
    elif f.evidence_count == 1:
        verdict = "Limited evidence - Some support but may be insufficient"
    else:
        verdict = "Adequate evidence - Good documentation to support case"
    return [
        f"  Evidence Files    : {f.evidence_count}",
        f"  Assessment        : {verdict}",
    ]


_CHANNELS = [
    ("same_card_orders", "Card"),
    ("same_address_orders", "Address"),
    ("same_ip_orders", "IP"),
    ("same_device_orders", "Device"),
]


def _legitimacy_block(f: FactorSet, d: dict) -> list[str]:
    score = d["score"]
    total = f.total_linked_orders
    lines = [
        f"  Same Card Orders    : {f.same_card_orders}",
        f"  Same Address Orders : {f.same_address_orders}",
        f"  Same IP Orders      : {f.same_ip_orders}",
        f"  Same Device Orders  : {f.same_device_orders}",
        f"  Total Linked Orders : {total}",
        f"  Item Delivered      : {f.item_delivered.value}",
        f"  Category            : {f.category.value}",
        f"  Assessment          : {d['raw_inputs']['assessment']}",
    ]

    if f.category is Category.FRAUD_UNAUTHORIZED and f.has_any_links:
        for attr, name in _CHANNELS:
            if getattr(f, attr) > 0:
                hint = (
                    "Evidence of account takeover or friendly fraud"
                    if name == "Card" else "Evidence of cardholder involvement"
                )
                lines.append(f"    → {name} previously used: {hint}")
        lines.append(
            f"    → {FraudStrategy.confidence_label(total)}: "
            f"{total} total linked orders (Score: {score})"
        )
    elif f.category in (Category.MERCHANT_MERCHANDISE, Category.PROCESSING_ISSUES):
        if total == 0:
            lines.append("    → No previous orders found - moderate risk for new customer")
        else:
            for attr, name in _CHANNELS:
                count = getattr(f, attr)
                if count > 0:
                    lines.append(f"    → {name} previously used: {count} times")
            tail = "VERY LOYAL CUSTOMER, minimal risk" if total >= 3 else "lower risk"
            lines.append(f"    → {total} total linked orders - {tail}")
    return lines


def _abuse_block(f: FactorSet, d: dict) -> list[str]:
    if f.dispute_percentage > 5:
        verdict = "High risk - Excessive dispute rate suggests potential abuse"
    elif f.dispute_percentage > 2:
        verdict = "Moderate risk - Elevated dispute rate requires monitoring"
    else:
        verdict = "Normal behavior - Dispute rate within acceptable range"
    return [
        f"  Customer Dispute Rate   : {_pct(f.dispute_percentage)}",
        f"  Disputes Won            : {f.disputes_won}/{f.previous_disputes}",
        f"  Linked Customers Rate   : {_pct(f.linked_dispute_rate)}",
        f"  Assessment              : {verdict}",
        f"  Raw Score (compressed)  : {d['raw_inputs']['raw_score']} / 5",
    ]


_BLOCKS = {
    "transaction_amount":    _amount_block,
    "customer_history":      _customer_block,
    "merchant_category":     _merchant_block,
    "dispute_reason":        _reason_block,
    "evidence_completeness": _evidence_block,
    "legitimacy":            _legitimacy_block,
    "abuse_pattern":         _abuse_block,
}

_EMPHASIS = {"legitimacy": " - PRIMARY FACTOR", "abuse_pattern": " - SECONDARY FACTOR"}

_TIER_TEXT = {
    "LOW": "LOW - Strong indicators support approving this dispute",
    "MEDIUM": "MEDIUM - Mixed indicators require manual review",
    "HIGH": "HIGH - Multiple risk factors suggest rejecting this dispute",
}

_RATIONALE = {
    "approve": "APPROVE - Low risk factors and legitimate customer patterns support approval",
    "reject": "REJECT - High risk factors and concerning patterns suggest fraud",
    "merchant_investigation": (
        "MERCHANT INVESTIGATION - Merchandise dispute in the mid-risk band; "
        "merchant response needed before a decision"
    ),
    "review": "MANUAL REVIEW - Mixed indicators require human judgment",
}


def render_explanation(
    case: CaseRecord,
    result: Optional[ScoringResult] = None,
    generated_at: Optional[str] = None,
) -> str:
    """
    Render the full risk breakdown for a case.

    One block per factor in weight-table order, then the final assessment
    (computed total vs persisted score, risk tier) and the recommendation
    rationale. Pass `generated_at` to append a stamp after the body.
    """
    result = result or compute_score(case)
    f = result.factors

    lines = [
        f"RISK ANALYSIS BREAKDOWN — Case {case.case_number}",
        _SEPARATOR,
    ]
    for index, (key, d) in enumerate(result.breakdown.items(), start=1):
        lines.append(
            f"{index}. {d['label'].upper()} FACTOR ({_weight_pct(d['weight'])}{_EMPHASIS.get(key, '')})"
        )
        lines.extend(_BLOCKS[key](f, d))
        lines.append(f"  Factor Score      : {d['score']}")
        lines.append(f"  Weighted Impact   : {d['weighted_impact']} points")
        lines.append("")

    recommendation = displayed_recommendation(case)
    lines += [
        _SEPARATOR,
        "FINAL RISK ASSESSMENT",
        f"  Calculated Total Score : {result.computed_score}/100",
        f"  Actual Risk Score      : {result.persisted_score}/100",
        f"  Risk Level             : {_TIER_TEXT[result.tier]}",
        "",
        "RECOMMENDATION RATIONALE",
        f"  AI Recommendation      : {_RATIONALE[recommendation]}",
        _SEPARATOR,
    ]
    if generated_at:
        lines.append(f"Generated at: {generated_at}")
    return "\n".join(lines)


# ── Feedback acknowledgment ───────────────────────────────────────────────────
# Fixed checklist order; each group emits its line only when one of its
# keywords appears in the feedback.
ACKNOWLEDGMENT_GROUPS = [
    (
        "customer_relationship",
        ("customer", "loyal"),
        "Customer Relationship Consideration: Your insight about the customer relationship "
        "is valuable. The customer loyalty assessment has been adjusted accordingly.",
    ),
    (
        "evidence",
        ("evidence", "document", "proof"),
        "Evidence Evaluation: Evidence quality and documentation were re-evaluated "
        "based on your additional observations.",
    ),
    (
        "merchant_behavior",
        ("merchant", "seller", "vendor"),
        "Merchant Behavior Analysis: Your feedback regarding merchant practices has been "
        "factored into the risk assessment.",
    ),
    (
        "fraud_pattern",
        ("fraud", "suspicious", "abuse"),
        "Fraud Pattern Recognition: Fraud risk indicators were updated based on your "
        "professional judgment.",
    ),
    (
        "approval",
        ("approve", "accept"),
        "Approval Consideration: Your recommendation towards approval has been weighted "
        "into the decision matrix.",
    ),
    (
        "rejection",
        ("reject", "deny", "decline"),
        "Rejection Consideration: Your concerns about approving this dispute have been "
        "incorporated into the risk assessment.",
    ),
    (
        "investigation",
        ("investigate", "review", "unclear"),
        "Investigation Requirement: Additional investigation may be warranted based on "
        "your observations.",
    ),
]


def acknowledged_groups(feedback: str) -> list[str]:
    lower = feedback.lower()
    return [name for name, keywords, _ in ACKNOWLEDGMENT_GROUPS if any(k in lower for k in keywords)]


def render_feedback_acknowledgment(feedback: str, original_score: int) -> str:
    feedback = feedback.strip()
    lower = feedback.lower()
    lines = [
        "RE-ANALYSIS WITH ANALYST FEEDBACK",
        f"  Original Risk Score : {original_score}",
        f'  Analyst Input       : "{feedback}"',
        "",
        "The feedback was reviewed and incorporated into the analysis:",
    ]
    for _, keywords, text in ACKNOWLEDGMENT_GROUPS:
        if any(k in lower for k in keywords):
            lines.append(f"  ✓ {text}")
    lines += ["", "UPDATED ASSESSMENT:"]
    return "\n".join(lines)


def render_feedback_footer(feedback: str) -> str:
    return f'ANALYST FEEDBACK INCORPORATED:\n"{feedback.strip()}"'


# ── Supporting factors / warning flags ────────────────────────────────────────

def key_factors(case: CaseRecord) -> list[str]:
    f = extract_factors(case)
    factors = []
    if f.credit_score > 700:
        factors.append("Excellent customer credit score")
    if f.previous_disputes == 0:
        factors.append("No dispute history records")
    if f.evidence_count > 1:
        factors.append("Multiple evidence provided")
    if f.amount < 500:
        factors.append("Small dispute amount")

    total = f.total_linked_orders
    if f.category in (Category.MERCHANT_MERCHANDISE, Category.PROCESSING_ISSUES):
        if total >= 3:
            factors.append(f"Loyal customer with {total} previous successful orders")
        elif total >= 1:
            factors.append(f"Returning customer with {total} previous successful orders")
        if f.same_card_orders > 0:
            factors.append(f"Same payment card used in {f.same_card_orders} previous orders")
        if f.same_address_orders > 0:
            factors.append(f"Same shipping address used in {f.same_address_orders} previous orders")
        if f.item_delivered is Flag.YES:
            factors.append("Item was delivered - supports customer claim")
        if f.item_shipped is Flag.YES:
            factors.append("Item was shipped - merchant fulfilled obligation")
    elif f.category is Category.FRAUD_UNAUTHORIZED and total == 0:
        factors.append("No transaction history links - consistent with stolen card/identity theft")

    if f.dispute_percentage < 2:
        factors.append("Low customer dispute rate")
    return factors


def warning_flags(case: CaseRecord) -> list[str]:
    f = extract_factors(case)
    flags = []
    if f.previous_disputes > 2:
        flags.append("Multiple dispute history")
    if case.risk_score > 70:
        flags.append("High risk score")
    if f.evidence_count == 0:
        flags.append("Lack of supporting evidence")
    if f.amount > 2000:
        flags.append("Large transaction amount")
    if f.dispute_percentage > 5:
        flags.append("High customer dispute rate (>5%)")

    if f.category is Category.FRAUD_UNAUTHORIZED:
        for attr, name in _CHANNELS:
            count = getattr(f, attr)
            if count >= 1:
                flags.append(f"{name} used in {count} previous orders - potential abusive chargeback")
        if f.item_delivered is Flag.YES:
            flags.append("Item delivered - disputing received goods")
    elif f.category in (Category.MERCHANT_MERCHANDISE, Category.PROCESSING_ISSUES):
        if f.total_linked_orders == 0:
            flags.append("New customer with no order history - higher risk")

    if f.linked_dispute_rate > 4:
        flags.append("High-risk customer network")
    if f.previous_disputes > 0 and f.dispute_win_rate > 0.6:
        flags.append("High dispute win rate (potential abuse)")
    return flags


def derive_analysis(case: CaseRecord) -> AnalysisResult:
    """Re-derive the outbound tuple for a case without changing its score."""
    return AnalysisResult(
        risk_score=case.risk_score,
        recommendation=displayed_recommendation(case),
        confidence=case.ai_confidence,
        analysis=render_explanation(case),
        key_factors=key_factors(case),
        warning_flags=warning_flags(case),
    )
