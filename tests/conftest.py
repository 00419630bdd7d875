"""
Shared fixtures for the chargeback review tests.

`make_payload` / `make_case` build an ingestion payload with neutral values
(every sub-score at a known table entry) that individual tests override.
"""

from copy import deepcopy

import pytest

from scoring_engine.case import CaseRecord


BASE_PAYLOAD = {
    "id": "42",
    "caseNumber": "CD-TEST-001",
    "transaction": {
        "id": "txn_test",
        "amount": 250.00,
        "currency": "USD",
        "merchantName": "Test Merchant",
        "merchantCategory": "Groceries",
        "transactionDate": "2024-01-01T00:00:00Z",
    },
    "customer": {
        "id": "cust_test_77",
        "name": "Test Customer",
        "email": "test.customer@example.com",
        "creditScore": 700,
        "previousDisputes": 0,
    },
    "disputeReason": "Item Not Received",
    "disputeDescription": "Customer reports the parcel never arrived.",
    "evidence": [],
    "riskScore": 50,
    "aiRecommendation": "review",
    "aiConfidence": 80,
    "aiAnalysis": "Initial analysis.",
    "status": "pending_risk_review",
    "priority": "medium",
    "createdAt": "2024-01-01T00:00:00Z",
    "updatedAt": "2024-01-01T00:00:00Z",
}


def make_payload(transaction=None, customer=None, **overrides):
    payload = deepcopy(BASE_PAYLOAD)
    payload["transaction"].update(transaction or {})
    payload["customer"].update(customer or {})
    payload.update(overrides)
    return payload


def make_case(transaction=None, customer=None, **overrides) -> CaseRecord:
    return CaseRecord.from_payload(make_payload(transaction, customer, **overrides))


def evidence_items(count: int) -> list[dict]:
    return [
        {"id": f"ev_{i}", "type": "receipt", "fileName": f"file_{i}.pdf", "description": "doc"}
        for i in range(count)
    ]


@pytest.fixture
def case() -> CaseRecord:
    return make_case()


@pytest.fixture
def merchandise_case() -> CaseRecord:
    return make_case(category="MERCHANT_MERCHANDISE")


@pytest.fixture
def fraud_case() -> CaseRecord:
    return make_case(
        category="FRAUD_UNAUTHORIZED",
        transaction={"sameCardSuccessOrders": 12, "itemDelivered": "Y"},
    )


@pytest.fixture
def log_dir(tmp_path):
    return str(tmp_path / "logs")
