"""
sample_cases.py
===============
Fixed scenario cases shared by the CLI (main.py) and the review console
(ui_app.py). Payloads use the ingestion feed's camelCase shape and go
through CaseRecord.from_payload like any other case.
"""

from __future__ import annotations
from copy import deepcopy

from scoring_engine.case import CaseRecord


SCENARIOS = {
    "fraud_linked_history": {
        "id": "1",
        "caseNumber": "CD2024001",
        "category": "FRAUD_UNAUTHORIZED",
        "subcategory": "1A_Card_Fraud",
        "reasonCode": "10.4",
        "cardNetwork": "Visa",
        "transaction": {
            "id": "txn_001",
            "amount": 1250.00,
            "currency": "USD",
            "merchantName": "TechMart Online",
            "merchantCategory": "Electronics",
            "transactionDate": "2024-01-15T10:30:00Z",
            "location": "New York, NY",
            "cardLast4": "4567",
            "sameCardSuccessOrders": 12,
            "sameAddressSuccessOrders": 8,
            "sameIpSuccessOrders": 3,
            "sameDeviceSuccessOrders": 0,
            "itemShipped": "Y",
            "itemDelivered": "Y",
            "digitalGoods": "N",
        },
        "customer": {
            "id": "cust_001",
            "name": "John Smith",
            "email": "john.smith@email.com",
            "phone": "+1-555-0123",
            "accountType": "Platinum",
            "creditScore": 750,
            "previousDisputes": 1,
            "disputeCustomerWon": 0,
            "disputePercentage": 2.5,
            "linkedCustomersCount": 1,
            "linkedCustomersDisputeRate": 1.2,
        },
        "disputeReason": "Unauthorized Transaction",
        "disputeDescription": (
            "Customer claims they did not make this transaction and states their "
            "credit card was not with them at the stated time."
        ),
        "evidence": [
            {
                "id": "ev_001",
                "type": "authorization",
                "fileName": "location_proof.pdf",
                "uploadDate": "2024-01-16T09:00:00Z",
                "description": "Customer provided location proof document",
            },
            {
                "id": "ev_002",
                "type": "communication",
                "fileName": "customer_statement.doc",
                "uploadDate": "2024-01-16T09:15:00Z",
                "description": "Customer written statement",
            },
        ],
        "riskScore": 45,
        "aiRecommendation": "review",
        "aiConfidence": 72,
        "aiAnalysis": "Medium risk. Location proof provided, but the card has a long successful order history.",
        "status": "pending_risk_review",
        "priority": "medium",
        "createdAt": "2024-01-16T08:00:00Z",
        "updatedAt": "2024-01-16T08:00:00Z",
    },
    "merchandise_quality": {
        "id": "2",
        "caseNumber": "CD2024002",
        "category": "MERCHANT_MERCHANDISE",
        "subcategory": "3B_Not_As_Described",
        "reasonCode": "13.3",
        "cardNetwork": "Mastercard",
        "transaction": {
            "id": "txn_002",
            "amount": 89.99,
            "currency": "USD",
            "merchantName": "QuickFood Delivery",
            "merchantCategory": "Food Delivery",
            "transactionDate": "2024-01-14T19:45:00Z",
            "location": "San Francisco, CA",
            "cardLast4": "8901",
            "sameCardSuccessOrders": 4,
            "sameAddressSuccessOrders": 2,
            "itemShipped": "Y",
            "itemDelivered": "Y",
            "digitalGoods": "N",
        },
        "customer": {
            "id": "cust_002",
            "name": "Sarah Johnson",
            "email": "sarah.johnson@email.com",
            "phone": "+1-555-0456",
            "accountType": "Standard",
            "creditScore": 680,
            "previousDisputes": 0,
        },
        "disputeReason": "Product Quality Issue",
        "disputeDescription": (
            "Customer received food that did not match the order and was of poor quality. "
            "Merchant did not resolve the complaint."
        ),
        "evidence": [
            {
                "id": "ev_003",
                "type": "receipt",
                "fileName": "food_photos.jpg",
                "uploadDate": "2024-01-15T10:30:00Z",
                "description": "Photos of received food",
            },
            {
                "id": "ev_004",
                "type": "communication",
                "fileName": "merchant_chat.pdf",
                "uploadDate": "2024-01-15T10:45:00Z",
                "description": "Chat records with merchant",
            },
        ],
        "riskScore": 50,
        "aiRecommendation": "review",
        "aiConfidence": 80,
        "aiAnalysis": "Quality dispute with supporting photos; merchant response pending.",
        "status": "pending_risk_review",
        "priority": "low",
        "createdAt": "2024-01-15T11:00:00Z",
        "updatedAt": "2024-01-15T11:00:00Z",
    },
    "duplicate_charge": {
        "id": "3",
        "caseNumber": "CD2024003",
        "category": "PROCESSING_ISSUES",
        "subcategory": "2B_Technical_Processing",
        "reasonCode": "12.6.1",
        "cardNetwork": "Amex",
        "transaction": {
            "id": "txn_003",
            "amount": 3500.00,
            "currency": "USD",
            "merchantName": "Luxury Watches Co.",
            "merchantCategory": "Luxury Goods",
            "transactionDate": "2024-01-13T14:20:00Z",
            "location": "Miami, FL",
            "cardLast4": "2345",
            "sameCardSuccessOrders": 25,
            "sameAddressSuccessOrders": 10,
            "sameIpSuccessOrders": 6,
            "sameDeviceSuccessOrders": 4,
        },
        "customer": {
            "id": "cust_003",
            "name": "Michael Chen",
            "email": "michael.chen@email.com",
            "phone": "+1-555-0789",
            "accountType": "Black Card",
            "creditScore": 820,
            "previousDisputes": 3,
            "disputeCustomerWon": 2,
            "disputePercentage": 6.0,
            "linkedCustomersCount": 2,
            "linkedCustomersDisputeRate": 4.5,
        },
        "disputeReason": "Duplicate Charge",
        "disputeDescription": "Customer claims they were charged twice for the same watch purchase.",
        "evidence": [
            {
                "id": "ev_005",
                "type": "receipt",
                "fileName": "bank_statement.pdf",
                "uploadDate": "2024-01-14T08:00:00Z",
                "description": "Bank statement showing duplicate charges",
            },
        ],
        "riskScore": 75,
        "aiRecommendation": "reject",
        "aiConfidence": 65,
        "aiAnalysis": "High risk. Multiple prior disputes on a large transaction.",
        "status": "internal_analyzing",
        "priority": "high",
        "createdAt": "2024-01-14T09:00:00Z",
        "updatedAt": "2024-01-14T12:30:00Z",
    },
    "uncategorized_service": {
        "id": "5",
        "caseNumber": "CD2024005",
        "transaction": {
            "id": "txn_005",
            "amount": 850.00,
            "currency": "USD",
            "merchantName": "AirTravel Bookings",
            "merchantCategory": "Travel Services",
            "transactionDate": "2024-01-10T16:45:00Z",
            "location": "Chicago, IL",
            "cardLast4": "1234",
        },
        "customer": {
            "id": "cust_005",
            "name": "Robert Wilson",
            "email": "robert.wilson@email.com",
            "phone": "+1-555-0654",
            "accountType": "Gold",
            "creditScore": 695,
            "previousDisputes": 2,
        },
        "disputeReason": "Service Not Provided",
        "disputeDescription": (
            "Travel was cancelled due to a flight cancellation. Merchant refused a refund "
            "citing non-refundable terms."
        ),
        "evidence": [
            {
                "id": "ev_007",
                "type": "communication",
                "fileName": "flight_cancellation.pdf",
                "uploadDate": "2024-01-11T10:00:00Z",
                "description": "Airline flight cancellation notice",
            },
        ],
        "riskScore": 55,
        "aiRecommendation": "review",
        "aiConfidence": 78,
        "aiAnalysis": "Medium risk. Refund grounds depend on the merchant's service terms.",
        "status": "pending_risk_review",
        "priority": "medium",
        "createdAt": "2024-01-11T12:00:00Z",
        "updatedAt": "2024-01-11T12:00:00Z",
    },
}


def load_case(name: str) -> CaseRecord:
    """Build a fresh CaseRecord for a named scenario."""
    if name not in SCENARIOS:
        raise KeyError(f"Unknown scenario '{name}'. Available: {sorted(SCENARIOS)}")
    return CaseRecord.from_payload(deepcopy(SCENARIOS[name]))
