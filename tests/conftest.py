from datetime import datetime, timezone
from typing import Any

import pytest

NOW = datetime(2026, 2, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def snapshot() -> dict[str, Any]:
    return {
        "transactions": [
            {
                "description": "Groceries",
                "amount": -100,
                "category": "Groceries",
                "type": "EXPENSE",
                "date": "2026-02-10",
                "accountId": "cc1",
            },
            {
                "description": "Gas",
                "amount": -50,
                "category": "Transportation",
                "type": "EXPENSE",
                "date": "2026-02-12",
                "accountType": "CHECKING",
            },
            {
                "description": "Salary",
                "amount": 200,
                "type": "INCOME",
                "date": "2026-02-11",
            },
            {
                "description": "Old",
                "amount": -40,
                "type": "EXPENSE",
                "date": "2025-12-01",
            },
            {
                "description": "Invalid",
                "amount": -20,
                "type": "EXPENSE",
                "date": "invalid",
            },
        ],
        "accounts": [
            {"id": "cc1", "type": "CREDIT_CARD", "balance": -200},
            {"id": "chk1", "type": "CHECKING", "balance": 800},
            {"id": "sav1", "type": "SAVINGS", "balance": 500},
        ],
        "subscriptions": [
            {
                "name": "Weekly",
                "amount": 10,
                "billingCycle": "WEEKLY",
                "nextBillingDate": "2026-02-20",
            },
            {
                "name": "Quarterly",
                "amount": 30,
                "billingCycle": "QUARTERLY",
                "nextBillingDate": "2026-02-25",
            },
            {
                "name": "Yearly",
                "amount": 120,
                "billingCycle": "YEARLY",
                "nextBillingDate": "2026-03-01",
            },
        ],
    }
