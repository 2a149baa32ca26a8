from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from finance_assistant.app import app
from finance_assistant.domain.outcome import FailureReason, Outcome
from finance_assistant.manager import CategorizerService
from finance_assistant.services.assistant import FinanceAssistant
from finance_assistant.services.bulk import BulkCategorizer
from finance_assistant.services.insights import InsightService

client = TestClient(app)

_STATE_NAMES = ("client", "service", "bulk", "assistant", "insights")


@pytest.fixture
def mock_model() -> Generator[MagicMock, None, None]:
    originals = {name: getattr(app.state, name, None) for name in _STATE_NAMES}
    present = {name for name in _STATE_NAMES if hasattr(app.state, name)}

    model = MagicMock()
    model.try_complete = AsyncMock(
        return_value=Outcome.failed(FailureReason.NOT_CONFIGURED, "API key or base URL missing")
    )
    model.check_availability = AsyncMock(return_value=False)
    model.list_models = AsyncMock(return_value=[])
    service = CategorizerService(client=model)
    app.state.client = model
    app.state.service = service
    app.state.bulk = BulkCategorizer(service, concurrency=2)
    app.state.assistant = FinanceAssistant(model)
    app.state.insights = InsightService(model)
    yield model

    for name in _STATE_NAMES:
        if name in present:
            setattr(app.state, name, originals[name])
        else:
            delattr(app.state, name)


def test_chat_answers_from_snapshot(mock_model: MagicMock, snapshot: dict[str, Any]) -> None:
    response = client.post(
        "/api/ai/chat",
        json={"message": "show subscriptions", "context": snapshot},
    )

    assert response.status_code == 200
    assert "Estimated monthly subscriptions total: $63.30" in response.json()["response"]
    mock_model.try_complete.assert_not_awaited()


def test_chat_falls_back_to_trouble_message(mock_model: MagicMock) -> None:
    response = client.post("/api/ai/chat", json={"message": "Any tips?"})

    assert response.status_code == 200
    assert "trouble with the AI service" in response.json()["response"]


def test_chat_rejects_blank_message(mock_model: MagicMock) -> None:
    response = client.post("/api/ai/chat", json={"message": "   "})

    assert response.status_code == 400


def test_categorize_uses_rules_when_model_unavailable(mock_model: MagicMock) -> None:
    response = client.post("/api/ai/categorize", json={"description": "Uber ride", "amount": 10})

    assert response.status_code == 200
    assert response.json() == {
        "category": "Transportation",
        "confidence": 0.3,
        "tags": ["fallback"],
    }


def test_categorize_uses_model_answer(mock_model: MagicMock) -> None:
    mock_model.try_complete.return_value = Outcome.success("Shopping")

    response = client.post("/api/ai/categorize", json={"description": "Walmart", "amount": 42})

    assert response.json()["category"] == "Shopping"
    assert response.json()["confidence"] == 0.8


def test_categorize_requires_description(mock_model: MagicMock) -> None:
    response = client.post("/api/ai/categorize", json={"description": "", "amount": 1})

    assert response.status_code == 422


def test_bulk_categorize(mock_model: MagicMock) -> None:
    response = client.post(
        "/api/ai/bulk-categorize",
        json={
            "transactions": [
                {"id": "1", "description": "Walmart", "amount": 50},
                {"id": "2", "name": "Starbucks"},
                {"id": "3", "description": ["not", "text"]},
                {"description": "no id"},
            ]
        },
    )

    assert response.status_code == 200
    results = response.json()["results"]
    assert list(results) == ["1", "2", "3"]
    assert results["1"]["category"] == "Shopping"
    assert results["2"]["category"] == "Food & Dining"
    assert results["3"] == {"category": "Other", "confidence": 0.1, "tags": ["error"]}


def test_status_unavailable(mock_model: MagicMock) -> None:
    response = client.get("/api/ai/status")

    assert response.status_code == 200
    assert response.json()["available"] is False
    assert response.json()["models"] == []
    mock_model.list_models.assert_not_awaited()


def test_status_available(mock_model: MagicMock) -> None:
    mock_model.check_availability.return_value = True
    mock_model.list_models.return_value = ["model-a"]

    response = client.get("/api/ai/status")

    assert response.json()["available"] is True
    assert response.json()["models"] == ["model-a"]


def test_insights_summary_without_model(mock_model: MagicMock) -> None:
    response = client.post(
        "/api/ai/insights",
        json={"transactions": [{"amount": -20, "type": "EXPENSE"}, {"amount": -30, "type": "EXPENSE"}]},
    )

    assert response.status_code == 200
    insight = response.json()["insights"][0]
    assert insight["title"] == "Spending Summary"
    assert "You have 2 transactions totaling $50.00." in insight["description"]


def test_missing_services_return_500() -> None:
    had_assistant = hasattr(app.state, "assistant")
    original = getattr(app.state, "assistant", None)
    app.state.assistant = None
    try:
        response = client.post("/api/ai/chat", json={"message": "hello"})
    finally:
        if had_assistant:
            app.state.assistant = original
        else:
            delattr(app.state, "assistant")

    assert response.status_code == 500
