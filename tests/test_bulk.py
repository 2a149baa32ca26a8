from unittest.mock import AsyncMock, MagicMock

import pytest

from finance_assistant.domain.outcome import FailureReason, Outcome
from finance_assistant.manager import CategorizerService
from finance_assistant.services.bulk import BulkCategorizer


@pytest.fixture
def offline_service() -> CategorizerService:
    client = MagicMock()
    client.try_complete = AsyncMock(return_value=Outcome.failed(FailureReason.NETWORK, "offline"))
    return CategorizerService(client=client)


@pytest.mark.anyio
async def test_each_item_gets_one_result(offline_service: CategorizerService) -> None:
    bulk = BulkCategorizer(offline_service, concurrency=2)

    results = await bulk.bulk_categorize_transactions(
        [
            {"id": "1", "description": "Starbucks", "amount": -5},
            {"id": 2, "name": "Walmart", "amount": 40},
            {"id": "3", "description": "Uber ride"},
        ]
    )

    assert list(results) == ["1", "2", "3"]
    assert results["1"].category == "Food & Dining"
    assert results["2"].category == "Shopping"
    assert results["3"].category == "Transportation"
    assert all(result.tags == ["fallback"] for result in results.values())


@pytest.mark.anyio
async def test_malformed_item_does_not_affect_others(offline_service: CategorizerService) -> None:
    bulk = BulkCategorizer(offline_service)

    outcomes = await bulk.categorize_detailed(
        [
            {"id": "a", "description": object(), "amount": 1},
            {"id": "b", "description": "Netflix", "amount": 15},
        ]
    )

    assert outcomes["a"].source == "error"
    assert outcomes["a"].failure == FailureReason.MALFORMED_ITEM
    assert outcomes["a"].result.category == "Other"
    assert outcomes["a"].result.confidence == 0.1
    assert outcomes["a"].result.tags == ["error"]
    assert outcomes["b"].result.category == "Entertainment"


@pytest.mark.anyio
async def test_items_without_id_are_skipped_and_duplicates_keep_last(
    offline_service: CategorizerService,
) -> None:
    bulk = BulkCategorizer(offline_service)

    results = await bulk.bulk_categorize_transactions(
        [
            {"description": "No id"},
            {"id": "", "description": "Blank id"},
            {"id": "x", "description": "Starbucks"},
            {"id": "x", "description": "Uber"},
        ]
    )

    assert list(results) == ["x"]
    assert results["x"].category == "Transportation"


@pytest.mark.anyio
async def test_service_exception_is_isolated() -> None:
    service = MagicMock()
    service.categorize_detailed = AsyncMock(side_effect=[RuntimeError("boom"), RuntimeError("boom")])
    bulk = BulkCategorizer(service, concurrency=1)

    results = await bulk.bulk_categorize_transactions(
        [{"id": "1", "description": "a"}, {"id": "2", "description": "b"}]
    )

    assert [result.tags for result in results.values()] == [["error"], ["error"]]


@pytest.mark.anyio
async def test_empty_input(offline_service: CategorizerService) -> None:
    bulk = BulkCategorizer(offline_service)

    assert await bulk.bulk_categorize_transactions([]) == {}
