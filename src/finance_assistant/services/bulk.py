import asyncio
from collections.abc import Mapping, Sequence
from time import perf_counter
from typing import Any

from finance_assistant.core.settings import DEFAULT_BULK_CONCURRENCY
from finance_assistant.domain.outcome import FailureReason
from finance_assistant.logger import get_logger
from finance_assistant.manager import CategorizationOutcome, CategorizerService, error_result
from finance_assistant.models import BulkItem, CategorizationResult

logger = get_logger(__name__)

RawItem = BulkItem | Mapping[str, Any]


def _item_id(raw: RawItem) -> str | None:
    if isinstance(raw, BulkItem):
        return raw.id
    value = raw.get("id") if isinstance(raw, Mapping) else None
    if value is None or isinstance(value, bool) or not str(value).strip():
        return None
    return str(value)


class BulkCategorizer:
    """Categorizes many items with a bounded number in flight.

    Every item with an id gets exactly one result, whatever happens to the
    others.
    """

    def __init__(
        self,
        service: CategorizerService,
        concurrency: int = DEFAULT_BULK_CONCURRENCY,
    ) -> None:
        self.service = service
        self.concurrency = max(1, concurrency)

    async def _categorize_one(
        self,
        raw: RawItem,
        semaphore: asyncio.Semaphore,
    ) -> CategorizationOutcome:
        async with semaphore:
            try:
                item = raw if isinstance(raw, BulkItem) else BulkItem.model_validate(raw)
                description = item.label
                amount = abs(item.amount or 0.0)
            except Exception as exc:
                logger.warning("[BULK] Unreadable item %s: %s", _item_id(raw), exc)
                return CategorizationOutcome(
                    result=error_result(),
                    source="error",
                    failure=FailureReason.MALFORMED_ITEM,
                    detail=str(exc),
                )

            try:
                return await self.service.categorize_detailed(description, amount)
            except Exception as exc:
                logger.exception("[BULK] Categorization failed for item %s.", item.id)
                return CategorizationOutcome(
                    result=error_result(),
                    source="error",
                    failure=FailureReason.MALFORMED_ITEM,
                    detail=str(exc),
                )

    async def categorize_detailed(
        self,
        items: Sequence[RawItem],
    ) -> dict[str, CategorizationOutcome]:
        keyed: dict[str, RawItem] = {}
        for raw in items:
            item_id = _item_id(raw)
            if item_id is None:
                logger.warning("[BULK] Skipping item without an id.")
                continue
            if item_id in keyed:
                logger.warning("[BULK] Duplicate id %s; keeping the last item.", item_id)
            keyed[item_id] = raw

        started = perf_counter()
        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes = await asyncio.gather(
            *(self._categorize_one(raw, semaphore) for raw in keyed.values())
        )
        results = dict(zip(keyed.keys(), outcomes))

        fallbacks = sum(1 for outcome in outcomes if outcome.source == "rules")
        errors = sum(1 for outcome in outcomes if outcome.source == "error")
        logger.info(
            "[BULK] Categorized %d items in %.2f s (%d fallback, %d error).",
            len(results),
            perf_counter() - started,
            fallbacks,
            errors,
        )
        return results

    async def bulk_categorize_transactions(
        self,
        items: Sequence[RawItem],
    ) -> dict[str, CategorizationResult]:
        outcomes = await self.categorize_detailed(items)
        return {item_id: outcome.result for item_id, outcome in outcomes.items()}
