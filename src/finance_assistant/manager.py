from dataclasses import dataclass
from typing import Literal

from finance_assistant.classifiers.llm import LLMClassifier
from finance_assistant.classifiers.rules import RuleBasedCategorizer
from finance_assistant.domain.outcome import FailureReason
from finance_assistant.integration.openrouter import OpenRouterClient
from finance_assistant.logger import get_logger
from finance_assistant.models import DEFAULT_CATEGORY, CategorizationResult

logger = get_logger(__name__)

MODEL_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.3
ERROR_CONFIDENCE = 0.1


@dataclass(frozen=True)
class CategorizationOutcome:
    result: CategorizationResult
    source: Literal["llm", "rules", "error"]
    failure: FailureReason | None = None
    detail: str | None = None


def error_result() -> CategorizationResult:
    return CategorizationResult(
        category=DEFAULT_CATEGORY,
        confidence=ERROR_CONFIDENCE,
        tags=["error"],
    )


class CategorizerService:
    """Model first, keyword rules when the model cannot answer."""

    def __init__(
        self,
        client: OpenRouterClient | None = None,
        rules: RuleBasedCategorizer | None = None,
    ) -> None:
        self.client = client or OpenRouterClient()
        self.llm = LLMClassifier(self.client)
        self.rules = rules or RuleBasedCategorizer()

    async def categorize_detailed(self, description: str, amount: float) -> CategorizationOutcome:
        outcome = await self.llm.classify(description, amount)
        if outcome.ok and outcome.value:
            category = outcome.value
            logger.debug("[CATEGORIZE] Model assigned '%s' to '%s'.", category, description[:50])
            return CategorizationOutcome(
                result=CategorizationResult(
                    category=category,
                    confidence=MODEL_CONFIDENCE,
                    tags=[category.lower()],
                ),
                source="llm",
            )

        category = self.rules.categorize(description)
        logger.warning(
            "[CATEGORIZE] Model unavailable for '%s' (%s); rules assigned '%s'.",
            description[:50],
            outcome.describe(),
            category,
        )
        return CategorizationOutcome(
            result=CategorizationResult(
                category=category,
                confidence=FALLBACK_CONFIDENCE,
                tags=["fallback"],
            ),
            source="rules",
            failure=outcome.failure,
            detail=outcome.detail,
        )

    async def categorize_transaction(self, description: str, amount: float) -> CategorizationResult:
        try:
            outcome = await self.categorize_detailed(description, amount)
        except Exception:
            logger.exception("[CATEGORIZE] Could not categorize %r.", description)
            return error_result()
        return outcome.result
