from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from finance_assistant.domain import aggregation, formatting
from finance_assistant.domain.dates import resolve_now
from finance_assistant.domain.intents import Intent, classify_intent
from finance_assistant.domain.money import format_currency
from finance_assistant.domain.outcome import Outcome
from finance_assistant.integration.openrouter import ChatMessage, OpenRouterClient
from finance_assistant.logger import get_logger
from finance_assistant.models import FinancialContext, TransactionType

logger = get_logger(__name__)

ADVICE_PROMPT = (
    "You are a helpful financial assistant. Provide brief, practical financial advice. "
    "Keep responses under 150 words and focus on actionable tips."
)


def trouble_message(message: str) -> str:
    return (
        "I'm having trouble with the AI service right now. "
        f'Your question: "{message}" - I\'d recommend checking your recent '
        "transactions and budgets manually for now."
    )


def summarize_snapshot(context: FinancialContext) -> str:
    """One line describing the snapshot, for the model prompt."""
    spent = sum(
        abs(transaction.amount)
        for transaction in context.transactions
        if transaction.type == TransactionType.EXPENSE
    )
    return (
        f"Snapshot: {len(context.transactions)} transactions "
        f"({format_currency(spent)} in expenses), {len(context.accounts)} accounts, "
        f"{len(context.subscriptions)} subscriptions."
    )


class FinanceAssistant:
    """Answers questions from the snapshot, asking the model only as a last resort."""

    def __init__(
        self,
        client: OpenRouterClient,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.client = client
        self.clock = clock

    def _now(self, now: datetime | None) -> datetime:
        if now is None and self.clock is not None:
            now = self.clock()
        return resolve_now(now)

    def answer(self, intent: Intent, context: FinancialContext, now: datetime) -> str | None:
        """Deterministic answer for ``intent``, or None when there is none."""
        if intent in (Intent.CATEGORY_SPEND, Intent.CREDIT_CARD_SPEND):
            spend = aggregation.month_spend(context.transactions, context.accounts, now)
            if intent == Intent.CREDIT_CARD_SPEND:
                return formatting.format_credit_card_spend(spend)
            return formatting.format_month_spend(spend)
        if intent == Intent.TOP_CATEGORIES:
            return formatting.format_top_categories(
                aggregation.top_categories(context.transactions, now)
            )
        if intent == Intent.CASH_POSITION:
            return formatting.format_cash_position(aggregation.cash_position(context.accounts))
        if intent == Intent.SUBSCRIPTIONS:
            return formatting.format_subscriptions(
                aggregation.subscription_summary(context.subscriptions, now)
            )
        return None

    async def ask_model(self, message: str, context: FinancialContext) -> Outcome[str]:
        messages = [
            ChatMessage(role="system", content=f"{ADVICE_PROMPT}\n{summarize_snapshot(context)}"),
            ChatMessage(role="user", content=message),
        ]
        return await self.client.try_complete(messages)

    async def chat_with_ai(
        self,
        message: str,
        context: FinancialContext | Mapping[str, Any] | None = None,
        now: datetime | None = None,
    ) -> str:
        try:
            snapshot = (
                context
                if isinstance(context, FinancialContext)
                else FinancialContext.model_validate(context or {})
            )
        except ValidationError as exc:
            logger.warning("[CHAT] Rejected financial context: %d errors.", exc.error_count())
            return formatting.UNREADABLE_CONTEXT

        intent = classify_intent(message)
        logger.debug("[CHAT] Intent %s for %r.", intent.value, message[:80])
        if intent != Intent.NONE:
            try:
                reply = self.answer(intent, snapshot, self._now(now))
            except (ArithmeticError, TypeError, ValueError):
                logger.exception("[CHAT] Could not build a %s answer; asking the model.", intent.value)
                reply = None
            if reply is not None:
                return reply

        outcome = await self.ask_model(message, snapshot)
        if outcome.ok and outcome.value:
            return outcome.value
        logger.warning("[CHAT] Model could not answer (%s).", outcome.describe())
        return trouble_message(message)
