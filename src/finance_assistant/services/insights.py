from collections.abc import Sequence

from finance_assistant.domain.money import format_currency
from finance_assistant.integration.openrouter import ChatMessage, OpenRouterClient
from finance_assistant.logger import get_logger
from finance_assistant.models import Budget, FinancialInsight, Goal, Transaction

logger = get_logger(__name__)

INSIGHT_PROMPT = (
    "You are a financial advisor. Analyze the given financial data and provide one "
    "specific, actionable insight. Keep your response under 100 words and focus on "
    "practical advice."
)


class InsightService:
    def __init__(self, client: OpenRouterClient) -> None:
        self.client = client

    async def generate_financial_insights(
        self,
        transactions: Sequence[Transaction],
        budgets: Sequence[Budget] = (),
        goals: Sequence[Goal] = (),
    ) -> list[FinancialInsight]:
        total = sum(abs(transaction.amount) for transaction in transactions)
        average = total / max(len(transactions), 1)

        messages = [
            ChatMessage(role="system", content=INSIGHT_PROMPT),
            ChatMessage(
                role="user",
                content=(
                    f"Analyze this financial data: {len(transactions)} transactions, "
                    f"total spent: {format_currency(total)}, average transaction: "
                    f"{format_currency(average)}, {len(budgets)} budgets, {len(goals)} goals."
                ),
            ),
        ]
        outcome = await self.client.try_complete(messages)
        if outcome.ok and outcome.value:
            return [
                FinancialInsight(
                    type="spending_pattern",
                    title="AI Financial Insight",
                    description=outcome.value,
                    severity="medium",
                    actionable=True,
                )
            ]

        logger.warning("[INSIGHTS] Using spending summary (%s).", outcome.describe())
        return [
            FinancialInsight(
                type="spending_pattern",
                title="Spending Summary",
                description=(
                    f"You have {len(transactions)} transactions totaling "
                    f"{format_currency(total)}. Review your spending patterns regularly."
                ),
                severity="low",
                actionable=True,
            )
        ]
