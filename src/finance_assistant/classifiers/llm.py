import re

from finance_assistant.domain.outcome import FailureReason, Outcome
from finance_assistant.integration.openrouter import ChatMessage, OpenRouterClient
from finance_assistant.logger import get_logger
from finance_assistant.models import CATEGORIES

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a financial transaction categorizer. Given a transaction description "
    "and amount, respond with ONLY one of these categories: "
    f"{', '.join(CATEGORIES)}. Do not include any other text in your response."
)

_NON_ALPHA = re.compile(r"[^a-zA-Z]")

CATEGORY_ALIASES: dict[str, str] = {
    "food": "Food & Dining",
    "dining": "Food & Dining",
    "transportation": "Transportation",
    "transport": "Transportation",
    "shopping": "Shopping",
    "entertainment": "Entertainment",
    "healthcare": "Healthcare",
    "health": "Healthcare",
    "utilities": "Utilities",
    "utility": "Utilities",
    "housing": "Housing",
    "home": "Housing",
    "education": "Education",
    "travel": "Travel",
    "insurance": "Insurance",
    "investment": "Investment",
    "salary": "Salary",
    "freelance": "Freelance",
    "gifts": "Gifts",
    "gift": "Gifts",
    "subscriptions": "Subscriptions",
    "subscription": "Subscriptions",
    "other": "Other",
}


def clean_reply(reply: str) -> str:
    """First line of the reply, letters only, lowercased."""
    stripped = reply.strip()
    first_line = stripped.splitlines()[0] if stripped else ""
    return _NON_ALPHA.sub("", first_line).lower()


def _build_lookup() -> dict[str, str]:
    lookup = {_NON_ALPHA.sub("", name).lower(): name for name in CATEGORIES}
    lookup.update(CATEGORY_ALIASES)
    return lookup


_LOOKUP = _build_lookup()


def map_category(token: str) -> str | None:
    return _LOOKUP.get(token)


class LLMClassifier:
    def __init__(self, client: OpenRouterClient) -> None:
        self.client = client

    def build_messages(self, description: str, amount: float) -> list[ChatMessage]:
        return [
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(
                role="user",
                content=f'Categorize this transaction: "{description}" ${amount}',
            ),
        ]

    async def classify(self, description: str, amount: float) -> Outcome[str]:
        reply = await self.client.try_complete(self.build_messages(description, amount))
        if not reply.ok or reply.value is None:
            return Outcome.failed(reply.failure or FailureReason.EMPTY_CONTENT, reply.detail)

        token = clean_reply(reply.value)
        if not token:
            return Outcome.failed(FailureReason.EMPTY_CONTENT, f"unusable reply {reply.value!r}")

        category = map_category(token)
        if category is None:
            logger.debug("[CATEGORIZE] Model reply %r is not a known category.", reply.value)
            return Outcome.failed(FailureReason.UNMAPPED_CATEGORY, token)
        return Outcome.success(category)
