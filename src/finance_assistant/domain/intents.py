from enum import Enum


class Intent(str, Enum):
    CATEGORY_SPEND = "category_spend"
    CREDIT_CARD_SPEND = "credit_card_spend"
    TOP_CATEGORIES = "top_categories"
    CASH_POSITION = "cash_position"
    SUBSCRIPTIONS = "subscriptions"
    NONE = "none"


CREDIT_CARD_KEYWORDS = ("credit card",)
TOP_CATEGORY_KEYWORDS = ("top categories", "top category")
CASH_KEYWORDS = ("cash", "checking", "savings")
SUBSCRIPTION_KEYWORDS = ("subscription", "recurring")
SPEND_KEYWORDS = ("spend", "spending")
MONTH_KEYWORDS = ("month", "monthly")


def _mentions(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def classify_intent(message: str) -> Intent:
    """Map a question to the first matching intent.

    Groups are checked in priority order: credit card, top categories, cash
    (unless subscriptions are also mentioned), subscriptions, then spending
    with a monthly qualifier.
    """
    text = message.lower()
    if _mentions(text, CREDIT_CARD_KEYWORDS):
        return Intent.CREDIT_CARD_SPEND
    if _mentions(text, TOP_CATEGORY_KEYWORDS):
        return Intent.TOP_CATEGORIES
    if _mentions(text, CASH_KEYWORDS) and not _mentions(text, SUBSCRIPTION_KEYWORDS):
        return Intent.CASH_POSITION
    if _mentions(text, SUBSCRIPTION_KEYWORDS):
        return Intent.SUBSCRIPTIONS
    if _mentions(text, SPEND_KEYWORDS) and _mentions(text, MONTH_KEYWORDS):
        return Intent.CATEGORY_SPEND
    return Intent.NONE
