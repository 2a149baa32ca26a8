from datetime import date

from finance_assistant.domain.aggregation import (
    CashPosition,
    CategoryTotals,
    MonthSpend,
    SubscriptionSummary,
)
from finance_assistant.domain.money import format_currency

NO_MONTH_EXPENSES = (
    "I do not see any expense transactions for this month yet. "
    "Once purchases come in I can break them down by account."
)
NO_RECENT_EXPENSES = (
    "I do not see any recent expense transactions from the last 30 days, "
    "so there are no top categories to show yet."
)
NO_CASH_ACCOUNTS = (
    "No checking or savings accounts are connected yet, "
    "so I cannot calculate your cash on hand."
)
NO_SUBSCRIPTIONS = (
    "No subscriptions are connected yet. "
    "Add your recurring services to see a monthly estimate."
)
UNREADABLE_CONTEXT = (
    "I could not read your financial data for this question. "
    "Please refresh your accounts and try again."
)


def _day(value: date) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def _partition_lines(spend: MonthSpend) -> list[str]:
    return [
        f"Credit cards: {format_currency(spend.credit_cards)}",
        f"Other accounts: {format_currency(spend.other_accounts)}",
    ]


def _largest_line(spend: MonthSpend) -> str:
    items = ", ".join(
        f"{expense.description} ({format_currency(expense.amount)})"
        for expense in spend.largest()
    )
    return f"Largest expenses: {items}."


def format_month_spend(spend: MonthSpend) -> str:
    if spend.empty:
        return NO_MONTH_EXPENSES

    lines = [
        f"Since {_day(spend.start)}, your total spending: {format_currency(spend.total)}.",
        *_partition_lines(spend),
    ]
    categories = ", ".join(
        f"{name} ({format_currency(amount)})" for name, amount in spend.by_category[:5]
    )
    lines.append(f"By category: {categories}.")
    lines.append(_largest_line(spend))
    return "\n".join(lines)


def format_credit_card_spend(spend: MonthSpend) -> str:
    if spend.empty:
        return NO_MONTH_EXPENSES

    card_count = sum(1 for expense in spend.expenses if expense.on_credit_card)
    lines = [
        f"This month (since {_day(spend.start)}) your total spending: "
        f"{format_currency(spend.total)}.",
        *_partition_lines(spend),
    ]
    if card_count:
        noun = "purchase" if card_count == 1 else "purchases"
        lines.append(f"{card_count} {noun} went on credit cards.")
    else:
        lines.append("None of this month's expenses went on a credit card.")
    lines.append(_largest_line(spend))
    return "\n".join(lines)


def format_top_categories(totals: CategoryTotals) -> str:
    if totals.empty:
        return NO_RECENT_EXPENSES

    lines = ["Top categories (last 30 days):"]
    for rank, (name, amount) in enumerate(totals.entries, start=1):
        lines.append(f"{rank}. {name}: {format_currency(amount)}")
    return "\n".join(lines)


def format_cash_position(position: CashPosition | None) -> str:
    if position is None:
        return NO_CASH_ACCOUNTS

    noun = "account" if len(position.accounts) == 1 else "accounts"
    lines = [
        f"Checking + savings cash on hand: {format_currency(position.total)} "
        f"across {len(position.accounts)} {noun}."
    ]
    for account in position.accounts:
        label = account.name or account.type.value.title()
        lines.append(f"- {label}: {format_currency(account.balance)}")
    return "\n".join(lines)


def format_subscriptions(summary: SubscriptionSummary) -> str:
    if summary.count == 0:
        return NO_SUBSCRIPTIONS

    noun = "subscription" if summary.count == 1 else "subscriptions"
    lines = [
        f"Estimated monthly subscriptions total: {format_currency(summary.monthly_total)} "
        f"across {summary.count} {noun}."
    ]
    if summary.upcoming:
        lines.append("Upcoming:")
        for charge in summary.upcoming:
            lines.append(
                f"- {charge.name}: {format_currency(charge.amount)} on {charge.date.isoformat()}"
            )
    return "\n".join(lines)
