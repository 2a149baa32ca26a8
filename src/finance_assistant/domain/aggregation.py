from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from finance_assistant.domain.dates import parse_date, start_of_month
from finance_assistant.models import (
    DEFAULT_CATEGORY,
    Account,
    AccountType,
    BillingCycle,
    Subscription,
    Transaction,
    TransactionType,
)

TOP_CATEGORY_LIMIT = 5
TOP_CATEGORY_WINDOW_DAYS = 30
UPCOMING_LOOKAHEAD_DAYS = 14

MONTHLY_MULTIPLIERS: dict[BillingCycle, float] = {
    BillingCycle.WEEKLY: 4.33,
    BillingCycle.MONTHLY: 1.0,
    BillingCycle.QUARTERLY: 1 / 3,
    BillingCycle.YEARLY: 1 / 12,
}

CASH_ACCOUNT_TYPES = (AccountType.CHECKING, AccountType.SAVINGS)


@dataclass(frozen=True)
class Expense:
    description: str
    amount: float
    date: date
    category: str
    on_credit_card: bool


@dataclass(frozen=True)
class MonthSpend:
    start: date
    end: date
    credit_cards: float
    other_accounts: float
    expenses: tuple[Expense, ...]
    by_category: tuple[tuple[str, float], ...]

    @property
    def total(self) -> float:
        return self.credit_cards + self.other_accounts

    @property
    def empty(self) -> bool:
        return not self.expenses

    def largest(self, count: int = 3) -> tuple[Expense, ...]:
        return self.expenses[:count]


@dataclass(frozen=True)
class CategoryTotals:
    start: date
    end: date
    entries: tuple[tuple[str, float], ...]

    @property
    def empty(self) -> bool:
        return not self.entries


@dataclass(frozen=True)
class CashPosition:
    total: float
    accounts: tuple[Account, ...]


@dataclass(frozen=True)
class UpcomingCharge:
    name: str
    amount: float
    date: date


@dataclass(frozen=True)
class SubscriptionSummary:
    monthly_total: float
    count: int
    upcoming: tuple[UpcomingCharge, ...]


def _category_of(transaction: Transaction) -> str:
    category = (transaction.category or "").strip()
    return category or DEFAULT_CATEGORY


def _ranked(totals: dict[str, float]) -> tuple[tuple[str, float], ...]:
    return tuple(sorted(totals.items(), key=lambda entry: (-entry[1], entry[0])))


def is_credit_card(transaction: Transaction, accounts_by_id: dict[str, Account]) -> bool:
    """Linked account record wins; the transaction's own account type is the fallback."""
    if transaction.account_id and transaction.account_id in accounts_by_id:
        return accounts_by_id[transaction.account_id].type == AccountType.CREDIT_CARD
    return transaction.account_type == AccountType.CREDIT_CARD


def expenses_between(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> list[tuple[Transaction, date]]:
    """EXPENSE records dated within ``[start, end]``; unreadable dates are skipped."""
    selected: list[tuple[Transaction, date]] = []
    for transaction in transactions:
        if transaction.type != TransactionType.EXPENSE:
            continue
        when = parse_date(transaction.date)
        if when is None or when < start or when > end:
            continue
        selected.append((transaction, when))
    return selected


def month_spend(
    transactions: Sequence[Transaction],
    accounts: Sequence[Account],
    now: datetime,
) -> MonthSpend:
    start = start_of_month(now)
    end = now.date()
    accounts_by_id = {account.id: account for account in accounts}

    credit_cards = 0.0
    other_accounts = 0.0
    by_category: dict[str, float] = defaultdict(float)
    expenses: list[Expense] = []
    for transaction, when in expenses_between(transactions, start, end):
        amount = abs(transaction.amount)
        on_credit_card = is_credit_card(transaction, accounts_by_id)
        if on_credit_card:
            credit_cards += amount
        else:
            other_accounts += amount
        category = _category_of(transaction)
        by_category[category] += amount
        expenses.append(
            Expense(
                description=(transaction.description or "").strip() or "Unnamed expense",
                amount=amount,
                date=when,
                category=category,
                on_credit_card=on_credit_card,
            )
        )

    expenses.sort(key=lambda expense: (-expense.amount, expense.date))
    return MonthSpend(
        start=start,
        end=end,
        credit_cards=credit_cards,
        other_accounts=other_accounts,
        expenses=tuple(expenses),
        by_category=_ranked(by_category),
    )


def top_categories(
    transactions: Sequence[Transaction],
    now: datetime,
    limit: int = TOP_CATEGORY_LIMIT,
    window_days: int = TOP_CATEGORY_WINDOW_DAYS,
) -> CategoryTotals:
    end = now.date()
    start = (now - timedelta(days=window_days)).date()
    totals: dict[str, float] = defaultdict(float)
    for transaction, _ in expenses_between(transactions, start, end):
        totals[_category_of(transaction)] += abs(transaction.amount)
    return CategoryTotals(start=start, end=end, entries=_ranked(totals)[:limit])


def cash_position(accounts: Sequence[Account]) -> CashPosition | None:
    """Checking plus savings balances, or None when neither kind is connected."""
    cash_accounts = tuple(account for account in accounts if account.type in CASH_ACCOUNT_TYPES)
    if not cash_accounts:
        return None
    return CashPosition(
        total=sum(account.balance for account in cash_accounts),
        accounts=cash_accounts,
    )


def monthly_equivalent(subscription: Subscription) -> float:
    return subscription.amount * MONTHLY_MULTIPLIERS[subscription.billing_cycle]


def subscription_summary(
    subscriptions: Sequence[Subscription],
    now: datetime,
    lookahead_days: int = UPCOMING_LOOKAHEAD_DAYS,
) -> SubscriptionSummary:
    today = now.date()
    upcoming: list[UpcomingCharge] = []
    for subscription in subscriptions:
        when = parse_date(subscription.next_billing_date)
        if when is None:
            continue
        # Window is today plus the following lookahead_days - 1 days
        if 0 <= (when - today).days < lookahead_days:
            upcoming.append(
                UpcomingCharge(name=subscription.name, amount=subscription.amount, date=when)
            )

    upcoming.sort(key=lambda charge: (charge.date, charge.name))
    return SubscriptionSummary(
        monthly_total=sum(monthly_equivalent(subscription) for subscription in subscriptions),
        count=len(subscriptions),
        upcoming=tuple(upcoming),
    )
