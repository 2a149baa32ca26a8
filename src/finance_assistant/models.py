from datetime import date, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic.alias_generators import to_camel

from finance_assistant.logger import get_logger

logger = get_logger(__name__)

CATEGORIES: tuple[str, ...] = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Healthcare",
    "Utilities",
    "Housing",
    "Education",
    "Travel",
    "Insurance",
    "Investment",
    "Salary",
    "Freelance",
    "Gifts",
    "Subscriptions",
    "Other",
)

DEFAULT_CATEGORY = "Other"

DateValue = datetime | date | str | None


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT_CARD = "CREDIT_CARD"
    INVESTMENT = "INVESTMENT"
    LOAN = "LOAN"
    OTHER = "OTHER"


class BillingCycle(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


def normalize_enum_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().upper().replace(" ", "_")
    return value


def none_as_zero(value: Any) -> Any:
    return 0.0 if value is None else value


def normalize_id(value: Any) -> Any:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return value


class SnapshotModel(BaseModel):
    """Base for caller-supplied records: camelCase or snake_case keys, extras ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Transaction(SnapshotModel):
    id: str | None = None
    description: str | None = None
    amount: float = 0.0
    type: TransactionType
    date: DateValue = None
    category: str | None = None
    account_id: str | None = None
    account_type: AccountType | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def missing_amount(cls, value: Any) -> Any:
        return none_as_zero(value)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        return normalize_enum_value(value)

    @field_validator("account_type", mode="before")
    @classmethod
    def normalize_account_type(cls, value: Any) -> Any:
        value = normalize_enum_value(value)
        if isinstance(value, str) and value not in AccountType.__members__:
            return AccountType.OTHER
        return value

    @field_validator("id", "account_id", mode="before")
    @classmethod
    def normalize_ids(cls, value: Any) -> Any:
        return normalize_id(value)


class Account(SnapshotModel):
    id: str
    type: AccountType
    balance: float = 0.0
    name: str | None = None
    credit_limit: float | None = None

    @field_validator("balance", mode="before")
    @classmethod
    def missing_balance(cls, value: Any) -> Any:
        return none_as_zero(value)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        value = normalize_enum_value(value)
        if isinstance(value, str) and value not in AccountType.__members__:
            return AccountType.OTHER
        return value

    @field_validator("id", mode="before")
    @classmethod
    def normalize_record_id(cls, value: Any) -> Any:
        return normalize_id(value)


class Subscription(SnapshotModel):
    name: str
    amount: float = 0.0
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    next_billing_date: DateValue = None

    @field_validator("amount", mode="before")
    @classmethod
    def missing_amount(cls, value: Any) -> Any:
        return none_as_zero(value)

    @field_validator("billing_cycle", mode="before")
    @classmethod
    def normalize_cycle(cls, value: Any) -> Any:
        return normalize_enum_value(value)


class Budget(SnapshotModel):
    name: str
    amount: float = 0.0
    category: str | None = None


class Goal(SnapshotModel):
    name: str
    target_amount: float = 0.0
    current_amount: float = 0.0


class FinancialContext(SnapshotModel):
    transactions: list[Transaction] = Field(default_factory=list)
    accounts: list[Account] = Field(default_factory=list)
    subscriptions: list[Subscription] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)

    @field_validator("transactions", "accounts", "subscriptions", "budgets", "goals", mode="wrap")
    @classmethod
    def drop_unreadable(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        """Validate record by record; a bad record is dropped, the rest are kept."""
        if value is None:
            return []
        if not isinstance(value, list | tuple):
            return handler(value)

        kept: list[Any] = []
        for index, item in enumerate(value):
            try:
                kept.extend(handler([item]))
            except ValidationError as exc:
                logger.warning(
                    "[CHAT] Dropping unreadable %s record %d (%d errors).",
                    info.field_name,
                    index,
                    exc.error_count(),
                )
        return kept


class BulkItem(SnapshotModel):
    id: str
    description: str | None = None
    name: str | None = None
    amount: float | None = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_record_id(cls, value: Any) -> Any:
        return normalize_id(value)

    @property
    def label(self) -> str:
        """Text to categorize: description, else name, else empty."""
        return self.description or self.name or ""


class CategorizationResult(BaseModel):
    category: str
    confidence: float = Field(ge=0.0, le=1.0)
    tags: list[str] = Field(default_factory=list)


class FinancialInsight(BaseModel):
    type: Literal[
        "spending_pattern",
        "budget_alert",
        "savings_opportunity",
        "subscription_review",
    ]
    title: str
    description: str
    severity: Literal["low", "medium", "high"]
    actionable: bool
    action: str | None = None
