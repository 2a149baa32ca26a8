from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FailureReason(str, Enum):
    NOT_CONFIGURED = "not_configured"
    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    MALFORMED_RESPONSE = "malformed_response"
    EMPTY_CONTENT = "empty_content"
    UNMAPPED_CATEGORY = "unmapped_category"
    MALFORMED_ITEM = "malformed_item"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or the reason it could not be produced."""

    value: T | None = None
    failure: FailureReason | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, reason: FailureReason, detail: str | None = None) -> "Outcome[T]":
        return cls(failure=reason, detail=detail)

    def describe(self) -> str:
        if self.ok:
            return "ok"
        reason = self.failure.value if self.failure else "unknown"
        return f"{reason}: {self.detail}" if self.detail else reason
