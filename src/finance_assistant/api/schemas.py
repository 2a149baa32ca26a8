from typing import Any

from pydantic import BaseModel, Field

from finance_assistant.models import (
    Budget,
    CategorizationResult,
    FinancialInsight,
    Goal,
    Transaction,
)


class ChatRequest(BaseModel):
    message: str = ""
    context: dict[str, Any] | None = None


class ChatResponse(BaseModel):
    response: str


class CategorizeRequest(BaseModel):
    description: str = Field(min_length=1)
    amount: float


class BulkCategorizeRequest(BaseModel):
    # Items stay raw so one unreadable entry cannot reject the whole batch
    transactions: list[dict[str, Any]]


class BulkCategorizeResponse(BaseModel):
    results: dict[str, CategorizationResult]


class StatusResponse(BaseModel):
    available: bool
    models: list[str]
    message: str


class InsightsRequest(BaseModel):
    transactions: list[Transaction] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)


class InsightsResponse(BaseModel):
    insights: list[FinancialInsight]
