from fastapi import HTTPException, Request

from finance_assistant.integration.openrouter import OpenRouterClient
from finance_assistant.manager import CategorizerService
from finance_assistant.services.assistant import FinanceAssistant
from finance_assistant.services.bulk import BulkCategorizer
from finance_assistant.services.insights import InsightService


def _state(request: Request, name: str, detail: str = "Service not initialized"):
    value = getattr(request.app.state, name, None)
    if not value:
        raise HTTPException(status_code=500, detail=detail)
    return value


def get_client(request: Request) -> OpenRouterClient:
    return _state(request, "client", "Model client not configured")


def get_service(request: Request) -> CategorizerService:
    return _state(request, "service")


def get_bulk(request: Request) -> BulkCategorizer:
    return _state(request, "bulk")


def get_assistant(request: Request) -> FinanceAssistant:
    return _state(request, "assistant")


def get_insights(request: Request) -> InsightService:
    return _state(request, "insights")
