from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from finance_assistant.api.dependencies import (
    get_assistant,
    get_bulk,
    get_client,
    get_insights,
    get_service,
)
from finance_assistant.api.schemas import (
    BulkCategorizeRequest,
    BulkCategorizeResponse,
    CategorizeRequest,
    ChatRequest,
    ChatResponse,
    InsightsRequest,
    InsightsResponse,
    StatusResponse,
)
from finance_assistant.integration.openrouter import OpenRouterClient
from finance_assistant.logger import get_logger
from finance_assistant.manager import CategorizerService
from finance_assistant.models import CategorizationResult
from finance_assistant.services.assistant import FinanceAssistant
from finance_assistant.services.bulk import BulkCategorizer
from finance_assistant.services.insights import InsightService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/ai")


@router.post("/chat", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    assistant: Annotated[FinanceAssistant, Depends(get_assistant)],
) -> ChatResponse:
    if not req.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")
    response = await assistant.chat_with_ai(req.message, req.context)
    return ChatResponse(response=response)


@router.post("/categorize", response_model=CategorizationResult)
async def categorize(
    req: CategorizeRequest,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> CategorizationResult:
    return await service.categorize_transaction(req.description, req.amount)


@router.post("/bulk-categorize", response_model=BulkCategorizeResponse)
async def bulk_categorize(
    req: BulkCategorizeRequest,
    bulk: Annotated[BulkCategorizer, Depends(get_bulk)],
) -> BulkCategorizeResponse:
    results = await bulk.bulk_categorize_transactions(req.transactions)
    logger.info("[BULK] Returned %d results for %d items.", len(results), len(req.transactions))
    return BulkCategorizeResponse(results=results)


@router.get("/status", response_model=StatusResponse)
async def status(
    client: Annotated[OpenRouterClient, Depends(get_client)],
) -> StatusResponse:
    available = await client.check_availability()
    models = await client.list_models() if available else []
    message = (
        "AI service is reachable and ready"
        if available
        else "AI service is not available. Check the API key and base URL."
    )
    return StatusResponse(available=available, models=models, message=message)


@router.post("/insights", response_model=InsightsResponse)
async def insights(
    req: InsightsRequest,
    service: Annotated[InsightService, Depends(get_insights)],
) -> InsightsResponse:
    generated = await service.generate_financial_insights(
        req.transactions,
        req.budgets,
        req.goals,
    )
    return InsightsResponse(insights=generated)
