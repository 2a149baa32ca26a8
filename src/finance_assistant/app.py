from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from finance_assistant.api.routes import ai
from finance_assistant.core import settings
from finance_assistant.integration.openrouter import OpenRouterClient
from finance_assistant.logger import get_logger, setup_logging
from finance_assistant.manager import CategorizerService
from finance_assistant.services.assistant import FinanceAssistant
from finance_assistant.services.bulk import BulkCategorizer
from finance_assistant.services.insights import InsightService

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        config = settings.ModelConfig.from_env()
        if not config.api_key:
            logger.warning("OPENROUTER_API_KEY not set. Answers will use rules and snapshot data only.")

        client = OpenRouterClient(config)
        service = CategorizerService(client=client)

        app.state.client = client
        app.state.service = service
        app.state.bulk = BulkCategorizer(service, concurrency=settings.get_bulk_concurrency())
        app.state.assistant = FinanceAssistant(client)
        app.state.insights = InsightService(client)

        logger.info("Services initialized (model=%s).", config.model or "provider default")
        yield
        await client.aclose()
        logger.info("Service shutting down.")

    app = FastAPI(title="Finance Assistant", lifespan=lifespan)
    app.include_router(ai.router)
    return app


app = create_app()
