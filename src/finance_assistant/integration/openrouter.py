import asyncio
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from finance_assistant.core.settings import ModelConfig
from finance_assistant.domain.outcome import FailureReason, Outcome
from finance_assistant.logger import get_logger

logger = get_logger(__name__)

TEMPERATURE = 0.7
TOP_P = 0.9
MAX_TOKENS = 200


class ChatMessage(BaseModel):
    role: Literal["system", "user"]
    content: str


class _ModelEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str


class ModelsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[_ModelEntry]


class _ReplyMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: str | None = None


class _Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: _ReplyMessage


class ChatCompletionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    choices: list[_Choice] = Field(min_length=1)


class ModelError(Exception):
    """A completion could not be obtained; ``reason`` says why."""

    def __init__(self, reason: FailureReason, detail: str | None = None) -> None:
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)
        self.reason = reason
        self.detail = detail


class OpenRouterClient:
    """Client for an OpenRouter-compatible chat completions API."""

    def __init__(
        self,
        config: ModelConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or ModelConfig()
        self.headers = self.build_headers()
        self._client = client
        self._client_lock = asyncio.Lock()

    def build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        if self.config.site_url:
            headers["HTTP-Referer"] = self.config.site_url
        if self.config.site_name:
            headers["X-Title"] = self.config.site_name
        return headers

    @property
    def configured(self) -> bool:
        return self.config.configured

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient()
                self._client = client
            return client

    async def _fetch_models(self) -> ModelsResponse:
        if not self.configured:
            raise ModelError(FailureReason.NOT_CONFIGURED, "API key or base URL missing")

        client = await self._get_client()
        try:
            response = await client.get(
                f"{self.config.endpoint}/models",
                headers=self.headers,
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            return ModelsResponse.model_validate(response.json())
        except httpx.TimeoutException as exc:
            raise ModelError(FailureReason.TIMEOUT, str(exc)) from exc
        except httpx.HTTPStatusError as exc:
            raise ModelError(
                FailureReason.HTTP_STATUS,
                f"status {exc.response.status_code}",
            ) from exc
        except httpx.HTTPError as exc:
            raise ModelError(FailureReason.NETWORK, str(exc)) from exc
        except (ValidationError, ValueError) as exc:
            raise ModelError(FailureReason.MALFORMED_RESPONSE, str(exc)) from exc

    async def check_availability(self) -> bool:
        try:
            await self._fetch_models()
        except ModelError as exc:
            logger.warning("[MODEL] Service unavailable (%s).", exc)
            return False
        return True

    async def list_models(self) -> list[str]:
        try:
            payload = await self._fetch_models()
        except ModelError as exc:
            logger.warning("[MODEL] Could not list models (%s).", exc)
            return []
        return [entry.id for entry in payload.data]

    def build_request_body(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "messages": [message.model_dump() for message in messages],
            "temperature": TEMPERATURE,
            "top_p": TOP_P,
            "max_tokens": MAX_TOKENS,
        }
        # Without a model the provider routes to the account default
        model_name = model or self.config.model
        if model_name:
            body["model"] = model_name
        return body

    async def complete(self, messages: list[ChatMessage], model: str | None = None) -> str:
        if not self.configured:
            raise ModelError(FailureReason.NOT_CONFIGURED, "API key or base URL missing")

        client = await self._get_client()
        body = self.build_request_body(messages, model)
        logger.debug(
            "[MODEL] Requesting completion (model=%s, messages=%d).",
            body.get("model", "default"),
            len(messages),
        )
        try:
            response = await client.post(
                f"{self.config.endpoint}/chat/completions",
                headers=self.headers,
                json=body,
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            payload = ChatCompletionResponse.model_validate(response.json())
        except httpx.TimeoutException as exc:
            raise ModelError(FailureReason.TIMEOUT, str(exc)) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 401:
                detail = "invalid API key"
            elif status == 404:
                detail = f"model not found: {body.get('model', 'default')}"
            elif status == 429:
                detail = "rate limit exceeded"
            else:
                detail = f"status {status}"
            raise ModelError(FailureReason.HTTP_STATUS, detail) from exc
        except httpx.HTTPError as exc:
            raise ModelError(FailureReason.NETWORK, str(exc)) from exc
        except (ValidationError, ValueError) as exc:
            raise ModelError(FailureReason.MALFORMED_RESPONSE, str(exc)) from exc

        content = (payload.choices[0].message.content or "").strip()
        if not content:
            raise ModelError(FailureReason.EMPTY_CONTENT, "completion had no text")
        return content

    async def try_complete(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
    ) -> Outcome[str]:
        try:
            return Outcome.success(await self.complete(messages, model))
        except ModelError as exc:
            logger.warning("[MODEL] Completion failed (%s).", exc)
            return Outcome.failed(exc.reason, exc.detail)
