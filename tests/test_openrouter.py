from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from finance_assistant.core.settings import ModelConfig
from finance_assistant.domain.outcome import FailureReason
from finance_assistant.integration.openrouter import ChatMessage, ModelError, OpenRouterClient

CONFIG = ModelConfig(api_key="key", base_url="https://api")
MESSAGES = [ChatMessage(role="user", content="hello")]


def _response(payload: Any = None, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        error_response = MagicMock()
        error_response.status_code = status_code
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "failed", request=MagicMock(), response=error_response
        )
    else:
        response.raise_for_status.return_value = None
    return response


def _http_client(**methods: AsyncMock) -> AsyncMock:
    client = AsyncMock()
    client.is_closed = False
    for name, method in methods.items():
        setattr(client, name, method)
    return client


def test_headers_include_auth_and_site_metadata() -> None:
    client = OpenRouterClient(
        ModelConfig(
            api_key="key",
            base_url="https://api",
            site_url="https://site.test",
            site_name="Finance",
        )
    )

    assert client.headers["Authorization"] == "Bearer key"
    assert client.headers["HTTP-Referer"] == "https://site.test"
    assert client.headers["X-Title"] == "Finance"


def test_headers_omit_unconfigured_values() -> None:
    client = OpenRouterClient(ModelConfig(api_key=None, base_url="https://api"))

    assert "Authorization" not in client.headers
    assert "HTTP-Referer" not in client.headers
    assert "X-Title" not in client.headers
    assert client.headers["Content-Type"] == "application/json"


@pytest.mark.anyio
async def test_availability_without_key_makes_no_request() -> None:
    http = _http_client(get=AsyncMock())
    client = OpenRouterClient(ModelConfig(api_key=None), client=http)

    assert await client.check_availability() is False
    assert await client.list_models() == []
    http.get.assert_not_called()


@pytest.mark.anyio
async def test_availability_without_base_url() -> None:
    http = _http_client(get=AsyncMock())
    client = OpenRouterClient(ModelConfig(api_key="key", base_url=None), client=http)

    assert await client.check_availability() is False
    http.get.assert_not_called()


@pytest.mark.anyio
async def test_availability_probe_success_then_network_failure() -> None:
    http = _http_client(
        get=AsyncMock(
            side_effect=[
                _response({"data": []}),
                httpx.ConnectError("offline"),
            ]
        )
    )
    client = OpenRouterClient(CONFIG, client=http)

    assert await client.check_availability() is True
    assert await client.check_availability() is False
    assert http.get.call_args.args[0] == "https://api/models"


@pytest.mark.anyio
async def test_list_models_returns_ids_and_empty_on_error() -> None:
    http = _http_client(
        get=AsyncMock(
            side_effect=[
                _response({"data": [{"id": "model-a"}, {"id": "model-b"}]}),
                _response(status_code=500),
                _response({"unexpected": True}),
            ]
        )
    )
    client = OpenRouterClient(CONFIG, client=http)

    assert await client.list_models() == ["model-a", "model-b"]
    assert await client.list_models() == []
    assert await client.list_models() == []


@pytest.mark.anyio
async def test_complete_posts_fixed_sampling_parameters() -> None:
    http = _http_client(
        post=AsyncMock(return_value=_response({"choices": [{"message": {"content": " Food \n"}}]}))
    )
    client = OpenRouterClient(
        ModelConfig(api_key="key", base_url="https://api/", model="test/model", timeout=5.0),
        client=http,
    )

    content = await client.complete(MESSAGES)

    assert content == "Food"
    url = http.post.call_args.args[0]
    kwargs = http.post.call_args.kwargs
    assert url == "https://api/chat/completions"
    assert kwargs["json"] == {
        "messages": [{"role": "user", "content": "hello"}],
        "temperature": 0.7,
        "top_p": 0.9,
        "max_tokens": 200,
        "model": "test/model",
    }
    assert kwargs["timeout"] == 5.0
    assert kwargs["headers"]["Authorization"] == "Bearer key"


def test_request_body_omits_model_when_not_configured() -> None:
    client = OpenRouterClient(CONFIG)

    body = client.build_request_body(MESSAGES)

    assert "model" not in body
    assert client.build_request_body(MESSAGES, model="override")["model"] == "override"


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("effect", "reason"),
    [
        (_response(status_code=401), FailureReason.HTTP_STATUS),
        (httpx.ConnectError("offline"), FailureReason.NETWORK),
        (httpx.ReadTimeout("slow"), FailureReason.TIMEOUT),
        (_response({"choices": []}), FailureReason.MALFORMED_RESPONSE),
        (_response({"result": "no choices"}), FailureReason.MALFORMED_RESPONSE),
        (_response({"choices": [{"message": {"content": "   "}}]}), FailureReason.EMPTY_CONTENT),
        (_response({"choices": [{"message": {}}]}), FailureReason.EMPTY_CONTENT),
    ],
)
async def test_complete_failures_raise_model_error(effect: Any, reason: FailureReason) -> None:
    if isinstance(effect, Exception):
        post = AsyncMock(side_effect=effect)
    else:
        post = AsyncMock(return_value=effect)
    client = OpenRouterClient(CONFIG, client=_http_client(post=post))

    with pytest.raises(ModelError) as excinfo:
        await client.complete(MESSAGES)

    assert excinfo.value.reason == reason


@pytest.mark.anyio
async def test_try_complete_reports_missing_key_as_failure() -> None:
    http = _http_client(post=AsyncMock())
    client = OpenRouterClient(ModelConfig(api_key=""), client=http)

    outcome = await client.try_complete(MESSAGES)

    assert not outcome.ok
    assert outcome.failure == FailureReason.NOT_CONFIGURED
    http.post.assert_not_called()
