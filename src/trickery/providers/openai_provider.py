"""
OpenAI Chat Completions adapter.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..env import DEFAULT_BASE_URL, ProviderSettings, load_default_env
from ..exceptions import (
    APIError,
    InvalidResponseError,
    MissingCredentialError,
    ProviderError,
    TransportError,
)
from ..types import (
    CompletionRequest,
    CompletionResponse,
    ImagePart,
    Message,
    TextPart,
    ToolCall,
    ToolDefinition,
)
from ..usage import UsageStats
from .base import Provider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-5-mini"
REASONING_MODEL_PREFIXES = ("o1", "o3")


def is_reasoning_model(model: str) -> bool:
    """Whether ``model`` belongs to the reasoning family (no temperature, effort hint)."""
    return model.startswith(REASONING_MODEL_PREFIXES)


def _format_message(message: Message) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"role": message.role.value}
    if message.content is not None:
        parts: List[Dict[str, Any]] = []
        for part in message.content:
            if isinstance(part, TextPart):
                parts.append({"type": "text", "text": part.text})
            elif isinstance(part, ImagePart):
                image_url: Dict[str, Any] = {"url": part.url}
                if part.detail is not None:
                    image_url["detail"] = part.detail
                parts.append({"type": "image_url", "image_url": image_url})
        payload["content"] = parts
    if message.tool_calls is not None:
        payload["tool_calls"] = [
            {
                "id": call.id,
                "type": call.call_type,
                "function": {"name": call.name, "arguments": call.arguments},
            }
            for call in message.tool_calls
        ]
    if message.tool_call_id is not None:
        payload["tool_call_id"] = message.tool_call_id
    return payload


def _format_tool(definition: ToolDefinition) -> Dict[str, Any]:
    return {
        "type": definition.tool_type,
        "function": {
            "name": definition.name,
            "description": definition.description,
            "parameters": definition.parameters,
        },
    }


class OpenAIProvider(Provider):
    """
    Adapter that speaks to an OpenAI-compatible Chat Completions endpoint.

    SDK-level retries are disabled: each ``complete`` call issues exactly one
    HTTP request and any failure is surfaced to the caller.

    Example:
        >>> provider = OpenAIProvider.from_env()
        >>> provider.complete(CompletionRequest([Message.user("Hi")])).content
        'Hello! How can I help you?'
    """

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        *,
        default_model: str = DEFAULT_MODEL,
        timeout: Optional[float] = None,
        http_client: Any = None,
        async_http_client: Any = None,
    ):
        """
        Args:
            api_key: API key. Required; use ``from_env`` to read it from the environment.
            base_url: Endpoint root (default: https://api.openai.com/v1).
            default_model: Model used when a request carries no override.
            timeout: Optional per-request timeout in seconds, forwarded to the transport.
            http_client: Optional ``httpx.Client`` (connection pooling, proxies, tests).
            async_http_client: Optional ``httpx.AsyncClient`` for ``acomplete``.

        Raises:
            MissingCredentialError: If ``api_key`` is empty.
            ProviderError: If the ``openai`` package is not installed.
        """
        if not api_key:
            raise MissingCredentialError("OPENAI_API_KEY")

        try:
            from openai import AsyncOpenAI, OpenAI
        except ImportError as exc:
            raise ProviderError(
                "openai package not installed. Install with `pip install openai`."
            ) from exc

        self.api_key = api_key
        self.base_url = base_url or DEFAULT_BASE_URL
        self.default_model = default_model
        self.timeout = timeout

        client_kwargs: Dict[str, Any] = {
            "api_key": self.api_key,
            "base_url": self.base_url,
            "max_retries": 0,
        }
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        self._client = OpenAI(http_client=http_client, **client_kwargs)
        self._async_client = AsyncOpenAI(http_client=async_http_client, **client_kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "OpenAIProvider":
        """
        Build a provider from ``OPENAI_API_KEY`` and ``OPENAI_BASE_URL``.

        A ``.env`` file is consulted first for local development.

        Raises:
            MissingCredentialError: If ``OPENAI_API_KEY`` is not set.
        """
        load_default_env()
        settings = ProviderSettings.from_env()
        return cls(api_key=settings.api_key, base_url=settings.base_url, **kwargs)

    def build_payload(self, request: CompletionRequest) -> Dict[str, Any]:
        """Translate ``request`` into Chat Completions keyword arguments."""
        model = request.model or self.default_model
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [_format_message(m) for m in request.messages],
        }
        if request.tools:
            payload["tools"] = [_format_tool(t) for t in request.tools]
        if request.max_tokens is not None:
            payload["max_completion_tokens"] = request.max_tokens

        if is_reasoning_model(model):
            if request.reasoning_level is not None:
                payload["reasoning_effort"] = request.reasoning_level.value
        elif request.temperature is not None:
            payload["temperature"] = request.temperature
        return payload

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        from openai import APIConnectionError, APIResponseValidationError, APIStatusError

        payload = self.build_payload(request)
        self._log_request(payload)
        try:
            response = self._client.chat.completions.create(**payload)
        except APIStatusError as exc:
            raise APIError(exc.status_code, exc.response.text) from exc
        except APIConnectionError as exc:
            raise self._transport_error(exc) from exc
        except (APIResponseValidationError, ValueError) as exc:
            raise InvalidResponseError(str(exc)) from exc
        return self._parse_response(response)

    async def acomplete(self, request: CompletionRequest) -> CompletionResponse:
        """Async version of complete() using the AsyncOpenAI client."""
        from openai import APIConnectionError, APIResponseValidationError, APIStatusError

        payload = self.build_payload(request)
        self._log_request(payload)
        try:
            response = await self._async_client.chat.completions.create(**payload)
        except APIStatusError as exc:
            raise APIError(exc.status_code, exc.response.text) from exc
        except APIConnectionError as exc:
            raise self._transport_error(exc) from exc
        except (APIResponseValidationError, ValueError) as exc:
            raise InvalidResponseError(str(exc)) from exc
        return self._parse_response(response)

    def _log_request(self, payload: Dict[str, Any]) -> None:
        logger.debug(
            "POST %s/chat/completions model=%s messages=%d tools=%d",
            self.base_url,
            payload["model"],
            len(payload["messages"]),
            len(payload.get("tools", [])),
        )

    @staticmethod
    def _transport_error(exc: Exception) -> TransportError:
        from openai import APITimeoutError

        cause = exc.__cause__ or exc
        return TransportError(str(cause), timed_out=isinstance(exc, APITimeoutError))

    def _parse_response(self, response: Any) -> CompletionResponse:
        choices = getattr(response, "choices", None)
        if not choices:
            raise InvalidResponseError("No choices in response")
        choice = choices[0]
        message = choice.message

        tool_calls: Optional[List[ToolCall]] = None
        if message.tool_calls is not None:
            tool_calls = [
                ToolCall(
                    id=call.id,
                    name=call.function.name,
                    arguments=call.function.arguments,
                    call_type=call.type or "function",
                )
                for call in message.tool_calls
            ]

        usage = UsageStats()
        if response.usage is not None:
            usage = UsageStats(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
                total_tokens=response.usage.total_tokens or 0,
            )

        logger.debug(
            "Completion finished: finish_reason=%s tool_calls=%d total_tokens=%d",
            choice.finish_reason,
            len(tool_calls or []),
            usage.total_tokens,
        )
        return CompletionResponse(
            content=message.content,
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason or "",
            usage=usage,
        )


__all__ = ["OpenAIProvider", "DEFAULT_MODEL", "is_reasoning_model"]
