"""OpenAI-compatible chat completions judge over httpx."""

import os
from typing import Any

import httpx

from emma.config.models.providers import LLMProviderConfig
from emma.observability.logging import get_logger
from emma.providers.llm.base import (
    AuthenticationError,
    ContentFilterError,
    LLMJudge,
    LLMResponse,
    ModelError,
    ProviderError,
    RateLimitError,
    TokenUsage,
)

logger = get_logger(__name__)


class HttpLLMJudge(LLMJudge):
    """LLM judge backed by any OpenAI-compatible /chat/completions API.

    Works against OpenRouter, OpenAI, Azure OpenAI deployments behind a
    compatible gateway, or a local server. Failures are mapped onto the
    ProviderError hierarchy; no retries are attempted here.
    """

    def __init__(
        self,
        config: LLMProviderConfig,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the HTTP judge.

        Args:
            config: Endpoint, model and sampling configuration
            api_key: API key (defaults to the env var named in config)
            client: Optional pre-built client (tests inject a MockTransport)
        """
        self._config = config
        self._api_key = api_key or os.environ.get(config.api_key_env)
        if not self._api_key:
            raise AuthenticationError(f"{config.api_key_env} environment variable not set")

        self._url = config.base_url.rstrip("/") + "/chat/completions"
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "http"

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def complete_agent_request(
        self,
        system_prompt: str,
        user_prompt: str,
        trace_id: str,
    ) -> LLMResponse:
        """Send one chat completion request."""
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            "X-Trace-Id": trace_id,
        }
        payload: dict[str, Any] = {
            "model": self._config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
        }

        logger.debug(
            "llm_judge_request",
            model=self._config.model,
            prompt_chars=len(system_prompt) + len(user_prompt),
        )

        try:
            response = await self._client.post(self._url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise ProviderError(f"LLM request failed: {exc}") from exc

        if response.status_code != 200:
            self._raise_for_status(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(f"LLM response was not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ProviderError("LLM response was not a JSON object")
        choices = data.get("choices") or []
        if not choices:
            raise ProviderError("LLM response did not contain choices")

        choice = choices[0]
        if choice.get("finish_reason") == "content_filter":
            raise ContentFilterError("LLM response blocked by content filter")

        content = (choice.get("message") or {}).get("content") or ""
        usage = data.get("usage") or {}

        return LLMResponse(
            content=content,
            model=data.get("model", self._config.model),
            finish_reason=choice.get("finish_reason"),
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            ),
        )

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        detail = response.text[:300]
        logger.error("llm_judge_http_error", status_code=status, error=detail)

        if status in (401, 403):
            raise AuthenticationError(f"LLM authentication failed ({status})")
        if status == 429:
            raise RateLimitError("LLM rate limit exceeded")
        if status == 404:
            raise ModelError(f"Model not found: {self._config.model}")
        raise ProviderError(f"LLM request failed ({status}): {detail}")
