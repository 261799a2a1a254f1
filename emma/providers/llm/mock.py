"""Mock LLM judge for testing."""

import asyncio
from typing import Any

from emma.providers.llm.base import LLMJudge, LLMResponse, TokenUsage


class MockLLMJudge(LLMJudge):
    """Mock LLM judge for testing.

    Returns configurable responses without making actual API calls.
    Responses are consumed in order; the last one repeats. An exception
    instance in the response list is raised instead of returned.
    """

    def __init__(
        self,
        responses: list[str | BaseException] | None = None,
        default_model: str = "mock-model",
        delay_seconds: float = 0.0,
    ):
        """Initialize mock judge.

        Args:
            responses: Ordered responses (or exceptions) to hand out
            default_model: Model name to report
            delay_seconds: Artificial latency per call
        """
        self._responses: list[str | BaseException] = responses or ["{}"]
        self._default_model = default_model
        self._delay_seconds = delay_seconds
        self._call_history: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    def clear_history(self) -> None:
        """Clear call history."""
        self._call_history.clear()

    async def complete_agent_request(
        self,
        system_prompt: str,
        user_prompt: str,
        trace_id: str,
    ) -> LLMResponse:
        """Return the next configured response."""
        index = min(len(self._call_history), len(self._responses) - 1)
        self._call_history.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "trace_id": trace_id,
        })

        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)

        response = self._responses[index]
        if isinstance(response, BaseException):
            raise response

        return LLMResponse(
            content=response,
            model=self._default_model,
            finish_reason="stop",
            usage=TokenUsage(
                prompt_tokens=(len(system_prompt) + len(user_prompt)) // 4,
                completion_tokens=len(response) // 4,
                total_tokens=(len(system_prompt) + len(user_prompt) + len(response)) // 4,
            ),
        )
