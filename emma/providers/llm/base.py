"""LLM judge interface, data models and error types.

The relevance engines only need one request/response operation: send a
system prompt and a user prompt, get text back. Implementations raise the
ProviderError family; the engines absorb those errors.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class TokenUsage(BaseModel):
    """Token usage statistics."""

    prompt_tokens: int = Field(default=0, description="Tokens in prompt")
    completion_tokens: int = Field(default=0, description="Tokens in completion")
    total_tokens: int = Field(default=0, description="Total tokens used")


class LLMResponse(BaseModel):
    """Response from an LLM call."""

    content: str = Field(..., description="Generated text")
    model: str = Field(default="unknown", description="Model used")
    finish_reason: str | None = Field(
        default=None, description="Why generation stopped"
    )
    usage: TokenUsage | None = Field(default=None, description="Token usage stats")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Execution metadata"
    )


class LLMJudge(ABC):
    """Abstract request/response LLM completion service."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def complete_agent_request(
        self,
        system_prompt: str,
        user_prompt: str,
        trace_id: str,
    ) -> LLMResponse:
        """Complete a single judgment request.

        Args:
            system_prompt: Role instructions
            user_prompt: The judgment request
            trace_id: Correlation id forwarded to the provider

        Returns:
            LLMResponse whose content is expected to be JSON

        Raises:
            ProviderError: On any provider-side failure
        """
        pass


# ============================================================================
# Error Types
# ============================================================================


class ProviderError(Exception):
    """Base exception for LLM provider errors."""

    pass


class AuthenticationError(ProviderError):
    """Invalid or missing API key."""

    pass


class RateLimitError(ProviderError):
    """Rate limit exceeded."""

    pass


class ModelError(ProviderError):
    """Model not found or unavailable."""

    pass


class ContentFilterError(ProviderError):
    """Content blocked by safety filter."""

    pass
