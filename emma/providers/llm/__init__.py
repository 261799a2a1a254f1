"""LLM providers used as relevance judges.

The primary interface is LLMJudge: one system prompt plus one user prompt
in, text out. Implementations:
- HttpLLMJudge: OpenAI-compatible chat completions endpoint
- MockLLMJudge: scripted responses for tests and local development
"""

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
from emma.providers.llm.http import HttpLLMJudge
from emma.providers.llm.mock import MockLLMJudge

__all__ = [
    # Data models
    "LLMResponse",
    "TokenUsage",
    # Errors
    "ProviderError",
    "AuthenticationError",
    "RateLimitError",
    "ModelError",
    "ContentFilterError",
    # Judges
    "LLMJudge",
    "HttpLLMJudge",
    "MockLLMJudge",
]
