"""Provider configuration models."""

from pydantic import BaseModel, Field


class LLMProviderConfig(BaseModel):
    """OpenAI-compatible chat completion endpoint used as the LLM judge."""

    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="Base URL of the chat completions API",
    )
    model: str = Field(
        default="openai/gpt-4o-mini",
        description="Model identifier sent with every request",
    )
    api_key_env: str = Field(
        default="EMMA_LLM_API_KEY",
        description="Environment variable holding the API key",
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP timeout")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: int = Field(default=800, ge=1)


class ProvidersConfig(BaseModel):
    """AI provider configuration."""

    llm: LLMProviderConfig = Field(
        default_factory=LLMProviderConfig,
        description="LLM judge provider",
    )
