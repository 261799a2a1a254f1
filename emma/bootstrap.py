"""Bootstrap module for wiring a validator from configuration.

Example usage:

    from emma.bootstrap import create_validator

    validator = create_validator(context_source=my_context_source)

    result = await validator.validate_action_relevance(request)

Collaborators that are not passed in are built from settings: an
HttpLLMJudge (needs the API key env var named in providers.llm), a
StaticPromptSource, and an empty InMemoryContextSource.
"""

from datetime import timedelta

from prometheus_client import start_http_server

from emma.config import Settings, get_settings
from emma.observability.logging import get_logger, setup_logging
from emma.providers.llm import HttpLLMJudge, LLMJudge
from emma.relevance.sources import (
    ContextSource,
    InMemoryContextSource,
    PromptSource,
    StaticPromptSource,
)
from emma.relevance.validator import ActionRelevanceValidator

logger = get_logger(__name__)


def create_validator(
    settings: Settings | None = None,
    context_source: ContextSource | None = None,
    prompt_source: PromptSource | None = None,
    llm_judge: LLMJudge | None = None,
    configure_logging: bool = True,
    serve_metrics: bool = False,
) -> ActionRelevanceValidator:
    """Build an ActionRelevanceValidator from settings.

    Args:
        settings: Settings to use (default: get_settings())
        context_source: Contact context supplier (default: empty in-memory source)
        prompt_source: System prompt supplier (default: packaged prompts)
        llm_judge: LLM judge (default: HttpLLMJudge from providers.llm)
        configure_logging: Apply observability.logging to structlog
        serve_metrics: Start the prometheus HTTP endpoint when metrics are enabled

    Returns:
        Configured validator

    Raises:
        AuthenticationError: If no judge is given and the API key is not set
    """
    settings = settings or get_settings()
    observability = settings.observability

    if configure_logging:
        setup_logging(
            level=observability.logging.level,
            format=observability.logging.format,
            redact_pii=observability.logging.redact_pii,
        )

    if serve_metrics and observability.metrics.enabled:
        start_http_server(observability.metrics.port)
        logger.info("metrics_server_started", port=observability.metrics.port)

    if context_source is None:
        logger.warning("context_source_defaulted", source="in_memory")
        context_source = InMemoryContextSource()

    relevance = settings.relevance
    validator = ActionRelevanceValidator(
        context_source=context_source,
        llm_judge=llm_judge or HttpLLMJudge(settings.providers.llm),
        prompt_source=prompt_source or StaticPromptSource(),
        config=relevance.policy,
        batch_concurrency=relevance.batch_concurrency,
        audit_capacity=relevance.audit_capacity,
        alternative_delay=timedelta(minutes=relevance.alternative_delay_minutes),
    )

    logger.info(
        "validator_created",
        app_name=settings.app_name,
        batch_concurrency=relevance.batch_concurrency,
        audit_capacity=relevance.audit_capacity,
        enable_llm_validation=relevance.policy.enable_llm_validation,
    )
    return validator
