"""Prometheus metrics for action relevance validation.

Counters and histograms are module-level so every validator instance in
the process reports into the same registry.
"""

from prometheus_client import Counter, Gauge, Histogram

# Validation metrics
RELEVANCE_VALIDATIONS = Counter(
    "emma_relevance_validations_total",
    "Total number of action relevance validations",
    labelnames=["method", "outcome"],
)

RELEVANCE_VALIDATION_LATENCY = Histogram(
    "emma_relevance_validation_latency_seconds",
    "Action relevance validation latency in seconds",
    labelnames=["method"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# LLM metrics
LLM_JUDGE_CALLS = Counter(
    "emma_llm_judge_calls_total",
    "Total number of LLM judge calls",
    labelnames=["purpose", "status"],
)

# Audit metrics
AUDIT_TRAIL_ENTRIES = Gauge(
    "emma_audit_trail_entries",
    "Number of validation results held in the in-memory audit trail",
)

# Approval metrics
PENDING_APPROVALS = Gauge(
    "emma_pending_approvals",
    "Number of user approval requests awaiting a decision",
)


def outcome_label(is_relevant: bool) -> str:
    """Map a relevance verdict to the metrics outcome label."""
    return "relevant" if is_relevant else "suppressed"
