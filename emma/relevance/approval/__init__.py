"""User approval workflow."""

from emma.relevance.approval.manager import (
    ApprovalManager,
    apply_modifications,
    is_similar_action,
)
from emma.relevance.approval.models import (
    ApprovalDecision,
    ApprovalRecommendation,
    ApprovalStatus,
    UserApprovalRequest,
    UserApprovalResponse,
)

__all__ = [
    "ApprovalDecision",
    "ApprovalManager",
    "ApprovalRecommendation",
    "ApprovalStatus",
    "UserApprovalRequest",
    "UserApprovalResponse",
    "apply_modifications",
    "is_similar_action",
]
