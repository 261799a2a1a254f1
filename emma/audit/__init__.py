"""Audit trail of relevance validation results."""

from emma.audit.trail import DEFAULT_CAPACITY, AuditTrail

__all__ = ["AuditTrail", "DEFAULT_CAPACITY"]
