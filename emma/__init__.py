"""EMMA action relevance validation.

Execution-time checks that decide whether a previously scheduled CRM
action should still fire, be modified, be deferred or be suppressed.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
