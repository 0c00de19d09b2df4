"""
Shared enums for logscope.

Enums in this module are used by the context, backend, and interception
layers alike. Import from here to avoid cross-module coupling.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class ReversalPolicy(str, Enum):
    """
    How a context unit reports failures of its reversal actions.

    Every recorded action is attempted regardless of the policy. The policy
    only decides what the caller sees afterwards.
    """

    # All per-action failures are suppressed (logged at WARNING)
    SWALLOW = "swallow"

    # All actions run, then the last failure is re-raised
    SURFACE_LAST = "surface_last"


class BackendName(str, Enum):
    """Built-in context store backends selectable through settings."""

    LOCAL = "local"
    STRUCTLOG = "structlog"
    NONE = "none"
