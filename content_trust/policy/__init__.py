"""Publish-status policy."""

from content_trust.policy.policy_resolver import (
    InvalidTransitionError,
    PolicyResolver,
    TERMINAL_STATUSES,
)

__all__ = ["InvalidTransitionError", "PolicyResolver", "TERMINAL_STATUSES"]
