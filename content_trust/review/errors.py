"""Errors raised to vote submitters before any state change."""


class VoteValidationError(ValueError):
    """The vote is malformed or not allowed for this item."""


class DuplicateVoteError(VoteValidationError):
    """The reviewer already voted on this item."""
