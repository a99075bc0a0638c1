"""Data management package for the content trust pipeline.

Storage adapters:
- ContentStore: content items, insights write-back, status compare-and-set
- CommentStore: replies by parent id
- CheckpointStore: per-item pipeline progress and lease
- ReputationStore: user reputation with atomic updates
- ReviewVoteStore: append-only reviewer votes
- ReviewQueue: review and moderation queues
"""

from content_trust.data_management.content_store import ContentStore
from content_trust.data_management.comment_store import CommentStore
from content_trust.data_management.checkpoint_store import CheckpointStore, LeaseStatus
from content_trust.data_management.reputation_store import ReputationStore
from content_trust.data_management.review_vote_store import ReviewVoteStore
from content_trust.data_management.review_queue import ReviewQueue

__all__ = [
    "ContentStore",
    "CommentStore",
    "CheckpointStore",
    "LeaseStatus",
    "ReputationStore",
    "ReviewVoteStore",
    "ReviewQueue",
]
