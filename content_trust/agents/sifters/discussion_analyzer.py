"""Discussion analyzer: thread quality and per-reply roles and contributions."""

from typing import Optional

from content_trust.agents.base_agent import BaseAgent
from content_trust.config.prompts import (
    DISCUSSION_REPLY_LINE,
    DISCUSSION_SCHEMA,
    DISCUSSION_SYSTEM_PROMPT,
    DISCUSSION_USER_PROMPT,
)
from content_trust.config.settings import settings
from content_trust.data_management.schemas import (
    ContentItem,
    DiscussionAnalysis,
    ReplyContribution,
    ReplyRole,
    VALUE_DIMENSIONS,
    ThreadQuality,
    ValueVector,
)
from content_trust.llm.sanitizer import sanitize_for_prompt

NO_DISCUSSION_SUMMARY = "No discussion yet."
REPLY_LENGTH_SCALE = 400


class DiscussionAnalyzer(BaseAgent):
    """
    Scores the discussion under a content item.

    At most ``max_replies`` replies are considered. Reply ids returned by
    the model that are not in the input are ignored.
    """

    def __init__(self, max_replies: Optional[int] = None, **kwargs):
        super().__init__(
            name="DiscussionAnalyzer",
            description="Assesses thread quality and reply contributions",
            **kwargs,
        )
        self.max_replies = max_replies or settings.discussion_max_replies

    @staticmethod
    def empty() -> DiscussionAnalysis:
        return DiscussionAnalysis(thread_quality=ThreadQuality(summary=NO_DISCUSSION_SUMMARY))

    async def run(self, item: ContentItem, replies: list[ContentItem]) -> DiscussionAnalysis:
        replies = replies[: self.max_replies]
        if not replies:
            return self.empty()

        replies_block = "\n".join(
            DISCUSSION_REPLY_LINE.format(
                reply_id=sanitize_for_prompt(r.id, max_length=64),
                text=sanitize_for_prompt(r.text, max_length=600),
            )
            for r in replies
        )
        prompt = DISCUSSION_USER_PROMPT.format(
            post_text=sanitize_for_prompt(item.text, max_length=1200),
            replies_block=replies_block,
        )
        raw = await self._infer_json(prompt, DISCUSSION_SCHEMA, system_prompt=DISCUSSION_SYSTEM_PROMPT)
        if raw is None:
            return self.fallback(item, replies)

        tq = raw.get("threadQuality") or raw.get("thread_quality") or {}
        if not isinstance(tq, dict):
            tq = {}
        thread_quality = ThreadQuality(
            informativeness=tq.get("informativeness"),
            civility=tq.get("civility"),
            reasoning_depth=tq.get("reasoningDepth", tq.get("reasoning_depth")),
            cross_perspective=tq.get("crossPerspective", tq.get("cross_perspective")),
            summary=str(tq.get("summary") or ""),
        )

        known_ids = {r.id for r in replies}
        contributions: dict[str, ReplyContribution] = {}
        entries = raw.get("replies") or raw.get("perReplyContribution") or []
        if isinstance(entries, dict):
            entries = [dict(v, id=k) for k, v in entries.items() if isinstance(v, dict)]
        for entry in entries if isinstance(entries, list) else []:
            if not isinstance(entry, dict):
                continue
            reply_id = str(entry.get("id") or entry.get("replyId") or "")
            if reply_id not in known_ids:
                self.logger.debug("Ignoring contribution for unknown reply id")
                continue
            contrib = entry.get("contribution")
            contributions[reply_id] = ReplyContribution(
                role=entry.get("role"),
                contribution=self._vector(contrib),
            )

        return DiscussionAnalysis(
            thread_quality=thread_quality,
            per_reply_contribution=contributions,
        )

    @staticmethod
    def _vector(raw) -> ValueVector:
        if not isinstance(raw, dict):
            return ValueVector()
        fields = {k: raw[k] for k in (*VALUE_DIMENSIONS, "total", "confidence") if k in raw}
        return ValueVector(**fields)

    def fallback(self, item: ContentItem, replies: list[ContentItem]) -> DiscussionAnalysis:
        """Length-based heuristic used when inference is unavailable or failing."""
        replies = replies[: self.max_replies]
        if not replies:
            return self.empty()

        contributions = {}
        for reply in replies:
            text = reply.text or ""
            ls = min(1.0, len(text) / REPLY_LENGTH_SCALE)
            contributions[reply.id] = ReplyContribution(
                role=ReplyRole.QUESTION if "?" in text else ReplyRole.OPINION,
                contribution=ValueVector(
                    epistemic=ls * 0.6,
                    insight=ls * 0.5,
                    practical=ls * 0.3,
                    relational=0.4,
                    effort=ls,
                    total=ls * 0.56,
                    confidence=0.4,
                ),
            )

        return DiscussionAnalysis(
            thread_quality=ThreadQuality(
                informativeness=0.4,
                civility=0.7,
                reasoning_depth=0.35,
                cross_perspective=0.3,
                summary=f"Heuristic assessment of {len(replies)} replies.",
            ),
            per_reply_contribution=contributions,
            heuristic=True,
        )

    def get_capabilities(self) -> list[str]:
        return ["discussion_analysis"]
