"""Short human-readable explanation of a value score."""

from typing import Optional

from content_trust.agents.base_agent import BaseAgent
from content_trust.config.prompts import (
    EXPLANATION_SCHEMA,
    EXPLANATION_SYSTEM_PROMPT,
    EXPLANATION_USER_PROMPT,
)
from content_trust.data_management.schemas import (
    Claim,
    ContentItem,
    DiscussionAnalysis,
    FactCheck,
    ValueVector,
    Verdict,
)
from content_trust.llm.sanitizer import sanitize_for_prompt

MAX_EXPLANATION_LENGTH = 600


class ExplanationAgent(BaseAgent):
    def __init__(self, **kwargs):
        super().__init__(
            name="ExplanationAgent",
            description="Explains value scores in plain language",
            **kwargs,
        )

    async def run(
        self,
        item: ContentItem,
        value: ValueVector,
        claims: list[Claim],
        fact_checks: list[FactCheck],
        discussion: Optional[DiscussionAnalysis] = None,
    ) -> str:
        scores = ", ".join(f"{k}={v:.2f}" for k, v in value.dimensions().items())
        verdicts = ", ".join(fc.verdict.value for fc in fact_checks) or "none"
        prompt = EXPLANATION_USER_PROMPT.format(
            text=sanitize_for_prompt(item.text, max_length=1000),
            scores=f"{scores}, total={value.total:.2f}",
            drivers=", ".join(value.drivers) or "none",
            verdicts=verdicts,
        )
        raw = await self._infer_json(prompt, EXPLANATION_SCHEMA, system_prompt=EXPLANATION_SYSTEM_PROMPT)
        explanation = raw.get("explanation") if raw else None
        if not isinstance(explanation, str) or not explanation.strip():
            return self.fallback(item, value, claims, fact_checks, discussion)
        return " ".join(explanation.split())[:MAX_EXPLANATION_LENGTH]

    def fallback(
        self,
        item: ContentItem,
        value: ValueVector,
        claims: list[Claim],
        fact_checks: list[FactCheck],
        discussion: Optional[DiscussionAnalysis] = None,
    ) -> str:
        """Template explanation built from the scores."""
        verified = sum(1 for fc in fact_checks if fc.verdict == Verdict.TRUE)
        parts = [
            f"Epistemic {value.epistemic:.2f} driven by {verified} verified claims.",
            f"Insight {value.insight:.2f} from {len(claims)} extracted claims.",
        ]
        if discussion and discussion.per_reply_contribution:
            tq = discussion.thread_quality
            parts.append(
                f"Discussion quality {tq.informativeness:.2f} with civility {tq.civility:.2f}."
            )
        return " ".join(parts)

    def get_capabilities(self) -> list[str]:
        return ["score_explanation"]
