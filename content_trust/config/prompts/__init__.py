"""Prompt templates for LLM-powered agents.

Every template embeds user text only after it has passed through
content_trust.llm.sanitizer.sanitize_for_prompt(), and every template asks
for structured JSON output.

Modules:
    precheck_prompts: verification pre-check
    claim_prompts: claim extraction (with strict retry suffix)
    fact_check_prompts: per-claim fact checking
    discussion_prompts: thread quality and reply roles
    scoring_prompts: value scoring and explanations
"""

from content_trust.config.prompts.precheck_prompts import (
    PRECHECK_SYSTEM_PROMPT,
    PRECHECK_USER_PROMPT,
    PRECHECK_QUOTED_BLOCK,
    PRECHECK_SCHEMA,
)
from content_trust.config.prompts.claim_prompts import (
    CLAIM_EXTRACTION_SYSTEM_PROMPT,
    CLAIM_EXTRACTION_USER_PROMPT,
    CLAIM_QUOTED_BLOCK,
    CLAIM_IMAGE_BLOCK,
    CLAIM_STRICT_SUFFIX,
    CLAIM_EXTRACTION_SCHEMA,
)
from content_trust.config.prompts.fact_check_prompts import (
    FACT_CHECK_SYSTEM_PROMPT,
    FACT_CHECK_USER_PROMPT,
    FACT_CHECK_SCHEMA,
)
from content_trust.config.prompts.discussion_prompts import (
    DISCUSSION_SYSTEM_PROMPT,
    DISCUSSION_USER_PROMPT,
    DISCUSSION_REPLY_LINE,
    DISCUSSION_SCHEMA,
)
from content_trust.config.prompts.scoring_prompts import (
    VALUE_SCORING_SYSTEM_PROMPT,
    VALUE_SCORING_USER_PROMPT,
    VALUE_SCORING_SCHEMA,
    EXPLANATION_SYSTEM_PROMPT,
    EXPLANATION_USER_PROMPT,
    EXPLANATION_SCHEMA,
)

__all__ = [
    "PRECHECK_SYSTEM_PROMPT",
    "PRECHECK_USER_PROMPT",
    "PRECHECK_QUOTED_BLOCK",
    "PRECHECK_SCHEMA",
    "CLAIM_EXTRACTION_SYSTEM_PROMPT",
    "CLAIM_EXTRACTION_USER_PROMPT",
    "CLAIM_QUOTED_BLOCK",
    "CLAIM_IMAGE_BLOCK",
    "CLAIM_STRICT_SUFFIX",
    "CLAIM_EXTRACTION_SCHEMA",
    "FACT_CHECK_SYSTEM_PROMPT",
    "FACT_CHECK_USER_PROMPT",
    "FACT_CHECK_SCHEMA",
    "DISCUSSION_SYSTEM_PROMPT",
    "DISCUSSION_USER_PROMPT",
    "DISCUSSION_REPLY_LINE",
    "DISCUSSION_SCHEMA",
    "VALUE_SCORING_SYSTEM_PROMPT",
    "VALUE_SCORING_USER_PROMPT",
    "VALUE_SCORING_SCHEMA",
    "EXPLANATION_SYSTEM_PROMPT",
    "EXPLANATION_USER_PROMPT",
    "EXPLANATION_SCHEMA",
]
