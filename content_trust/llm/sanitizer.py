"""Prompt-injection hardening for user text embedded in prompts.

Every agent passes user-supplied text (posts, quoted posts, replies, image
text) through sanitize_for_prompt() before formatting it into a template.
The sanitizer neutralizes rather than deletes: replaced spans leave a
bracketed marker so the model still sees that something was there.
"""

import re

MAX_PROMPT_TEXT = 2000
TRUNCATION_MARKER = " [truncated]"

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_CODE_FENCE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"`[^`\n]*`")
_MODEL_TOKENS = re.compile(
    r"\[/?INST\]|<\|im_(start|end)\|>|<\|(system|user|assistant|endoftext)\|>|<</?SYS>>",
    re.IGNORECASE,
)

# (pattern, replacement) applied in order
_INJECTION_RULES: list[tuple[re.Pattern, str]] = [
    (
        re.compile(
            r"\b(ignore|disregard|forget|override)\s+(all\s+|any\s+|the\s+)?"
            r"(previous|prior|above|earlier|preceding)\s+(instructions?|prompts?|rules?|context)",
            re.IGNORECASE,
        ),
        "[instruction removed]",
    ),
    (re.compile(r"\byou\s+are\s+now\b", re.IGNORECASE), "[instruction removed]"),
    (re.compile(r"\bfrom\s+now\s+on\b", re.IGNORECASE), "[instruction removed]"),
    (re.compile(r"\bnew\s+instructions?\s*:", re.IGNORECASE), "[instruction removed]"),
    (
        re.compile(
            r"\b(act|behave|respond)\s+as\s+(if\s+you\s+were\s+)?(an?\s+|the\s+|my\s+)?"
            r"(unrestricted\s+|different\s+|new\s+)?(assistant|ai|model|system|bot|fact[- ]?checker|moderator)\b"
            r"|\bpretend\s+(to\s+be|you\s+are)\b|\b(roleplay|role-play)\s+as\b"
            r"|\b(system|assistant)\s*(prompt|role|message)\s*:",
            re.IGNORECASE,
        ),
        "[role instruction removed]",
    ),
    (
        re.compile(
            r"\b(respond|reply|answer|output)\s+(only\s+)?(with|in)\s+(json|the\s+following|this\s+format)"
            r"|\bset\s+(needsfactcheck|verdict|confidence|score)s?\s*(to|=)"
            r"|\breturn\s+(only\s+)?\{",
            re.IGNORECASE,
        ),
        "[format instruction removed]",
    ),
    (
        re.compile(r"-{3,}\s*(end|begin)\s+(of\s+)?(user|system|content|input)[^\n]*|#{3,}|={5,}", re.IGNORECASE),
        "[delimiter removed]",
    ),
    (
        re.compile(r"^\s*(system|instructions?|assistant)\s*:", re.IGNORECASE | re.MULTILINE),
        "[instruction removed]",
    ),
]

_WHITESPACE = re.compile(r"\s+")


def sanitize_for_prompt(text: str | None, max_length: int = MAX_PROMPT_TEXT) -> str:
    """
    Neutralize prompt-override attempts in user-supplied text.

    Steps:
    1. Strip NUL and other control characters
    2. Replace code fences and inline code
    3. Remove model control tokens ([INST], <|im_start|>, ...)
    4. Replace instruction, role, output-format and delimiter injections
    5. Truncate to max_length with a [truncated] marker
    6. Collapse whitespace

    Args:
        text: Raw user text (None is treated as empty)
        max_length: Maximum characters kept before the truncation marker

    Returns:
        Sanitized single-line text safe to embed in a prompt template
    """
    if not text:
        return ""

    cleaned = _CONTROL_CHARS.sub(" ", text)
    cleaned = _CODE_FENCE.sub("[code block removed]", cleaned)
    cleaned = _INLINE_CODE.sub("[code removed]", cleaned)
    cleaned = _MODEL_TOKENS.sub("", cleaned)

    for pattern, replacement in _INJECTION_RULES:
        cleaned = pattern.sub(replacement, cleaned)

    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length] + TRUNCATION_MARKER

    return _WHITESPACE.sub(" ", cleaned).strip()
