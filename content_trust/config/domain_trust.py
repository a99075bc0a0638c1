"""Static trust tables and keyword lists used by the scoring agents.

Evidence quality hierarchy (most to least trusted):
1. Curated institutions and wire services (WHO, CDC, Reuters, AP): 0.95
2. Government and educational domains (.gov, .edu): 0.85
3. Non-profit organizations (.org): 0.7
4. Unknown domains: 0.5
5. Evidence without a URL: 0.4
6. Social platforms (Facebook, Reddit, TikTok): 0.0 (discarded)

Value weights are keyed by the dominant claim domain of an item.
"""

from typing import Dict, List, Tuple

# Curated high-trust sources
# Key: registrable domain (lowercase, no www.)
TRUSTED_DOMAINS: Dict[str, float] = {
    "who.int": 0.95,
    "cdc.gov": 0.95,
    "nih.gov": 0.95,
    "fda.gov": 0.95,
    "worldbank.org": 0.95,
    "imf.org": 0.95,
    "reuters.com": 0.95,
    "apnews.com": 0.95,
    "nature.com": 0.95,
    "science.org": 0.95,
    "ft.com": 0.95,
    "nytimes.com": 0.95,
    "theguardian.com": 0.95,
}

# Platforms whose content never counts as evidence
BLOCKED_DOMAINS: List[str] = [
    "facebook.com",
    "twitter.com",
    "x.com",
    "reddit.com",
    "tiktok.com",
    "instagram.com",
    "telegram.org",
]

# Suffix defaults for domains not listed above
DOMAIN_SUFFIX_DEFAULTS: List[Tuple[str, float]] = [
    (".gov", 0.85),
    (".edu", 0.85),
    (".org", 0.7),
]

UNKNOWN_DOMAIN_QUALITY = 0.5
NO_URL_QUALITY = 0.4

# Topics that by themselves raise pre-check risk
HIGH_RISK_TOPICS: List[str] = [
    "health",
    "medical",
    "finance",
    "money",
    "invest",
    "stocks",
    "economy",
    "politics",
    "election",
    "science",
    "vaccine",
]

HIGH_RISK_KEYWORDS: List[str] = [
    "vaccine",
    "treatment",
    "cancer",
    "covid",
    "virus",
    "pandemic",
    "inflation",
    "recession",
    "investment",
    "returns",
    "guaranteed",
    "election",
    "vote",
    "fraud",
    "war",
    "nuclear",
    "autism",
    "cure",
]

STAT_PATTERNS: List[str] = [
    r"\d+(\.\d+)?\s?%",
    r"\b\d+\s+out\s+of\s+\d+\b",
    r"\b\d{4}\b",
    r"\b(million|billion|trillion)\b",
]

AUTHORITY_PATTERNS: List[str] = [
    r"\baccording to\b",
    r"\bstud(y|ies) (show|shows|found|finds)\b",
    r"\bresearch (indicates|shows|suggests)\b",
    r"\bexperts? (say|says|claim|claims)\b",
    r"\bscientists?\b",
    r"\bdoctors?\b",
]

OPINION_MARKERS: List[str] = [
    r"\bi think\b",
    r"\bi believe\b",
    r"\bin my opinion\b",
    r"\bimo\b",
    r"\bimho\b",
    r"\bi feel\b",
    r"\bpersonally\b",
]

# Claim domains for which an unresolved verdict requires human review
HIGH_RISK_DOMAINS: List[str] = ["health", "finance", "politics", "science"]

CLAIM_DOMAINS: List[str] = [
    "health",
    "finance",
    "politics",
    "technology",
    "science",
    "society",
    "productivity",
    "design",
    "startups",
    "general",
]

# Fallback claim risk: sentence mentions one of these
MEDIUM_RISK_TERMS: List[str] = [
    "health",
    "medical",
    "vaccine",
    "finance",
    "money",
    "investment",
    "politic",
    "election",
]

# Order: epistemic, insight, practical, relational, effort
VALUE_WEIGHTS: Dict[str, Dict[str, float]] = {
    "health": {"epistemic": 0.35, "insight": 0.25, "practical": 0.20, "relational": 0.10, "effort": 0.10},
    "politics": {"epistemic": 0.35, "insight": 0.25, "practical": 0.20, "relational": 0.10, "effort": 0.10},
    "technology": {"epistemic": 0.25, "insight": 0.35, "practical": 0.20, "relational": 0.10, "effort": 0.10},
    "startups": {"epistemic": 0.25, "insight": 0.35, "practical": 0.20, "relational": 0.10, "effort": 0.10},
    "ai": {"epistemic": 0.25, "insight": 0.35, "practical": 0.20, "relational": 0.10, "effort": 0.10},
    "productivity": {"epistemic": 0.20, "insight": 0.25, "practical": 0.35, "relational": 0.10, "effort": 0.10},
    "design": {"epistemic": 0.20, "insight": 0.25, "practical": 0.35, "relational": 0.10, "effort": 0.10},
}

DEFAULT_VALUE_WEIGHTS: Dict[str, float] = {
    "epistemic": 0.30,
    "insight": 0.25,
    "practical": 0.20,
    "relational": 0.15,
    "effort": 0.10,
}

# Risk multipliers when picking the dominant domain
DOMAIN_RISK_WEIGHTS: Dict[str, float] = {"high": 2.0, "medium": 1.5, "low": 1.0}

# Sites targeted by the authority search variant, per claim domain
AUTHORITY_SITES: Dict[str, List[str]] = {
    "health": ["who.int", "cdc.gov", "nih.gov"],
    "finance": ["reuters.com", "imf.org", "worldbank.org"],
    "politics": ["reuters.com", "apnews.com"],
    "science": ["nature.com", "science.org"],
}
DEFAULT_AUTHORITY_SITES: List[str] = ["reuters.com", "apnews.com"]
