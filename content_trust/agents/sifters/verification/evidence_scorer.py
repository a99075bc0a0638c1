"""Evidence quality scoring from the static domain trust table.

Quality is a pure function of the evidence URL's domain:
- curated trusted domains: 0.95
- social platforms: 0.0
- .gov / .edu: 0.85, .org: 0.7
- any other domain: 0.5
- no URL: 0.4

Evidence may arrive from the model as plain strings or objects; URLs are
recovered from markdown links or bare URLs in the text.
"""

import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from loguru import logger

from content_trust.config.domain_trust import (
    BLOCKED_DOMAINS,
    DOMAIN_SUFFIX_DEFAULTS,
    NO_URL_QUALITY,
    TRUSTED_DOMAINS,
    UNKNOWN_DOMAIN_QUALITY,
)
from content_trust.config.settings import settings
from content_trust.data_management.schemas import Evidence

_MARKDOWN_LINK = re.compile(r"\[([^\]]*)\]\((https?://[^)\s]+)\)")
_BARE_URL = re.compile(r"https?://[^\s)\]>\"']+")


class EvidenceScorer:
    """
    Assigns quality scores to evidence and discards untrusted items.

    Usage:
        scorer = EvidenceScorer()
        evidence = scorer.score_all(raw_items)

    Attributes:
        trusted: Domain -> quality for curated sources
        blocked: Domains whose evidence is always discarded
        discard_threshold: Evidence at or below this quality is dropped
    """

    def __init__(
        self,
        trusted: Optional[Dict[str, float]] = None,
        blocked: Optional[List[str]] = None,
        discard_threshold: Optional[float] = None,
    ):
        self.trusted = trusted or TRUSTED_DOMAINS
        self.blocked = blocked or BLOCKED_DOMAINS
        self.discard_threshold = (
            discard_threshold if discard_threshold is not None else settings.evidence_discard_threshold
        )
        self.logger = logger.bind(component="EvidenceScorer")

    @staticmethod
    def domain_of(url: Optional[str]) -> Optional[str]:
        """Lowercase host without a leading www., or None if unparseable."""
        if not url:
            return None
        try:
            host = urlparse(url.strip()).hostname
        except ValueError:
            return None
        if not host:
            return None
        host = host.lower()
        return host[4:] if host.startswith("www.") else host

    def quality_for_url(self, url: Optional[str]) -> float:
        """Trust score for an evidence URL."""
        domain = self.domain_of(url)
        if domain is None:
            return NO_URL_QUALITY

        if self._matches(domain, self.blocked):
            return 0.0
        for trusted_domain, score in self.trusted.items():
            if self._matches(domain, [trusted_domain]):
                return score
        for suffix, score in DOMAIN_SUFFIX_DEFAULTS:
            if domain.endswith(suffix):
                return score
        return UNKNOWN_DOMAIN_QUALITY

    @staticmethod
    def _matches(domain: str, candidates: List[str]) -> bool:
        # exact domain or any subdomain of it
        return any(domain == c or domain.endswith("." + c) for c in candidates)

    def normalize(self, raw: Any) -> Optional[Evidence]:
        """
        Turn one raw evidence entry into an Evidence record with quality set.

        Accepts a string (markdown link, bare URL or plain text) or a dict
        with source/url/snippet keys. A quality value in the raw entry is
        ignored.
        """
        if isinstance(raw, str):
            source, url, snippet = self._parse_string(raw)
        elif isinstance(raw, dict):
            url = raw.get("url") or raw.get("link")
            snippet = str(raw.get("snippet") or raw.get("text") or raw.get("quote") or "")
            source = str(raw.get("source") or raw.get("title") or "")
            if not url:
                _, url, _ = self._parse_string(snippet)
        else:
            return None

        url = str(url).strip() if url else None
        if not (source or url or snippet.strip()):
            return None

        return Evidence(
            source=source or (self.domain_of(url) or "unknown"),
            url=url,
            snippet=snippet.strip()[:500],
            quality=self.quality_for_url(url),
        )

    @staticmethod
    def _parse_string(text: str) -> Tuple[str, Optional[str], str]:
        link = _MARKDOWN_LINK.search(text)
        if link:
            return link.group(1).strip(), link.group(2), text
        bare = _BARE_URL.search(text)
        if bare:
            return "", bare.group(0).rstrip(".,;"), text
        return "", None, text

    def score_all(self, raw_items: Any) -> List[Evidence]:
        """
        Normalize, score and filter a raw evidence list.

        Returns:
            Evidence with quality above the discard threshold, in input order
        """
        if not isinstance(raw_items, list):
            return []

        kept: List[Evidence] = []
        for raw in raw_items:
            evidence = self.normalize(raw)
            if evidence is None:
                continue
            if evidence.quality <= self.discard_threshold:
                self.logger.debug(
                    "Discarding low-quality evidence",
                    url=evidence.url,
                    quality=evidence.quality,
                )
                continue
            kept.append(evidence)
        return kept
