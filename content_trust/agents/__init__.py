"""Content trust agents."""

from content_trust.agents.base_agent import BaseAgent

__all__ = ["BaseAgent"]
