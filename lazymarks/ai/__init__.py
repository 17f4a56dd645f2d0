"""AI-assisted bookmark suggestions."""

from .client import AIClient, OrganizeSuggestion, Suggestion
from .context import build_context

__all__ = ["AIClient", "OrganizeSuggestion", "Suggestion", "build_context"]
