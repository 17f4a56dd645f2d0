"""Anthropic Messages API client for title/folder/tag suggestions.

Requests ask for structured JSON output so the reply can be decoded
directly. Every failure (missing key, HTTP error, malformed reply) is
raised as ``ExternalServiceFailure``; callers decide the fallback.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field

import requests

from ..errors import ExternalServiceFailure

logger = logging.getLogger(__name__)

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"
BETA_HEADER = "structured-outputs-2025-11-13"
MODEL = "claude-haiku-4-5-20251001"
API_KEY_ENV = "ANTHROPIC_API_KEY"
MAX_TOKENS = 256
REQUEST_TIMEOUT_SECONDS = 30


@dataclass(frozen=True)
class Suggestion:
    title: str
    folder_path: str
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class OrganizeSuggestion:
    folder_path: str
    is_new_folder: bool
    tags: list[str] = field(default_factory=list)
    confidence: str = "low"


_SUGGEST_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "folderPath": {"type": "string"},
        "tags": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["title", "folderPath", "tags"],
    "additionalProperties": False,
}

_ORGANIZE_SCHEMA = {
    "type": "object",
    "properties": {
        "folderPath": {"type": "string"},
        "isNewFolder": {"type": "boolean"},
        "suggestedTags": {"type": "array", "items": {"type": "string"}},
        "confidence": {"type": "string"},
    },
    "required": ["folderPath", "isNewFolder", "suggestedTags", "confidence"],
    "additionalProperties": False,
}


def build_suggest_prompt(url: str, context: str) -> str:
    return (
        "Analyze this URL and suggest a title, folder, and tags for bookmarking.\n\n"
        f"URL: {url}\n\n"
        f"{context}\n\n"
        "Instructions:\n"
        "- Suggest a concise, descriptive title for this bookmark\n"
        "- Choose the most appropriate folder path from the available folders\n"
        '- If no folder fits well, use "/To Review"\n'
        "- Suggest 1-3 relevant tags, preferring existing tags when they fit\n"
        "- If suggesting new tags, keep them lowercase and concise"
    )


def build_organize_prompt(
    title: str,
    url: str,
    current_path: str,
    tags: list[str],
    is_folder: bool,
    context: str,
) -> str:
    item_type = "folder" if is_folder else "bookmark"
    url_line = f"\n- URL: {url}" if url else ""
    tags_line = f"\n- Current tags: {', '.join(tags)}" if tags else ""
    if is_folder:
        tag_rules = "\n- Return empty array for suggestedTags (folders don't have tags)"
    else:
        tag_rules = (
            "\n- Suggest 1-3 relevant tags for this bookmark"
            "\n- Prefer existing tags when they fit well"
            "\n- If current tags are already optimal, return them as-is"
            "\n- Keep tags lowercase and concise"
            "\n- Return empty array only if no tags are appropriate"
        )
    return (
        f"Analyze this {item_type} and suggest the best organization.\n\n"
        f"Item:\n- Title: {title}{url_line}\n- Current folder: {current_path}{tags_line}\n\n"
        f"{context}\n\n"
        "Instructions:\n"
        "- Prefer existing folders when they fit well\n"
        "- Only suggest a new folder path if nothing existing is appropriate\n"
        "- Set isNewFolder=true only when suggesting a folder that doesn't exist\n"
        "- If current location is already optimal, return the current path exactly\n"
        '- Confidence: "high" if clear match, "medium" if reasonable, "low" if uncertain'
        f"{tag_rules}"
    )


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


class AIClient:
    """Thin wrapper around one ``requests.Session``."""

    def __init__(
        self,
        api_key: str | None = None,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.environ.get(API_KEY_ENV, "")
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _complete(self, prompt: str, schema: dict[str, object]) -> dict[str, object]:
        if not self.api_key:
            raise ExternalServiceFailure(f"{API_KEY_ENV} environment variable not set")
        body = {
            "model": MODEL,
            "max_tokens": MAX_TOKENS,
            "messages": [{"role": "user", "content": prompt}],
            "output_format": {"type": "json_schema", "schema": schema},
        }
        headers = {
            "content-type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": API_VERSION,
            "anthropic-beta": BETA_HEADER,
        }
        try:
            response = self.session.post(API_URL, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ExternalServiceFailure(f"API request failed: {exc}") from exc
        if response.status_code != 200:
            raise ExternalServiceFailure(f"API request failed: status {response.status_code}")

        try:
            payload = response.json()
            block = payload["content"][0]
            if block.get("type") != "text":
                raise ValueError("first content block is not text")
            result = json.loads(block["text"])
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ExternalServiceFailure(f"invalid API response: {exc}") from exc
        if not isinstance(result, dict):
            raise ExternalServiceFailure("invalid API response: expected an object")
        logger.debug("AI reply: %s", result)
        return result

    def suggest_bookmark(self, url: str, context: str) -> Suggestion:
        result = self._complete(build_suggest_prompt(url, context), _SUGGEST_SCHEMA)
        title = result.get("title")
        folder_path = result.get("folderPath")
        return Suggestion(
            title=title.strip() if isinstance(title, str) and title.strip() else url,
            folder_path=folder_path if isinstance(folder_path, str) else "/",
            tags=_string_list(result.get("tags")),
        )

    def suggest_organize(
        self,
        title: str,
        url: str,
        current_path: str,
        tags: list[str],
        is_folder: bool,
        context: str,
    ) -> OrganizeSuggestion:
        prompt = build_organize_prompt(title, url, current_path, tags, is_folder, context)
        result = self._complete(prompt, _ORGANIZE_SCHEMA)
        folder_path = result.get("folderPath")
        confidence = result.get("confidence")
        return OrganizeSuggestion(
            folder_path=folder_path if isinstance(folder_path, str) and folder_path else current_path,
            is_new_folder=result.get("isNewFolder") is True,
            tags=[] if is_folder else _string_list(result.get("suggestedTags")),
            confidence=confidence if isinstance(confidence, str) else "low",
        )
