from __future__ import annotations

import json
import re
from pathlib import Path

from .provider import CategoryProvider, FrameworkProvider

DEFAULT_CATEGORY = "technical"
_VALID_CATEGORIES = {"technical", "tools", "soft_skills", "domain"}


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    # Keywords like "c++" or ".net" end in non-word characters, so \b is not enough.
    return re.compile(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])")


class KeywordCategorizer(CategoryProvider):
    def __init__(self, keywords_path: str | Path | None = None, keywords: dict[str, str] | None = None) -> None:
        if keywords is None:
            path = Path(keywords_path) if keywords_path else Path(__file__).with_name("categories.json")
            keywords = self._load_keywords(path)
        self._keywords = self._validate(keywords)
        # Longest keywords first so "github actions" wins over "github".
        self._patterns = [
            (_keyword_pattern(keyword), category)
            for keyword, category in sorted(self._keywords.items(), key=lambda item: -len(item[0]))
        ]

    @staticmethod
    def _load_keywords(path: Path) -> dict[str, str]:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    @staticmethod
    def _validate(raw: dict[str, str]) -> dict[str, str]:
        cleaned: dict[str, str] = {}
        for key, value in raw.items():
            category = str(value).strip().lower()
            if category not in _VALID_CATEGORIES:
                raise ValueError(f"Unknown skill category '{value}' for keyword '{key}'")
            cleaned[str(key).strip().lower()] = category
        return cleaned

    def categorize(self, skill_name: str) -> str:
        normalized = re.sub(r"\s+", " ", (skill_name or "").strip().lower())
        if not normalized:
            return DEFAULT_CATEGORY
        exact = self._keywords.get(normalized)
        if exact:
            return exact
        for pattern, category in self._patterns:
            if pattern.search(normalized):
                return category
        return DEFAULT_CATEGORY


class FrameworkKeywords(FrameworkProvider):
    def __init__(self, keywords_path: str | Path | None = None) -> None:
        path = Path(keywords_path) if keywords_path else Path(__file__).with_name("frameworks.json")
        with path.open("r", encoding="utf-8") as handle:
            raw: dict[str, list[str]] = json.load(handle)
        self._patterns = {
            name: [_keyword_pattern(str(keyword).strip().lower()) for keyword in keywords]
            for name, keywords in raw.items()
        }

    def detect(self, text: str) -> set[str]:
        lowered = (text or "").lower()
        if not lowered.strip():
            return set()
        return {
            name
            for name, patterns in self._patterns.items()
            if any(pattern.search(lowered) for pattern in patterns)
        }
