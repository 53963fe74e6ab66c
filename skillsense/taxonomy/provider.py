from __future__ import annotations

from typing import Protocol


class CategoryProvider(Protocol):
    def categorize(self, skill_name: str) -> str:
        """Return the skill category for a name the extractor left uncategorized."""


class FrameworkProvider(Protocol):
    def detect(self, text: str) -> set[str]:
        """Return framework/tool names whose keywords occur in the text."""
