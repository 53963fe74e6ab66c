from functools import lru_cache

from .local_taxonomy import DEFAULT_CATEGORY, FrameworkKeywords, KeywordCategorizer
from .provider import CategoryProvider, FrameworkProvider


@lru_cache(maxsize=1)
def get_default_categorizer() -> CategoryProvider:
    return KeywordCategorizer()


@lru_cache(maxsize=1)
def get_default_framework_keywords() -> FrameworkProvider:
    return FrameworkKeywords()


__all__ = [
    "CategoryProvider",
    "FrameworkProvider",
    "KeywordCategorizer",
    "FrameworkKeywords",
    "DEFAULT_CATEGORY",
    "get_default_categorizer",
    "get_default_framework_keywords",
]
