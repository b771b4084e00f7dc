"""Keyword rule engine assigning a coarse category to catalog metadata.

Rules are an ordered list of (category, predicate) pairs. The first rule
whose predicate matches wins; when none match the record is Non-Fiction.
Matching is plain substring search on lower-cased text.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .standards.categories import DEFAULT_CATEGORY_RULES, NON_FICTION, UNKNOWN_CATEGORY


@dataclass(frozen=True)
class CategoryText:
    """Lower-cased inputs a rule looks at."""

    subjects: str
    title: str
    binding: str

    @property
    def haystack(self) -> str:
        return f"{self.subjects} {self.title}".strip()


@dataclass(frozen=True)
class CategoryRule:
    category: str
    keywords: Sequence[str] = ()
    binding_keywords: Sequence[str] = ()
    ignore: Sequence[str] = ()

    def matches(self, text: CategoryText) -> bool:
        haystack = text.haystack
        for phrase in self.ignore:
            haystack = haystack.replace(phrase, " ")
        if any(k in haystack for k in self.keywords):
            return True
        return bool(text.binding) and any(k in text.binding for k in self.binding_keywords)


def _join_lower(values: Optional[Iterable[object]]) -> str:
    if not values:
        return ""
    return " ".join(str(v).strip() for v in values if v is not None and str(v).strip()).lower()


def category_text(subjects: Optional[Iterable[object]], title: Optional[str], binding: Optional[str]) -> CategoryText:
    return CategoryText(
        subjects=_join_lower(subjects),
        title=(title or "").strip().lower(),
        binding=(binding or "").strip().lower(),
    )


class Categorizer:
    """Evaluate ordered category rules against catalog metadata."""

    def __init__(self, rules: Iterable[CategoryRule]):
        self.rules: List[CategoryRule] = list(rules)

    @classmethod
    def default(cls) -> "Categorizer":
        return cls(
            CategoryRule(
                category=r["category"],
                keywords=tuple(k.lower() for k in r["keywords"]),
                binding_keywords=tuple(k.lower() for k in r["binding_keywords"]),
                ignore=tuple(k.lower() for k in r["ignore"]),
            )
            for r in DEFAULT_CATEGORY_RULES
        )

    @classmethod
    def from_config(cls, rules_config) -> "Categorizer":
        """Build from ``CategoriesConfig`` (extra keywords folded in)."""
        return cls(
            CategoryRule(
                category=r.category,
                keywords=tuple(r.keywords),
                binding_keywords=tuple(r.binding_keywords),
                ignore=tuple(r.ignore),
            )
            for r in rules_config.resolved_rules()
        )

    def categorize_text(self, text: CategoryText) -> str:
        if not text.subjects and not text.title:
            return UNKNOWN_CATEGORY
        for rule in self.rules:
            if rule.matches(text):
                return rule.category
        return NON_FICTION

    def categorize(self, metadata) -> str:
        """Categorize a ``CatalogMetadata`` record."""
        return self.categorize_text(category_text(metadata.subjects, metadata.title, metadata.binding))
