"""Structured field extraction with ordered fallback strategies.

A field is described by an ordered list of strategies. Each strategy maps an
element to a candidate string; the first candidate that is non-empty and
passes the field's acceptance check wins. Markup vocabulary lives in the
strategies, so callers only see field names.
"""

import logging
import re
from collections.abc import Callable, Mapping, Sequence

from bs4 import Tag

from ..utils import clean_text

logger = logging.getLogger(__name__)

Strategy = Callable[[Tag], str | None]
Accept = Callable[[str], bool]


class FieldSpec:
    """Ordered strategies for one field plus an optional acceptance check."""

    def __init__(self, strategies: Sequence[Strategy], accept: Accept | None = None):
        self.strategies = list(strategies)
        self.accept = accept


class FieldExtractor:
    """Extract named fields from an element, first non-empty result wins."""

    def __init__(self, fields: Mapping[str, FieldSpec]):
        self.fields = dict(fields)

    def extract_field(self, name: str, element: Tag) -> str | None:
        """Run the strategies for ``name`` against ``element``.

        Args:
            name: Field name.
            element: Element to extract from.

        Returns:
            First accepted non-empty candidate, or None.
        """
        spec = self.fields[name]
        for strategy in spec.strategies:
            candidate = clean_text(strategy(element))
            if not candidate:
                continue
            if spec.accept is not None and not spec.accept(candidate):
                continue
            return candidate
        return None

    def extract(self, element: Tag) -> dict[str, str | None]:
        """Extract every configured field from ``element``."""
        return {name: self.extract_field(name, element) for name in self.fields}


def first_match(element: Tag, selectors: Sequence[str]) -> Tag | None:
    """Return the first descendant matching any selector, in selector order."""
    for selector in selectors:
        found = element.select_one(selector)
        if found is not None:
            return found
    return None


def own_text() -> Strategy:
    def strategy(element: Tag) -> str | None:
        return element.get_text(" ", strip=True)

    return strategy


def attr(name: str, strip_prefix: re.Pattern[str] | None = None) -> Strategy:
    """Read an attribute, optionally removing a leading pattern."""

    def strategy(element: Tag) -> str | None:
        value = element.get(name)
        if not isinstance(value, str):
            return None
        return strip_prefix.sub("", value) if strip_prefix else value

    return strategy


def text_of(selector: str) -> Strategy:
    """Text of the first descendant matching ``selector``."""

    def strategy(element: Tag) -> str | None:
        found = element.select_one(selector)
        return found.get_text(" ", strip=True) if found is not None else None

    return strategy


def value_of(selector: str) -> Strategy:
    """Structured value of a descendant: ``content``, then text, then ``value``."""

    def strategy(element: Tag) -> str | None:
        found = element.select_one(selector)
        if found is None:
            return None
        content = found.get("content")
        if isinstance(content, str) and content.strip():
            return content
        text = found.get_text(" ", strip=True)
        if text:
            return text
        value = found.get("value")
        return value if isinstance(value, str) else None

    return strategy


def closest_text(pattern: re.Pattern[str], strip_prefix: re.Pattern[str] | None = None) -> Strategy:
    """Text of the element or nearest ancestor whose ``data-testid`` matches ``pattern``."""

    def strategy(element: Tag) -> str | None:
        testid = element.get("data-testid")
        if isinstance(testid, str) and pattern.search(testid):
            parent: Tag | None = element
        else:
            parent = element.find_parent(attrs={"data-testid": pattern})
        if parent is None:
            return None
        text = parent.get_text(" ", strip=True)
        return strip_prefix.sub("", text) if strip_prefix else text

    return strategy


def within(selectors: Sequence[str], strategy: Strategy) -> Strategy:
    """Apply ``strategy`` to the first descendant matching ``selectors``."""

    def scoped(element: Tag) -> str | None:
        found = first_match(element, selectors)
        return strategy(found) if found is not None else None

    return scoped
