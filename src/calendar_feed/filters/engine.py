"""Title filter engine for calendar events.

Evaluates the host's ``excludedEvents`` rules against event titles.

## Matching

Rules are evaluated in declaration order and the first matching rule decides:

- plain string: case-insensitive substring
- ``caseSensitive: true``: substring (or regex) on the title as-is
- ``regex: true``: case-insensitive regular expression search; a pattern
  written as ``/.../`` has its delimiters stripped
- otherwise: case-insensitive substring

A match excludes the event, unless the matching rule carries ``until``: such
a rule lets the event through and stops evaluation.

## Defective rules

A rule without ``filterBy``, of an unsupported type, or with an invalid regex
never matches. It is reported once at compile time and never aborts a fetch.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from calendar_feed.models.rules import ExclusionRule

logger = logging.getLogger(__name__)


class Titled(Protocol):
    """Anything with an event title."""

    summary: str


T = TypeVar("T", bound=Titled)


@dataclass(frozen=True)
class CompiledRule:
    """An exclusion rule reduced to what matching needs."""

    pattern: str
    fold_case: bool
    regex: re.Pattern[str] | None = None
    allows: bool = False  # rule carries ``until``
    source: Any = None

    def matches(self, title: str) -> bool:
        """Check whether this rule applies to ``title``."""
        if not self.pattern:
            return False
        if self.regex is not None:
            return self.regex.search(title) is not None
        if self.fold_case:
            return self.pattern in title.lower()
        return self.pattern in title


# Never matches anything.
_DEFECTIVE = CompiledRule(pattern="", fold_case=False)


def _strip_delimiters(pattern: str) -> str:
    # A leading slash implies a trailing one.
    if pattern.startswith("/"):
        return pattern[1:-1]
    return pattern


def compile_rule(raw: Any) -> CompiledRule:
    """Compile one ``excludedEvents`` entry.

    Defective entries compile to a rule that never matches.
    """
    if isinstance(raw, CompiledRule):
        return raw

    try:
        rule = raw if isinstance(raw, ExclusionRule) else ExclusionRule.from_config(raw)
    except ValueError as e:
        logger.warning(f"Ignoring malformed exclusion rule {raw!r}: {e}")
        return _DEFECTIVE

    if not rule.filter_by:
        logger.warning(f"Ignoring exclusion rule without filterBy: {raw!r}")
        return _DEFECTIVE

    allows = rule.until is not None

    if rule.regex:
        flags = 0 if rule.case_sensitive else re.IGNORECASE
        try:
            compiled = re.compile(_strip_delimiters(rule.filter_by), flags)
        except re.error as e:
            logger.warning(f"Ignoring exclusion rule with invalid regex {rule.filter_by!r}: {e}")
            return _DEFECTIVE
        return CompiledRule(
            pattern=rule.filter_by,
            fold_case=not rule.case_sensitive,
            regex=compiled,
            allows=allows,
            source=raw,
        )

    if rule.case_sensitive:
        return CompiledRule(pattern=rule.filter_by, fold_case=False, allows=allows, source=raw)

    return CompiledRule(
        pattern=rule.filter_by.lower(),
        fold_case=True,
        allows=allows,
        source=raw,
    )


def compile_rules(rules: Iterable[Any]) -> list[CompiledRule]:
    """Compile a whole rule list, preserving declaration order."""
    return [compile_rule(rule) for rule in rules]


def should_exclude(title: str | None, rules: Iterable[Any]) -> bool:
    """Decide whether an event titled ``title`` is excluded by ``rules``.

    Args:
        title: Event title (``None`` is treated as an empty title)
        rules: Raw ``excludedEvents`` entries, ``ExclusionRule`` or
            ``CompiledRule`` objects

    Returns:
        True if the first matching rule excludes the event
    """
    title = title or ""

    for raw in rules:
        rule = compile_rule(raw)
        if not rule.matches(title):
            continue
        if rule.allows:
            logger.debug(f"Keeping {title!r}: matched rule with until")
            return False
        logger.info(f"Filter event {title!r}")
        return True

    return False


class FilterEngine:
    """Applies a fixed rule list to event sequences.

    Rules are compiled once when the engine is built.

    Example:
        ```python
        engine = FilterEngine(config.excluded_events)
        visible = engine.filter_events(events)
        ```
    """

    def __init__(self, rules: Iterable[Any] = ()):
        self.rules: Sequence[CompiledRule] = compile_rules(rules)

    def should_exclude(self, title: str | None) -> bool:
        """Check a single title against the engine's rules."""
        return should_exclude(title, self.rules)

    def filter_events(self, events: Iterable[T]) -> list[T]:
        """Return the events that are not excluded, in their original order."""
        return [event for event in events if not self.should_exclude(event.summary)]
