"""Event filtering by title exclusion rules."""

from calendar_feed.filters.engine import (
    CompiledRule,
    FilterEngine,
    compile_rule,
    compile_rules,
    should_exclude,
)

__all__ = [
    "CompiledRule",
    "FilterEngine",
    "compile_rule",
    "compile_rules",
    "should_exclude",
]
