"""Exclusion rule models.

Rules come from the host's ``excludedEvents`` list. Each entry is either a
plain string or an object:

```json
["standup", {"filterBy": "/^OOO.*$/", "regex": true},
 {"filterBy": "Holiday", "caseSensitive": true, "until": "2025-01-06"}]
```
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ExclusionRule(BaseModel):
    """A structured exclusion rule.

    A plain string rule is represented as ``ExclusionRule(filter_by=text)``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    filter_by: str = Field(default="", alias="filterBy")
    regex: bool = False
    case_sensitive: bool = Field(default=False, alias="caseSensitive")
    # Any non-empty value lets matching events through; it is not interpreted.
    until: Any = None

    @field_validator("until", mode="before")
    @classmethod
    def empty_until_is_unset(cls, v: Any) -> Any:
        """Treat empty values (``""``, ``0``, ``false``) as no ``until``."""
        if not v:
            return None
        return v

    @classmethod
    def from_config(cls, raw: Any) -> ExclusionRule:
        """Build a rule from one ``excludedEvents`` entry.

        Raises:
            ValueError: If the entry is neither a string nor a valid rule object
        """
        if isinstance(raw, str):
            return cls(filter_by=raw)
        if isinstance(raw, dict):
            return cls.model_validate(raw)
        raise ValueError(f"Unsupported exclusion rule: {raw!r}")
