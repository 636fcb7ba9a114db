"""Router configuration models (source of truth).

Shape
-----
::

    {
        "registries": {"<alias>": "<url>", ...},      # optional
        "use": "<alias or url>" | ["<alias or url>", ...],
        "rules": [                                     # optional, ordered
            {"<condition>": <value>, ..., "use": <str | list | null>},
        ],
    }

- ``RouterConfig.load(raw)`` validates a mapping (or passes an existing
  ``RouterConfig`` through). Pydantic failures are re-raised as
  ``ValidationError`` titled ``"Invalid router configuration"``.
- ``RouterConfig.from_file(path)`` reads the same shape from a JSON file.
- ``RouterRule`` keeps arbitrary condition keys as extra fields;
  ``conditions()`` returns them without ``use``. A rule without ``use`` (or
  with ``use: null``) drops whatever it matches.

Both models are frozen: configuration is read once when the router is built.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

__all__ = ["RouterConfig", "RouterRule"]

UseDirective = Union[str, List[str]]


class RouterRule(BaseModel):
    """Condition keys plus the registries to ``use`` when they all pass."""

    model_config = ConfigDict(frozen=True, extra="allow")

    use: Optional[UseDirective] = None

    def conditions(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class RouterConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    registries: Dict[str, str] = Field(default_factory=dict)
    use: UseDirective
    rules: List[RouterRule] = Field(default_factory=list)

    @classmethod
    def load(cls, raw: Union["RouterConfig", Mapping[str, Any]]) -> "RouterConfig":
        if isinstance(raw, RouterConfig):
            return raw
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ValidationError.from_exception_data(
                title="Invalid router configuration",
                line_errors=exc.errors(),
            ) from exc

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RouterConfig":
        with open(path, encoding="utf-8") as stream:
            return cls.load(json.load(stream))
