"""Capture model: the normalized unit produced by grammar adapters.

A grammar adapter turns raw syntax into a stream of captures named
``category.entity`` (``scope.function``, ``definition.class``,
``reference.call``, ``import.named``, ``export.default``). The core never
looks inside ``node``; it hands the handle to the language's metadata
extractors.

Scope captures carry the construct's body span, excluding its name.
Definition captures carry the full declaration span, with the declared
name in ``text``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from callscope.core.errors import IndexingError
from callscope.index.models import Location


class CaptureCategory(str, Enum):
    """First segment of a capture name."""

    SCOPE = "scope"
    DEFINITION = "definition"
    REFERENCE = "reference"
    IMPORT = "import"
    EXPORT = "export"
    TYPE = "type"


@dataclass(frozen=True, slots=True)
class Capture:
    """A located, tagged span extracted from a parsed file."""

    category: CaptureCategory
    entity: str
    location: Location
    text: str
    node: Any = None

    @property
    def name(self) -> str:
        return f"{self.category.value}.{self.entity}"

    @classmethod
    def from_name(
        cls,
        name: str,
        location: Location,
        text: str = "",
        node: Any = None,
    ) -> Capture:
        """Build a capture from its ``category.entity`` name.

        Raises:
            IndexingError: If the name has no entity or an unknown category.
        """
        category_str, _, entity = name.partition(".")
        if not entity:
            raise IndexingError.invalid_capture(name, "expected 'category.entity'")
        try:
            category = CaptureCategory(category_str)
        except ValueError:
            raise IndexingError.invalid_capture(
                name, f"unknown category '{category_str}'"
            ) from None
        return cls(category=category, entity=entity, location=location, text=text, node=node)

    def attr(self, key: str, default: Any = None) -> Any:
        """Read an adapter-provided attribute from a mapping-shaped node."""
        if isinstance(self.node, Mapping):
            return self.node.get(key, default)
        return default


def sort_captures(captures: list[Capture]) -> list[Capture]:
    """Source order: by start, then outermost first."""
    return sorted(
        captures,
        key=lambda c: (
            c.location.start_line,
            c.location.start_column,
            -c.location.end_line,
            -c.location.end_column,
        ),
    )
