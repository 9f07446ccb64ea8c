"""
Table metadata: captions, notes and identifiers consumed by renderers only.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Metadata:
    """
    Descriptive text around a table.

    Attributes:
        title: Caption or heading
        subtitle: Secondary heading
        notes: Footnotes, in display order
        identifiers: Format-specific names (e.g. 'label' for LaTeX, 'id' for HTML)
    """
    title: Optional[str] = None
    subtitle: Optional[str] = None
    notes: Tuple[str, ...] = ()
    identifiers: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        if isinstance(self.notes, str):
            object.__setattr__(self, "notes", (self.notes,))
        else:
            object.__setattr__(self, "notes", tuple(self.notes))
        object.__setattr__(self, "identifiers", MappingProxyType(dict(self.identifiers)))

    def identifier(self, name: str) -> Optional[str]:
        return self.identifiers.get(name)

    def with_notes(self, *notes: str) -> "Metadata":
        return Metadata(self.title, self.subtitle, self.notes + notes, self.identifiers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "notes": list(self.notes),
            "identifiers": dict(self.identifiers),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Metadata":
        return cls(
            title=data.get("title"),
            subtitle=data.get("subtitle"),
            notes=tuple(data.get("notes", ())),
            identifiers=dict(data.get("identifiers", {})),
        )
