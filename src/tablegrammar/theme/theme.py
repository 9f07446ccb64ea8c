"""
Theme Registry: format-independent styling resolved by an ordered cascade.

A theme is an ordered sequence of rules (selector, attributes). Resolving a
selector path folds the attributes of every matching rule in declaration
order, later rules winning attribute by attribute. Attributes are kept
opaquely; whether a renderer can express them is the renderer's concern.

Selector syntax: ``scope`` or ``scope[dim=label, ...]``, e.g. ``margin``,
``row[Sex=female]``, ``column[Class=1st]``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union
import re

from tablegrammar.content.cells import ALL
from tablegrammar.content.dimensions import Label

# Attributes every renderer is expected to understand or fall back from
STYLE_ATTRIBUTES = (
    "bold", "italic", "underline", "color", "background", "align",
    "font_size", "border_top", "border_bottom", "number_format",
)

DEFAULT_STYLE: Dict[str, Any] = {}

_SELECTOR_RE = re.compile(r"^\s*([a-z_]+)\s*(?:\[(.*)\])?\s*$")


class Scope(Enum):
    """Scopes a selector may address."""
    TABLE = "table"
    HEADER = "header"
    ROW = "row"
    COLUMN = "column"
    CELL = "cell"
    MARGIN = "margin"
    FACET = "facet"
    TITLE = "title"
    NOTE = "note"


def label_text(label: Label) -> str:
    return "ALL" if label is ALL else str(label)


@dataclass(frozen=True)
class StyleElement:
    """
    One element of a selector path: a scope plus the labels it carries.

    A data cell's path holds, e.g., TABLE, ROW{Sex=male}, COLUMN{Class=1st}, CELL.
    """
    scope: Scope
    labels: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def of(cls, scope: Scope, dims: Sequence[str] = (),
           labels: Sequence[Label] = ()) -> "StyleElement":
        return cls(scope, tuple((d, label_text(l)) for d, l in zip(dims, labels)))


@dataclass(frozen=True)
class Selector:
    """A scope plus optional label constraints."""
    scope: Scope
    constraints: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def parse(cls, text: str) -> "Selector":
        match = _SELECTOR_RE.match(text)
        if not match:
            raise ValueError(f"Invalid selector: {text!r}")
        scope_name, body = match.groups()
        try:
            scope = Scope(scope_name)
        except ValueError:
            raise ValueError(f"Unknown selector scope '{scope_name}' in {text!r}") from None
        constraints = []
        if body and body.strip():
            for part in body.split(","):
                if "=" not in part:
                    raise ValueError(f"Selector constraint {part.strip()!r} needs dim=label")
                dim, label = part.split("=", 1)
                constraints.append((dim.strip(), label.strip()))
        return cls(scope, tuple(constraints))

    def matches(self, element: StyleElement) -> bool:
        if element.scope is not self.scope:
            return False
        labels = dict(element.labels)
        return all(labels.get(dim) == label for dim, label in self.constraints)

    def __str__(self):
        if not self.constraints:
            return self.scope.value
        inner = ", ".join(f"{d}={l}" for d, l in self.constraints)
        return f"{self.scope.value}[{inner}]"


@dataclass(frozen=True)
class StyleRule:
    """A selector and the attributes it sets."""
    selector: Selector
    style: Tuple[Tuple[str, Any], ...]

    @classmethod
    def of(cls, selector: Union[str, Selector], style: Mapping[str, Any]) -> "StyleRule":
        if isinstance(selector, str):
            selector = Selector.parse(selector)
        return cls(selector, tuple(style.items()))

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.style)


@dataclass(frozen=True)
class Theme:
    """
    Ordered style rules. Themes are values: every modification returns a
    new theme.
    """
    rules: Tuple[StyleRule, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "rules", tuple(self.rules))

    def resolve(self, path: Iterable[StyleElement]) -> Dict[str, Any]:
        """Fold matching rules over the default style, in declaration order."""
        path = list(path)
        resolved = dict(DEFAULT_STYLE)
        for rule in self.rules:
            if any(rule.selector.matches(element) for element in path):
                resolved.update(rule.style)
        return resolved

    def with_rule(self, selector: Union[str, Selector], **style: Any) -> "Theme":
        return Theme(self.rules + (StyleRule.of(selector, style),))

    def extend(self, other: "Theme") -> "Theme":
        """Rules of `other` after this theme's rules, so they win."""
        return Theme(self.rules + other.rules)

    def __len__(self) -> int:
        return len(self.rules)

    @property
    def attributes(self) -> List[str]:
        """Every attribute name set by some rule, in first-use order."""
        seen: Dict[str, None] = {}
        for rule in self.rules:
            for name, _ in rule.style:
                seen.setdefault(name, None)
        return list(seen)

    @classmethod
    def from_rules(cls, rules: Iterable[Tuple[Union[str, Selector], Mapping[str, Any]]]) -> "Theme":
        return cls(tuple(StyleRule.of(selector, style) for selector, style in rules))

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Any]]) -> "Theme":
        """Build from {selector: attributes}; mapping order is rule order."""
        return cls.from_rules(data.items())

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "Theme":
        return cls.from_rules((r["selector"], r["style"]) for r in records)

    def to_records(self) -> List[Dict[str, Any]]:
        return [
            {"selector": str(rule.selector), "style": rule.as_dict()}
            for rule in self.rules
        ]
