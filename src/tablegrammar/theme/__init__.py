"""
Theme module: format-independent styles resolved by cascade.
"""

from tablegrammar.theme.theme import (
    DEFAULT_STYLE, STYLE_ATTRIBUTES, Scope, Selector, StyleElement, StyleRule, Theme,
    label_text,
)

__all__ = [
    "DEFAULT_STYLE", "STYLE_ATTRIBUTES", "Scope", "Selector", "StyleElement",
    "StyleRule", "Theme", "label_text",
]
