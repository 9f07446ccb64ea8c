"""
Renderer registry: maps format names and aliases to renderer factories.
"""

import logging
from typing import Callable, Dict, List, Optional

from tablegrammar.errors import UnknownFormatError
from tablegrammar.render.base import RenderConfig, Renderer
from tablegrammar.render.html import HtmlRenderer
from tablegrammar.render.latex import LatexRenderer
from tablegrammar.render.markdown import MarkdownRenderer
from tablegrammar.render.rtf import RtfRenderer

logger = logging.getLogger(__name__)

RendererFactory = Callable[[Optional[RenderConfig]], Renderer]


class RendererRegistry:
    """Format name -> renderer factory."""

    def __init__(self):
        self._factories: Dict[str, RendererFactory] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, name: str, factory: RendererFactory, aliases=()) -> None:
        name = name.lower()
        self._factories[name] = factory
        for alias in aliases:
            self._aliases[alias.lower()] = name
        logger.debug(f"Registered renderer '{name}'")

    def canonical(self, name: str) -> str:
        key = name.lower()
        key = self._aliases.get(key, key)
        if key not in self._factories:
            raise UnknownFormatError(
                f"No renderer for format '{name}'; available: {self.formats}"
            )
        return key

    def get(self, name: str, config: RenderConfig = None) -> Renderer:
        """Instantiate the renderer registered for `name`."""
        return self._factories[self.canonical(name)](config)

    def __contains__(self, name: str) -> bool:
        key = name.lower()
        return self._aliases.get(key, key) in self._factories

    @property
    def formats(self) -> List[str]:
        return sorted(self._factories)

    def copy(self) -> "RendererRegistry":
        registry = RendererRegistry()
        registry._factories = dict(self._factories)
        registry._aliases = dict(self._aliases)
        return registry


def default_registry() -> RendererRegistry:
    """A registry holding every built-in renderer."""
    registry = RendererRegistry()
    for cls in (MarkdownRenderer, HtmlRenderer, LatexRenderer, RtfRenderer):
        registry.register(cls.format_name, cls, aliases=cls.aliases)
    return registry
