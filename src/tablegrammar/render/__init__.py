"""
Render module: the renderer contract and the built-in output formats.
"""

from tablegrammar.render.base import (
    RenderConfig, RenderedCell, RenderedDocument, RenderedFacet, RenderedRow,
    RenderResult, Renderer,
)
from tablegrammar.render.markdown import MarkdownRenderer
from tablegrammar.render.html import HtmlRenderer
from tablegrammar.render.latex import LatexRenderer
from tablegrammar.render.rtf import RtfRenderer
from tablegrammar.render.registry import RendererRegistry, default_registry

__all__ = [
    "RenderConfig", "RenderedCell", "RenderedDocument", "RenderedFacet", "RenderedRow",
    "RenderResult", "Renderer",
    "MarkdownRenderer", "HtmlRenderer", "LatexRenderer", "RtfRenderer",
    "RendererRegistry", "default_registry",
]
