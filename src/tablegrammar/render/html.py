"""
HTML renderer: one <table> per facet inside a wrapping <div>.

Styles are emitted as inline CSS; margin rows and cells carry a "margin"
class so stylesheets can single them out.
"""

from html import escape as html_escape
from typing import Any, Dict, List

from tablegrammar.render.base import RenderedCell, RenderedDocument, RenderedFacet, Renderer


def _border(value: Any) -> str:
    return "1px solid" if value is True else str(value)


_CSS = {
    "bold": lambda v: "font-weight: bold" if v else "font-weight: normal",
    "italic": lambda v: "font-style: italic" if v else "font-style: normal",
    "underline": lambda v: "text-decoration: underline" if v else "text-decoration: none",
    "color": lambda v: f"color: {v}",
    "background": lambda v: f"background-color: {v}",
    "align": lambda v: f"text-align: {v}",
    "font_size": lambda v: f"font-size: {v}pt" if isinstance(v, (int, float)) else f"font-size: {v}",
    "border_top": lambda v: f"border-top: {_border(v)}",
    "border_bottom": lambda v: f"border-bottom: {_border(v)}",
}


class HtmlRenderer(Renderer):
    """HTML tables with inline CSS."""

    format_name = "html"
    aliases = ("htm",)
    supported_styles = frozenset(_CSS)

    def escape_text(self, text: str) -> str:
        return html_escape(str(text), quote=True).replace("\n", "<br>")

    def emit_structure(self, document: RenderedDocument) -> str:
        parts: List[str] = []
        element_id = document.identifiers.get("id")
        id_attr = f' id="{html_escape(element_id)}"' if element_id else ""
        parts.append(f'<div class="tablegrammar"{id_attr}{self._style_attr(document.table_style)}>')
        if document.title:
            parts.append(f'<h3 class="title"{self._style_attr(document.title.style)}>'
                         f"{document.title.text}</h3>")
        if document.subtitle:
            parts.append(f'<p class="subtitle"{self._style_attr(document.subtitle.style)}>'
                         f"{document.subtitle.text}</p>")
        for facet in document.facets:
            parts.extend(self._emit_facet(facet))
        if document.notes:
            parts.append('<div class="notes">')
            for note in document.notes:
                parts.append(f"<p{self._style_attr(note.style)}>{note.text}</p>")
            parts.append("</div>")
        parts.append("</div>")
        return "\n".join(parts) + "\n"

    def _emit_facet(self, facet: RenderedFacet) -> List[str]:
        classes = "facet margin" if facet.is_margin else "facet"
        parts = [f'<table class="{classes}">']
        if facet.title:
            parts.append(f"  <caption{self._style_attr(facet.title.style)}>{facet.title.text}</caption>")

        parts.append("  <thead>")
        for row in facet.header_rows:
            cells = [self._cell("th", c) for c in row.stub]
            cells += [self._cell("th", c, scope="col") for c in row.cells]
            parts.append("    <tr>" + "".join(cells) + "</tr>")
        parts.append("  </thead>")

        parts.append("  <tbody>")
        for row in facet.body:
            row_class = ' class="margin"' if row.is_margin else ""
            cells = [self._cell("th", c, scope="row") for c in row.stub]
            cells += [self._cell("td", c) for c in row.cells]
            parts.append(f"    <tr{row_class}>" + "".join(cells) + "</tr>")
        parts.append("  </tbody>")
        parts.append("</table>")
        return parts

    def _cell(self, tag: str, cell: RenderedCell, scope: str = None) -> str:
        attrs = ""
        if scope and cell.text:
            attrs += f' scope="{scope}"'
        if cell.span > 1:
            attrs += f' colspan="{cell.span}"'
        if cell.is_margin:
            attrs += ' class="margin"'
        attrs += self._style_attr(cell.style)
        return f"<{tag}{attrs}>{cell.text}</{tag}>"

    def _style_attr(self, style: Dict[str, Any]) -> str:
        declarations = [_CSS[name](value) for name, value in style.items() if name in _CSS]
        if not declarations:
            return ""
        return f' style="{html_escape("; ".join(declarations))}"'
