"""
Markdown renderer: GitHub-flavored pipe tables.

Column headers are flattened into a single header row ("outer / inner").
Facets are emitted as separate tables separated by blank lines.
"""

from typing import List

from tablegrammar.render.base import RenderedCell, RenderedDocument, RenderedFacet, Renderer

_ESCAPES = {
    "\\": "\\\\",
    "|": "\\|",
    "*": "\\*",
    "_": "\\_",
    "`": "\\`",
    "[": "\\[",
    "]": "\\]",
    "<": "&lt;",
    ">": "&gt;",
}

_ALIGN_RULES = {"left": ":---", "right": "---:", "center": ":---:"}


class MarkdownRenderer(Renderer):
    """Pipe-table markdown."""

    format_name = "markdown"
    aliases = ("md", "gfm")
    supported_styles = frozenset({"bold", "italic", "align"})
    style_fallbacks = {
        "underline": lambda value: {"italic": True} if value else {},
    }

    def escape_text(self, text: str) -> str:
        text = " ".join(str(text).splitlines())
        return "".join(_ESCAPES.get(ch, ch) for ch in text)

    def emit_structure(self, document: RenderedDocument) -> str:
        blocks: List[str] = []
        if document.title:
            blocks.append(f"### {document.title.text}")
        if document.subtitle:
            blocks.append(self._styled(RenderedCell(document.subtitle.text, {"italic": True})))
        for facet in document.facets:
            blocks.append(self._emit_facet(facet))
        if document.notes:
            blocks.append("\n".join(self._styled(note) for note in document.notes))
        return "\n\n".join(blocks) + "\n"

    def _emit_facet(self, facet: RenderedFacet) -> str:
        lines = []
        if facet.title:
            lines.append(self._styled(facet.title, emphasis=True))
            lines.append("")

        header = facet.stub_titles + facet.column_titles
        lines.append(self._row(header))

        rules = [":---"] * facet.n_stub
        for c in range(facet.n_columns):
            align = None
            if facet.body:
                align = facet.body[0].cells[c].style.get("align")
            rules.append(_ALIGN_RULES.get(align, "---"))
        lines.append("| " + " | ".join(rules) + " |")

        for row in facet.body:
            lines.append(self._row(row.stub + row.cells))
        return "\n".join(lines)

    def _row(self, cells: List[RenderedCell]) -> str:
        if not cells:
            return "|  |"
        return "| " + " | ".join(self._styled(cell) for cell in cells) + " |"

    def _styled(self, cell: RenderedCell, emphasis: bool = False) -> str:
        text = cell.text
        if not text:
            return text
        if cell.style.get("bold") or emphasis:
            text = f"**{text}**"
        if cell.style.get("italic"):
            text = f"*{text}*"
        return text
