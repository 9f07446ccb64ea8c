"""
RTF renderer: rich-document tables built from \\trowd ... \\row groups.

Column spans use horizontal cell merging (\\clmgf / \\clmrg). Colors are
collected into the document color table before emission.
"""

from typing import Any, Dict, List

from tablegrammar.render.base import RenderedCell, RenderedDocument, RenderedFacet, RenderedRow, Renderer

_NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
}

_ALIGN = {"left": "\\ql", "right": "\\qr", "center": "\\qc"}


def _rgb(value: Any):
    value = str(value).strip().lower()
    if value.startswith("#") and len(value) == 7:
        try:
            return tuple(int(value[i:i + 2], 16) for i in (1, 3, 5))
        except ValueError:
            return None
    return _NAMED_COLORS.get(value)


class RtfRenderer(Renderer):
    """Rich Text Format."""

    format_name = "rtf"
    supported_styles = frozenset({
        "bold", "italic", "underline", "color", "align", "font_size",
        "border_top", "border_bottom",
    })
    column_width = 1440  # twips
    font = "Helvetica"

    def escape_text(self, text: str) -> str:
        out = []
        for ch in str(text):
            if ch in "\\{}":
                out.append("\\" + ch)
            elif ch == "\n":
                out.append("\\line ")
            elif ord(ch) > 127:
                code = ord(ch)
                if code > 0xFFFF:
                    # Outside the BMP: write the UTF-16 surrogate pair
                    code -= 0x10000
                    for unit in (0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF)):
                        out.append(f"\\u{unit - 65536}?")
                else:
                    out.append(f"\\u{code if code < 32768 else code - 65536}?")
            else:
                out.append(ch)
        return "".join(out)

    def emit_structure(self, document: RenderedDocument) -> str:
        colors = self._color_table(document)
        lines = [
            "{\\rtf1\\ansi\\deff0",
            f"{{\\fonttbl{{\\f0 {self.font};}}}}",
            "{\\colortbl;" + "".join(
                f"\\red{r}\\green{g}\\blue{b};" for r, g, b in colors
            ) + "}",
        ]
        if document.title:
            lines.append(f"\\pard\\sb120\\sa60 {self._styled(document.title, colors, bold=True)}\\par")
        if document.subtitle:
            lines.append(f"\\pard\\sa120 {self._styled(document.subtitle, colors)}\\par")
        for i, facet in enumerate(document.facets):
            if i:
                lines.append("\\pard\\par")
            lines.extend(self._emit_facet(facet, colors))
        if document.notes:
            lines.append("\\pard\\sb120")
            for note in document.notes:
                lines.append(f"{{\\fs18 {self._styled(note, colors)}}}\\par")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def _emit_facet(self, facet: RenderedFacet, colors: List) -> List[str]:
        lines = []
        if facet.title:
            lines.append(f"\\pard\\sa60 {self._styled(facet.title, colors, bold=True)}\\par")
        for row in facet.header_rows:
            lines.append(self._row(row, colors))
        for row in facet.body:
            lines.append(self._row(row, colors))
        lines.append("\\pard")
        return lines

    def _row(self, row: RenderedRow, colors: List) -> str:
        defs = ["\\trowd\\trgaph108"]
        content = []
        edge = 0
        for cell in row.stub + row.cells:
            for part in range(cell.span):
                edge += self.column_width
                border = ""
                if cell.style.get("border_top"):
                    border += "\\clbrdrt\\brdrs\\brdrw10"
                if cell.style.get("border_bottom"):
                    border += "\\clbrdrb\\brdrs\\brdrw10"
                merge = ""
                if cell.span > 1:
                    merge = "\\clmgf" if part == 0 else "\\clmrg"
                defs.append(f"{merge}{border}\\cellx{edge}")
                text = self._styled(cell, colors) if part == 0 else ""
                align = _ALIGN.get(cell.style.get("align"), "\\ql")
                content.append(f"\\pard\\intbl{align} {text}\\cell")
        return "".join(defs) + "\n" + "\n".join(content) + "\n\\row"

    def _styled(self, cell: RenderedCell, colors: List, bold: bool = False) -> str:
        text = cell.text
        style: Dict[str, Any] = cell.style
        if not text:
            return text
        codes = []
        if style.get("bold") or bold:
            codes.append("\\b")
        if style.get("italic"):
            codes.append("\\i")
        if style.get("underline"):
            codes.append("\\ul")
        rgb = _rgb(style["color"]) if style.get("color") else None
        if rgb in colors:
            codes.append(f"\\cf{colors.index(rgb) + 1}")
        size = style.get("font_size")
        if isinstance(size, (int, float)):
            codes.append(f"\\fs{int(round(size * 2))}")
        if not codes:
            return text
        return "{" + "".join(codes) + " " + text + "}"

    def _color_table(self, document: RenderedDocument) -> List:
        colors: List = []
        cells: List[RenderedCell] = [c for c in (document.title, document.subtitle) if c]
        cells += document.notes
        for facet in document.facets:
            if facet.title:
                cells.append(facet.title)
            for row in facet.header_rows + facet.body:
                cells.extend(row.stub + row.cells)
        for cell in cells:
            rgb = _rgb(cell.style["color"]) if cell.style.get("color") else None
            if rgb is not None and rgb not in colors:
                colors.append(rgb)
        return colors
