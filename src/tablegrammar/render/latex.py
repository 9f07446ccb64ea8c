"""
LaTeX renderer: booktabs tabulars inside a table float.

Requires \\usepackage{booktabs}; colors additionally need xcolor and
colortbl (\\usepackage[table]{xcolor}).
"""

import re
from typing import Any, Dict, List

from tablegrammar.errors import RenderError
from tablegrammar.render.base import RenderedCell, RenderedDocument, RenderedFacet, RenderedRow, Renderer

_ESCAPES = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}
_ESCAPE_RE = re.compile("|".join(re.escape(ch) for ch in _ESCAPES))

_ALIGN = {"left": "l", "right": "r", "center": "c"}

# Characters allowed verbatim inside \label{} and xcolor arguments
_NAME_RE = re.compile(r"[A-Za-z0-9:._\-+!*/ ]+\Z")
_HEX_RE = re.compile(r"#[0-9A-Fa-f]{6}\Z")


def _checked_name(kind: str, value: Any) -> str:
    value = str(value)
    if not _NAME_RE.match(value):
        raise RenderError(f"LaTeX {kind} {value!r} contains characters that cannot appear unescaped")
    return value


def _color_args(value: str) -> str:
    """xcolor arguments for '#RRGGBB' or a named color."""
    value = str(value)
    if _HEX_RE.match(value):
        return f"[HTML]{{{value[1:].upper()}}}"
    return f"{{{_checked_name('color', value)}}}"


class LatexRenderer(Renderer):
    """booktabs LaTeX."""

    format_name = "latex"
    aliases = ("tex",)
    supported_styles = frozenset({
        "bold", "italic", "underline", "color", "background", "align",
        "border_top", "border_bottom",
    })
    placement = "t"

    def escape_text(self, text: str) -> str:
        text = " ".join(str(text).splitlines())
        return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], text)

    def emit_structure(self, document: RenderedDocument) -> str:
        lines = [f"\\begin{{table}}[{self.placement}]", "\\centering"]
        if document.title:
            lines.append(f"\\caption{{{self._styled(document.title)}}}")
        label = document.identifiers.get("label")
        if label:
            lines.append(f"\\label{{{_checked_name('label', label)}}}")
        if document.subtitle:
            lines.append(f"{{\\small {self._styled(document.subtitle)}}}\\par\\medskip")

        blocks = [self._emit_facet(facet) for facet in document.facets]
        lines.append("\n\\medskip\n".join(blocks))

        if document.notes:
            lines.append("\\par\\smallskip")
            lines.append("{\\footnotesize")
            for note in document.notes:
                lines.append(f"{self._styled(note)}\\par")
            lines.append("}")
        lines.append("\\end{table}")
        return "\n".join(lines) + "\n"

    def _emit_facet(self, facet: RenderedFacet) -> str:
        lines = []
        if facet.title:
            lines.append(f"\\textbf{{{self._styled(facet.title)}}}\\par\\smallskip")
        colspec = "l" * facet.n_stub + "".join(
            self._column_align(facet, c) for c in range(facet.n_columns)
        )
        lines.append(f"\\begin{{tabular}}{{{colspec or 'l'}}}")
        lines.append("\\toprule")
        last = len(facet.header_rows) - 1
        for i, row in enumerate(facet.header_rows):
            lines.append(self._row(row, header=True))
            if i < last:
                rules = self._cmidrules(facet.n_stub, row.cells)
                if rules:
                    lines.append(rules)
        lines.append("\\midrule")
        for row in facet.body:
            if any(c.style.get("border_top") for c in row.stub + row.cells):
                lines.append("\\midrule")
            lines.append(self._row(row))
            if any(c.style.get("border_bottom") for c in row.stub + row.cells):
                lines.append("\\midrule")
        lines.append("\\bottomrule")
        lines.append("\\end{tabular}")
        return "\n".join(lines)

    def _column_align(self, facet: RenderedFacet, column: int) -> str:
        if facet.body:
            align = facet.body[0].cells[column].style.get("align")
            if align in _ALIGN:
                return _ALIGN[align]
        return "r"

    def _row(self, row: RenderedRow, header: bool = False) -> str:
        cells = [self._cell(c, header) for c in row.stub + row.cells]
        return " & ".join(cells) + " \\\\"

    def _cell(self, cell: RenderedCell, header: bool) -> str:
        text = self._styled(cell)
        align = cell.style.get("align")
        if cell.span > 1:
            return f"\\multicolumn{{{cell.span}}}{{{_ALIGN.get(align, 'c')}}}{{{text}}}"
        if header and align in _ALIGN:
            return f"\\multicolumn{{1}}{{{_ALIGN[align]}}}{{{text}}}"
        return text

    def _cmidrules(self, n_stub: int, cells: List[RenderedCell]) -> str:
        rules = []
        start = n_stub + 1
        for cell in cells:
            end = start + cell.span - 1
            if cell.text and cell.span > 1:
                rules.append(f"\\cmidrule(lr){{{start}-{end}}}")
            start = end + 1
        return " ".join(rules)

    def _styled(self, cell: RenderedCell) -> str:
        text = cell.text
        style: Dict[str, Any] = cell.style
        if not text:
            return text
        if style.get("bold"):
            text = f"\\textbf{{{text}}}"
        if style.get("italic"):
            text = f"\\textit{{{text}}}"
        if style.get("underline"):
            text = f"\\underline{{{text}}}"
        if style.get("color"):
            text = f"\\textcolor{_color_args(style['color'])}{{{text}}}"
        if style.get("background"):
            text = f"\\cellcolor{_color_args(style['background'])}{text}"
        return text
