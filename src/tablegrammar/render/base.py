"""
Renderer Interface: the contract every output backend implements.

A renderer turns (Grid, Theme, Metadata) into text. The shared `render`
method lays the grid out in a format-neutral form (header rows with spans,
stub labels, body rows) with resolved styles and escaped text; each backend
only supplies

- escape_text(text): its reserved-character escaping
- supports_style(attribute) / style_fallbacks: what styling it can express
- emit_structure(document): its delimiters, nesting and facet concatenation

Positions always come from the Grid; renderers never reorder content.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

import numpy as np

from tablegrammar.arrange.grid import FacetGrid, Grid, is_margin_labels
from tablegrammar.arrange.spec import SUMMARIZER
from tablegrammar.content.cells import ALL, NO_DATA, Cell
from tablegrammar.errors import UnsupportedStyleWarning
from tablegrammar.metadata import Metadata
from tablegrammar.theme.theme import Scope, StyleElement, Theme

logger = logging.getLogger(__name__)

# Consumed while formatting values, before renderer capabilities are checked
FORMATTING_ATTRIBUTES = frozenset({"number_format"})


@dataclass
class RenderConfig:
    """Configuration shared by all renderers."""
    no_data_text: str = "NA"
    empty_text: str = ""
    float_format: str = "{:.6g}"
    margin_label: str = "All"
    sparsify_labels: bool = True
    facet_separator: str = ", "


@dataclass
class RenderedCell:
    """Escaped text plus the style the renderer can express."""
    text: str
    style: Dict[str, Any] = field(default_factory=dict)
    span: int = 1
    is_margin: bool = False


@dataclass
class RenderedRow:
    stub: List[RenderedCell]
    cells: List[RenderedCell]
    is_margin: bool = False


@dataclass
class RenderedFacet:
    """
    One facet laid out for emission.

    Attributes:
        index: Facet position in the grid
        title: Facet caption (None when the table has no facet dimensions)
        header_rows: Column header rows; cells carry column spans
        column_titles: One flattened title per data column
        stub_titles: Row dimension names
        body: Body rows in grid order
        n_columns: Number of data columns
        is_margin: True for a facet aggregating over facet dimensions
    """
    index: int
    title: Optional[RenderedCell]
    header_rows: List[RenderedRow]
    column_titles: List[RenderedCell]
    stub_titles: List[RenderedCell]
    body: List[RenderedRow]
    n_columns: int
    is_margin: bool = False

    @property
    def n_stub(self) -> int:
        return len(self.stub_titles)


@dataclass
class RenderedDocument:
    """Everything a backend needs to emit one table."""
    facets: List[RenderedFacet]
    title: Optional[RenderedCell] = None
    subtitle: Optional[RenderedCell] = None
    notes: List[RenderedCell] = field(default_factory=list)
    identifiers: Dict[str, str] = field(default_factory=dict)
    table_style: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RenderResult:
    """Output of one render plus the non-fatal warnings raised on the way."""
    format: str
    output: str
    warnings: Tuple[UnsupportedStyleWarning, ...] = ()

    def __str__(self):
        return self.output


class _WarningCollector:
    """One warning per attribute per render, in first-seen order."""

    def __init__(self, format_name: str):
        self.format_name = format_name
        self._seen: Dict[str, UnsupportedStyleWarning] = {}

    def add(self, attribute: str, value: Any):
        if attribute not in self._seen:
            logger.debug(f"{self.format_name}: dropping unsupported style '{attribute}'")
            self._seen[attribute] = UnsupportedStyleWarning(self.format_name, attribute, value)

    @property
    def warnings(self) -> Tuple[UnsupportedStyleWarning, ...]:
        return tuple(self._seen.values())


class Renderer(ABC):
    """
    Abstract base class for output backends.

    Subclasses set `format_name`, `supported_styles` and optionally
    `style_fallbacks` (unsupported attribute -> function returning
    replacement attributes), and implement `escape_text` and `emit_structure`.
    Renderers hold no per-render state, so one instance may render
    concurrently.
    """

    format_name: str = ""
    aliases: Tuple[str, ...] = ()
    supported_styles: FrozenSet[str] = frozenset()
    style_fallbacks: Dict[str, Callable[[Any], Dict[str, Any]]] = {}

    def __init__(self, config: RenderConfig = None):
        self.config = config or RenderConfig()

    def supports_style(self, attribute: str) -> bool:
        return attribute in self.supported_styles

    @abstractmethod
    def escape_text(self, text: str) -> str:
        """Escape reserved characters of the output grammar."""
        pass

    @abstractmethod
    def emit_structure(self, document: RenderedDocument) -> str:
        """Serialize a laid-out document in the output grammar."""
        pass

    def render(self, grid: Grid, theme: Theme = None,
               metadata: Metadata = None) -> RenderResult:
        """Render `grid` styled by `theme`, framed by `metadata`."""
        theme = theme if theme is not None else Theme()
        metadata = metadata or Metadata()
        collector = _WarningCollector(self.format_name)
        document = self._layout(grid, theme, metadata, collector)
        output = self.emit_structure(document)
        return RenderResult(self.format_name, output, collector.warnings)

    # Layout

    def _layout(self, grid: Grid, theme: Theme, metadata: Metadata,
                collector: _WarningCollector) -> RenderedDocument:
        table = StyleElement(Scope.TABLE)

        def text_cell(text, *elements):
            style = self._effective_style(theme.resolve((table,) + elements), collector)
            return RenderedCell(self.escape_text(text), style)

        title = text_cell(metadata.title, StyleElement(Scope.TITLE)) if metadata.title else None
        subtitle = (text_cell(metadata.subtitle, StyleElement(Scope.TITLE))
                    if metadata.subtitle else None)
        notes = [text_cell(note, StyleElement(Scope.NOTE)) for note in metadata.notes]
        facets = [
            self._layout_facet(i, facet, theme, table, collector)
            for i, facet in enumerate(grid.facets)
        ]
        return RenderedDocument(
            facets=facets,
            title=title,
            subtitle=subtitle,
            notes=notes,
            identifiers=dict(metadata.identifiers),
            table_style=self._effective_style(theme.resolve((table,)), collector),
        )

    def _layout_facet(self, index: int, facet: FacetGrid, theme: Theme,
                      table: StyleElement, collector: _WarningCollector) -> RenderedFacet:
        facet_el = StyleElement.of(Scope.FACET, facet.facet_dims, facet.facet_labels)
        header = StyleElement(Scope.HEADER)
        margin = StyleElement(Scope.MARGIN)

        def styled(*elements, is_margin=False):
            path = (table, facet_el) + elements + ((margin,) if is_margin else ())
            return theme.resolve(path)

        def header_cell(text, *elements, is_margin=False, span=1):
            style = self._effective_style(styled(header, *elements, is_margin=is_margin), collector)
            return RenderedCell(self.escape_text(text), style, span=span, is_margin=is_margin)

        title = None
        if facet.facet_dims:
            text = self.config.facet_separator.join(
                f"{self._dim_text(d)}: {self._label_text(l)}" if self._dim_text(d)
                else self._label_text(l)
                for d, l in zip(facet.facet_dims, facet.facet_labels)
            )
            style = self._effective_style(
                styled(StyleElement(Scope.TITLE), is_margin=facet.is_margin_facet), collector)
            title = RenderedCell(self.escape_text(text), style, is_margin=facet.is_margin_facet)

        n_stub = len(facet.row_dims)
        n_cols = len(facet.col_labels)
        col_dims = facet.col_dims

        header_rows: List[RenderedRow] = []
        for level, dim in enumerate(col_dims):
            stub = [header_cell("") for _ in range(n_stub)]
            if stub:
                stub[-1] = header_cell(self._dim_text(dim))
            spans = []
            for start, length in _runs([labels[:level + 1] for labels in facet.col_labels]):
                prefix = facet.col_labels[start][:level + 1]
                spans.append(header_cell(
                    self._label_text(prefix[-1]),
                    StyleElement.of(Scope.COLUMN, col_dims[:level + 1], prefix),
                    is_margin=is_margin_labels(prefix),
                    span=length,
                ))
            header_rows.append(RenderedRow(stub, spans))
        if n_stub and (not col_dims or any(self._dim_text(d) for d in facet.row_dims)):
            stub = [header_cell(self._dim_text(d)) for d in facet.row_dims]
            header_rows.append(RenderedRow(stub, [header_cell("") for _ in range(n_cols)]))
        if not header_rows:
            header_rows.append(RenderedRow([], [header_cell("") for _ in range(n_cols)]))

        column_titles = []
        for labels in facet.col_labels:
            text = " / ".join(self._label_text(l) for l in labels)
            column_titles.append(header_cell(
                text, StyleElement.of(Scope.COLUMN, col_dims, labels),
                is_margin=is_margin_labels(labels),
            ))
        stub_titles = [header_cell(self._dim_text(d)) for d in facet.row_dims]

        body = []
        for r, row_labels in enumerate(facet.row_labels):
            row_el = StyleElement.of(Scope.ROW, facet.row_dims, row_labels)
            row_margin = facet.is_margin_facet or is_margin_labels(row_labels)
            stub = []
            for level in range(n_stub):
                prefix = row_labels[:level + 1]
                repeated = (
                    self.config.sparsify_labels and r > 0 and level < n_stub - 1
                    and facet.row_labels[r - 1][:level + 1] == prefix
                )
                stub.append(header_cell(
                    "" if repeated else self._label_text(prefix[-1]),
                    StyleElement.of(Scope.ROW, facet.row_dims[:level + 1], prefix),
                    is_margin=is_margin_labels(prefix),
                ))
            cells = []
            for c, col_labels in enumerate(facet.col_labels):
                col_el = StyleElement.of(Scope.COLUMN, col_dims, col_labels)
                is_margin = row_margin or is_margin_labels(col_labels)
                raw_style = styled(row_el, col_el, StyleElement(Scope.CELL), is_margin=is_margin)
                cell = facet.cell_at(r, c)
                text = self.format_value(cell, raw_style)
                cells.append(RenderedCell(
                    self.escape_text(text),
                    self._effective_style(raw_style, collector),
                    is_margin=is_margin,
                ))
            body.append(RenderedRow(stub, cells, is_margin=row_margin))

        return RenderedFacet(
            index=index,
            title=title,
            header_rows=header_rows,
            column_titles=column_titles,
            stub_titles=stub_titles,
            body=body,
            n_columns=n_cols,
            is_margin=facet.is_margin_facet,
        )

    # Values and styles

    def format_value(self, cell: Optional[Cell], style: Dict[str, Any]) -> str:
        """Display text of a cell before escaping."""
        if cell is None:
            return self.config.empty_text
        value = cell.value
        if value is None or value is NO_DATA:
            return self.config.no_data_text
        if isinstance(value, (float, np.floating)) and np.isnan(value):
            return self.config.no_data_text
        number_format = style.get("number_format")
        if number_format and not isinstance(value, (str, bool)):
            try:
                return number_format.format(value)
            except (ValueError, TypeError):
                logger.debug(f"number_format {number_format!r} does not apply to {value!r}")
        if isinstance(value, (float, np.floating)):
            return self.config.float_format.format(value)
        return str(value)

    def _effective_style(self, style: Dict[str, Any],
                         collector: _WarningCollector) -> Dict[str, Any]:
        """Keep supported attributes, map fallbacks, warn about the rest."""
        kept: Dict[str, Any] = {}
        replaced: Dict[str, Any] = {}
        for attribute, value in style.items():
            if attribute in FORMATTING_ATTRIBUTES or value is None:
                continue
            if self.supports_style(attribute):
                kept[attribute] = value
            elif attribute in self.style_fallbacks:
                replaced.update(self.style_fallbacks[attribute](value))
            else:
                collector.add(attribute, value)
        replaced.update(kept)
        return replaced

    def _label_text(self, label) -> str:
        return self.config.margin_label if label is ALL else str(label)

    def _dim_text(self, name: str) -> str:
        return "" if name == SUMMARIZER else name


def _runs(keys: List[Tuple]) -> List[Tuple[int, int]]:
    """(start, length) of each run of equal adjacent keys."""
    runs = []
    for i, key in enumerate(keys):
        if runs and keys[runs[-1][0]] == key:
            runs[-1] = (runs[-1][0], runs[-1][1] + 1)
        else:
            runs.append((i, 1))
    return runs
