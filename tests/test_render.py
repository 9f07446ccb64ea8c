"""
Unit tests for renderers and the renderer registry.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tablegrammar.content.dimensions import DimensionIndex
from tablegrammar.content.cells import Cell, CellStore
from tablegrammar.arrange.spec import ArrangementSpec, MarginSpec
from tablegrammar.arrange.engine import ArrangementEngine
from tablegrammar.metadata import Metadata
from tablegrammar.theme.theme import Theme
from tablegrammar.render.base import RenderConfig, RenderResult, Renderer
from tablegrammar.render.html import HtmlRenderer
from tablegrammar.render.latex import LatexRenderer
from tablegrammar.render.markdown import MarkdownRenderer
from tablegrammar.render.rtf import RtfRenderer
from tablegrammar.render.registry import default_registry
from tablegrammar.errors import RenderError, UnknownFormatError, UnsupportedStyleWarning

ALL_RENDERERS = [MarkdownRenderer, HtmlRenderer, LatexRenderer, RtfRenderer]


@pytest.fixture
def store():
    index = DimensionIndex().declare("V1", ["A", "B"]).declare("V2", ["C", "D"])
    store = CellStore(index)
    for v1, v2, value in [("A", "C", 1), ("A", "D", 2), ("B", "C", 3), ("B", "D", 4)]:
        store.add({"V1": v1, "V2": v2}, value)
    return store.seal()


@pytest.fixture
def grid(store):
    spec = ArrangementSpec(rows=("V1",), columns=("V2",), margins=(MarginSpec("V1", rule="sum"),))
    return ArrangementEngine().arrange(store, spec)


@pytest.fixture
def cube_store():
    index = (DimensionIndex()
             .declare("Sex", ["Male", "Female"])
             .declare("Class", ["1st", "2nd"])
             .declare("Survived", ["No", "Yes"]))
    store = CellStore(index)
    value = 1
    for sex in ["Male", "Female"]:
        for cls in ["1st", "2nd"]:
            for survived in ["No", "Yes"]:
                store.add({"Sex": sex, "Class": cls, "Survived": survived}, value)
                value += 1
    return store.seal()


@pytest.fixture
def faceted_grid(cube_store):
    spec = ArrangementSpec(rows=("Class",), columns=("Survived",), facets=("Sex",))
    return ArrangementEngine().arrange(cube_store, spec)


@pytest.fixture
def special_grid():
    """Labels full of characters reserved by one format or another."""
    index = DimensionIndex().declare("Dept", ["R&D", "50%_off"]).declare("Tag", ["<b>", "{x}|y"])
    store = CellStore(index)
    store.add({"Dept": "R&D", "Tag": "<b>"}, 1)
    store.add({"Dept": "R&D", "Tag": "{x}|y"}, 2)
    store.add({"Dept": "50%_off", "Tag": "<b>"}, 3)
    store.add({"Dept": "50%_off", "Tag": "{x}|y"}, 4)
    return ArrangementEngine().arrange(store.seal(), ArrangementSpec.default(store.index))


class TestMarkdownRenderer:
    def test_structure(self, grid):
        output = MarkdownRenderer().render(grid).output
        assert output == (
            "| V1 | C | D |\n"
            "| :--- | --- | --- |\n"
            "| A | 1 | 2 |\n"
            "| B | 3 | 4 |\n"
            "| All | 4 | 6 |\n"
        )

    def test_metadata(self, grid):
        metadata = Metadata(title="Counts", subtitle="by V1", notes=("Source: test",))
        output = MarkdownRenderer().render(grid, metadata=metadata).output
        assert output.startswith("### Counts\n\n*by V1*\n\n| V1 |")
        assert output.rstrip().endswith("Source: test")

    def test_escaping(self, special_grid):
        output = MarkdownRenderer().render(special_grid).output
        assert "50%\\_off" in output
        assert "\\{x}\\|y" not in output
        assert "{x}\\|y" in output
        assert "&lt;b&gt;" in output

    def test_styles_and_fallbacks(self, grid):
        theme = (Theme()
                 .with_rule("row[V1=A]", bold=True)
                 .with_rule("margin", underline=True)
                 .with_rule("cell", color="red"))
        result = MarkdownRenderer().render(grid, theme)
        assert "| **A** | **1** | **2** |" in result.output
        assert "| *All* | *4* | *6* |" in result.output
        assert result.warnings == (UnsupportedStyleWarning("markdown", "color"),)

    def test_alignment_rule(self, grid):
        theme = Theme().with_rule("cell", align="right")
        output = MarkdownRenderer().render(grid, theme).output
        assert "| :--- | ---: | ---: |" in output

    def test_facet_order(self, faceted_grid):
        output = MarkdownRenderer().render(faceted_grid).output
        male = output.index("**Sex: Male**")
        female = output.index("**Sex: Female**")
        assert male < female
        assert output.count("| Class | No | Yes |") == 2

    def test_level_override_order(self, store):
        spec = ArrangementSpec(rows=("V1",), columns=("V2",), level_order={"V1": ["B", "A"]})
        output = MarkdownRenderer().render(ArrangementEngine().arrange(store, spec)).output
        assert output.index("| B | 3 | 4 |") < output.index("| A | 1 | 2 |")


class TestHtmlRenderer:
    def test_structure(self, grid):
        output = HtmlRenderer().render(grid).output
        assert output.startswith('<div class="tablegrammar">')
        assert output.count("<table") == 1
        assert '<tr class="margin">' in output
        assert '<th scope="row" class="margin">All</th>' in output
        assert "<td>4</td>" in output

    def test_identifier_and_caption(self, grid):
        metadata = Metadata(title="A & B", identifiers={"id": "counts"})
        output = HtmlRenderer().render(grid, metadata=metadata).output
        assert '<div class="tablegrammar" id="counts">' in output
        assert "<h3 class=\"title\">A &amp; B</h3>" in output

    def test_identifiers_read_only(self):
        source = {"id": "counts"}
        metadata = Metadata(identifiers=source)
        source["id"] = "other"
        assert metadata.identifier("id") == "counts"
        with pytest.raises(TypeError):
            metadata.identifiers["id"] = "other"

    def test_escaping(self, special_grid):
        output = HtmlRenderer().render(special_grid).output
        assert "&lt;b&gt;" in output
        assert "R&amp;D" in output
        assert "<b>" not in output

    def test_inline_styles(self, grid):
        theme = Theme().with_rule("cell", bold=True, background="#ffeeee")
        result = HtmlRenderer().render(grid, theme)
        assert 'style="font-weight: bold; background-color: #ffeeee"' in result.output
        assert result.warnings == ()

    def test_facets_as_separate_tables(self, faceted_grid):
        output = HtmlRenderer().render(faceted_grid).output
        assert output.count('<table class="facet">') == 2
        assert output.index("Sex: Male") < output.index("Sex: Female")


class TestLatexRenderer:
    def test_structure(self, grid):
        metadata = Metadata(title="Counts", identifiers={"label": "tab:counts"})
        output = LatexRenderer().render(grid, metadata=metadata).output
        assert output.startswith("\\begin{table}[t]\n\\centering\n\\caption{Counts}\n\\label{tab:counts}")
        assert "\\begin{tabular}{lrr}" in output
        assert "\\toprule" in output
        assert "A & 1 & 2 \\\\" in output
        assert "All & 4 & 6 \\\\" in output
        assert output.rstrip().endswith("\\end{table}")

    def test_escaping(self, special_grid):
        output = LatexRenderer().render(special_grid).output
        assert "R\\&D" in output
        assert "50\\%\\_off" in output
        assert "\\{x\\}|y" in output

    def test_unsafe_label_and_color_rejected(self, grid):
        with pytest.raises(RenderError):
            LatexRenderer().render(grid, metadata=Metadata(identifiers={"label": "tab:}x"})).output
        with pytest.raises(RenderError):
            LatexRenderer().render(grid, Theme().with_rule("cell", color="red}\\bad"))
        output = LatexRenderer().render(grid, Theme().with_rule("cell", color="red!50!black"),
                                        Metadata(identifiers={"label": "tab:my_counts"})).output
        assert "\\label{tab:my_counts}" in output
        assert "\\textcolor{red!50!black}{1}" in output

    def test_spanning_headers(self, cube_store):
        spec = ArrangementSpec(rows=("Class",), columns=("Sex", "Survived"))
        output = LatexRenderer().render(ArrangementEngine().arrange(cube_store, spec)).output
        assert "\\multicolumn{2}{c}{Male} & \\multicolumn{2}{c}{Female}" in output
        assert "\\cmidrule(lr){2-3} \\cmidrule(lr){4-5}" in output

    def test_styles(self, grid):
        theme = Theme().with_rule("margin", bold=True, border_top=True, font_size=9)
        result = LatexRenderer().render(grid, theme)
        assert "\\textbf{All} & \\textbf{4} & \\textbf{6}" in result.output
        assert "\\midrule\n\\textbf{All}" in result.output
        assert [w.attribute for w in result.warnings] == ["font_size"]


class TestRtfRenderer:
    def test_structure(self, grid):
        output = RtfRenderer().render(grid, metadata=Metadata(title="Counts")).output
        assert output.startswith("{\\rtf1\\ansi\\deff0")
        assert output.rstrip().endswith("}")
        assert output.count("\\row") == 5
        assert "\\pard\\intbl\\ql 4\\cell" in output
        assert "{\\b Counts}" in output

    def test_escaping(self, special_grid):
        output = RtfRenderer().render(special_grid).output
        assert "\\{x\\}|y" in output
        assert RtfRenderer().escape_text("café") == "caf\\u233?"

    def test_colors_and_warnings(self, grid):
        theme = Theme().with_rule("row[V1=B]", color="#ff0000", background="yellow")
        result = RtfRenderer().render(grid, theme)
        assert "\\red255\\green0\\blue0;" in result.output
        assert "{\\cf1 3}" in result.output
        assert result.warnings == (UnsupportedStyleWarning("rtf", "background"),)


class TestRendererContract:
    @pytest.mark.parametrize("renderer_cls", ALL_RENDERERS)
    def test_idempotent(self, renderer_cls, faceted_grid):
        theme = Theme().with_rule("header", bold=True).with_rule("cell", color="blue")
        metadata = Metadata(title="T", notes=("n1", "n2"))
        first = renderer_cls().render(faceted_grid, theme, metadata)
        second = renderer_cls().render(faceted_grid, theme, metadata)
        assert first.output == second.output
        assert first.warnings == second.warnings

    @pytest.mark.parametrize("renderer_cls", ALL_RENDERERS)
    def test_number_format_never_warns(self, renderer_cls, grid):
        theme = Theme().with_rule("cell", number_format="{:.1f}")
        result = renderer_cls().render(grid, theme)
        assert "4.0" in result.output
        assert result.warnings == ()

    @pytest.mark.parametrize("renderer_cls", ALL_RENDERERS)
    def test_one_warning_per_attribute(self, renderer_cls, grid):
        theme = Theme().with_rule("cell", shimmer="gold").with_rule("header", shimmer="silver")
        result = renderer_cls().render(grid, theme)
        assert [w.attribute for w in result.warnings] == ["shimmer"]
        assert isinstance(result.warnings[0], UserWarning)

    def test_no_data_and_empty_positions(self):
        index = DimensionIndex().declare("V1", ["A", "B"]).declare("V2", ["C", "D"])
        store = CellStore(index)
        store.add({"V1": "A", "V2": "C"}, 1)
        store.add({"V1": "B", "V2": "C"}, 3)
        spec = ArrangementSpec(rows=("V1",), columns=("V2",), margins=(MarginSpec("V1", "sum"),))
        grid = ArrangementEngine().arrange(store.seal(), spec)
        config = RenderConfig(no_data_text="n/a", empty_text="-")
        output = MarkdownRenderer(config).render(grid).output
        assert "| A | 1 | - |" in output
        assert "| All | 4 | n/a |" in output

    def test_float_format(self, grid):
        assert MarkdownRenderer().format_value(grid.facets[0].cell_at(0, 0), {}) == "1"
        renderer = MarkdownRenderer(RenderConfig(float_format="{:.2f}"))
        cell = Cell(grid.facets[0].cell_at(0, 0).assignment, "pct", 0.5)
        assert renderer.format_value(cell, {}) == "0.50"

    def test_result_str(self, grid):
        result = MarkdownRenderer().render(grid)
        assert isinstance(result, RenderResult)
        assert str(result) == result.output
        assert result.format == "markdown"


class PlainRenderer(Renderer):
    """Tab-separated text; exercises the contract with a minimal backend."""

    format_name = "plain"
    aliases = ("txt",)
    supported_styles = frozenset()

    def escape_text(self, text):
        return str(text).replace("\t", " ")

    def emit_structure(self, document):
        lines = []
        for facet in document.facets:
            lines.append("\t".join(c.text for c in facet.stub_titles + facet.column_titles))
            for row in facet.body:
                lines.append("\t".join(c.text for c in row.stub + row.cells))
        return "\n".join(lines)


class TestRendererRegistry:
    def test_default_formats(self):
        registry = default_registry()
        assert registry.formats == ["html", "latex", "markdown", "rtf"]
        assert isinstance(registry.get("md"), MarkdownRenderer)
        assert isinstance(registry.get("TEX"), LatexRenderer)
        assert "htm" in registry

    def test_unknown_format(self):
        with pytest.raises(UnknownFormatError):
            default_registry().get("docx")
        with pytest.raises(KeyError):
            default_registry().get("docx")

    def test_config_passed_to_factory(self):
        renderer = default_registry().get("markdown", RenderConfig(margin_label="Total"))
        assert renderer.config.margin_label == "Total"

    def test_custom_renderer(self, grid):
        registry = default_registry().copy()
        registry.register(PlainRenderer.format_name, PlainRenderer, aliases=PlainRenderer.aliases)
        output = registry.get("txt").render(grid).output
        assert output.splitlines() == ["V1\tC\tD", "A\t1\t2", "B\t3\t4", "All\t4\t6"]
        assert "plain" not in default_registry()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
