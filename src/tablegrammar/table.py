"""
Table Facade: the public assembly point.

A Table always holds a consistent quadruple (Cell Store, Arrangement, Theme,
Metadata). Re-arranging or re-theming returns a new Table that shares the
store, the engine and the grid cache, so content is never re-derived and a
grid is computed at most once per distinct arrangement.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence

import pandas as pd

from tablegrammar.arrange.actions import ArrangementAction
from tablegrammar.arrange.engine import ArrangementEngine
from tablegrammar.arrange.grid import Grid
from tablegrammar.arrange.spec import ArrangementSpec
from tablegrammar.content.cells import CellStore
from tablegrammar.content.dimensions import DimensionIndex
from tablegrammar.errors import RenderError, TableGrammarError
from tablegrammar.metadata import Metadata
from tablegrammar.render.base import RenderConfig, RenderResult
from tablegrammar.render.registry import RendererRegistry, default_registry
from tablegrammar.theme.theme import Theme

logger = logging.getLogger(__name__)


class GridCache:
    """
    Grids keyed by arrangement, computed once on a miss.

    Concurrent callers asking for the same arrangement wait for the first
    caller's computation instead of repeating it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[ArrangementSpec, Future] = {}

    def get_or_compute(self, key: ArrangementSpec, compute: Callable[[], Grid]) -> Grid:
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future
        if not owner:
            logger.debug(f"Grid cache hit for {key.spec_id}")
            return future.result()
        try:
            grid = compute()
        except BaseException as e:
            with self._lock:
                self._entries.pop(key, None)
            future.set_exception(e)
            raise
        future.set_result(grid)
        return grid

    def __contains__(self, key: ArrangementSpec) -> bool:
        with self._lock:
            future = self._entries.get(key)
        return future is not None and future.done() and future.exception() is None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self):
        with self._lock:
            self._entries.clear()


@dataclass
class RenderBatch:
    """Results of rendering one table to several formats."""
    results: Dict[str, RenderResult] = field(default_factory=dict)
    errors: Dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def __getitem__(self, format_name: str) -> RenderResult:
        return self.results[format_name]


class Table:
    """
    A summarized table with an arrangement, a theme and metadata.

    Constructing a Table seals its cell store and validates the arrangement,
    so configuration errors surface before any render is attempted.
    """

    def __init__(self, store: CellStore,
                 arrangement: ArrangementSpec = None,
                 theme: Theme = None,
                 metadata: Metadata = None,
                 engine: ArrangementEngine = None,
                 renderers: RendererRegistry = None,
                 render_config: RenderConfig = None,
                 grid_cache: GridCache = None):
        """
        Args:
            store: Summarized content; sealed on construction
            arrangement: Layout (default: last dimension on columns, the rest on rows)
            theme: Styles (default: empty theme)
            metadata: Title, notes and identifiers
            engine: Arrangement engine (holds the aggregation registry)
            renderers: Renderer registry (default: built-in formats)
            render_config: Configuration passed to renderers
            grid_cache: Cache shared with tables derived from this one
        """
        self.store = store.seal()
        self.engine = engine or ArrangementEngine()
        self.arrangement = arrangement or ArrangementSpec.default(store.index)
        self.engine.resolve_spec(self.store, self.arrangement)
        self.theme = theme if theme is not None else Theme()
        self.metadata = metadata or Metadata()
        self.renderers = renderers or default_registry()
        self.render_config = render_config
        self._cache = grid_cache if grid_cache is not None else GridCache()

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, dimensions: Sequence[str],
                   value_columns: Optional[Sequence[str]] = None, **kwargs) -> "Table":
        """Build a table from pre-summarized rows (see CellStore.from_frame)."""
        return cls(CellStore.from_frame(frame, dimensions, value_columns), **kwargs)

    @property
    def index(self) -> DimensionIndex:
        return self.store.index

    def _derive(self, **changes: Any) -> "Table":
        state = {
            "arrangement": self.arrangement,
            "theme": self.theme,
            "metadata": self.metadata,
            "engine": self.engine,
            "renderers": self.renderers,
            "render_config": self.render_config,
            "grid_cache": self._cache,
        }
        state.update(changes)
        return Table(self.store, **state)

    def with_arrangement(self, arrangement: ArrangementSpec) -> "Table":
        """Same content and theme, different layout."""
        return self._derive(arrangement=arrangement)

    def with_theme(self, theme: Theme) -> "Table":
        """Same content and layout, different styles."""
        return self._derive(theme=theme)

    def with_metadata(self, metadata: Metadata) -> "Table":
        return self._derive(metadata=metadata)

    def rearrange(self, *actions: ArrangementAction) -> "Table":
        """Apply re-arrangement actions in order."""
        spec = self.arrangement
        for action in actions:
            new_spec = action.apply(spec)
            if new_spec is None:
                raise ValueError(f"Action not applicable to {spec.describe()}: {action.describe()}")
            spec = new_spec
        return self.with_arrangement(spec)

    @property
    def grid(self) -> Grid:
        """The grid for the current arrangement, computed lazily and cached."""
        return self._cache.get_or_compute(
            self.arrangement, lambda: self.engine.arrange(self.store, self.arrangement)
        )

    def render(self, format_name: str = "markdown",
               config: RenderConfig = None) -> RenderResult:
        """
        Render to one format.

        Raises:
            UnknownFormatError: if no renderer is registered for the format
            RenderError: if the renderer itself fails
        """
        renderer = self.renderers.get(format_name, config or self.render_config)
        grid = self.grid
        try:
            return renderer.render(grid, self.theme, self.metadata)
        except TableGrammarError:
            raise
        except Exception as e:
            raise RenderError(f"{renderer.format_name} renderer failed: {e}") from e

    def render_many(self, formats: Sequence[str],
                    max_workers: Optional[int] = None) -> RenderBatch:
        """
        Render to several formats; one format failing does not stop the others.

        The grid is computed once up front; errors computing it are not
        renderer-local and propagate.
        """
        self.grid
        batch = RenderBatch()

        def attempt(format_name):
            try:
                return format_name, self.render(format_name), None
            except Exception as e:
                logger.warning(f"Rendering to {format_name} failed: {e}")
                return format_name, None, e

        if max_workers and max_workers > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                outcomes = list(pool.map(attempt, formats))
        else:
            outcomes = [attempt(f) for f in formats]

        for format_name, result, error in outcomes:
            if error is None:
                batch.results[format_name] = result
            else:
                batch.errors[format_name] = error
        logger.info(f"Rendered {len(batch.results)} of {len(outcomes)} formats")
        return batch

    def to_frame(self, facet: int = 0) -> pd.DataFrame:
        """Values of one facet as a DataFrame."""
        margin_label = (self.render_config or RenderConfig()).margin_label
        return self.grid.facets[facet].to_frame(margin_label=margin_label)

    def describe(self) -> str:
        parts = [
            f"{len(self.store)} cells over {', '.join(self.index.names)}",
            f"arrangement {self.arrangement.describe()}",
            f"{len(self.theme)} style rules",
        ]
        if self.metadata.title:
            parts.insert(0, f"'{self.metadata.title}'")
        return "; ".join(parts)

    def __repr__(self):
        return f"Table({self.describe()})"

