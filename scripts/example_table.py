#!/usr/bin/env python3
"""
Example: arranging and rendering the Titanic survival table.

This script demonstrates how to:
1. Build a cell store from pre-summarized counts
2. Arrange it with facets and margins
3. Re-arrange it without touching the content
4. Render the same table to several formats

Usage:
    python scripts/example_table.py
    python scripts/example_table.py --formats markdown latex --output-dir logs/tables
"""

import os
import sys
import argparse
import logging
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tablegrammar.arrange.actions import TransposeAction, MoveDimensionAction, ReverseLevelsAction
from tablegrammar.arrange.spec import Axis
from tablegrammar.table import Table
from configs.tables import (
    create_titanic_store, survival_by_class_arrangement, titanic_theme, titanic_metadata
)

EXTENSIONS = {"markdown": "md", "html": "html", "latex": "tex", "rtf": "rtf"}


def run_demo(formats, output_dir=None, max_workers=None):
    """Run the demonstration."""
    print("=" * 60)
    print("TableGrammar Demo: Titanic survival")
    print("=" * 60)

    print("\n1. Building the cell store...")
    store = create_titanic_store()
    print(f"   {store!r}")

    table = Table(
        store,
        arrangement=survival_by_class_arrangement(),
        theme=titanic_theme(),
        metadata=titanic_metadata(),
    )
    print(f"\n2. Arranged: {table.describe()}")
    for facet in table.grid:
        print(f"   facet {facet.facet_labels}: {facet.shape[0]} rows x {facet.shape[1]} columns")
    print(table.to_frame())

    print("\n3. Re-arranging...")
    steps = [
        TransposeAction(),
        MoveDimensionAction("Age", Axis.ROWS, position=0),
        ReverseLevelsAction("Survived", index=table.index),
    ]
    for action in steps:
        print(f"   {action.describe()}")
    rearranged = table.rearrange(*steps)
    print(f"   -> {rearranged.arrangement.describe()}")
    print(rearranged.to_frame())

    print("\n4. Rendering...")
    batch = table.render_many(formats, max_workers=max_workers)
    for name, result in batch.results.items():
        print(f"\n--- {name} ({len(result.output)} chars) ---")
        for warning in result.warnings:
            print(f"   warning: {warning}")
        if output_dir is None:
            print(result.output)
    for name, error in batch.errors.items():
        print(f"\n--- {name} failed: {error}")

    if output_dir is not None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        for name, result in batch.results.items():
            path = output_dir / f"titanic.{EXTENSIONS.get(name, name)}"
            path.write_text(result.output)
            print(f"   saved {path}")

    print("\n" + "=" * 60)
    print("Demo complete!")
    print("=" * 60)


def main():
    parser = argparse.ArgumentParser(description="Render the Titanic example table")
    parser.add_argument("--formats", nargs="+", default=["markdown", "html", "latex", "rtf"],
                        help="Output formats to render")
    parser.add_argument("--output-dir", default=None,
                        help="Write renderings here instead of printing them")
    parser.add_argument("--workers", type=int, default=None,
                        help="Render formats in parallel with this many threads")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    run_demo(args.formats, args.output_dir, args.workers)


if __name__ == "__main__":
    main()
