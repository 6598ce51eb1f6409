"""
1) Load a pedigree dataset (a JSON list of person records).
2) Validate it and report warnings.
3) Lay it out: proband distances, tree, tidy layout, adjustments.
4) Report partner links, clashes and routed connectors.
"""

import argparse
import json
import logging
from pathlib import Path

from config import load_config
from errors import PedigreeError
from models import PersonNode, load_dataset
from pedigree import layout_pedigree


# ============================================================================
# Loading
# ============================================================================


def read_dataset(path: Path) -> list[PersonNode]:
    """Read a JSON file holding a list of person records."""
    with open(path, "r", encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path} must hold a JSON list of person records")
    return load_dataset(records)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lay out a pedigree chart")
    parser.add_argument("dataset", type=Path, help="JSON file with a list of person records")
    parser.add_argument("--config", type=Path, default=None, help="JSON layout config file")
    parser.add_argument("--symbol-size", type=float, default=None, help="Node symbol size")
    parser.add_argument("--output", type=Path, default=None, help="Write node positions as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


# ============================================================================
# Main
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config, symbol_size=args.symbol_size)

    print(f"Loading pedigree: {args.dataset}")
    dataset = read_dataset(args.dataset)
    print(f"  Found {len(dataset)} persons")

    print("Laying out pedigree...")
    try:
        result = layout_pedigree(dataset, config)
    except PedigreeError as err:
        print(f"  Layout failed: {err}")
        return 1
    print(
        f"  Tree has {len(result.nodes)} nodes "
        f"({len(result.person_nodes)} people) and {len(result.partner_links)} partner links"
    )

    if result.warnings:
        print(f"  Found {len(result.warnings)} validation warnings:")
        for w in result.warnings[:10]:  # Show first 10 warnings
            print(f"    - {w}")
        if len(result.warnings) > 10:
            print(f"    ... and {len(result.warnings) - 10} more")
    else:
        print("  No validation issues found")

    if result.clashing:
        print(f"  {len(result.clashing)} clashing nodes: {[n.name for n in result.clashing]}")
    for path in result.paths:
        flags = [f for f, on in (("consanguineous", path.consanguineous), ("divorced", path.divorced)) if on]
        print(f"    {path.female} x {path.male}: {path.d} {' '.join(flags)}".rstrip())

    if args.output:
        positions = [
            {"name": n.name, "kind": n.kind, "x": n.x, "y": n.y, "depth": n.depth}
            for n in result.nodes
        ]
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(positions, f, indent=2)
        print(f"Node positions saved to {args.output}")

    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
