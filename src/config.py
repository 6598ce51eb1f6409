"""
Layout configuration.

Values come from (1) defaults, (2) a JSON file, (3) environment variables.
The JSON file is the `path` argument or the `PEDIGREE_CONFIG` variable.
`PEDIGREE_SYMBOL_SIZE` and `PEDIGREE_DEBUG` override file values, but only
when no explicit path was given.
"""

from dataclasses import dataclass, fields
from pathlib import Path
import json
import logging
import os

logger = logging.getLogger(__name__)


@dataclass
class LayoutConfig:
    symbol_size: float = 35
    width: float | None = None  # when set, the tree is fitted into width x height
    height: float | None = None
    node_separation: float = 1.65  # tree width per unit of generation score
    level_separation: float = 3.5  # row height in symbol sizes
    sibling_separation: float = 1.2
    cousin_separation: float = 2.2
    overlap_tolerance: float = 1.0
    detour_padding: float = 8
    detour_margin: float = 8
    validate: bool = True
    debug: bool = False

    @property
    def row_height(self) -> float:
        return self.symbol_size * self.level_separation

    @property
    def fit_to_size(self) -> bool:
        return self.width is not None and self.height is not None


def _read_json(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must hold a JSON object")
    return data


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(path: str | Path | None = None, **overrides) -> LayoutConfig:
    """
    Load the layout configuration.

    Args:
        path: Optional JSON config file. Falls back to `PEDIGREE_CONFIG`.
        **overrides: Field values applied last (used by the CLI).

    Returns:
        A populated LayoutConfig.
    """
    cfg = LayoutConfig()
    known = {f.name for f in fields(LayoutConfig)}

    cp = path or os.environ.get("PEDIGREE_CONFIG")
    if cp:
        data = _read_json(Path(cp))
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown config key %r in %s", key, cp)
                continue
            setattr(cfg, key, value)

    if path is None:
        if os.environ.get("PEDIGREE_SYMBOL_SIZE"):
            cfg.symbol_size = float(os.environ["PEDIGREE_SYMBOL_SIZE"])
        if os.environ.get("PEDIGREE_DEBUG"):
            cfg.debug = _truthy(os.environ["PEDIGREE_DEBUG"])

    for key, value in overrides.items():
        if key not in known:
            raise TypeError(f"Unknown config field: {key}")
        if value is not None:
            setattr(cfg, key, value)

    if cfg.symbol_size <= 0:
        raise ValueError(f"symbol_size must be positive, got {cfg.symbol_size}")
    return cfg
