"""Configuration paths for CodeGraph Viz."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("CODEGRAPH_VIZ_HOME", str(Path.home() / ".codegraph-viz"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Sections of config.toml
LAYOUT_SECTION = "layout"
HIERARCHICAL_SECTION = "hierarchical"
ORPHANS_SECTION = "orphans"

DEFAULT_ITERATIONS = 300


def ensure_base_dirs() -> None:
    """Create the configuration directory if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
