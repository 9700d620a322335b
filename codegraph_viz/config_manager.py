"""Configuration manager for layout defaults stored in a TOML file.

``config.toml`` holds three optional sections::

    [layout]        # force simulation tunables (LayoutConfig)
    [hierarchical]  # ranked layout spacing (HierarchicalConfig)
    [orphans]       # orphan grid packing (OrphanGridConfig)

Missing files, sections or keys fall back to the built-in defaults.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config
from .models import HierarchicalConfig, LayoutConfig, OrphanGridConfig

logger = logging.getLogger(__name__)


def _config_file(path: Optional[Path] = None) -> Path:
    return path or config.CONFIG_FILE


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    config_file = _config_file(path)
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read %s, using defaults: %s", config_file, exc)
        return {}


def _save_full_config(data: Dict[str, Any], path: Optional[Path] = None) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    config_file = _config_file(path)
    try:
        if path is None:
            config.ensure_base_dirs()
        else:
            config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w") as f:
            toml.dump(data, f)
        return True
    except OSError as exc:
        logger.warning("Could not write %s: %s", config_file, exc)
        return False


def _section_values(section: Dict[str, Any], cls) -> Dict[str, Any]:
    """Keep only keys that are fields of ``cls``, coerced to the field's default type."""
    values = {}
    defaults = cls()
    for f in fields(cls):
        if f.name not in section:
            continue
        default = getattr(defaults, f.name)
        if isinstance(default, (int, float, str)) and not isinstance(default, bool):
            try:
                values[f.name] = type(default)(section[f.name])
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid value for '%s': %r", f.name, section[f.name])
    unknown = set(section) - {f.name for f in fields(cls)}
    if unknown:
        logger.debug("Ignoring unknown %s keys: %s", cls.__name__, ", ".join(sorted(unknown)))
    return values


# ------------------------------------------------------------------
# Force layout configuration
# ------------------------------------------------------------------

def load_layout_config(path: Optional[Path] = None) -> LayoutConfig:
    """Load the ``[layout]`` section as a :class:`LayoutConfig`."""
    section = load_full_config(path).get(config.LAYOUT_SECTION, {})
    return LayoutConfig(**_section_values(section, LayoutConfig))


def save_layout_config(path: Optional[Path] = None, **values: Any) -> bool:
    """Merge ``values`` into the ``[layout]`` section.

    Preserves the other sections in the file.

    Returns:
        True if saved successfully.
    """
    known = {f.name for f in fields(LayoutConfig)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown layout setting(s): {', '.join(sorted(unknown))}")

    data = load_full_config(path)
    current = asdict(load_layout_config(path))
    current.update({k: float(v) for k, v in values.items()})
    data[config.LAYOUT_SECTION] = current
    return _save_full_config(data, path)


def clear_layout_config(path: Optional[Path] = None) -> bool:
    """Remove the ``[layout]`` section, resetting to defaults."""
    data = load_full_config(path)
    data.pop(config.LAYOUT_SECTION, None)
    return _save_full_config(data, path)


# ------------------------------------------------------------------
# Hierarchical layout configuration
# ------------------------------------------------------------------

def load_hierarchical_config(path: Optional[Path] = None) -> HierarchicalConfig:
    """Load ``[hierarchical]`` and ``[orphans]`` into a :class:`HierarchicalConfig`."""
    data = load_full_config(path)
    orphans = OrphanGridConfig(**_section_values(data.get(config.ORPHANS_SECTION, {}), OrphanGridConfig))
    values = _section_values(data.get(config.HIERARCHICAL_SECTION, {}), HierarchicalConfig)
    return replace(HierarchicalConfig(orphans=orphans), **values)
