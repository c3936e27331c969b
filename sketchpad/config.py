"""
Configuration management for the graph sketchpad.

Handles persistent configuration including:
- Render defaults (node radius, colors, arrow size)
- Edge layout tuning (parallel offset, loop radius, sample counts)
- Key bindings for the interaction controller

Config is stored in config.json next to the executable/project root, or at
the path in SKETCHPAD_CONFIG. Environment variables named SKETCHPAD_<FIELD>
override the file.
"""

import json
import logging
import os
import sys
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "SKETCHPAD_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class SketchpadSettings:
    """Tunable values shared by the store, the layout and the controller."""

    # Nodes
    node_radius: float = 0.5
    node_color: str = "#0077ff"
    preview_color: str = "#0077ff"
    preview_opacity: float = 0.5

    # Edges
    edge_color: str = "#ff0000"
    selected_edge_color: str = "#00ff00"
    bridge_color: str = "#ffd700"
    edge_thickness: float = 5.0
    base_parallel_offset: float = 1.0
    loop_radius_scale: float = 1.5
    curve_samples: int = 20
    loop_segments: int = 32
    arrow_size: float = 0.4
    directed: bool = False

    # Picking and placement
    edge_pick_tolerance: float = 0.1
    preview_distance: float = 10.0
    min_preview_distance: float = 1.0
    scroll_distance_factor: float = 0.05

    # Key bindings
    key_begin_node_creation: str = "v"
    key_delete: str = "d"
    key_enable_drag: str = "m"
    key_add_loop: str = "l"

    # Chromatic number search
    chromatic_exact_limit: int = 60
    chromatic_step_budget: int = 200_000

    def __post_init__(self):
        if self.node_radius <= 0:
            raise ValueError(f"node_radius must be positive, got {self.node_radius}")
        if self.curve_samples < 2:
            raise ValueError(f"curve_samples must be at least 2, got {self.curve_samples}")
        if self.loop_segments < 2:
            raise ValueError(f"loop_segments must be at least 2, got {self.loop_segments}")
        if self.min_preview_distance <= 0:
            raise ValueError("min_preview_distance must be positive")

    @property
    def loop_radius(self) -> float:
        return max(0.0, self.loop_radius_scale * self.node_radius)


def default_config_path() -> Path:
    """
    Location of config.json.

    SKETCHPAD_CONFIG wins; a frozen build looks beside its executable, a
    source checkout at the project root (parent of sketchpad/).
    """
    override = os.environ.get("SKETCHPAD_CONFIG")
    if override:
        return Path(override)
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent / "config.json"
    return Path(__file__).parent.parent / "config.json"


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = config_path or default_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config file {config_path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {config_path}: top level is not an object")
            return {}
        return data
    return {}


def save_config(config: dict, config_path: Optional[Path] = None) -> None:
    """Save configuration to config.json."""
    config_path = config_path or default_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def _coerce(value: Any, default: Any) -> Any:
    """Coerce a raw config/env value to the type of the field's default."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError(f"not a boolean: {value!r}")
    if isinstance(default, int):
        if isinstance(value, bool):
            raise ValueError(f"not an integer: {value!r}")
        return int(value)
    if isinstance(default, float):
        if isinstance(value, bool):
            raise ValueError(f"not a number: {value!r}")
        return float(value)
    return str(value)


def _collect_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    defaults = SketchpadSettings()
    known = {f.name: getattr(defaults, f.name) for f in fields(SketchpadSettings)}
    overrides: Dict[str, Any] = {}

    for key, raw in config.items():
        if key not in known:
            logger.warning(f"Unknown config key '{key}' ignored")
            continue
        try:
            overrides[key] = _coerce(raw, known[key])
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid value for config key '{key}': {e}")

    # Environment wins over config.json
    for name, default in known.items():
        env_value = os.environ.get(ENV_PREFIX + name.upper())
        if env_value is None:
            continue
        try:
            overrides[name] = _coerce(env_value, default)
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid value for {ENV_PREFIX}{name.upper()}: {e}")

    return overrides


def load_settings(config_path: Optional[Path] = None) -> SketchpadSettings:
    """
    Build settings from defaults, config.json and the environment.

    Priority:
    1. Environment variables SKETCHPAD_<FIELD>
    2. Stored in config.json
    3. Dataclass defaults
    """
    overrides = _collect_overrides(load_config(config_path))
    try:
        return replace(SketchpadSettings(), **overrides)
    except ValueError as e:
        logger.error(f"Invalid settings, falling back to defaults: {e}")
        return SketchpadSettings()
