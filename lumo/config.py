"""
Configuration management for Lumo.

Handles persistent configuration including:
- Canvas behaviour (snap grid, connection radius, default marker size)
- Server settings (port, log level)

Config is stored in config.json next to the executable/project root.
Environment variables (LUMO_PORT, LUMO_LOG_LEVEL) take priority over the file.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from lumo.edit.constants import CONNECTION_RADIUS, DEFAULT_NODE_SIZE
from lumo.paths import get_config_path

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8081
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class CanvasSettings:
    """Canvas behaviour and colours. Keys match the "canvas" section of config.json."""
    snap_to_grid: bool = True
    snap_grid: Tuple[float, float] = (15.0, 15.0)
    connection_radius: float = float(CONNECTION_RADIUS)
    node_size: float = float(DEFAULT_NODE_SIZE)
    edge_color: str = '#b1b1b7'
    edge_width: float = 2.0
    node_color: str = '#fed7aa'
    background_color: str = '#FDFAF6'
    dot_color: str = 'rgba(166, 174, 191, 0.3)'

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CanvasSettings":
        """Build settings from a config section, ignoring unknown or malformed keys."""
        settings = cls()
        known = {f.name for f in fields(cls)}
        for key, value in (raw or {}).items():
            if key not in known:
                logger.debug(f"Ignoring unknown canvas setting {key!r}")
                continue
            if key == 'snap_grid':
                try:
                    value = (float(value[0]), float(value[1]))
                except (TypeError, ValueError, IndexError):
                    logger.warning(f"Invalid snap_grid {value!r}, using default")
                    continue
            setattr(settings, key, value)
        return settings

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['snap_grid'] = list(self.snap_grid)
        return data


def load_config(path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = Path(path) if path else get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not read {config_path}: {e}")
            return {}
    return {}


def save_config(config: dict, path: Optional[Path] = None) -> None:
    """Save configuration to config.json."""
    config_path = Path(path) if path else get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def get_canvas_settings(config: Optional[dict] = None) -> CanvasSettings:
    """Canvas settings from the "canvas" section of config.json."""
    if config is None:
        config = load_config()
    return CanvasSettings.from_dict(config.get('canvas', {}))


def set_canvas_settings(settings: CanvasSettings, path: Optional[Path] = None) -> None:
    config = load_config(path)
    config['canvas'] = settings.to_dict()
    save_config(config, path)


def get_port(config: Optional[dict] = None) -> int:
    """
    Get the server port.

    Priority:
    1. Environment variable LUMO_PORT
    2. "port" in config.json
    3. DEFAULT_PORT
    """
    env_port = os.environ.get("LUMO_PORT")
    if config is None:
        config = load_config()
    for value in (env_port, config.get('port')):
        if value in (None, ''):
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid port {value!r}")
    return DEFAULT_PORT


def get_log_level(config: Optional[dict] = None) -> str:
    """Log level name from LUMO_LOG_LEVEL or config.json."""
    env_level = os.environ.get("LUMO_LOG_LEVEL")
    if env_level:
        return env_level.upper()
    if config is None:
        config = load_config()
    return str(config.get('log_level', DEFAULT_LOG_LEVEL)).upper()
