"""Configuration manager for DepGraph CLI using TOML files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config

logger = logging.getLogger(__name__)


@dataclass
class ScanSettings:
    """Effective scan settings: defaults overlaid with the ``[scan]`` section."""

    max_files: int = config.DEFAULT_MAX_FILES
    include_external: bool = False
    granularity: str = config.DEFAULT_GRANULARITY
    debounce_seconds: float = config.DEFAULT_DEBOUNCE_SECONDS
    aliases: Dict[str, str] = field(default_factory=lambda: dict(config.DEFAULT_ALIASES))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_files": self.max_files,
            "include_external": self.include_external,
            "granularity": self.granularity,
            "debounce_seconds": self.debounce_seconds,
            "aliases": dict(self.aliases),
        }


# Keys accepted by ``depgraph config set`` and how to coerce their values.
SETTABLE_KEYS = {
    "max_files": int,
    "include_external": lambda v: str(v).strip().lower() in {"1", "true", "yes", "on"},
    "granularity": str,
    "debounce_seconds": float,
}


def _config_file(path: Optional[Path] = None) -> Path:
    return path if path is not None else config.CONFIG_FILE


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    config_file = _config_file(path)
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_file, exc)
        return {}


def load_scan_settings(path: Optional[Path] = None) -> ScanSettings:
    """Return scan settings from the ``[scan]`` section, falling back to defaults.

    Values that fail validation are dropped individually so one bad key does
    not discard the rest of the file.
    """
    section = load_full_config(path).get("scan", {})
    settings = ScanSettings()
    if not isinstance(section, dict):
        return settings

    for key, coerce in SETTABLE_KEYS.items():
        if key not in section:
            continue
        try:
            setattr(settings, key, coerce(section[key]))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid config value scan.%s=%r", key, section[key])

    if settings.granularity not in config.GRANULARITIES:
        logger.warning("Unknown granularity %r, using 'file'", settings.granularity)
        settings.granularity = config.DEFAULT_GRANULARITY
    if settings.max_files < 1:
        settings.max_files = config.DEFAULT_MAX_FILES

    aliases = section.get("aliases")
    if isinstance(aliases, dict):
        settings.aliases.update({str(k): str(v).strip("/") for k, v in aliases.items()})
    return settings


def _save_full_config(data: Dict[str, Any], path: Optional[Path] = None) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    config_file = _config_file(path)
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w", encoding="utf-8") as f:
            toml.dump(data, f)
        return True
    except OSError as exc:
        logger.error("Could not write config %s: %s", config_file, exc)
        return False


def set_scan_value(key: str, value: str, path: Optional[Path] = None) -> bool:
    """Persist one ``[scan]`` key. Raises ``KeyError``/``ValueError`` on bad input."""
    if key not in SETTABLE_KEYS:
        raise KeyError(key)
    coerced = SETTABLE_KEYS[key](value)
    if key == "granularity" and coerced not in config.GRANULARITIES:
        raise ValueError(f"granularity must be one of {', '.join(config.GRANULARITIES)}")

    data = load_full_config(path)
    section = data.setdefault("scan", {})
    section[key] = coerced
    return _save_full_config(data, path)


def set_alias(prefix: str, target: str, path: Optional[Path] = None) -> bool:
    """Map an import prefix (e.g. ``~/``) to a root-relative directory."""
    data = load_full_config(path)
    aliases = data.setdefault("scan", {}).setdefault("aliases", {})
    aliases[prefix] = target.strip("/")
    return _save_full_config(data, path)
