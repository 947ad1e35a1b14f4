"""
Config store: env, an optional YAML/JSON config file (master over env), and
in-process overrides (master over both).

The file may group keys by section; sections are flattened with an underscore,
so

    push:
      send_chunk_size: 50
    expo:
      access_token: "..."

sets push_send_chunk_size and expo_access_token.
"""
import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


def _flatten(data: dict[str, Any], known: set[str], prefix: str = "") -> dict[str, Any]:
    """Flatten section mappings into settings keys. Mappings that are themselves a known key stay whole."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict) and name not in known:
            flat.update(_flatten(value, known, prefix=f"{name}_"))
        else:
            flat[name] = value
    return flat


def _read_config_file(path: Path) -> dict[str, Any]:
    """Parse a YAML or JSON mapping. Missing, unreadable or malformed files yield {}."""
    if not path.exists():
        logger.debug("Config file not found: %s (optional; using env/defaults)", path)
        return {}
    loaders = {".yaml": yaml.safe_load, ".yml": yaml.safe_load, ".json": json.loads}
    loader = loaders.get(path.suffix.lower())
    if loader is None:
        logger.warning("Config file must be .yaml, .yml, or .json: %s", path)
        return {}
    try:
        data = loader(path.read_text())
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        logger.warning("Could not load config file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file must contain a mapping; got %s", type(data).__name__)
        return {}
    return data


class ConfigStore:
    """Thread-safe holder of the current Settings snapshot."""

    def __init__(self, SettingsCls: type, config_file_path: Optional[str] = None):
        self._SettingsCls = SettingsCls
        self._file_path: Optional[Path] = (
            Path(config_file_path).expanduser().resolve() if config_file_path else None
        )
        self._overrides: dict[str, Any] = {}
        self._current: Optional[Any] = None
        self._lock = threading.RLock()

    @property
    def file_path(self) -> Optional[Path]:
        return self._file_path

    def _file_values(self) -> dict[str, Any]:
        if self._file_path is None:
            return {}
        known = set(self._SettingsCls.model_fields)
        values = _flatten(_read_config_file(self._file_path), known)
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys in %s: %s", self._file_path, ", ".join(unknown))
        return {k: v for k, v in values.items() if k in known}

    def _build(self, overrides: dict[str, Any]) -> Any:
        env_values = self._SettingsCls().model_dump()
        return self._SettingsCls(**{**env_values, **self._file_values(), **overrides})

    def load_initial(self) -> None:
        """Build settings from env, file and overrides. Call once at startup."""
        with self._lock:
            self._current = self._build(self._overrides)
            if self._file_path and self._file_path.exists():
                logger.info("Loaded config file (master over env): %s", self._file_path)

    def get_settings(self) -> Any:
        """Current Settings, built on first use."""
        with self._lock:
            if self._current is None:
                self.load_initial()
            return self._current

    def update(self, overrides: dict[str, Any]) -> None:
        """Apply overrides on top of env and file. An invalid value leaves the previous snapshot in place."""
        with self._lock:
            merged = {**self._overrides, **overrides}
            try:
                self._current = self._build(merged)
            except ValueError as e:
                logger.warning("Config update rejected; keeping previous config: %s", e)
                return
            self._overrides = merged

    def reload_from_file(self) -> None:
        """Re-read the config file, keeping overrides."""
        with self._lock:
            try:
                self._current = self._build(self._overrides)
            except ValueError as e:
                logger.warning("Config reload rejected; keeping previous config: %s", e)

    def clear_overrides(self) -> None:
        """Drop overrides and rebuild from env and file."""
        with self._lock:
            self._overrides = {}
            self._current = self._build(self._overrides)
