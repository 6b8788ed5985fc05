"""Reader for the recorder's ``key = value`` configuration file.

Example::

    # video_recorder.txt
    processing_delay_ms = 20000
    max_retries = 12          # CI agents are slow to flush
    video_dir = "/mnt/grid/videos"
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, Optional, TypeVar

import aiofiles

from .logging_utils import get_module_logger
from .paths import CONFIG_PATH

T = TypeVar("T")

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


def parse_config_lines(lines: Iterable[str]) -> Dict[str, str]:
    """Parse ``key = value`` lines. Blank lines, ``#`` comments and lines
    without ``=`` are skipped; one level of matching quotes is removed."""
    config: Dict[str, str] = {}
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.split("#", 1)[0].strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        config[key.strip()] = value
    return config


class ConfigManager:

    def __init__(self, default_path: Optional[Path] = None):
        self.logger = get_module_logger("ConfigManager")
        self.default_path = Path(default_path) if default_path else CONFIG_PATH

    def _path(self, config_path: Optional[Path]) -> Path:
        return Path(config_path) if config_path is not None else self.default_path

    def read_config(self, config_path: Optional[Path] = None) -> Dict[str, str]:
        """Read ``config_path`` (or the default file). Missing or unreadable files yield {}."""
        path = self._path(config_path)
        if not path.exists():
            self.logger.debug("No config file at %s, using preset values", path)
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                config = parse_config_lines(f)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error("Failed to read config %s: %s", path, e)
            return {}
        self.logger.debug("Loaded %d config value(s) from %s", len(config), path)
        return config

    async def read_config_async(self, config_path: Optional[Path] = None) -> Dict[str, str]:
        """Async version for callers already on an event loop."""
        path = self._path(config_path)
        if not await asyncio.to_thread(path.exists):
            self.logger.debug("No config file at %s, using preset values", path)
            return {}
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                text = await f.read()
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error("Failed to read config %s: %s", path, e)
            return {}
        return parse_config_lines(text.splitlines())

    # ------------------------------------------------------------------
    # Typed getters: a missing key or an unparseable value yields ``default``.

    def _typed(self, config: Mapping[str, str], key: str, default: T, convert: Callable[[str], T]) -> T:
        if key not in config:
            return default
        try:
            return convert(config[key])
        except ValueError:
            self.logger.warning("Invalid value for %s: %r, using %r", key, config[key], default)
            return default

    def get_bool(self, config: Mapping[str, str], key: str, default: bool = False) -> bool:
        return self._typed(config, key, default, lambda value: value.strip().lower() in _TRUE_VALUES)

    def get_int(self, config: Mapping[str, str], key: str, default: int = 0) -> int:
        return self._typed(config, key, default, int)

    def get_float(self, config: Mapping[str, str], key: str, default: float = 0.0) -> float:
        return self._typed(config, key, default, float)

    def get_str(self, config: Mapping[str, str], key: str, default: str = "") -> str:
        return config.get(key, default)


_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    return _config_manager


__all__ = ["ConfigManager", "get_config_manager", "parse_config_lines"]
