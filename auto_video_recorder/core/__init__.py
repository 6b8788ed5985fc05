"""Ambient infrastructure: logging, paths, configuration, environment."""

from .config_manager import ConfigManager, get_config_manager
from .environment import RunEnvironment, detect_environment, get_environment
from .logging_config import configure_logging
from .logging_utils import get_module_logger

__all__ = [
    "ConfigManager",
    "RunEnvironment",
    "configure_logging",
    "detect_environment",
    "get_config_manager",
    "get_environment",
    "get_module_logger",
]
