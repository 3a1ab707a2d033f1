# filemon/config/__init__.py

from filemon.config.loader import DEFAULT_CONFIG_PATH, load_config, validate_config
from filemon.config.schema import WatcherConfig

__all__ = [
    "WatcherConfig",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "validate_config",
]
