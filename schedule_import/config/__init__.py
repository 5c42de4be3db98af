from .loader import ConfigError, default_settings, load_config

__all__ = ["ConfigError", "default_settings", "load_config"]
