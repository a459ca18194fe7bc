"""
Config Module — Server configuration loading.
"""

from .loader import ConfigError, ServerConfig, load_config

__all__ = ["ConfigError", "ServerConfig", "load_config"]
