"""
wpstack: local WordPress development and tests environments

Provisions, configures, resets and tears down containerized WordPress
instances with Docker Compose.
"""

__version__ = "0.1.0"

from .config import Config, WpstackSettings, load_config
from .logging_config import setup_logging

__all__ = [
    "Config",
    "WpstackSettings",
    "load_config",
    "setup_logging",
]
