"""
Environment management for wpstack.

This module drives the lifecycle of the development and tests WordPress
environments: bringing the compose stack up and down, and installing,
configuring and resetting WordPress inside it.
"""

from .lifecycle import EnvironmentController
from .wordpress import (
    WordPressSequencer,
    check_database_connection,
    configure_wordpress,
    make_content_directories_writable,
    reset_database,
    wait_for_database,
)

__all__ = [
    "EnvironmentController",
    "WordPressSequencer",
    "check_database_connection",
    "configure_wordpress",
    "make_content_directories_writable",
    "reset_database",
    "wait_for_database",
]
