"""
Copying of WordPress source trees into working directories.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

# Version control metadata and dependency caches
EXCLUDED_DIRECTORIES = frozenset({".git", "node_modules"})

# Environment-specific configuration generated inside each container
EXCLUDED_FILES = frozenset({"wp-config.php"})


def is_excluded(entry: os.DirEntry) -> bool:
    """Whether a directory entry must not be copied."""
    if entry.is_symlink():
        return True
    if entry.is_dir(follow_symlinks=False):
        return entry.name in EXCLUDED_DIRECTORIES
    return entry.name in EXCLUDED_FILES


def copy_tree(from_path: Union[str, Path], to_path: Union[str, Path]) -> None:
    """
    Copy a WordPress tree, skipping symlinks, .git and node_modules
    directories and wp-config.php files at any depth.

    Existing files in the destination are overwritten. The first entry that
    cannot be read aborts the copy with an OSError; whatever was already
    copied stays in place.

    Args:
        from_path: Directory to copy
        to_path: Destination directory, created if missing
    """
    source = Path(from_path)
    destination = Path(to_path)

    logger.info(f"Copying {source} to {destination}")
    _copy_directory(source, destination)


def _copy_directory(source: Path, destination: Path) -> None:
    destination.mkdir(parents=True, exist_ok=True)

    with os.scandir(source) as entries:
        for entry in entries:
            if is_excluded(entry):
                logger.debug(f"Skipping {entry.path}")
                continue

            target = destination / entry.name
            if entry.is_dir(follow_symlinks=False):
                _copy_directory(Path(entry.path), target)
            else:
                shutil.copy2(entry.path, target)
