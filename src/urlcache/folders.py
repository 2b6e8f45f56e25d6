"""
Platform user data directories.

Resolves the per-user data directory the cache lives under:
- Linux: $XDG_DATA_HOME, else ~/.local/share
- macOS: ~/Library/Application Support
- Windows: %LOCALAPPDATA%
- anything else: the current directory
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

FALLBACK_DIR = "."


def user_data_dir(platform: str | None = None) -> Path:
    """Return the base user data directory for the given platform.

    Args:
        platform: A ``sys.platform`` style value. Defaults to the running one.
    """
    platform = platform or sys.platform

    if platform.startswith("win"):
        return Path(os.environ.get("LOCALAPPDATA", FALLBACK_DIR))

    if platform == "darwin":
        home = os.environ.get("HOME", FALLBACK_DIR)
        return Path(home) / "Library" / "Application Support"

    if platform.startswith("linux"):
        xdg = os.environ.get("XDG_DATA_HOME")
        if xdg:
            return Path(xdg)
        home = os.environ.get("HOME")
        if home:
            return Path(home) / ".local" / "share"
        return Path(FALLBACK_DIR)

    return Path(FALLBACK_DIR)


def local_user_data_path(
    app_folder_name: str | None = None,
    subfolder: str | None = None,
    create: bool = False,
    base: Path | None = None,
) -> Path:
    """Build ``<base>/<app_folder_name>/<subfolder>``.

    Blank or None segments are skipped; segments are whitespace-trimmed.

    Args:
        app_folder_name: Application folder under the data directory.
        subfolder: Optional folder under the application folder.
        create: Create the directory (and parents) if missing.
        base: Base directory. Defaults to user_data_dir().

    Raises:
        OSError: If create is True and the directory cannot be created.
    """
    path = Path(base) if base is not None else user_data_dir()

    for segment in (app_folder_name, subfolder):
        if segment and segment.strip():
            path = path / segment.strip()

    if create:
        path.mkdir(parents=True, exist_ok=True)

    return path
