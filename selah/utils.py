# selah/utils.py
import sys
import os

import platformdirs

from .constants import APP_NAME, APP_AUTHOR

# This file provides utility functions for path handling,
# supporting both normal script execution and PyInstaller frozen bundles.


def is_frozen() -> bool:
    return getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS')


def get_app_path(resource_path: str = '', writable: bool = False) -> str:
    """
    Get the absolute path to a resource or writable directory.

    Handles both script execution and PyInstaller frozen bundles.

    Args:
        resource_path: Relative path to a resource/directory.
                       Leave empty for the base directory itself.
        writable:
            If True: Returns a path relative to the EXECUTABLE's directory
                     and makes sure the target directory exists.
            If False: Returns a path relative to the application's internal
                      root (sys._MEIPASS when frozen, project root otherwise).

    Returns:
        Absolute path as a string.
    """
    if is_frozen():
        base_path = os.path.dirname(sys.executable) if writable else sys._MEIPASS
    else:
        # utils.py lives in selah/, so the project root is the parent directory
        base_path = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    full_path = os.path.join(base_path, resource_path) if resource_path else base_path

    if writable and resource_path:
        # A path whose last part has a '.' is treated as a file
        if '.' in os.path.basename(resource_path) and not resource_path.endswith(('/', '\\')):
            target_dir = os.path.dirname(full_path)
        else:
            target_dir = full_path
        if target_dir:
            os.makedirs(target_dir, exist_ok=True)

    return full_path


def get_preferences_path(filename: str) -> str:
    """Preferences file: next to the executable on Windows, user config dir elsewhere."""
    if sys.platform == "win32":
        return get_app_path(filename, writable=True)
    config_dir = platformdirs.user_config_dir(APP_NAME, APP_AUTHOR)
    os.makedirs(config_dir, exist_ok=True)
    return os.path.join(config_dir, filename)


def get_data_dir(subdir: str = '') -> str:
    """Writable data directory for offline Bible text."""
    if sys.platform == "win32":
        return get_app_path(subdir or 'data', writable=True)
    base = platformdirs.user_data_dir(APP_NAME, APP_AUTHOR)
    path = os.path.join(base, subdir) if subdir else base
    os.makedirs(path, exist_ok=True)
    return path


def get_cache_dir(subdir: str = '') -> str:
    """Writable cache directory (speech audio and similar throwaway files)."""
    if sys.platform == "win32":
        return get_app_path(subdir or 'cache', writable=True)
    base = platformdirs.user_cache_dir(APP_NAME, APP_AUTHOR)
    path = os.path.join(base, subdir) if subdir else base
    os.makedirs(path, exist_ok=True)
    return path


def is_secret_configured(value) -> bool:
    """Secrets that are empty or still hold the placeholder text count as missing."""
    return bool(value) and "YOUR" not in value
