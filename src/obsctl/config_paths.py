"""Configuration path handling for obsctl.

The context registry lives in a single JSON file. Its location is taken from
the ``OBSCTL_CONFIG_PATH`` environment variable when set, otherwise from the
platform's per-user config directory.
"""

import os
from pathlib import Path
from typing import Optional, Union

import platformdirs

# Application name used for directory paths
APP_NAME = "obsctl"

# Environment variable names
ENV_CONFIG_PATH = "OBSCTL_CONFIG_PATH"

# Default filenames
CONFIG_FILENAME = "config.json"

CONFIG_DIR_MODE = 0o700
CONFIG_FILE_MODE = 0o600


def get_user_config_dir() -> Path:
    """Get the path to the user's config directory for this application."""
    return Path(platformdirs.user_config_dir(APP_NAME))


def get_config_file_path() -> Path:
    """Get the path to the context registry file.

    Returns:
        ``OBSCTL_CONFIG_PATH`` if set and non-empty, else the file inside the
        user config directory
    """
    # 1. Check environment variable
    env_path = os.environ.get(ENV_CONFIG_PATH)
    if env_path:
        return Path(env_path)

    # 2. Fall back to user config directory
    return get_user_config_dir() / CONFIG_FILENAME


def resolve_config_file_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Return ``path`` if given, else the resolved default registry path."""
    if path is not None:
        return Path(path)
    return get_config_file_path()


def ensure_config_dir_exists(config_file: Path) -> None:
    """Ensure that the directory holding ``config_file`` exists.

    Args:
        config_file: Path to the registry file

    Raises:
        OSError: If the directory cannot be created
        PermissionError: If the directory exists but is not writable
    """
    config_dir = config_file.parent

    if config_dir.exists():
        if not os.access(config_dir, os.W_OK):
            raise PermissionError(f"Config directory exists but is not writable: {config_dir}")
        return

    os.makedirs(config_dir, mode=CONFIG_DIR_MODE, exist_ok=True)
