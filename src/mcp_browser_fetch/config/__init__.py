"""Configuration management for browser automation."""

from .environment import (
    normalize_flavor,
    get_env_config,
    get_browser_config,
)

from .paths import (
    default_user_data_dir,
    launcher_log_dir,
    driver_log_path,
    server_log_path,
)

__all__ = [
    "normalize_flavor",
    "get_env_config",
    "get_browser_config",
    "default_user_data_dir",
    "launcher_log_dir",
    "driver_log_path",
    "server_log_path",
]
