"""Settings storage for theme manager configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from theme_manager.device.layout import DeviceLayout


SETTINGS_PATH = Path(
    os.environ.get(
        "THEME_MANAGER_SETTINGS_PATH",
        Path.home() / ".config" / "theme-manager" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_DEVICE_ROOT = "/mnt/SDCARD"
DEFAULT_AUTHOR = "AuthorName"
PAK_DIR_NAME = "Theme-Manager.pak"

DEFAULT_SETTINGS: dict[str, Any] = {
    "device_root": DEFAULT_DEVICE_ROOT,
    "packages_root": None,
    "exports_dir": None,
    "default_author": DEFAULT_AUTHOR,
    "log_dir": None,
    "debug_logging": False,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


def load_settings() -> None:
    settings_store.values = dict(DEFAULT_SETTINGS)
    if not SETTINGS_PATH.exists():
        return
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return
    if isinstance(data, dict):
        settings_store.values.update(data)


def save_settings() -> None:
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(settings_store.values, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def set_setting(key: str, value: Any) -> None:
    settings_store.values[key] = value
    save_settings()


def get_bool(key: str, default: bool = False) -> bool:
    return bool(get_setting(key, default))


def set_bool(key: str, value: bool) -> None:
    set_setting(key, bool(value))


def get_device_layout(root: str | os.PathLike | None = None) -> DeviceLayout:
    """Build the device layout from an explicit root or the configured one."""
    if root is None:
        root = get_setting("device_root") or DEFAULT_DEVICE_ROOT
    return DeviceLayout(Path(root))


def get_packages_root(layout: DeviceLayout) -> Path:
    """Directory holding installed packages (``Themes``, ``Components``)."""
    configured = get_setting("packages_root")
    if configured:
        return Path(configured)
    return layout.tools / PAK_DIR_NAME


def get_exports_dir(layout: DeviceLayout) -> Path:
    configured = get_setting("exports_dir")
    if configured:
        return Path(configured)
    return get_packages_root(layout) / "Exports"


load_settings()
