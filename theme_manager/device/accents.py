"""Accent colors in ``minuisettings.txt``.

The file is plain ``key=value`` text shared with other NextUI settings;
only ``color1`` .. ``color6`` are touched. Colors are stored as
``0xRRGGBB`` on the device and shown as ``#RRGGBB``.
"""

from __future__ import annotations

from pathlib import Path

from theme_manager.device.exceptions import SettingsError
from theme_manager.device.files import write_text_atomic
from theme_manager.domain import ACCENT_KEYS, AccentColors
from theme_manager.logging import LoggerFactory


log = LoggerFactory.for_settings()


def to_storage(color: str) -> str:
    """``#RRGGBB`` -> ``0xRRGGBB``; other values pass through."""
    if color.startswith("#"):
        return f"0x{color[1:]}"
    return color


def _read_lines(path: Path) -> list[str]:
    try:
        return path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise SettingsError(path, exc.strerror or str(exc)) from exc


def read_accent_colors(path: Path) -> AccentColors:
    """Read the six accent colors in storage form.

    Raises:
        SettingsError: If the file is missing or unreadable
    """
    values: dict[str, str] = {}
    for line in _read_lines(path):
        key, sep, value = line.partition("=")
        key = key.strip()
        if sep and key in ACCENT_KEYS:
            values[key] = to_storage(value.strip())
    colors = AccentColors.from_dict(values)
    log.debug("Read accent colors from {}", path, colors=colors.to_dict())
    return colors


def write_accent_colors(path: Path, colors: AccentColors) -> None:
    """Write the colors, keeping every other line of the file as it was.

    Empty colors leave the existing value alone.

    Raises:
        SettingsError: If the file cannot be written
    """
    lines = _read_lines(path) if path.exists() else []
    pending = {
        key: to_storage(value) for key, value in colors.to_dict().items() if value
    }

    updated: list[str] = []
    for line in lines:
        key = line.partition("=")[0].strip()
        if key in pending:
            updated.append(f"{key}={pending.pop(key)}")
        else:
            updated.append(line)
    for key in ACCENT_KEYS:
        if key in pending:
            updated.append(f"{key}={pending[key]}")

    try:
        write_text_atomic(path, "\n".join(updated) + "\n")
    except OSError as exc:
        raise SettingsError(path, exc.strerror or str(exc)) from exc
    log.info("Applied accent colors to {}", path)
