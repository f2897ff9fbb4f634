"""Reader/writer bundle for the accent and LED settings files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict

from theme_manager.device.accents import read_accent_colors, write_accent_colors
from theme_manager.device.leds import read_led_settings, write_led_settings
from theme_manager.domain import AccentColors, LEDSetting


@dataclass(frozen=True)
class SettingsIO:
    """Callables the engines use for settings; replace them in tests."""

    read_accents: Callable[[Path], AccentColors] = read_accent_colors
    write_accents: Callable[[Path, AccentColors], None] = write_accent_colors
    read_leds: Callable[[Path], Dict[str, LEDSetting]] = read_led_settings
    write_leds: Callable[[Path, Dict[str, LEDSetting]], None] = write_led_settings


DEFAULT_SETTINGS_IO = SettingsIO()
