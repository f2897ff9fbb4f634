"""LED configuration in ``ledsettings_brick.txt``.

One INI-like section per light position::

    [F1 key]
    effect=1
    color1=0xFFFFFF
    ...
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from theme_manager.device.accents import to_storage
from theme_manager.device.exceptions import SettingsError
from theme_manager.device.files import write_text_atomic
from theme_manager.domain import LEDSetting
from theme_manager.logging import LoggerFactory


# Manifest key -> section name in the settings file
LIGHT_SECTIONS: dict[str, str] = {
    "f1_key": "F1 key",
    "f2_key": "F2 key",
    "top_bar": "Top bar",
    "lr_triggers": "L&R triggers",
}

_INT_FIELDS = {
    "effect": "effect",
    "speed": "speed",
    "brightness": "brightness",
    "trigger": "trigger",
    "inbrightness": "in_brightness",
}

log = LoggerFactory.for_settings()


def _section_key(section: str) -> str:
    for key, name in LIGHT_SECTIONS.items():
        if name == section:
            return key
    return section.lower().replace("&", "").replace(" ", "_")


def read_led_settings(path: Path) -> dict[str, LEDSetting]:
    """Parse every light section, keyed by manifest light name.

    Raises:
        SettingsError: If the file is missing, unreadable or holds a
            non-numeric value for a numeric field
    """
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise SettingsError(path, exc.strerror or str(exc)) from exc

    settings: dict[str, LEDSetting] = {}
    current: str | None = None
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if line.startswith("[") and line.endswith("]"):
            current = _section_key(line[1:-1])
            settings[current] = LEDSetting()
            continue
        if current is None:
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key, value = key.strip(), value.strip()
        if key in _INT_FIELDS:
            try:
                number = int(value)
            except ValueError as exc:
                raise SettingsError(path, f"{key} is not a number: {value}") from exc
            settings[current] = replace(settings[current], **{_INT_FIELDS[key]: number})
        elif key in ("color1", "color2"):
            settings[current] = replace(settings[current], **{key: to_storage(value)})
        elif key == "filename":
            settings[current] = replace(settings[current], filename=value)

    if len(settings) != len(LIGHT_SECTIONS):
        log.debug("Expected {} lights but found {}", len(LIGHT_SECTIONS), len(settings))
    return settings


def merge_led_settings(
    current: dict[str, LEDSetting], incoming: dict[str, LEDSetting]
) -> dict[str, LEDSetting]:
    """Lay ``incoming`` lights over ``current`` so every light is kept.

    The four device lights are always present in the result; a light in
    neither mapping gets device defaults.
    """
    merged = {key: current.get(key, LEDSetting()) for key in LIGHT_SECTIONS}
    merged.update((key, light) for key, light in current.items() if key not in merged)
    merged.update(incoming)
    return merged


def write_led_settings(path: Path, settings: dict[str, LEDSetting]) -> None:
    """Rewrite the settings file with one section per light.

    Raises:
        SettingsError: If the file cannot be written
    """
    blocks = []
    ordered = [key for key in LIGHT_SECTIONS if key in settings]
    ordered.extend(key for key in settings if key not in LIGHT_SECTIONS)
    for key in ordered:
        light = settings[key]
        blocks.append(
            "\n".join(
                [
                    f"[{LIGHT_SECTIONS.get(key, key)}]",
                    f"effect={light.effect}",
                    f"color1={to_storage(light.color1)}",
                    f"color2={to_storage(light.color2)}",
                    f"speed={light.speed}",
                    f"brightness={light.brightness}",
                    f"trigger={light.trigger}",
                    f"filename={light.filename}",
                    f"inbrightness={light.in_brightness}",
                ]
            )
        )

    try:
        write_text_atomic(path, "\n\n".join(blocks) + "\n")
    except OSError as exc:
        raise SettingsError(path, exc.strerror or str(exc)) from exc
    log.info("Applied {} LED sections to {}", len(ordered), path)
