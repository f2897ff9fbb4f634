"""
Pytest configuration and shared fixtures for theme manager tests.

This module builds a fake NextUI SD card and sample packages under pytest's
tmp_path so no test touches a real device.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

from theme_manager.config import settings
from theme_manager.device.inventory import discover
from theme_manager.device.layout import DeviceLayout
from theme_manager.domain import SystemInventory


SYSTEM_DIRS = [
    "Game Boy Advance (GBA)",
    "Super Nintendo (SNES)",
    "Arcade (FBN) (MAME)",
    "Ports",
]


def _write(path: Path, data: bytes = b"data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


# ==============================================================================
# Configuration Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def temp_settings_file(tmp_path, monkeypatch) -> Path:
    """
    Fixture pointing the settings store at a per-test JSON file.

    Every test starts from the default settings; nothing is read from or
    written to the user's real configuration.

    Returns:
        Path of the (not yet existing) settings file.
    """
    settings_file = tmp_path / "config" / "settings.json"
    monkeypatch.setattr("theme_manager.config.settings.SETTINGS_PATH", settings_file)
    settings.load_settings()
    yield settings_file
    settings.load_settings()


# ==============================================================================
# Device Fixtures
# ==============================================================================


@pytest.fixture
def write_file() -> Callable[..., Path]:
    """
    Fixture providing a helper that writes bytes and creates parent dirs.

    Returns:
        Callable taking (path, data=b"data") and returning the path.
    """
    return _write


@pytest.fixture
def device_root(tmp_path) -> Path:
    """
    Fixture providing an empty SD card with the standard NextUI folders.

    Args:
        tmp_path: pytest's built-in temporary directory fixture.

    Returns:
        Path to the card root.
    """
    root = tmp_path / "SDCARD"
    for name in SYSTEM_DIRS:
        (root / "Roms" / name).mkdir(parents=True)
    (root / "Roms" / ".media").mkdir()
    (root / "Roms" / ".hidden").mkdir()
    (root / "Roms" / "readme.txt").write_text("not a system")
    (root / "Recently Played").mkdir()
    (root / "Tools" / "tg5040").mkdir(parents=True)
    (root / "Collections" / "Handhelds").mkdir(parents=True)
    (root / ".system" / "res").mkdir(parents=True)
    (root / ".userdata" / "shared").mkdir(parents=True)
    return root


@pytest.fixture
def layout(device_root) -> DeviceLayout:
    """Fixture providing the DeviceLayout for the fake card."""
    return DeviceLayout(device_root)


@pytest.fixture
def inventory(layout) -> SystemInventory:
    """Fixture providing a discovered inventory of the fake card."""
    return discover(layout)


@pytest.fixture
def populated_device(layout) -> DeviceLayout:
    """
    Fixture providing a card with a file in every themable slot.

    Each file's content names its slot so copies can be traced.

    Returns:
        DeviceLayout of the populated card.
    """
    files = {
        layout.root_background: b"root-bg",
        layout.root_media_background: b"root-media-bg",
        layout.recently_played_background: b"rp-bg",
        layout.tools_background: b"tools-bg",
        layout.collections_background: b"collections-bg",
        layout.recently_played_icon: b"rp-icon",
        layout.tools_icon: b"tools-icon",
        layout.collections_icon: b"collections-icon",
        layout.system_media("Game Boy Advance (GBA)") / "bg.png": b"gba-bg",
        layout.system_media("Game Boy Advance (GBA)") / "bglist.png": b"gba-list",
        layout.system_media("Super Nintendo (SNES)") / "bg.png": b"snes-bg",
        layout.system_icon("Game Boy Advance (GBA)"): b"gba-icon",
        layout.system_icon("Super Nintendo (SNES)"): b"snes-icon",
        layout.tool_icon("Clock"): b"clock-icon",
        layout.collection_background("Handhelds"): b"handhelds-bg",
        layout.collection_icon("Handhelds"): b"handhelds-icon",
        layout.overlay("GBA", "frame.png"): b"gba-overlay",
        layout.overlay("SNES", "scanlines.png"): b"snes-overlay",
        layout.font("OG.ttf"): b"og-font",
        layout.font("Next.ttf"): b"next-font",
    }
    for path, data in files.items():
        _write(path, data)
    layout.accent_settings.write_text(ACCENT_FILE_TEXT)
    layout.led_settings.write_text(LED_FILE_TEXT)
    return layout


# ==============================================================================
# Settings File Fixtures
# ==============================================================================


ACCENT_FILE_TEXT = """fontsize=16
color1=0xFFFFFF
color2=0x9B2257
color3=0x1E2329
color4=0xFFFFFF
color5=0x000000
color6=0xFFFFFF
haptics=1
"""

LED_FILE_TEXT = """[F1 key]
effect=1
color1=0xFF0000
color2=0x000000
speed=1000
brightness=100
trigger=1
filename=
inbrightness=100

[F2 key]
effect=2
color1=0x00FF00
color2=0x000000
speed=500
brightness=80
trigger=1
filename=
inbrightness=90

[Top bar]
effect=1
color1=0x0000FF
color2=0x000000
speed=1000
brightness=100
trigger=1
filename=
inbrightness=100

[L&R triggers]
effect=4
color1=0xFFFFFF
color2=0x101010
speed=2000
brightness=60
trigger=3
filename=
inbrightness=50
"""


@pytest.fixture
def accent_file_text() -> str:
    """Fixture providing a minuisettings.txt body."""
    return ACCENT_FILE_TEXT


@pytest.fixture
def led_file_text() -> str:
    """Fixture providing a ledsettings_brick.txt body."""
    return LED_FILE_TEXT


@pytest.fixture
def sample_accent_colors() -> Dict[str, str]:
    """Fixture providing accent colors as stored in manifests."""
    return {
        "color1": "0xFFFFFF",
        "color2": "0xE6A23C",
        "color3": "0x2C2C2C",
        "color4": "0xFFFFFF",
        "color5": "0x000000",
        "color6": "0xAAAAAA",
    }


@pytest.fixture
def sample_led_settings() -> Dict[str, Dict[str, Any]]:
    """Fixture providing LED settings as stored in manifests."""
    light = {
        "effect": 1,
        "color1": "0xE6A23C",
        "color2": "0x000000",
        "speed": 1000,
        "brightness": 100,
        "trigger": 1,
        "in_brightness": 100,
    }
    return {key: dict(light) for key in ("f1_key", "f2_key", "top_bar", "lr_triggers")}


# ==============================================================================
# Package Fixtures
# ==============================================================================


@pytest.fixture
def make_package(tmp_path) -> Callable[..., Path]:
    """
    Fixture providing a factory for package directories.

    Args:
        tmp_path: pytest's built-in temporary directory fixture.

    Returns:
        Callable taking (name, files, manifest=None) where files maps
        package-relative paths to bytes and manifest is a JSON-ready dict.
    """
    packages_dir = tmp_path / "packages"

    def _make(name: str, files: Dict[str, bytes], manifest: Dict[str, Any] = None) -> Path:
        package = packages_dir / name
        package.mkdir(parents=True, exist_ok=True)
        for relative, data in files.items():
            _write(package / relative, data)
        if manifest is not None:
            (package / "manifest.json").write_text(json.dumps(manifest, indent=2))
        return package

    return _make


def component_manifest(name: str, kind_type: str, **extra: Any) -> Dict[str, Any]:
    manifest = {
        "component_info": {
            "name": name,
            "type": kind_type,
            "version": "1.0.0",
            "author": "Tester",
            "creation_date": "2025-01-01T00:00:00Z",
            "exported_by": "Theme Manager v1.0.0",
        },
        "content": {},
        "path_mappings": [],
    }
    manifest.update(extra)
    return manifest


@pytest.fixture
def component_manifest_factory() -> Callable[..., Dict[str, Any]]:
    """Fixture providing a factory for minimal component manifests."""
    return component_manifest


@pytest.fixture
def theme_manifest(sample_accent_colors, sample_led_settings) -> Dict[str, Any]:
    """
    Fixture providing a full theme manifest with stale device paths.

    The mappings point at another card on purpose; imports must not use them.
    """
    return {
        "theme_info": {
            "name": "Retro",
            "version": "1.0.0",
            "author": "Tester",
            "creation_date": "2025-01-01T00:00:00Z",
            "exported_by": "Theme Manager v1.0.0",
        },
        "content": {},
        "path_mappings": {
            "wallpapers": [
                {
                    "theme_path": "Wallpapers/SystemWallpapers/Root.png",
                    "system_path": "/somewhere/else/bg.png",
                    "metadata": {"SystemName": "Root", "WallpaperType": "Main"},
                }
            ],
            "icons": [],
            "overlays": [],
            "fonts": {},
            "settings": {},
        },
        "accent_colors": sample_accent_colors,
        "led_settings": sample_led_settings,
    }


@pytest.fixture
def full_theme(make_package, theme_manifest) -> Path:
    """
    Fixture providing a full theme with every kind of content.

    Returns:
        Path to ``Retro.theme``.
    """
    files = {
        "Wallpapers/SystemWallpapers/Root.png": b"t-root",
        "Wallpapers/SystemWallpapers/Recently Played.png": b"t-rp",
        "Wallpapers/SystemWallpapers/Game Boy Advance (GBA).png": b"t-gba-bg",
        "Wallpapers/ListWallpapers/Game Boy Advance (GBA)-list.png": b"t-gba-list",
        "Wallpapers/CollectionWallpapers/Handhelds.png": b"t-handhelds-bg",
        "Icons/SystemIcons/Collections.png": b"t-collections-icon",
        "Icons/SystemIcons/Super Nintendo (SNES).png": b"t-snes-icon",
        "Icons/ToolIcons/Clock.png": b"t-clock",
        "Icons/CollectionIcons/Handhelds.png": b"t-handhelds-icon",
        "Overlays/GBA/frame.png": b"t-gba-overlay",
        "Fonts/Next.ttf": b"t-next-font",
        "Random/notes.txt": b"ignore me",
        "preview.png": b"t-preview",
    }
    return make_package("Retro.theme", files, theme_manifest)
