"""Domain model for theme packages and the device they are applied to.

Everything here is an immutable value. Operations take these values as
arguments and return new ones; nothing keeps a "current selection" around
between calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping


# ==============================================================================
# Package Kinds
# ==============================================================================


class ComponentKind(Enum):
    """Category of a package, identified by its directory extension."""

    FULL_THEME = ".theme"
    WALLPAPER = ".bg"
    ICON = ".icon"
    ACCENT = ".acc"
    LED = ".led"
    FONT = ".font"
    OVERLAY = ".over"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def manifest_type(self) -> str:
        """Value of ``component_info.type`` in the manifest."""
        return _MANIFEST_TYPES[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def has_preview(self) -> bool:
        return self is not ComponentKind.LED

    @property
    def is_component(self) -> bool:
        return self is not ComponentKind.FULL_THEME

    @property
    def theme_dir(self) -> str | None:
        """Top-level directory holding this kind's files inside a full theme."""
        return _THEME_DIRS.get(self)

    @classmethod
    def from_extension(cls, extension: str) -> ComponentKind:
        normalized = extension.lower()
        if not normalized.startswith("."):
            normalized = f".{normalized}"
        for kind in cls:
            if kind.value == normalized:
                return kind
        raise ValueError(f"Unknown package extension: {extension}")

    @classmethod
    def from_path(cls, path: str | Path) -> ComponentKind:
        return cls.from_extension(Path(path).suffix)

    @classmethod
    def from_manifest_type(cls, label: str) -> ComponentKind:
        for kind, manifest_type in _MANIFEST_TYPES.items():
            if manifest_type == label:
                return kind
        raise ValueError(f"Unknown component type: {label}")

    @classmethod
    def from_name(cls, name: str) -> ComponentKind:
        """Parse a user-facing name such as ``wallpaper`` or ``.bg``."""
        lowered = name.strip().lower()
        if lowered.startswith("."):
            return cls.from_extension(lowered)
        for kind in cls:
            if lowered in (kind.name.lower(), kind.manifest_type, kind.label.lower()):
                return kind
        raise ValueError(f"Unknown component kind: {name}")


COMPONENT_KINDS: tuple[ComponentKind, ...] = (
    ComponentKind.WALLPAPER,
    ComponentKind.ICON,
    ComponentKind.ACCENT,
    ComponentKind.LED,
    ComponentKind.FONT,
    ComponentKind.OVERLAY,
)

_MANIFEST_TYPES = {
    ComponentKind.FULL_THEME: "theme",
    ComponentKind.WALLPAPER: "wallpaper",
    ComponentKind.ICON: "icon",
    ComponentKind.ACCENT: "accent",
    ComponentKind.LED: "led",
    ComponentKind.FONT: "font",
    ComponentKind.OVERLAY: "overlay",
}

_LABELS = {
    ComponentKind.FULL_THEME: "Themes",
    ComponentKind.WALLPAPER: "Wallpapers",
    ComponentKind.ICON: "Icons",
    ComponentKind.ACCENT: "Accents",
    ComponentKind.LED: "LEDs",
    ComponentKind.FONT: "Fonts",
    ComponentKind.OVERLAY: "Overlays",
}

_THEME_DIRS = {
    ComponentKind.WALLPAPER: "Wallpapers",
    ComponentKind.ICON: "Icons",
    ComponentKind.FONT: "Fonts",
    ComponentKind.OVERLAY: "Overlays",
}


def expand_kinds(
    kind: ComponentKind, selected: Iterable[ComponentKind] | None = None
) -> frozenset[ComponentKind]:
    """Component kinds an operation on a package of ``kind`` covers.

    A full theme covers the selected component kinds, or all of them when the
    selection is empty. A component package only ever covers itself.
    """
    if kind is not ComponentKind.FULL_THEME:
        return frozenset({kind})
    chosen = frozenset(k for k in (selected or ()) if k.is_component)
    return chosen or frozenset(COMPONENT_KINDS)


# ==============================================================================
# Device Inventory
# ==============================================================================


@dataclass(frozen=True)
class SystemInfo:
    """One system directory under ``Roms``."""

    name: str  # e.g., "Game Boy Advance (GBA)"
    tag: str  # e.g., "GBA", empty when the name has no parentheses
    path: Path
    media_path: Path

    @property
    def display_name(self) -> str:
        """Name without its trailing tag group."""
        if not self.tag:
            return self.name
        suffix = f"({self.tag})"
        index = self.name.rfind(suffix)
        return self.name[:index].rstrip() if index >= 0 else self.name


@dataclass(frozen=True)
class SystemInventory:
    """Snapshot of the device's menu folders and installed systems."""

    root: Path
    recently_played: Path
    tools: Path
    roms: Path
    collections: Path
    systems: tuple[SystemInfo, ...] = ()

    def find_by_tag(self, tag: str) -> SystemInfo | None:
        if not tag:
            return None
        for system in self.systems:
            if system.tag == tag:
                return system
        return None

    def find_by_name(self, name: str) -> SystemInfo | None:
        for system in self.systems:
            if system.name == name:
                return system
        return None


# ==============================================================================
# Manifest Values
# ==============================================================================


@dataclass(frozen=True)
class PathMapping:
    """A package file and the device path it occupies.

    ``package_path`` is relative with forward slashes, ``device_path`` is
    absolute.
    """

    package_path: str
    device_path: str
    metadata: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "theme_path": self.package_path,
            "system_path": self.device_path,
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PathMapping:
        """Build a mapping from its manifest form.

        Raises:
            KeyError: If ``theme_path`` or ``system_path`` is missing
            TypeError: If a field has the wrong type
        """
        package_path = data["theme_path"]
        device_path = data["system_path"]
        metadata = data.get("metadata") or {}
        if not isinstance(package_path, str) or not isinstance(device_path, str):
            raise TypeError("theme_path and system_path must be strings")
        if not isinstance(metadata, dict):
            raise TypeError("metadata must be an object")
        return cls(
            package_path=package_path,
            device_path=device_path,
            metadata={str(k): str(v) for k, v in metadata.items()},
        )


ACCENT_KEYS = ("color1", "color2", "color3", "color4", "color5", "color6")


@dataclass(frozen=True)
class AccentColors:
    """The six UI accent colors, kept in storage form (``0xRRGGBB``)."""

    color1: str = ""  # Main UI color
    color2: str = ""  # Primary accent
    color3: str = ""  # Secondary accent
    color4: str = ""  # List text
    color5: str = ""  # Selected list text
    color6: str = ""  # Hint/info text

    def to_dict(self) -> dict[str, str]:
        return {key: getattr(self, key) for key in ACCENT_KEYS}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AccentColors:
        return cls(**{key: str(data.get(key, "") or "") for key in ACCENT_KEYS})

    def is_empty(self) -> bool:
        return not any(self.to_dict().values())


@dataclass(frozen=True)
class LEDSetting:
    """Configuration for one light position."""

    effect: int = 1
    color1: str = "0xFFFFFF"
    color2: str = "0x000000"
    speed: int = 1000
    brightness: int = 100
    trigger: int = 1
    in_brightness: int = 100
    filename: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "effect": self.effect,
            "color1": self.color1,
            "color2": self.color2,
            "speed": self.speed,
            "brightness": self.brightness,
            "trigger": self.trigger,
            "in_brightness": self.in_brightness,
        }
        if self.filename:
            data["filename"] = self.filename
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LEDSetting:
        """Build a setting, filling missing fields with device defaults.

        Raises:
            ValueError: If a numeric field is not an integer
        """
        defaults = cls()
        return cls(
            effect=int(data.get("effect", defaults.effect)),
            color1=str(data.get("color1") or defaults.color1),
            color2=str(data.get("color2") or defaults.color2),
            speed=int(data.get("speed", defaults.speed)),
            brightness=int(data.get("brightness", defaults.brightness)),
            trigger=int(data.get("trigger", defaults.trigger)),
            in_brightness=int(
                data.get("in_brightness", data.get("inbrightness", defaults.in_brightness))
            ),
            filename=str(data.get("filename", "") or ""),
        )


@dataclass(frozen=True)
class ManifestInfo:
    """``theme_info`` / ``component_info`` block."""

    name: str
    version: str = "1.0.0"
    author: str = ""
    creation_date: str = ""
    exported_by: str = ""


@dataclass(frozen=True)
class Manifest:
    """Description of a package's contents.

    ``content`` is the kind-specific summary exactly as it appears on the
    wire. ``mappings`` is flat; grouping into manifest sections happens on
    serialization.
    """

    kind: ComponentKind
    info: ManifestInfo
    content: Mapping[str, Any] = field(default_factory=dict)
    mappings: tuple[PathMapping, ...] = ()
    accent_colors: AccentColors | None = None
    led_settings: Mapping[str, LEDSetting] | None = None

    @property
    def includes_accents(self) -> bool:
        return self.accent_colors is not None and not self.accent_colors.is_empty()

    @property
    def includes_leds(self) -> bool:
        return bool(self.led_settings)

    def without_mappings(self) -> Manifest:
        return replace(self, mappings=())


# ==============================================================================
# Operation Requests
# ==============================================================================


@dataclass(frozen=True)
class ImportRequest:
    """Apply a package to the device."""

    package_path: Path
    kind: ComponentKind
    selected_kinds: frozenset[ComponentKind] = frozenset()
    context_tag: str | None = None  # Fallback tag for untagged system files
    clean: bool = False  # Empty wallpaper, icon and overlay slots the package covers first

    @property
    def kinds(self) -> frozenset[ComponentKind]:
        return expand_kinds(self.kind, self.selected_kinds)


@dataclass(frozen=True)
class ExportRequest:
    """Build a package from the live device."""

    export_name: str
    kind: ComponentKind
    selected_kinds: frozenset[ComponentKind] = frozenset()
    author: str = ""
    preview_source: Path | None = None

    @property
    def kinds(self) -> frozenset[ComponentKind]:
        return expand_kinds(self.kind, self.selected_kinds)


@dataclass(frozen=True)
class ImportResult:
    """What an import changed on the device."""

    package_path: Path
    applied: tuple[PathMapping, ...] = ()
    skipped: tuple[str, ...] = ()
    settings_applied: tuple[ComponentKind, ...] = ()
    removed: tuple[Path, ...] = ()

    @property
    def copied_count(self) -> int:
        return len(self.applied)
