"""Domain models for theme packages.

This package contains the immutable values passed between the inventory,
resolver, manifest and engine layers.
"""

from __future__ import annotations

from .models import (
    ACCENT_KEYS,
    COMPONENT_KINDS,
    AccentColors,
    ComponentKind,
    ExportRequest,
    ImportRequest,
    ImportResult,
    LEDSetting,
    Manifest,
    ManifestInfo,
    PathMapping,
    SystemInfo,
    SystemInventory,
    expand_kinds,
)


__all__ = [
    "ACCENT_KEYS",
    "COMPONENT_KINDS",
    "AccentColors",
    "ComponentKind",
    "ExportRequest",
    "ImportRequest",
    "ImportResult",
    "LEDSetting",
    "Manifest",
    "ManifestInfo",
    "PathMapping",
    "SystemInfo",
    "SystemInventory",
    "expand_kinds",
]
