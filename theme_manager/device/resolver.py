"""Path rules between package files and the device filesystem.

Every package kind stores its files in a slightly different shape. Before a
rule is applied the path is rewritten to one canonical form:

    Wallpapers/SystemWallpapers/GBA.png   -> SystemWallpapers/GBA.png   (.theme)
    Icons/ToolIcons/Clock.png             -> ToolIcons/Clock.png        (.theme)
    Systems/MGBA/frame.png                -> Overlays/MGBA/frame.png    (.over)
    Next.ttf                              -> Fonts/Next.ttf             (.font)

The canonical category (the first segment) decides which rule applies. A
path that matches no rule resolves to ``""`` and is skipped by callers.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, Optional, Tuple

from theme_manager.device.inventory import extract_tag
from theme_manager.device.layout import (
    BACKGROUND_FILE,
    COLLECTIONS,
    FONT_SLOTS,
    LIST_BACKGROUND_FILE,
    MEDIA_DIR,
    RECENTLY_PLAYED,
    TOOLS,
    TOOLS_PLATFORM,
    DeviceLayout,
)
from theme_manager.domain import ComponentKind, PathMapping, SystemInventory
from theme_manager.logging import LoggerFactory


SYSTEM_WALLPAPERS = "SystemWallpapers"
LIST_WALLPAPERS = "ListWallpapers"
COLLECTION_WALLPAPERS = "CollectionWallpapers"
SYSTEM_ICONS = "SystemIcons"
TOOL_ICONS = "ToolIcons"
COLLECTION_ICONS = "CollectionIcons"
OVERLAYS = "Overlays"
FONTS = "Fonts"

WALLPAPER_CATEGORIES = (SYSTEM_WALLPAPERS, LIST_WALLPAPERS, COLLECTION_WALLPAPERS)
ICON_CATEGORIES = (SYSTEM_ICONS, TOOL_ICONS, COLLECTION_ICONS)

# Overlay packs keep per-system folders under Systems/ instead of Overlays/
OVERLAY_PACKAGE_DIR = "Systems"

CATEGORY_KINDS: dict[str, ComponentKind] = {
    SYSTEM_WALLPAPERS: ComponentKind.WALLPAPER,
    LIST_WALLPAPERS: ComponentKind.WALLPAPER,
    COLLECTION_WALLPAPERS: ComponentKind.WALLPAPER,
    SYSTEM_ICONS: ComponentKind.ICON,
    TOOL_ICONS: ComponentKind.ICON,
    COLLECTION_ICONS: ComponentKind.ICON,
    OVERLAYS: ComponentKind.OVERLAY,
    FONTS: ComponentKind.FONT,
}

ROOT_WALLPAPER = "Root.png"
ROOT_MEDIA_WALLPAPER = "Root-Media.png"
RECENTLY_PLAYED_IMAGE = f"{RECENTLY_PLAYED}.png"
TOOLS_IMAGE = f"{TOOLS}.png"
COLLECTIONS_IMAGE = f"{COLLECTIONS}.png"
LIST_SUFFIX = "-list"
IMAGE_SUFFIX = ".png"

Resolution = Optional[Tuple[Path, Dict[str, str]]]

log = LoggerFactory.for_resolver()


def split_package_path(package_path: str | os.PathLike) -> list[str] | None:
    """Split a package-relative path into segments.

    Backslashes are treated as separators. Returns None for an empty path
    or one that climbs out of the package with ``..``.
    """
    normalized = os.fspath(package_path).replace("\\", "/")
    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if not parts or ".." in parts:
        return None
    return parts


def to_canonical(kind: ComponentKind, package_path: str | os.PathLike) -> str | None:
    """Rewrite a package path of ``kind`` into its canonical category form.

    Returns None when the path is outside every category ``kind`` may hold.
    """
    parts = split_package_path(package_path)
    if parts is None:
        return None

    head = parts[0]
    if head == "Wallpapers" and len(parts) > 1 and parts[1] in WALLPAPER_CATEGORIES:
        parts = parts[1:]
    elif head == "Icons" and len(parts) > 1 and parts[1] in ICON_CATEGORIES:
        parts = parts[1:]
    elif kind is ComponentKind.OVERLAY and head == OVERLAY_PACKAGE_DIR:
        parts = [OVERLAYS, *parts[1:]]
    elif kind is ComponentKind.FONT and len(parts) == 1:
        parts = [FONTS, head]

    owner = CATEGORY_KINDS.get(parts[0])
    if owner is None:
        return None
    if kind is not ComponentKind.FULL_THEME and owner is not kind:
        return None
    return "/".join(parts)


def to_package_form(kind: ComponentKind, canonical: str) -> str | None:
    """Inverse of :func:`to_canonical`: where ``kind`` stores a canonical path."""
    parts = canonical.split("/")
    owner = CATEGORY_KINDS.get(parts[0])
    if owner is None:
        return None
    if kind is ComponentKind.FULL_THEME:
        if owner in (ComponentKind.WALLPAPER, ComponentKind.ICON):
            return "/".join([owner.theme_dir, *parts])
        return canonical
    if owner is not kind:
        return None
    if kind is ComponentKind.OVERLAY:
        return "/".join([OVERLAY_PACKAGE_DIR, *parts[1:]])
    if kind is ComponentKind.FONT:
        return "/".join(parts[1:])
    return canonical


def category_kind(kind: ComponentKind, package_path: str | os.PathLike) -> ComponentKind | None:
    """Component kind owning ``package_path`` inside a package of ``kind``."""
    canonical = to_canonical(kind, package_path)
    if canonical is None:
        return None
    return CATEGORY_KINDS[canonical.split("/")[0]]


def _stem(file_name: str) -> str:
    return PurePosixPath(file_name).stem


def _is_image(file_name: str) -> bool:
    return file_name.lower().endswith(IMAGE_SUFFIX)


def _metadata(**values: str) -> dict[str, str]:
    return {key: value for key, value in values.items() if value}


class PathResolver:
    """Resolve package files to device paths for one device.

    When an inventory is supplied, system files are matched against the
    installed systems by tag first and by exact name second, so a package
    built on one card lands in the right folders on another. Without an
    inventory the file stem is used as the system directory name.
    """

    def __init__(self, layout: DeviceLayout, inventory: SystemInventory | None = None):
        self.layout = layout
        self.inventory = inventory
        self._rules: dict[str, Callable[[list[str], str | None], Resolution]] = {
            SYSTEM_WALLPAPERS: self._system_wallpaper,
            LIST_WALLPAPERS: self._list_wallpaper,
            COLLECTION_WALLPAPERS: self._collection_wallpaper,
            SYSTEM_ICONS: self._system_icon,
            TOOL_ICONS: self._tool_icon,
            COLLECTION_ICONS: self._collection_icon,
            OVERLAYS: self._overlay,
            FONTS: self._font,
        }

    def resolve(
        self,
        kind: ComponentKind,
        package_path: str | os.PathLike,
        context_tag: str | None = None,
    ) -> str:
        """Absolute device path for ``package_path``, or ``""`` if unresolved."""
        mapping = self.resolve_mapping(kind, package_path, context_tag)
        return mapping.device_path if mapping is not None else ""

    def resolve_mapping(
        self,
        kind: ComponentKind,
        package_path: str | os.PathLike,
        context_tag: str | None = None,
    ) -> PathMapping | None:
        """Resolve ``package_path`` and describe it as a :class:`PathMapping`.

        Args:
            kind: Kind of the package the file lives in
            package_path: File path relative to the package root
            context_tag: Tag used for system files whose name carries none

        Returns:
            PathMapping, or None when no rule matches
        """
        parts = split_package_path(package_path)
        canonical = to_canonical(kind, package_path)
        if parts is None or canonical is None:
            self._log_unresolved(package_path, "outside known categories")
            return None

        canonical_parts = canonical.split("/")
        rule = self._rules[canonical_parts[0]]
        resolution = rule(canonical_parts, context_tag)
        if resolution is None:
            self._log_unresolved(package_path, "no matching rule")
            return None

        device_path, metadata = resolution
        return PathMapping(
            package_path="/".join(parts),
            device_path=str(device_path),
            metadata=metadata,
        )

    def inverse(self, kind: ComponentKind, device_path: str | os.PathLike) -> PathMapping | None:
        """Package location a live device file is exported to.

        Returns None when the device path is not a themable slot, or when
        it belongs to a category ``kind`` does not hold.
        """
        try:
            relative = Path(device_path).relative_to(self.layout.root)
        except ValueError:
            return None

        canonical = self._classify_device_path(relative.parts)
        if canonical is None:
            return None
        package_path = to_package_form(kind, canonical)
        if package_path is None:
            return None
        mapping = self.resolve_mapping(kind, package_path)
        if mapping is None:
            return None
        return PathMapping(
            package_path=package_path,
            device_path=str(device_path),
            metadata=mapping.metadata,
        )

    def _log_unresolved(self, package_path: str | os.PathLike, reason: str) -> None:
        log.debug(
            "Unresolved package path {}: {}",
            os.fspath(package_path),
            reason,
            tags=["resolver", "unresolved"],
        )

    def _system_dir(self, stem: str, context_tag: str | None) -> tuple[str, str]:
        tag = extract_tag(stem) or (context_tag or "")
        if self.inventory is not None:
            system = self.inventory.find_by_tag(tag)
            if system is None:
                system = self.inventory.find_by_name(stem)
            if system is not None:
                return system.name, system.tag
        return stem, tag

    # Forward rules: canonical segments -> (device path, metadata)

    def _system_wallpaper(self, parts: list[str], context_tag: str | None) -> Resolution:
        if len(parts) != 2 or not _is_image(parts[1]):
            return None
        name = parts[1]
        layout = self.layout
        special = {
            ROOT_WALLPAPER: (layout.root_background, "Root", "Main"),
            ROOT_MEDIA_WALLPAPER: (layout.root_media_background, "Root", "Media"),
            RECENTLY_PLAYED_IMAGE: (layout.recently_played_background, RECENTLY_PLAYED, "Media"),
            TOOLS_IMAGE: (layout.tools_background, TOOLS, "Media"),
            COLLECTIONS_IMAGE: (layout.collections_background, COLLECTIONS, "Media"),
        }
        if name in special:
            path, system_name, wallpaper_type = special[name]
            return path, _metadata(SystemName=system_name, WallpaperType=wallpaper_type)

        system_dir, tag = self._system_dir(_stem(name), context_tag)
        return (
            layout.system_media(system_dir) / BACKGROUND_FILE,
            _metadata(SystemName=system_dir, SystemTag=tag, WallpaperType="System"),
        )

    def _list_wallpaper(self, parts: list[str], context_tag: str | None) -> Resolution:
        if len(parts) != 2 or not _is_image(parts[1]):
            return None
        stem = _stem(parts[1])
        if not stem.endswith(LIST_SUFFIX) or stem == LIST_SUFFIX:
            return None
        system_dir, tag = self._system_dir(stem[: -len(LIST_SUFFIX)], context_tag)
        return (
            self.layout.system_media(system_dir) / LIST_BACKGROUND_FILE,
            _metadata(SystemName=system_dir, SystemTag=tag, WallpaperType="List"),
        )

    def _collection_wallpaper(self, parts: list[str], context_tag: str | None) -> Resolution:
        if len(parts) != 2 or not _is_image(parts[1]):
            return None
        collection = _stem(parts[1])
        return (
            self.layout.collection_background(collection),
            _metadata(CollectionName=collection, WallpaperType="Collection"),
        )

    def _system_icon(self, parts: list[str], context_tag: str | None) -> Resolution:
        if len(parts) != 2 or not _is_image(parts[1]):
            return None
        name = parts[1]
        layout = self.layout
        special = {
            RECENTLY_PLAYED_IMAGE: (layout.recently_played_icon, RECENTLY_PLAYED),
            TOOLS_IMAGE: (layout.tools_icon, TOOLS),
            COLLECTIONS_IMAGE: (layout.collections_icon, COLLECTIONS),
        }
        if name in special:
            path, system_name = special[name]
            return path, _metadata(SystemName=system_name, IconType="Special")

        system_dir, tag = self._system_dir(_stem(name), context_tag)
        icon_name = system_dir
        if tag and f"({tag})" not in icon_name:
            icon_name = f"{icon_name} ({tag})"
        return (
            layout.system_icon(icon_name),
            _metadata(SystemName=system_dir, SystemTag=tag, IconType="System"),
        )

    def _tool_icon(self, parts: list[str], context_tag: str | None) -> Resolution:
        if len(parts) != 2 or not _is_image(parts[1]):
            return None
        tool = _stem(parts[1])
        return self.layout.tool_icon(tool), _metadata(ToolName=tool, IconType="Tool")

    def _collection_icon(self, parts: list[str], context_tag: str | None) -> Resolution:
        if len(parts) != 2 or not _is_image(parts[1]):
            return None
        collection = _stem(parts[1])
        return (
            self.layout.collection_icon(collection),
            _metadata(CollectionName=collection, IconType="Collection"),
        )

    def _overlay(self, parts: list[str], context_tag: str | None) -> Resolution:
        # Exactly Overlays/<TAG>/<file>
        if len(parts) != 3 or not _is_image(parts[2]):
            return None
        tag, file_name = parts[1], parts[2]
        return (
            self.layout.overlay(tag, file_name),
            _metadata(SystemTag=tag, OverlayName=file_name),
        )

    def _font(self, parts: list[str], context_tag: str | None) -> Resolution:
        if len(parts) != 2 or parts[1] not in FONT_SLOTS:
            return None
        slot = FONT_SLOTS[parts[1]][0]
        return self.layout.font(parts[1]), _metadata(FontSlot=slot)

    # Inverse classification: device-relative segments -> canonical path

    def _classify_device_path(self, rel: tuple[str, ...]) -> str | None:
        fixed = {
            (BACKGROUND_FILE,): f"{SYSTEM_WALLPAPERS}/{ROOT_WALLPAPER}",
            (MEDIA_DIR, BACKGROUND_FILE): f"{SYSTEM_WALLPAPERS}/{ROOT_MEDIA_WALLPAPER}",
            (RECENTLY_PLAYED, MEDIA_DIR, BACKGROUND_FILE): f"{SYSTEM_WALLPAPERS}/{RECENTLY_PLAYED_IMAGE}",
            (TOOLS, TOOLS_PLATFORM, MEDIA_DIR, BACKGROUND_FILE): f"{SYSTEM_WALLPAPERS}/{TOOLS_IMAGE}",
            (COLLECTIONS, MEDIA_DIR, BACKGROUND_FILE): f"{SYSTEM_WALLPAPERS}/{COLLECTIONS_IMAGE}",
            (MEDIA_DIR, RECENTLY_PLAYED_IMAGE): f"{SYSTEM_ICONS}/{RECENTLY_PLAYED_IMAGE}",
            (TOOLS, MEDIA_DIR, f"{TOOLS_PLATFORM}.png"): f"{SYSTEM_ICONS}/{TOOLS_IMAGE}",
            (MEDIA_DIR, COLLECTIONS_IMAGE): f"{SYSTEM_ICONS}/{COLLECTIONS_IMAGE}",
        }
        if rel in fixed:
            return fixed[rel]

        if len(rel) == 4 and rel[:3] == (TOOLS, TOOLS_PLATFORM, MEDIA_DIR):
            return f"{TOOL_ICONS}/{rel[3]}"
        if len(rel) == 3 and rel[:2] == (COLLECTIONS, MEDIA_DIR):
            return f"{COLLECTION_ICONS}/{rel[2]}"
        if len(rel) == 4 and rel[0] == COLLECTIONS and rel[2:] == (MEDIA_DIR, BACKGROUND_FILE):
            return f"{COLLECTION_WALLPAPERS}/{rel[1]}{IMAGE_SUFFIX}"
        if len(rel) == 3 and rel[:2] == ("Roms", MEDIA_DIR):
            return f"{SYSTEM_ICONS}/{rel[2]}"
        if len(rel) == 4 and rel[0] == "Roms" and rel[2] == MEDIA_DIR:
            if rel[3] == BACKGROUND_FILE:
                return f"{SYSTEM_WALLPAPERS}/{rel[1]}{IMAGE_SUFFIX}"
            if rel[3] == LIST_BACKGROUND_FILE:
                return f"{LIST_WALLPAPERS}/{rel[1]}{LIST_SUFFIX}{IMAGE_SUFFIX}"
        if len(rel) == 3 and rel[0] == OVERLAYS:
            return f"{OVERLAYS}/{rel[1]}/{rel[2]}"
        if len(rel) == 3 and rel[:2] == (".system", "res"):
            for package_name, (_, device_name) in FONT_SLOTS.items():
                if rel[2] == device_name:
                    return f"{FONTS}/{package_name}"
        return None
