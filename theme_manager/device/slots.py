"""Themable file slots on the device.

Export walks these slots to find what belongs in a package. Import can empty
the wallpaper, icon and overlay slots first so files from the previously
applied theme do not linger next to the new one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

from theme_manager.device.exceptions import CleanupError
from theme_manager.device.files import iter_image_files
from theme_manager.device.layout import FONT_SLOTS, DeviceLayout
from theme_manager.device.resolver import PathResolver, category_kind
from theme_manager.domain import ComponentKind, SystemInventory
from theme_manager.logging import get_logger


# Fonts and settings are replaced in place, never removed
CLEANABLE_KINDS = frozenset({ComponentKind.WALLPAPER, ComponentKind.ICON, ComponentKind.OVERLAY})

log = get_logger(source="cleanup", tags=["files", "cleanup"])


def iter_device_slots(layout: DeviceLayout, inventory: SystemInventory) -> Iterator[Path]:
    """Every device file that may belong in a package.

    Paths are yielded whether or not the file exists. The resolver decides
    which of them are real slots for a given kind.
    """
    yield layout.root_background
    yield from iter_image_files(layout.root_media)
    yield layout.recently_played_background
    yield layout.tools_icon
    yield from iter_image_files(layout.tools / ".media")
    yield from iter_image_files(layout.collections / ".media")
    if layout.collections.is_dir():
        for collection in sorted(layout.collections.iterdir()):
            if collection.is_dir() and not collection.name.startswith("."):
                yield layout.collection_background(collection.name)
    yield from iter_image_files(layout.roms_media)
    for system in inventory.systems:
        yield system.media_path / "bg.png"
        yield system.media_path / "bglist.png"
    if layout.overlays.is_dir():
        for tag_dir in sorted(layout.overlays.iterdir()):
            if tag_dir.is_dir() and not tag_dir.name.startswith("."):
                yield from iter_image_files(tag_dir)
    for package_name in FONT_SLOTS:
        yield layout.font(package_name)


def clean_slots(
    layout: DeviceLayout,
    inventory: SystemInventory,
    kinds: Iterable[ComponentKind],
) -> list[Path]:
    """Delete the device files occupying slots of ``kinds``.

    Only wallpaper, icon and overlay slots are emptied; other kinds in
    ``kinds`` are ignored.

    Returns:
        The removed files, in slot order

    Raises:
        CleanupError: If a file cannot be removed
    """
    targets = frozenset(kinds) & CLEANABLE_KINDS
    if not targets:
        return []

    resolver = PathResolver(layout, inventory)
    removed: list[Path] = []
    for device_file in iter_device_slots(layout, inventory):
        if not device_file.is_file():
            continue
        mapping = resolver.inverse(ComponentKind.FULL_THEME, device_file)
        if mapping is None:
            continue
        if category_kind(ComponentKind.FULL_THEME, mapping.package_path) not in targets:
            continue
        try:
            device_file.unlink()
        except OSError as exc:
            raise CleanupError(device_file, exc.strerror or str(exc)) from exc
        log.trace("Removed {}", device_file)
        removed.append(device_file)

    log.info(
        "Removed {} old files",
        len(removed),
        kinds=sorted(kind.manifest_type for kind in targets),
    )
    return removed
