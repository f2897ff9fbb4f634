"""Discovery of installed systems on the device."""

from __future__ import annotations

import re

from theme_manager.device.exceptions import InventoryError
from theme_manager.device.layout import MEDIA_DIR, DeviceLayout
from theme_manager.domain import SystemInfo, SystemInventory
from theme_manager.logging import LoggerFactory


TAG_PATTERN = re.compile(r"\(([^()]*)\)")

log = LoggerFactory.for_inventory()


def extract_tag(name: str) -> str:
    """Return the contents of the last parenthesized group in ``name``.

    >>> extract_tag("Game Boy Advance (GBA)")
    'GBA'
    >>> extract_tag("Tools")
    ''
    """
    matches = TAG_PATTERN.findall(name)
    if not matches:
        return ""
    return matches[-1].strip()


def discover(layout: DeviceLayout) -> SystemInventory:
    """Scan ``Roms`` and return a fresh inventory snapshot.

    Hidden entries, ``.media`` and plain files are ignored. Systems are
    sorted by directory name.

    Args:
        layout: Device layout to scan

    Returns:
        SystemInventory for this device

    Raises:
        InventoryError: If the ROM directory is missing or unreadable
    """
    roms = layout.roms
    try:
        entries = sorted(roms.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        raise InventoryError(roms, exc.strerror or str(exc)) from exc

    systems = []
    for entry in entries:
        if entry.name.startswith(".") or entry.name == MEDIA_DIR:
            continue
        if not entry.is_dir():
            continue
        systems.append(
            SystemInfo(
                name=entry.name,
                tag=extract_tag(entry.name),
                path=entry,
                media_path=entry / MEDIA_DIR,
            )
        )

    log.debug(
        "Discovered {} systems in {}",
        len(systems),
        roms,
        system_tags=[system.tag for system in systems if system.tag],
    )
    return SystemInventory(
        root=layout.root,
        recently_played=layout.recently_played,
        tools=layout.tools,
        roms=roms,
        collections=layout.collections,
        systems=tuple(systems),
    )


def ensure_media_directories(inventory: SystemInventory) -> None:
    """Create every ``.media`` directory the path rules write into.

    Safe to call repeatedly.

    Raises:
        InventoryError: If a directory cannot be created
    """
    targets = [
        inventory.root / MEDIA_DIR,
        inventory.recently_played / MEDIA_DIR,
        inventory.tools / MEDIA_DIR,
        inventory.roms / MEDIA_DIR,
        inventory.root / "Overlays",
    ]
    targets.extend(system.media_path for system in inventory.systems)
    for target in targets:
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InventoryError(target, exc.strerror or str(exc)) from exc
