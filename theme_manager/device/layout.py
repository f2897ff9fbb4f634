"""Fixed locations on the NextUI SD card, relative to an explicit root."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


MEDIA_DIR = ".media"
TOOLS_PLATFORM = "tg5040"
BACKGROUND_FILE = "bg.png"
LIST_BACKGROUND_FILE = "bglist.png"

RECENTLY_PLAYED = "Recently Played"
TOOLS = "Tools"
COLLECTIONS = "Collections"

# Package font name -> (manifest key, device file name)
FONT_SLOTS: dict[str, tuple[str, str]] = {
    "OG.ttf": ("og_font", "font2.ttf"),
    "OG.backup.ttf": ("og_backup", "font2.backup.ttf"),
    "Next.ttf": ("next_font", "font1.ttf"),
    "Next.backup.ttf": ("next_backup", "font1.backup.ttf"),
}


@dataclass(frozen=True)
class DeviceLayout:
    """Absolute paths of every themable slot under one device root."""

    root: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root))

    @property
    def root_media(self) -> Path:
        return self.root / MEDIA_DIR

    @property
    def roms(self) -> Path:
        return self.root / "Roms"

    @property
    def roms_media(self) -> Path:
        return self.roms / MEDIA_DIR

    @property
    def recently_played(self) -> Path:
        return self.root / RECENTLY_PLAYED

    @property
    def tools_parent(self) -> Path:
        return self.root / TOOLS

    @property
    def tools(self) -> Path:
        return self.tools_parent / TOOLS_PLATFORM

    @property
    def collections(self) -> Path:
        return self.root / COLLECTIONS

    @property
    def overlays(self) -> Path:
        return self.root / "Overlays"

    @property
    def fonts(self) -> Path:
        return self.root / ".system" / "res"

    @property
    def accent_settings(self) -> Path:
        return self.root / ".userdata" / "shared" / "minuisettings.txt"

    @property
    def led_settings(self) -> Path:
        return self.root / ".userdata" / "shared" / "ledsettings_brick.txt"

    # Per-slot helpers

    @property
    def root_background(self) -> Path:
        return self.root / BACKGROUND_FILE

    @property
    def root_media_background(self) -> Path:
        return self.root_media / BACKGROUND_FILE

    @property
    def recently_played_background(self) -> Path:
        return self.recently_played / MEDIA_DIR / BACKGROUND_FILE

    @property
    def tools_background(self) -> Path:
        return self.tools / MEDIA_DIR / BACKGROUND_FILE

    @property
    def collections_background(self) -> Path:
        return self.collections / MEDIA_DIR / BACKGROUND_FILE

    @property
    def recently_played_icon(self) -> Path:
        return self.root_media / f"{RECENTLY_PLAYED}.png"

    @property
    def tools_icon(self) -> Path:
        return self.tools_parent / MEDIA_DIR / f"{TOOLS_PLATFORM}.png"

    @property
    def collections_icon(self) -> Path:
        return self.root_media / f"{COLLECTIONS}.png"

    def system_media(self, system_dir: str) -> Path:
        return self.roms / system_dir / MEDIA_DIR

    def system_icon(self, icon_name: str) -> Path:
        return self.roms_media / f"{icon_name}.png"

    def tool_icon(self, tool_name: str) -> Path:
        return self.tools / MEDIA_DIR / f"{tool_name}.png"

    def collection_background(self, collection: str) -> Path:
        return self.collections / collection / MEDIA_DIR / BACKGROUND_FILE

    def collection_icon(self, collection: str) -> Path:
        return self.collections / MEDIA_DIR / f"{collection}.png"

    def overlay(self, tag: str, file_name: str) -> Path:
        return self.overlays / tag / file_name

    def font(self, package_name: str) -> Path:
        """Device font slot for ``OG.ttf``, ``Next.backup.ttf`` and so on.

        Raises:
            KeyError: If ``package_name`` is not one of the four font names
        """
        return self.fonts / FONT_SLOTS[package_name][1]
