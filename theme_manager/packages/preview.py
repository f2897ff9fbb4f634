"""Preview images for packages."""

from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from theme_manager.device.files import PREVIEW_FILE, copy_file, iter_image_files
from theme_manager.device.resolver import (
    COLLECTIONS_IMAGE,
    RECENTLY_PLAYED_IMAGE,
    ROOT_WALLPAPER,
    SYSTEM_ICONS,
    SYSTEM_WALLPAPERS,
    to_package_form,
)
from theme_manager.domain import ComponentKind
from theme_manager.logging import get_logger


PREVIEW_SIZE = (640, 480)
BACKGROUND_COLOR = (24, 24, 32)
TEXT_COLOR = (235, 235, 235)

log = get_logger(source="preview", tags=["preview", "package"])


def render_default_preview(path: Path, kind: ComponentKind, title: str | None = None) -> Path:
    """Draw a plain tile naming the package kind and save it as PNG."""
    image = Image.new("RGB", PREVIEW_SIZE, BACKGROUND_COLOR)
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default()

    lines = [kind.label]
    if title:
        lines.append(title)
    y = PREVIEW_SIZE[1] // 2 - 10 * len(lines)
    for line in lines:
        left, top, right, bottom = draw.textbbox((0, 0), line, font=font)
        x = (PREVIEW_SIZE[0] - (right - left)) // 2
        draw.text((x, y), line, fill=TEXT_COLOR, font=font)
        y += (bottom - top) + 10

    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format="PNG")
    return path


def pick_preview(package_path: Path, kind: ComponentKind) -> Path | None:
    """Representative image already inside a package, if any.

    Wallpapers prefer the Recently Played background, then the root
    background, then the first system wallpaper. Icons prefer the
    Collections icon, then the first system icon.
    """
    if kind is ComponentKind.WALLPAPER:
        category, preferred = SYSTEM_WALLPAPERS, (RECENTLY_PLAYED_IMAGE, ROOT_WALLPAPER)
    elif kind is ComponentKind.ICON:
        category, preferred = SYSTEM_ICONS, (COLLECTIONS_IMAGE,)
    else:
        return None

    directory = package_path / to_package_form(kind, category)
    for name in preferred:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    for candidate in iter_image_files(directory):
        return candidate
    return None


def write_package_preview(package_path: Path, kind: ComponentKind, title: str | None = None) -> Path | None:
    """Give a package its ``preview.png``; LED packages get none."""
    if not kind.has_preview:
        return None
    target = package_path / PREVIEW_FILE
    source = pick_preview(package_path, kind)
    if source is not None:
        copy_file(source, target)
        log.debug("Using {} as preview for {}", source.name, package_path.name)
    else:
        render_default_preview(target, kind, title)
        log.debug("Rendered default preview for {}", package_path.name)
    return target
