"""Reading, writing and regenerating package manifests.

The JSON layout is shared with packages made by other Theme Manager builds,
so field names and nesting are a wire format:

    .theme  -> theme_info, content, path_mappings{wallpapers, icons, overlays,
               fonts, settings}, accent_colors, led_settings
    others  -> component_info (with ``type``) plus the kind's own content,
               path_mappings, accent_colors or led_settings
"""

from __future__ import annotations

import json
import os
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any, Iterable, Mapping

from theme_manager.__version__ import __version__
from theme_manager.device.exceptions import (
    ManifestParseError,
    ManifestWriteError,
    PackageError,
    PackageNotFoundError,
    UnknownPackageKindError,
)
from theme_manager.device.files import MANIFEST_FILE, iter_package_files, write_text_atomic
from theme_manager.device.layout import DeviceLayout
from theme_manager.device.leds import LIGHT_SECTIONS
from theme_manager.device.resolver import (
    COLLECTION_ICONS,
    COLLECTION_WALLPAPERS,
    FONTS,
    LIST_WALLPAPERS,
    OVERLAYS,
    SYSTEM_ICONS,
    SYSTEM_WALLPAPERS,
    TOOL_ICONS,
    PathResolver,
    category_kind,
    to_canonical,
)
from theme_manager.domain import (
    AccentColors,
    ComponentKind,
    LEDSetting,
    Manifest,
    ManifestInfo,
    PathMapping,
    SystemInventory,
)
from theme_manager.logging import LoggerFactory


EXPORTED_BY = f"Theme Manager v{__version__}"
DEFAULT_VERSION = "1.0.0"

_THEME_SECTIONS = {
    ComponentKind.WALLPAPER: "wallpapers",
    ComponentKind.ICON: "icons",
    ComponentKind.OVERLAY: "overlays",
    ComponentKind.FONT: "fonts",
}

log = LoggerFactory.for_manifest()


def timestamp() -> str:
    """Current UTC time in the manifest's RFC 3339 form."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def package_name(package_path: Path, kind: ComponentKind | None = None) -> str:
    """Package directory name without its kind extension."""
    name = Path(package_path).name
    extension = kind.extension if kind is not None else Path(name).suffix
    if extension and name.lower().endswith(extension.lower()):
        return name[: -len(extension)]
    return name


# ==============================================================================
# Serialization
# ==============================================================================


def _parse_info(block: Any, source: str) -> ManifestInfo:
    if not isinstance(block, dict):
        raise ManifestParseError(source, "info block must be an object")
    return ManifestInfo(
        name=str(block.get("name", "") or ""),
        version=str(block.get("version", "") or DEFAULT_VERSION),
        author=str(block.get("author", "") or ""),
        creation_date=str(block.get("creation_date", "") or ""),
        exported_by=str(block.get("exported_by", "") or ""),
    )


def _collect_mappings(raw: Any, source: str) -> list[PathMapping]:
    """Flatten any nesting of lists and section objects into mappings."""
    if raw is None:
        return []
    if isinstance(raw, list):
        mappings: list[PathMapping] = []
        for item in raw:
            mappings.extend(_collect_mappings(item, source))
        return mappings
    if isinstance(raw, dict):
        if "theme_path" in raw or "system_path" in raw:
            try:
                return [PathMapping.from_dict(raw)]
            except (KeyError, TypeError) as exc:
                raise ManifestParseError(source, f"bad path mapping: {exc}") from exc
        mappings = []
        for value in raw.values():
            mappings.extend(_collect_mappings(value, source))
        return mappings
    raise ManifestParseError(source, f"unexpected path_mappings entry: {raw!r}")


def _parse_accents(raw: Any, source: str) -> AccentColors | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ManifestParseError(source, "accent_colors must be an object")
    colors = AccentColors.from_dict(raw)
    return None if colors.is_empty() else colors


def _parse_leds(raw: Any, source: str) -> dict[str, LEDSetting] | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ManifestParseError(source, "led_settings must be an object")
    settings: dict[str, LEDSetting] = {}
    for key, value in raw.items():
        if not isinstance(value, dict):
            raise ManifestParseError(source, f"led_settings.{key} must be an object")
        try:
            settings[str(key)] = LEDSetting.from_dict(value)
        except (TypeError, ValueError) as exc:
            raise ManifestParseError(source, f"led_settings.{key}: {exc}") from exc
    return settings or None


def manifest_from_dict(data: Any, source: str = "<manifest>") -> Manifest:
    """Build a :class:`Manifest` from decoded JSON.

    Raises:
        ManifestParseError: If the document does not have the manifest shape
        UnknownPackageKindError: If ``component_info.type`` is not recognized
    """
    if not isinstance(data, dict):
        raise ManifestParseError(source, "top level must be an object")

    if "theme_info" in data:
        kind = ComponentKind.FULL_THEME
        info = _parse_info(data["theme_info"], source)
    elif "component_info" in data:
        block = data["component_info"]
        info = _parse_info(block, source)
        label = str(block.get("type", ""))
        try:
            kind = ComponentKind.from_manifest_type(label)
        except ValueError as exc:
            raise UnknownPackageKindError(source, label) from exc
        if kind is ComponentKind.FULL_THEME:
            raise UnknownPackageKindError(source, label)
    else:
        raise ManifestParseError(source, "missing theme_info or component_info")

    content = data.get("content") or {}
    if not isinstance(content, dict):
        raise ManifestParseError(source, "content must be an object")

    return Manifest(
        kind=kind,
        info=info,
        content=content,
        mappings=tuple(_collect_mappings(data.get("path_mappings"), source)),
        accent_colors=_parse_accents(data.get("accent_colors"), source),
        led_settings=_parse_leds(data.get("led_settings"), source),
    )


def _info_dict(manifest: Manifest) -> dict[str, Any]:
    info = manifest.info
    data: dict[str, Any] = {"name": info.name}
    if manifest.kind.is_component:
        data["type"] = manifest.kind.manifest_type
    data.update(
        version=info.version,
        author=info.author,
        creation_date=info.creation_date,
        exported_by=info.exported_by,
    )
    return data


def _leds_dict(settings: Mapping[str, LEDSetting] | None) -> dict[str, Any]:
    return {key: value.to_dict() for key, value in (settings or {}).items()}


def _font_mappings(mappings: Iterable[PathMapping]) -> dict[str, Any]:
    return {
        mapping.metadata.get("FontSlot", PurePosixPath(mapping.package_path).stem): mapping.to_dict()
        for mapping in mappings
    }


def manifest_to_dict(manifest: Manifest) -> dict[str, Any]:
    """JSON-ready form of ``manifest``."""
    kind = manifest.kind
    if kind is ComponentKind.FULL_THEME:
        sections: dict[ComponentKind, list[PathMapping]] = {k: [] for k in _THEME_SECTIONS}
        for mapping in manifest.mappings:
            owner = category_kind(kind, mapping.package_path)
            if owner in sections:
                sections[owner].append(mapping)
        return {
            "theme_info": _info_dict(manifest),
            "content": dict(manifest.content),
            "path_mappings": {
                "wallpapers": [m.to_dict() for m in sections[ComponentKind.WALLPAPER]],
                "icons": [m.to_dict() for m in sections[ComponentKind.ICON]],
                "overlays": [m.to_dict() for m in sections[ComponentKind.OVERLAY]],
                "fonts": _font_mappings(sections[ComponentKind.FONT]),
                "settings": {},
            },
            "accent_colors": manifest.accent_colors.to_dict() if manifest.accent_colors else {},
            "led_settings": _leds_dict(manifest.led_settings),
        }

    data: dict[str, Any] = {"component_info": _info_dict(manifest)}
    if kind is ComponentKind.ACCENT:
        data["accent_colors"] = (manifest.accent_colors or AccentColors()).to_dict()
    elif kind is ComponentKind.LED:
        data["led_settings"] = _leds_dict(manifest.led_settings)
    else:
        data["content"] = dict(manifest.content)
        if kind is ComponentKind.FONT:
            data["path_mappings"] = _font_mappings(manifest.mappings)
        else:
            data["path_mappings"] = [m.to_dict() for m in manifest.mappings]
    return data


# ==============================================================================
# Read / Write
# ==============================================================================


def read_manifest(package_path: str | os.PathLike) -> Manifest:
    """Load the manifest of a package directory.

    Args:
        package_path: Package directory (e.g. ``Retro.theme``)

    Returns:
        Parsed Manifest

    Raises:
        PackageNotFoundError: If the package or its manifest is missing
        ManifestParseError: If the manifest is unreadable or malformed
    """
    package_path = Path(package_path)
    if not package_path.is_dir():
        raise PackageNotFoundError(package_path)
    path = package_path / MANIFEST_FILE
    if not path.is_file():
        raise PackageNotFoundError(path, "Manifest")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestParseError(path, exc.strerror or str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise ManifestParseError(path, f"invalid JSON at line {exc.lineno}: {exc.msg}") from exc
    except UnicodeDecodeError as exc:
        raise ManifestParseError(path, "not UTF-8 text") from exc
    manifest = manifest_from_dict(data, source=str(path))
    log.debug("Read {} manifest from {}", manifest.kind.manifest_type, path)
    return manifest


def write_manifest(package_path: str | os.PathLike, manifest: Manifest) -> Path:
    """Write ``manifest.json`` atomically (temp file, then rename).

    Returns:
        Path of the written manifest

    Raises:
        ManifestWriteError: If the file cannot be written
    """
    path = Path(package_path) / MANIFEST_FILE
    text = json.dumps(manifest_to_dict(manifest), indent=2, ensure_ascii=False) + "\n"
    try:
        write_text_atomic(path, text)
    except OSError as exc:
        raise ManifestWriteError(path, exc.strerror or str(exc)) from exc
    log.debug("Wrote manifest {}", path, mappings=len(manifest.mappings))
    return path


def clear_path_mappings(manifest: Manifest, kind: ComponentKind | None = None) -> Manifest:
    """Copy of ``manifest`` with the mappings of ``kind`` (or all) removed.

    Saving such a manifest marks the package for re-anchoring: imports
    resolve files from the live path rules, never from stored mappings.
    """
    if kind is None:
        return manifest.without_mappings()
    kept = tuple(
        mapping
        for mapping in manifest.mappings
        if category_kind(manifest.kind, mapping.package_path) is not kind
    )
    return replace(manifest, mappings=kept)


# ==============================================================================
# Regeneration
# ==============================================================================


def _names(buckets: Mapping[str, list[PathMapping]], *categories: str) -> list[str]:
    return [
        PurePosixPath(mapping.package_path).name
        for category in categories
        for mapping in buckets.get(category, [])
    ]


def build_content(
    kind: ComponentKind,
    mappings: Iterable[PathMapping],
    accent_colors: AccentColors | None = None,
    led_settings: Mapping[str, LEDSetting] | None = None,
) -> dict[str, Any]:
    """Summary counts and flags for the ``content`` block."""
    buckets: dict[str, list[PathMapping]] = {}
    for mapping in mappings:
        canonical = to_canonical(kind, mapping.package_path)
        if canonical is not None:
            buckets.setdefault(canonical.split("/")[0], []).append(mapping)

    wallpaper_count = sum(
        len(buckets.get(c, [])) for c in (SYSTEM_WALLPAPERS, LIST_WALLPAPERS, COLLECTION_WALLPAPERS)
    )
    system_icons = len(buckets.get(SYSTEM_ICONS, []))
    tool_icons = len(buckets.get(TOOL_ICONS, []))
    collection_icons = len(buckets.get(COLLECTION_ICONS, []))
    overlay_systems = sorted(
        {PurePosixPath(m.package_path).parent.name for m in buckets.get(OVERLAYS, [])}
    )
    font_names = set(_names(buckets, FONTS))
    og_replaced = "OG.ttf" in font_names
    next_replaced = "Next.ttf" in font_names

    if kind is ComponentKind.WALLPAPER:
        return {
            "count": wallpaper_count,
            "system_wallpapers": _names(buckets, SYSTEM_WALLPAPERS, LIST_WALLPAPERS),
            "collection_wallpapers": _names(buckets, COLLECTION_WALLPAPERS),
        }
    if kind is ComponentKind.ICON:
        return {
            "system_count": system_icons,
            "tool_count": tool_icons,
            "collection_count": collection_icons,
            "system_icons": _names(buckets, SYSTEM_ICONS),
            "tool_icons": _names(buckets, TOOL_ICONS),
            "collection_icons": _names(buckets, COLLECTION_ICONS),
        }
    if kind is ComponentKind.OVERLAY:
        return {"systems": overlay_systems}
    if kind is ComponentKind.FONT:
        return {"og_replaced": og_replaced, "next_replaced": next_replaced}
    if kind is not ComponentKind.FULL_THEME:
        return {}

    return {
        "wallpapers": {"present": wallpaper_count > 0, "count": wallpaper_count},
        "icons": {
            "present": system_icons + tool_icons + collection_icons > 0,
            "system_count": system_icons,
            "tool_count": tool_icons,
            "collection_count": collection_icons,
        },
        "overlays": {"present": bool(overlay_systems), "systems": overlay_systems},
        "fonts": {
            "present": bool(font_names),
            "og_replaced": og_replaced,
            "next_replaced": next_replaced,
        },
        "settings": {
            "accents_included": accent_colors is not None and not accent_colors.is_empty(),
            "leds_included": bool(led_settings),
        },
    }


def _existing_manifest(package_path: Path) -> Manifest | None:
    if not (package_path / MANIFEST_FILE).exists():
        return None
    try:
        return read_manifest(package_path)
    except PackageError as exc:
        log.warning("Ignoring unreadable manifest in {}: {}", package_path, exc)
        return None


def regenerate_manifest(
    package_path: str | os.PathLike,
    kind: ComponentKind,
    layout: DeviceLayout,
    inventory: SystemInventory | None = None,
    *,
    info: ManifestInfo | None = None,
    accent_colors: AccentColors | None = None,
    led_settings: Mapping[str, LEDSetting] | None = None,
) -> Manifest:
    """Rebuild a package's manifest from the files actually present.

    Content counts and path mappings are recomputed from scratch. Info,
    accent colors and LED settings come from the arguments, else from the
    existing manifest when it can be read. No device needs to exist; the
    layout only supplies the device paths recorded in the mappings.

    Args:
        package_path: Package directory
        kind: Kind of the package
        layout: Device layout used to build device paths
        inventory: Optional inventory for tag-based system matching
        info: Replacement info block
        accent_colors: Accent colors to embed
        led_settings: LED settings to embed

    Returns:
        New Manifest (not written)

    Raises:
        PackageNotFoundError: If ``package_path`` is not a directory
    """
    package_path = Path(package_path)
    if not package_path.is_dir():
        raise PackageNotFoundError(package_path)

    existing = _existing_manifest(package_path)
    resolver = PathResolver(layout, inventory)
    mappings = []
    for relative in iter_package_files(package_path):
        mapping = resolver.resolve_mapping(kind, relative)
        if mapping is not None:
            mappings.append(mapping)

    if info is None:
        if existing is not None:
            info = existing.info
        else:
            info = ManifestInfo(
                name=package_name(package_path, kind),
                creation_date=timestamp(),
                exported_by=EXPORTED_BY,
            )
    info = replace(info, name=package_name(package_path, kind))

    if existing is not None:
        if accent_colors is None:
            accent_colors = existing.accent_colors
        if led_settings is None:
            led_settings = existing.led_settings

    if kind not in (ComponentKind.FULL_THEME, ComponentKind.ACCENT):
        accent_colors = None
    if kind not in (ComponentKind.FULL_THEME, ComponentKind.LED):
        led_settings = None
    if kind is ComponentKind.LED:
        provided = dict(led_settings or {})
        led_settings = {key: provided.pop(key, LEDSetting()) for key in LIGHT_SECTIONS}
        led_settings.update(provided)
    elif led_settings is not None:
        led_settings = dict(led_settings)

    return Manifest(
        kind=kind,
        info=info,
        content=build_content(kind, mappings, accent_colors, led_settings),
        mappings=tuple(mappings),
        accent_colors=accent_colors,
        led_settings=led_settings,
    )


def refresh_manifest(
    package_path: str | os.PathLike,
    layout: DeviceLayout,
    kind: ComponentKind | None = None,
    inventory: SystemInventory | None = None,
) -> Manifest:
    """Regenerate and write a package's manifest in one step.

    The kind defaults to the one named by the package extension.
    """
    package_path = Path(package_path)
    if kind is None:
        try:
            kind = ComponentKind.from_path(package_path)
        except ValueError as exc:
            raise UnknownPackageKindError(package_path, package_path.suffix) from exc
    manifest = regenerate_manifest(package_path, kind, layout, inventory)
    write_manifest(package_path, manifest)
    log.info(
        "Regenerated manifest for {} ({} mappings)", package_path.name, len(manifest.mappings)
    )
    return manifest
