"""Apply a package to the device.

Files are placed by the live path rules, never by the absolute paths stored
in the manifest, so packages made on another card land correctly. A copy
failure stops the import immediately; files copied before it stay on the
device.

With ``clean`` set, the wallpaper, icon and overlay slots of the kinds the
package actually holds are emptied before anything is copied. LED lights the
manifest does not list keep their current device values.
"""

from __future__ import annotations

from pathlib import Path

from theme_manager.device.exceptions import ManifestParseError, SettingsError, UnknownPackageKindError
from theme_manager.device.files import MANIFEST_FILE, copy_file, iter_package_files
from theme_manager.device.inventory import discover, ensure_media_directories
from theme_manager.device.layout import DeviceLayout
from theme_manager.device.leds import merge_led_settings
from theme_manager.device.resolver import PathResolver, category_kind
from theme_manager.device.settings_io import DEFAULT_SETTINGS_IO, SettingsIO
from theme_manager.device.slots import clean_slots
from theme_manager.domain import ComponentKind, ImportRequest, ImportResult, Manifest
from theme_manager.logging import operation_context
from theme_manager.packages.manifest import read_manifest


def _check_kind(request: ImportRequest, manifest: Manifest, package_path: Path) -> None:
    source = package_path / MANIFEST_FILE
    if manifest.kind is not request.kind:
        raise UnknownPackageKindError(
            source,
            f"{manifest.kind.manifest_type} (expected {request.kind.manifest_type})",
        )
    if request.kind is ComponentKind.ACCENT and not manifest.includes_accents:
        raise ManifestParseError(source, "no accent_colors")
    if request.kind is ComponentKind.LED and not manifest.includes_leds:
        raise ManifestParseError(source, "no led_settings")


def import_package(
    request: ImportRequest,
    layout: DeviceLayout,
    settings_io: SettingsIO = DEFAULT_SETTINGS_IO,
) -> ImportResult:
    """Copy a package's files onto the device and apply its settings.

    Args:
        request: Package, kind, kind selection, fallback system tag and
            whether to empty old slots first
        layout: Target device
        settings_io: Accent/LED readers and writers

    Returns:
        ImportResult listing applied mappings, skipped package files and
        removed device files

    Raises:
        PackageNotFoundError: If the package or its manifest is missing
        ManifestParseError: If the manifest is malformed (nothing is copied)
        InventoryError: If the device's ROM directory cannot be read
        CleanupError: If an old asset cannot be removed
        PackageCopyError: On the first failed copy
        SettingsError: If accent or LED settings cannot be written
    """
    package_path = Path(request.package_path)
    kinds = request.kinds

    with operation_context(
        "import",
        package=package_path.name,
        kind=request.kind.manifest_type,
        selected=sorted(k.manifest_type for k in kinds),
    ) as log:
        manifest = read_manifest(package_path)
        _check_kind(request, manifest, package_path)

        inventory = discover(layout)
        ensure_media_directories(inventory)
        resolver = PathResolver(layout, inventory)

        files = iter_package_files(package_path)
        removed = []
        if request.clean:
            covered = {category_kind(request.kind, relative) for relative in files}
            removed = clean_slots(layout, inventory, kinds & covered)

        applied = []
        skipped = []
        for relative in files:
            owner = category_kind(request.kind, relative)
            if owner is not None and owner not in kinds:
                continue
            mapping = resolver.resolve_mapping(request.kind, relative, request.context_tag)
            if mapping is None:
                skipped.append(relative)
                continue
            copy_file(package_path / relative, Path(mapping.device_path))
            applied.append(mapping)

        settings_applied = []
        if ComponentKind.ACCENT in kinds and manifest.includes_accents:
            settings_io.write_accents(layout.accent_settings, manifest.accent_colors)
            settings_applied.append(ComponentKind.ACCENT)
        if ComponentKind.LED in kinds and manifest.includes_leds:
            current = {}
            if layout.led_settings.exists():
                try:
                    current = settings_io.read_leds(layout.led_settings)
                except SettingsError as exc:
                    log.warning("Replacing unreadable LED settings: {}", exc)
            leds = merge_led_settings(current, dict(manifest.led_settings))
            settings_io.write_leds(layout.led_settings, leds)
            settings_applied.append(ComponentKind.LED)

        if skipped:
            log.debug("Skipped {} unresolved files", len(skipped), skipped=skipped)
        log.info(
            "Applied {} files from {}",
            len(applied),
            package_path.name,
            removed=len(removed),
            settings=[k.manifest_type for k in settings_applied],
        )

    return ImportResult(
        package_path=package_path,
        applied=tuple(applied),
        skipped=tuple(skipped),
        settings_applied=tuple(settings_applied),
        removed=tuple(removed),
    )
