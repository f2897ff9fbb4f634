"""Build a package from the live device."""

from __future__ import annotations

import re
from pathlib import Path

from theme_manager.device.exceptions import SettingsError
from theme_manager.device.files import PREVIEW_FILE, copy_file, reset_directory
from theme_manager.device.inventory import discover
from theme_manager.device.layout import DeviceLayout
from theme_manager.device.resolver import PathResolver, category_kind
from theme_manager.device.settings_io import DEFAULT_SETTINGS_IO, SettingsIO
from theme_manager.device.slots import iter_device_slots
from theme_manager.domain import ComponentKind, ExportRequest, ManifestInfo
from theme_manager.logging import operation_context
from theme_manager.packages.manifest import EXPORTED_BY, regenerate_manifest, timestamp, write_manifest


def export_package(
    request: ExportRequest,
    layout: DeviceLayout,
    output_dir: Path,
    settings_io: SettingsIO = DEFAULT_SETTINGS_IO,
) -> Path:
    """Assemble ``<output_dir>/<export_name><ext>`` from the device.

    An existing package of the same name is replaced without asking;
    picking a free name is up to the caller (see :func:`next_export_name`).

    Args:
        request: Name, kind, kind selection, author and optional preview
        layout: Source device
        output_dir: Directory the package is created in
        settings_io: Accent/LED readers

    Returns:
        Path of the new package

    Raises:
        InventoryError: If the device's ROM directory cannot be read
        PackageCopyError: If a file cannot be copied into the package
        SettingsError: If settings for an accent or LED export cannot be read
        ManifestWriteError: If the manifest cannot be written
    """
    kinds = request.kinds
    package_path = Path(output_dir) / f"{request.export_name}{request.kind.extension}"

    with operation_context(
        "export",
        package=package_path.name,
        kind=request.kind.manifest_type,
        selected=sorted(k.manifest_type for k in kinds),
    ) as log:
        inventory = discover(layout)
        reset_directory(package_path)
        resolver = PathResolver(layout, inventory)

        seen: set[str] = set()
        copied = 0
        for device_file in iter_device_slots(layout, inventory):
            if not device_file.is_file():
                continue
            mapping = resolver.inverse(request.kind, device_file)
            if mapping is None or mapping.package_path in seen:
                continue
            if category_kind(request.kind, mapping.package_path) not in kinds:
                continue
            seen.add(mapping.package_path)
            copy_file(device_file, package_path / mapping.package_path)
            copied += 1

        accent_colors = None
        if ComponentKind.ACCENT in kinds:
            try:
                accent_colors = settings_io.read_accents(layout.accent_settings)
            except SettingsError as exc:
                if request.kind is ComponentKind.ACCENT:
                    raise
                log.warning("Accent colors not included: {}", exc)

        led_settings = None
        if ComponentKind.LED in kinds:
            try:
                led_settings = settings_io.read_leds(layout.led_settings)
            except SettingsError as exc:
                if request.kind is ComponentKind.LED:
                    raise
                log.warning("LED settings not included: {}", exc)

        info = ManifestInfo(
            name=request.export_name,
            author=request.author,
            creation_date=timestamp(),
            exported_by=EXPORTED_BY,
        )
        manifest = regenerate_manifest(
            package_path,
            request.kind,
            layout,
            inventory,
            info=info,
            accent_colors=accent_colors,
            led_settings=led_settings,
        )
        write_manifest(package_path, manifest)

        if request.preview_source is not None and request.kind.has_preview:
            copy_file(Path(request.preview_source), package_path / PREVIEW_FILE)

        log.info("Exported {} files to {}", copied, package_path)

    return package_path


def next_export_name(output_dir: Path, stem: str, kind: ComponentKind) -> str:
    """First free ``<stem>_<n>`` name in ``output_dir`` for ``kind``."""
    pattern = re.compile(rf"^{re.escape(stem)}_(\d+){re.escape(kind.extension)}$")
    highest = 0
    if output_dir.is_dir():
        for entry in output_dir.iterdir():
            match = pattern.match(entry.name)
            if match:
                highest = max(highest, int(match.group(1)))
    return f"{stem}_{highest + 1}"
