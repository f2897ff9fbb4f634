"""Split a full theme into single-purpose component packages."""

from __future__ import annotations

from pathlib import Path

from theme_manager.device.exceptions import UnknownPackageKindError
from theme_manager.device.files import MANIFEST_FILE, copy_file, iter_package_files, reset_directory
from theme_manager.device.layout import DeviceLayout
from theme_manager.device.resolver import PathResolver, category_kind, to_canonical, to_package_form
from theme_manager.domain import COMPONENT_KINDS, ComponentKind, ManifestInfo
from theme_manager.logging import operation_context
from theme_manager.packages.manifest import (
    DEFAULT_VERSION,
    EXPORTED_BY,
    package_name,
    read_manifest,
    regenerate_manifest,
    timestamp,
    write_manifest,
)
from theme_manager.packages.preview import write_package_preview


def deconstruct_theme(
    theme_path: str | Path,
    output_dir: str | Path,
    layout: DeviceLayout,
) -> list[Path]:
    """Create one component package per kind the theme actually contains.

    Files are re-rooted from the theme layout to each component layout and
    every component gets a fresh manifest and preview. Accent and LED
    packages carry the theme's settings. A theme with no recognized content
    yields an empty list.

    Args:
        theme_path: ``.theme`` package directory
        output_dir: Directory the component packages are created in
        layout: Device layout for the recorded device paths

    Returns:
        Paths of the created packages, in component kind order

    Raises:
        PackageNotFoundError: If the theme or its manifest is missing
        ManifestParseError: If the manifest is malformed or not a full theme
        PackageCopyError: If a file cannot be copied
    """
    theme_path = Path(theme_path)
    output_dir = Path(output_dir)

    with operation_context("deconstruct", theme=theme_path.name) as log:
        manifest = read_manifest(theme_path)
        if manifest.kind is not ComponentKind.FULL_THEME:
            raise UnknownPackageKindError(
                theme_path / MANIFEST_FILE, f"{manifest.kind.manifest_type} (expected theme)"
            )

        base_name = package_name(theme_path, ComponentKind.FULL_THEME)
        resolver = PathResolver(layout)
        files: dict[ComponentKind, list[str]] = {kind: [] for kind in COMPONENT_KINDS}
        for relative in iter_package_files(theme_path):
            owner = category_kind(ComponentKind.FULL_THEME, relative)
            if owner is None:
                continue
            if resolver.resolve_mapping(ComponentKind.FULL_THEME, relative) is None:
                continue
            files[owner].append(relative)

        created: list[Path] = []
        for kind in COMPONENT_KINDS:
            if kind is ComponentKind.ACCENT:
                has_content = manifest.includes_accents
            elif kind is ComponentKind.LED:
                has_content = manifest.includes_leds
            else:
                has_content = bool(files[kind])
            if not has_content:
                log.debug("No {} content in {}", kind.manifest_type, theme_path.name)
                continue

            package_path = output_dir / f"{base_name}{kind.extension}"
            reset_directory(package_path)
            for relative in files[kind]:
                target = to_package_form(kind, to_canonical(ComponentKind.FULL_THEME, relative))
                copy_file(theme_path / relative, package_path / target)

            info = ManifestInfo(
                name=base_name,
                version=DEFAULT_VERSION,
                author=manifest.info.author,
                creation_date=timestamp(),
                exported_by=EXPORTED_BY,
            )
            component = regenerate_manifest(
                package_path,
                kind,
                layout,
                info=info,
                accent_colors=manifest.accent_colors,
                led_settings=manifest.led_settings,
            )
            write_manifest(package_path, component)
            write_package_preview(package_path, kind, base_name)
            created.append(package_path)
            log.info("Created {} with {} files", package_path.name, len(files[kind]))

    return created
