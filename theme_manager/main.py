import argparse
from pathlib import Path

from loguru import logger

from theme_manager.config import settings
from theme_manager.device.exceptions import ThemeManagerError
from theme_manager.device.inventory import discover
from theme_manager.domain import ComponentKind, ExportRequest, ImportRequest
from theme_manager.logging import setup_logging
from theme_manager.packages import (
    clear_path_mappings,
    deconstruct_theme,
    export_package,
    import_package,
    next_export_name,
    read_manifest,
    refresh_manifest,
    write_manifest,
)

# Package kinds that replace the previous look instead of adding to it
CLEANING_KINDS = (ComponentKind.FULL_THEME, ComponentKind.OVERLAY)


def _kind(value):
    try:
        return ComponentKind.from_name(value)
    except ValueError as error:
        raise argparse.ArgumentTypeError(str(error)) from error


def _kind_for_package(path):
    try:
        return ComponentKind.from_path(path)
    except ValueError:
        return read_manifest(path).kind


def build_parser():
    parser = argparse.ArgumentParser(
        prog="theme-manager", description="NextUI theme package manager"
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--trace", action="store_true", help="Log every file copy")
    parser.add_argument("--root", help="Device root (default: configured device_root)")
    parser.add_argument("--log-dir", type=Path, help="Directory for log files")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("systems", help="List installed systems and their tags")

    apply_cmd = commands.add_parser("import", help="Apply a package to the device")
    apply_cmd.add_argument("package", type=Path)
    apply_cmd.add_argument(
        "--only", nargs="+", type=_kind, default=[], metavar="KIND",
        help="Limit a full theme to these component kinds",
    )
    apply_cmd.add_argument("--tag", help="System tag for files whose name carries none")
    apply_cmd.add_argument(
        "--keep-existing", action="store_true",
        help="Do not remove old wallpapers, icons and overlays before a theme or overlay pack",
    )

    export_cmd = commands.add_parser("export", help="Build a package from the device")
    export_cmd.add_argument("name", nargs="?", help="Package name (default: numbered)")
    export_cmd.add_argument("--kind", type=_kind, default=ComponentKind.FULL_THEME)
    export_cmd.add_argument("--only", nargs="+", type=_kind, default=[], metavar="KIND")
    export_cmd.add_argument("--author", help="Author recorded in the manifest")
    export_cmd.add_argument("--preview", type=Path, help="Image to use as preview.png")
    export_cmd.add_argument("--output", type=Path, help="Output directory")

    split_cmd = commands.add_parser("deconstruct", help="Split a theme into components")
    split_cmd.add_argument("theme", type=Path)
    split_cmd.add_argument("--output", type=Path, help="Output directory")

    regen_cmd = commands.add_parser("regenerate", help="Rebuild a package manifest")
    regen_cmd.add_argument("package", type=Path)
    regen_cmd.add_argument(
        "--clear", action="store_true",
        help="Save the manifest without path mappings instead",
    )
    return parser


def _run(args, layout):
    if args.command == "systems":
        inventory = discover(layout)
        for system in inventory.systems:
            print(f"{system.tag or '-':<10} {system.display_name}")
        return 0

    if args.command == "import":
        kind = _kind_for_package(args.package)
        request = ImportRequest(
            package_path=args.package,
            kind=kind,
            selected_kinds=frozenset(args.only),
            context_tag=args.tag,
            clean=kind in CLEANING_KINDS and not args.keep_existing,
        )
        result = import_package(request, layout)
        print(
            f"Applied {result.copied_count} files, skipped {len(result.skipped)}, "
            f"removed {len(result.removed)}"
        )
        return 0

    if args.command == "export":
        output_dir = args.output or settings.get_exports_dir(layout)
        name = args.name or next_export_name(output_dir, "export", args.kind)
        request = ExportRequest(
            export_name=name,
            kind=args.kind,
            selected_kinds=frozenset(args.only),
            author=args.author or settings.get_setting("default_author", ""),
            preview_source=args.preview,
        )
        print(export_package(request, layout, output_dir))
        return 0

    if args.command == "deconstruct":
        output_dir = args.output or args.theme.parent
        created = deconstruct_theme(args.theme, output_dir, layout)
        for path in created:
            print(path)
        if not created:
            print("No component content found")
        return 0

    if args.command == "regenerate":
        if args.clear:
            write_manifest(args.package, clear_path_mappings(read_manifest(args.package)))
            return 0
        inventory = discover(layout) if layout.roms.is_dir() else None
        manifest = refresh_manifest(args.package, layout, _kind_for_package(args.package), inventory)
        print(f"{len(manifest.mappings)} path mappings")
        return 0

    return 2


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    log_dir = args.log_dir
    if log_dir is None and settings.get_setting("log_dir"):
        log_dir = Path(settings.get_setting("log_dir"))
    setup_logging(
        debug=args.debug or settings.get_bool("debug_logging"),
        trace=args.trace,
        log_dir=log_dir,
    )

    layout = settings.get_device_layout(args.root)
    try:
        return _run(args, layout)
    except ThemeManagerError as error:
        logger.error(str(error))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
