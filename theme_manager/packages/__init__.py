"""Package engines: manifest model, import, export and deconstruction."""

from __future__ import annotations

from .deconstruct import deconstruct_theme
from .exporter import export_package, next_export_name
from .importer import import_package
from .manifest import (
    clear_path_mappings,
    read_manifest,
    refresh_manifest,
    regenerate_manifest,
    write_manifest,
)


__all__ = [
    "clear_path_mappings",
    "deconstruct_theme",
    "export_package",
    "import_package",
    "next_export_name",
    "read_manifest",
    "refresh_manifest",
    "regenerate_manifest",
    "write_manifest",
]
