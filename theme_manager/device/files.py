"""File primitives shared by the import, export and deconstruction engines."""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Iterable

from theme_manager.device.exceptions import PackageCopyError
from theme_manager.logging import get_logger


MANIFEST_FILE = "manifest.json"
PREVIEW_FILE = "preview.png"
PACKAGE_METADATA_FILES = frozenset({MANIFEST_FILE, PREVIEW_FILE})
DEFAULT_FILE_MODE = 0o644

log = get_logger(source="files", tags=["files", "copy"])


def copy_file(source: Path, destination: Path) -> None:
    """Copy ``source`` byte for byte, creating parent directories.

    An existing destination is overwritten.

    Raises:
        PackageCopyError: If the directory cannot be created or the copy fails
    """
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
    except OSError as exc:
        raise PackageCopyError(source, destination, exc.strerror or str(exc)) from exc
    log.trace("Copied {} -> {}", source, destination)


def iter_package_files(package_path: Path) -> list[str]:
    """All content files of a package as sorted, forward-slash relative paths.

    The manifest and preview at the package root are not content. Hidden
    files are ignored.
    """
    files: list[str] = []
    for path in package_path.rglob("*"):
        if not path.is_file():
            continue
        relative = path.relative_to(package_path)
        if any(part.startswith(".") for part in relative.parts):
            continue
        if len(relative.parts) == 1 and relative.name in PACKAGE_METADATA_FILES:
            continue
        files.append(relative.as_posix())
    return sorted(files)


def iter_image_files(directory: Path, suffix: str = ".png") -> Iterable[Path]:
    """Images directly inside ``directory``; nothing if it does not exist."""
    if not directory.is_dir():
        return []
    return sorted(
        entry
        for entry in directory.iterdir()
        if entry.is_file()
        and not entry.name.startswith(".")
        and entry.name.lower().endswith(suffix)
    )


def write_text_atomic(path: Path, text: str) -> None:
    """Write ``text`` to a temp file next to ``path`` and rename it into place.

    The file keeps the mode of the file it replaces; new files get 0644.

    Raises:
        OSError: If the temp file cannot be written or renamed
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        mode = stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        mode = DEFAULT_FILE_MODE
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.chmod(temp_name, mode)
        os.replace(temp_name, path)
    except BaseException:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise


def reset_directory(path: Path) -> None:
    """Replace ``path`` with an empty directory.

    Raises:
        PackageCopyError: If the old tree cannot be removed
    """
    try:
        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True)
    except OSError as exc:
        raise PackageCopyError(path, path, exc.strerror or str(exc)) from exc
