"""Custom exceptions for theme package and device operations.

This module defines a hierarchy of exceptions so callers (the CLI, a menu
front-end) can tell a broken package apart from a failing SD card.

Exception Hierarchy:
    ThemeManagerError (base)
        ├── PackageError
        │   ├── PackageNotFoundError
        │   └── ManifestParseError
        │       └── UnknownPackageKindError
        ├── DeviceIOError
        │   ├── InventoryError
        │   ├── PackageCopyError
        │   ├── CleanupError
        │   └── ManifestWriteError
        └── SettingsError

A package file that matches no path rule is not an error: it resolves to an
empty path and is skipped.

Usage:
    from theme_manager.device.exceptions import PackageNotFoundError

    if not package_path.is_dir():
        raise PackageNotFoundError(package_path)
"""

from __future__ import annotations

import os


class ThemeManagerError(Exception):
    """Base exception for all theme manager operations."""



class PackageError(ThemeManagerError):
    """Base exception for problems with a package on disk."""



class PackageNotFoundError(PackageError):
    """Package directory or its manifest does not exist."""

    def __init__(self, path: str | os.PathLike, what: str = "Package"):
        self.path = str(path)
        self.what = what
        super().__init__(f"{what} not found: {self.path}")


class ManifestParseError(PackageError):
    """Manifest exists but is not valid JSON or has the wrong shape."""

    def __init__(self, path: str | os.PathLike, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Invalid manifest {self.path}: {reason}")


class UnknownPackageKindError(ManifestParseError):
    """Package kind cannot be determined from its extension or manifest."""

    def __init__(self, path: str | os.PathLike, label: str):
        self.label = label
        super().__init__(path, f"unknown package kind '{label}'")


class DeviceIOError(ThemeManagerError):
    """Base exception for filesystem failures on the device or package side."""



class InventoryError(DeviceIOError):
    """ROM directory could not be listed."""

    def __init__(self, path: str | os.PathLike, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot list systems in {self.path}: {reason}")


class PackageCopyError(DeviceIOError):
    """A single file copy failed; earlier copies are left in place."""

    def __init__(
        self, source: str | os.PathLike, destination: str | os.PathLike, reason: str
    ):
        self.source = str(source)
        self.destination = str(destination)
        self.path = self.destination
        self.reason = reason
        super().__init__(
            f"Failed to copy {self.source} to {self.destination}: {reason}"
        )


class CleanupError(DeviceIOError):
    """An old asset could not be removed before a package was applied."""

    def __init__(self, path: str | os.PathLike, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Failed to remove {self.path}: {reason}")


class ManifestWriteError(DeviceIOError):
    """Manifest could not be written into the package."""

    def __init__(self, path: str | os.PathLike, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Failed to write manifest {self.path}: {reason}")


class SettingsError(ThemeManagerError):
    """Accent or LED settings file could not be read or written."""

    def __init__(self, path: str | os.PathLike, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Settings file {self.path}: {reason}")
