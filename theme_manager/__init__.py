"""NextUI Theme Manager: apply, export and split theme packages."""

from theme_manager.__version__ import __version__

__all__ = ["__version__"]
