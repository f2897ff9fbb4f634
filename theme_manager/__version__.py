"""Version information for NextUI Theme Manager."""

__version__ = "1.2.0"
