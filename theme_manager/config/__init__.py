"""Persistent configuration for the theme manager."""
