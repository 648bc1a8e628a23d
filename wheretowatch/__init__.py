"""Plex streaming availability labeller."""

__version__ = "1.0.0"
