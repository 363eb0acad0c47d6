"""Configuration for the room design service."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
