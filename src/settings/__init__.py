"""Environment settings for the matching service."""

from .app import AppSettings, get_settings


__all__ = ["AppSettings", "get_settings"]
