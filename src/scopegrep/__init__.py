"""Grep-style content search that honours nested ignore files."""

from .constants import VERSION as __version__

__all__ = ["__version__"]
