"""Version control integration."""

from .updater import UpdateError, Updater

__all__ = ["UpdateError", "Updater"]
