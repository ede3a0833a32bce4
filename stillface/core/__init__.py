"""
Core

Settings and logging setup.
"""

from stillface.core.config import Settings, get_settings, configure_logging

__all__ = ["Settings", "get_settings", "configure_logging"]
