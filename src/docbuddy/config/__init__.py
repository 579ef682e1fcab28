"""
docbuddy configuration.

Pydantic-based settings loaded from DOCBUDDY_* environment variables
or a local .env file.
"""

from docbuddy.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
