"""
tv-common: Shared library for TranscriptVault.

Provides configuration management, structured logging, Prometheus metrics,
date helpers, data models and database connection utilities used by the
storage core and the HTTP API.
"""

from tv_common.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
