"""qt-mongo shared infrastructure.

- config: Shared settings management
"""

__version__ = "0.1.0"

from .config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
