"""Agent core: configuration and logging."""

from .config import ProbeSettings, get_settings
from .logger import setup_logger

__all__ = ["ProbeSettings", "get_settings", "setup_logger"]
