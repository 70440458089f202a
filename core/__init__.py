"""
Core package: configuration, errors, credentials parsing and middleware.
"""

from core.config import get_settings

__all__ = ["get_settings"]
