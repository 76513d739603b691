"""
Utility modules for unitool.
"""

from .config import ConfigLoader, UnitoolConfig

__all__ = ["ConfigLoader", "UnitoolConfig"]
