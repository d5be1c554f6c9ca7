"""
Configuration for settlement generation.
"""

from .config import Settings, settings
from .params import Params

__all__ = ['Settings', 'settings', 'Params']
