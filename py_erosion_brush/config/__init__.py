"""
Configuration modules for the erosion brush.
"""

from .config import Settings, settings
from .presets import BrushMode, Preset, SplatPreset

__all__ = ['Settings', 'settings', 'BrushMode', 'Preset', 'SplatPreset']
