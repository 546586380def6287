"""
Procedural terrain brushes.

Applies fractal noise uplift or iterative hydraulic erosion to circular
patches of a height field, paints matching coverage layers, and keeps an
undo history of brush strokes.
"""

from .config import BrushMode, Preset, SplatPreset, settings
from .core import ArrayTerrain, ErosionBrush, TerrainData, UndoHistory, WorldRect
from .logging_config import configure_logging

__version__ = "0.1.0"

__all__ = ['BrushMode', 'Preset', 'SplatPreset', 'settings', 'ArrayTerrain',
           'ErosionBrush', 'TerrainData', 'UndoHistory', 'WorldRect',
           'configure_logging']
