"""
Core brush functionality: grids, generators, undo and the brush pipeline.
"""

from .coords import Coord, CoordRect
from .matrix import Matrix
from .noise import fractal, noise_iteration
from .erosion import erosion_iteration
from .splats import normalize_layers
from .terrain import TerrainData, ArrayTerrain
from .history import UndoStep, UndoHistory
from .brush import ErosionBrush, WorldRect, falloff_mask

__all__ = ['Coord', 'CoordRect', 'Matrix', 'fractal', 'noise_iteration',
           'erosion_iteration', 'normalize_layers', 'TerrainData', 'ArrayTerrain',
           'UndoStep', 'UndoHistory', 'ErosionBrush', 'WorldRect', 'falloff_mask']
