"""
Erosion brush: applies noise or erosion to a circular patch of terrain.

One call to ``ErosionBrush.apply_brush`` performs a full dab:

1. Resolve the brush rect in height space, coverage space and the
   downscaled working space.
2. Read the height and coverage blocks that lie inside the terrain and
   zero the part of the source matrix that falls outside.
3. Record an undo step with the unmodified blocks.
4. Downscale the source heights into the working matrices.
5. Run the noise or erosion generator on the working matrices.
6. Upscale the result (and the coverage deltas) back to full resolution.
7. Optionally add back the detail lost by the downscale round trip.
8. Blend the result into the source with a smoothstep radial falloff.
9. Write heights (with a delayed LOD update) and paint the coverage deltas
   into their layers.

The brush keeps its scratch matrices between dabs, so one brush must not be
used from several threads at once.
"""

from typing import NamedTuple, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..config import BrushMode, Preset, SplatPreset, settings
from .coords import Coord, CoordRect
from .erosion import erosion_iteration
from .history import UndoHistory
from .matrix import Matrix
from .noise import noise_iteration
from .splats import normalize_layers
from .terrain import TerrainData

logger = structlog.get_logger()

# Coverage rescale after erosion, to match the range of the noise brush
CLIFF_FACTOR = 120.0
SEDIMENT_FACTOR = 5.0


class WorldRect(NamedTuple):
    """Brush rect in terrain-relative units (0..1 spans the whole terrain)."""
    x: float
    z: float
    width: float
    depth: float


def falloff_mask(rect: CoordRect, falloff: float, epsilon: Optional[float] = None) -> np.ndarray:
    """
    Radial blend factors for every cell of ``rect``.

    The factor is 1 inside ``radius * falloff`` of the rect center, 0 at and
    beyond the radius, and follows ``3p^2 - 2p^3`` in between.

    Args:
        rect: Rect the brush covers; its width sets the radius
        falloff: Share of the radius painted at full strength
        epsilon: Smallest allowed denominator, defaults to ``settings.falloff_epsilon``

    Returns:
        ``[z, x]`` array of factors in [0, 1]
    """
    if epsilon is None:
        epsilon = settings.falloff_epsilon
    center = rect.center
    radius = rect.size.x / 2.0

    xs = np.arange(rect.offset.x, rect.offset.x + rect.size.x) - center.x
    zs = np.arange(rect.offset.z, rect.offset.z + rect.size.z) - center.z
    distance = np.hypot(xs[np.newaxis, :], zs[:, np.newaxis])

    denominator = max(radius - radius * falloff, epsilon)
    percent = np.clip((radius - distance) / denominator, 0.0, 1.0)
    return (3 * percent * percent - 2 * percent * percent * percent).astype(np.float32)


class ErosionBrush:
    """Applies a brush preset to a terrain."""

    def __init__(
        self,
        terrain: TerrainData,
        preset: Optional[Preset] = None,
        history: Optional[UndoHistory] = None,
        record_undo: Optional[bool] = None,
    ):
        """
        Initialize the brush.

        Args:
            terrain: Storage the brush reads from and writes to
            preset: Brush settings, defaults to a noise preset
            history: Undo history, a new one is created if omitted
            record_undo: Whether dabs are recorded, defaults to ``settings.record_undo``
        """
        self.terrain = terrain
        self.preset = preset or Preset()
        self.history = history if history is not None else UndoHistory()
        self.record_undo = settings.record_undo if record_undo is None else record_undo

        # Scratch matrices reused between dabs
        self.src_height = Matrix()
        self.wrk_height = Matrix()
        self.wrk_cliff = Matrix()
        self.wrk_sediment = Matrix()
        self.dst_height = Matrix()
        self.dst_cliff = Matrix()
        self.dst_sediment = Matrix()

    def brush_rect(self, center: Tuple[float, float]) -> WorldRect:
        """World rect of a dab centred at a terrain-relative position."""
        size = self.preset.brush_size / max(self.terrain.world_size(), 1e-6)
        return WorldRect(center[0] - size / 2, center[1] - size / 2, size, size)

    def apply_brush(
        self, world_rect: WorldRect, use_falloff: bool = True, new_stroke: bool = False
    ) -> bool:
        """
        Apply one dab of the current preset.

        Args:
            world_rect: Area covered by the brush
            use_falloff: Fade the effect towards the brush edge
            new_stroke: Start a new undo stroke with this dab

        Returns:
            True if the terrain was modified, False for a no-op
        """
        preset = self.preset
        terrain = self.terrain
        layer_count = terrain.layer_count()
        paint_splat = preset.paint_splat and layer_count > 0

        # Rects
        height_res = terrain.height_resolution() - 1
        splat_res = terrain.coverage_resolution()
        height_rect = CoordRect.from_floats(
            world_rect.x * height_res, world_rect.z * height_res,
            world_rect.width * height_res, world_rect.depth * height_res,
        )
        splat_rect = CoordRect.from_floats(
            world_rect.x * splat_res, world_rect.z * splat_res,
            world_rect.width * splat_res, world_rect.depth * splat_res,
        )
        work_rect = height_rect // preset.downscale
        work_rect = CoordRect(
            work_rect.offset,
            Coord(max(work_rect.size.x, 1), max(work_rect.size.z, 1)),
        )

        height_bounds = CoordRect.from_values(0, 0, height_res + 1, height_res + 1)
        height_array_rect = CoordRect.intersect(height_rect, height_bounds)
        if height_rect.is_empty or height_array_rect.is_empty:
            logger.debug("Brush outside terrain, nothing to do", rect=tuple(world_rect))
            return False

        logger.debug(
            "Applying brush",
            mode=preset.mode.value,
            height_rect=(height_rect.offset.x, height_rect.offset.z, height_rect.size.x, height_rect.size.z),
            downscale=preset.downscale,
        )

        # Source heights
        height_array = terrain.read_heights(
            height_array_rect.offset.x, height_array_rect.offset.z,
            height_array_rect.size.x, height_array_rect.size.z,
        )
        self.src_height.change_rect(height_rect)
        self.src_height.import_array(height_array, height_array_rect)
        self.src_height.remove_borders(height_array_rect)

        # Source coverage (read before recording undo)
        splat_bounds = CoordRect.from_values(0, 0, splat_res, splat_res)
        splat_array_rect = CoordRect.intersect(splat_rect, splat_bounds)
        splat_array = None
        if layer_count > 0 and not splat_array_rect.is_empty:
            splat_array = terrain.read_coverage_layers(
                splat_array_rect.offset.x, splat_array_rect.offset.z,
                splat_array_rect.size.x, splat_array_rect.size.z,
            )

        if self.record_undo:
            if new_stroke:
                self.history.begin_stroke()
            self.history.record_step(
                height_array, splat_array,
                (height_array_rect.offset.x, height_array_rect.offset.z),
                (splat_array_rect.offset.x, splat_array_rect.offset.z),
            )

        # Downscale
        self.wrk_height = self.src_height.resize(work_rect, self.wrk_height)
        self.wrk_cliff.change_rect(work_rect)
        self.wrk_cliff.clear()
        self.wrk_sediment.change_rect(work_rect)
        self.wrk_sediment.clear()

        self._generate()

        # Upscale
        self.dst_height = self.wrk_height.resize(height_rect, self.dst_height)
        if preset.downscale != 1:
            self.dst_height.blur(intensity=preset.downscale / 4)
        self.dst_cliff = self.wrk_cliff.resize(splat_rect, self.dst_cliff)
        self.dst_sediment = self.wrk_sediment.resize(splat_rect, self.dst_sediment)

        if preset.downscale != 1 and preset.preserve_detail:
            self._preserve_detail(work_rect, height_rect)

        # Falloff
        if use_falloff:
            factor = falloff_mask(height_rect, preset.brush_falloff)
            src = self.src_height.grid
            dst = self.dst_height.grid
            dst[...] = src * (1 - factor) + dst * factor

            if not splat_rect.is_empty:
                splat_factor = falloff_mask(splat_rect, preset.brush_falloff)
                self.dst_cliff.grid[...] *= splat_factor
                self.dst_sediment.grid[...] *= splat_factor

        # Heights
        self.dst_height.export_array(height_array, height_array_rect)
        terrain.write_heights(
            height_array_rect.offset.x, height_array_rect.offset.z, height_array, delay_lod=True
        )

        # Coverage
        if not paint_splat or splat_array is None:
            if preset.paint_splat and layer_count == 0:
                logger.info("No coverage layers available, skipping coverage", layers=layer_count)
            return True

        self._paint_layer(splat_array, splat_array_rect, self.dst_cliff, preset.foreground, layer_count)
        self._paint_layer(splat_array, splat_array_rect, self.dst_sediment, preset.background, layer_count)
        terrain.write_coverage_layers(splat_array_rect.offset.x, splat_array_rect.offset.z, splat_array)
        return True

    def _generate(self) -> None:
        preset = self.preset
        if preset.mode == BrushMode.NOISE:
            noise_iteration(
                self.wrk_height, self.wrk_cliff, self.wrk_sediment,
                size=preset.noise_size,
                intensity=preset.noise_amount,
                detail=preset.noise_detail,
                seed=preset.noise_seed,
                uplift=preset.noise_uplift,
                max_height=self.terrain.vertical_scale(),
            )
            return

        for i in range(preset.erosion_iterations):
            erosion_iteration(
                self.wrk_height, self.wrk_cliff, self.wrk_sediment,
                erosion_durability=preset.erosion_durability,
                erosion_amount=preset.erosion_amount,
                sediment_amount=preset.sediment_amount,
                erosion_fluidity_iterations=preset.erosion_fluidity_iterations,
                ruffle=preset.ruffle,
                seed=preset.erosion_seed + i,
            )

        self.wrk_height.blur(intensity=preset.erosion_smooth)
        self.wrk_cliff.multiply(CLIFF_FACTOR)
        self.wrk_sediment.multiply(SEDIMENT_FACTOR)

    def _preserve_detail(self, work_rect: CoordRect, height_rect: CoordRect) -> None:
        """Add back the detail the source loses in a downscale/upscale round trip."""
        blurred = self.src_height.resize(work_rect)
        blurred = blurred.resize(height_rect)
        blurred.blur(intensity=self.preset.downscale / 4)
        self.dst_height.array += self.src_height.array - blurred.array

    @staticmethod
    def _paint_layer(
        splat_array: np.ndarray,
        splat_array_rect: CoordRect,
        delta: Matrix,
        slot: SplatPreset,
        layer_count: int,
    ) -> None:
        if not slot.enabled:
            return
        if slot.channel >= layer_count:
            logger.warning("Coverage channel out of range", channel=slot.channel, layers=layer_count)
            return

        overlap = CoordRect.intersect(delta.rect, splat_array_rect)
        if overlap.is_empty:
            return
        layer = splat_array[..., slot.channel]
        layer[splat_array_rect.slices(overlap)] += delta.grid[delta.rect.slices(overlap)] * slot.opacity
        normalize_layers(splat_array, slot.channel)

    def apply_to_terrain(self, iterations: int = 1) -> int:
        """
        Apply the preset to the whole terrain without falloff.

        All iterations form a single undo stroke.

        Returns:
            Number of dabs that modified the terrain
        """
        applied = 0
        for _ in range(max(int(iterations), 0)):
            if self.apply_brush(WorldRect(0.0, 0.0, 1.0, 1.0), use_falloff=False, new_stroke=applied == 0):
                applied += 1
        self.flush()
        return applied

    def paint_stroke(self, points: Sequence[Tuple[float, float]]) -> int:
        """
        Paint along a polyline of terrain-relative positions.

        Dabs are placed ``brush_spacing * brush_size`` apart along the path;
        the first dab opens a new undo stroke.

        Returns:
            Number of dabs that modified the terrain
        """
        if not points:
            return 0

        spacing = self.preset.brush_spacing * self.preset.brush_size / max(self.terrain.world_size(), 1e-6)
        spacing = max(spacing, 1e-6)

        dabs = [tuple(points[0])]
        travelled = 0.0
        for start, end in zip(points[:-1], points[1:]):
            seg_x, seg_z = end[0] - start[0], end[1] - start[1]
            length = float(np.hypot(seg_x, seg_z))
            if length == 0:
                continue
            position = spacing - travelled
            while position <= length:
                t = position / length
                dabs.append((start[0] + seg_x * t, start[1] + seg_z * t))
                position += spacing
            travelled = length - (position - spacing)

        # The stroke opens with the first dab that lands on the terrain
        applied = 0
        for center in dabs:
            if self.apply_brush(self.brush_rect(center), new_stroke=applied == 0):
                applied += 1
        logger.debug("Stroke painted", dabs=len(dabs), applied=applied)
        return applied

    def undo(self) -> bool:
        """Revert the last stroke. Returns False when there was nothing to undo."""
        return self.history.undo_last_stroke(self.terrain) > 0

    def flush(self) -> None:
        """Let the terrain apply delayed LOD updates."""
        self.terrain.flush()
