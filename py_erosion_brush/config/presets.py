"""
Brush presets.

A preset bundles the brush geometry, the generator choice (noise or
erosion) with its parameters, and the coverage layers the brush paints into.
Presets are plain data: the brush reads them but never modifies them.
"""

from enum import Enum

from pydantic import BaseModel, Field


class BrushMode(str, Enum):
    """Generator used by a brush."""

    NOISE = "noise"
    EROSION = "erosion"


class SplatPreset(BaseModel):
    """Coverage layer slot painted by the brush."""

    apply: bool = Field(default=False, description="Whether the brush paints this slot")
    opacity: float = Field(default=1.0, ge=0.0, le=1.0, description="Strength of the painted delta")
    channel: int = Field(default=0, ge=0, description="Index of the coverage layer to paint")

    @property
    def enabled(self) -> bool:
        return self.apply and self.opacity > 0.01


class Preset(BaseModel):
    """Settings for one brush."""

    name: str = Field(default="", description="Preset name, used for grouping only")

    # Brush geometry
    brush_size: float = Field(default=50.0, gt=0, description="Brush diameter in world units")
    brush_falloff: float = Field(
        default=0.6, ge=0.0, le=1.0, description="Share of the radius painted at full strength"
    )
    brush_spacing: float = Field(
        default=0.15, gt=0, description="Distance between stroke dabs, relative to brush size"
    )
    downscale: int = Field(default=1, ge=1, description="Working resolution divisor")
    preserve_detail: bool = Field(
        default=False, description="Restore detail lost by downscaling"
    )

    mode: BrushMode = Field(default=BrushMode.NOISE, description="Generator used by the brush")

    # Noise brush
    noise_seed: int = Field(default=12345, description="Noise seed")
    noise_amount: float = Field(default=20.0, description="Noise height in world units")
    noise_size: float = Field(default=200.0, ge=0.0, description="Noise feature size")
    noise_detail: float = Field(default=0.55, ge=0.0, description="Per-octave amplitude falloff")
    noise_uplift: float = Field(
        default=0.8, ge=0.0, le=1.0, description="0 only lowers, 1 only raises terrain"
    )

    # Erosion brush
    erosion_iterations: int = Field(default=3, ge=0, description="Erosion passes per dab")
    erosion_durability: float = Field(
        default=0.9, ge=0.0, le=1.0, description="Share of transported material that survives"
    )
    erosion_fluidity_iterations: int = Field(
        default=3, ge=0, description="Downhill routing steps per pass"
    )
    erosion_amount: float = Field(
        default=1.0, ge=0.0,
        description="Erosion per pass; lower values need more iterations but look better",
    )
    sediment_amount: float = Field(
        default=0.8, ge=0.0, le=1.0,
        description="Share of raised sediment dropped back onto the land",
    )
    erosion_smooth: float = Field(default=0.15, ge=0.0, description="Blur applied after erosion")
    ruffle: float = Field(default=0.1, ge=0.0, le=1.0, description="Randomness of the flow")
    erosion_seed: int = Field(default=12345, description="Seed for the flow randomness")

    # Painting
    foreground: SplatPreset = Field(
        default_factory=SplatPreset, description="Layer receiving the cliff delta"
    )
    background: SplatPreset = Field(
        default_factory=SplatPreset, description="Layer receiving the sediment delta"
    )

    @property
    def is_erosion(self) -> bool:
        return self.mode == BrushMode.EROSION

    @property
    def is_noise(self) -> bool:
        return self.mode == BrushMode.NOISE

    @property
    def paint_splat(self) -> bool:
        return self.foreground.enabled or self.background.enabled

    def copy_preset(self, **changes) -> "Preset":
        """Deep copy, optionally overriding fields (validated)."""
        data = self.model_dump()
        data.update(changes)
        return Preset.model_validate(data)
