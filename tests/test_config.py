"""Tests for presets and settings."""

import pytest
from pydantic import ValidationError
from py_erosion_brush.config import BrushMode, Preset, Settings, SplatPreset


class TestPreset:
    """Test brush presets."""

    def test_defaults(self):
        """Test the default preset."""
        preset = Preset()

        assert preset.is_noise
        assert not preset.is_erosion
        assert preset.brush_size == 50.0
        assert preset.brush_falloff == 0.6
        assert preset.downscale == 1
        assert preset.erosion_iterations == 3
        assert not preset.paint_splat

    def test_validation(self):
        """Test that out of range values are rejected."""
        with pytest.raises(ValidationError):
            Preset(brush_falloff=1.5)
        with pytest.raises(ValidationError):
            Preset(downscale=0)
        with pytest.raises(ValidationError):
            SplatPreset(opacity=2.0)

    def test_mode_from_string(self):
        """Test that the mode accepts its string value."""
        preset = Preset(mode="erosion")

        assert preset.mode is BrushMode.EROSION
        assert preset.is_erosion

    def test_paint_splat(self):
        """Test that painting needs an applied slot with visible opacity."""
        assert Preset(foreground=SplatPreset(apply=True)).paint_splat
        assert not Preset(foreground=SplatPreset(apply=True, opacity=0.005)).paint_splat
        assert Preset(background=SplatPreset(apply=True, opacity=0.5, channel=1)).paint_splat

    def test_copy_preset(self):
        """Test that copies are independent and validated."""
        preset = Preset(name="ridge", foreground=SplatPreset(apply=True, channel=1))

        copy = preset.copy_preset(noise_amount=40.0)
        copy.foreground.channel = 3

        assert copy.name == "ridge"
        assert copy.noise_amount == 40.0
        assert preset.noise_amount == 20.0
        assert preset.foreground.channel == 1

        with pytest.raises(ValidationError):
            preset.copy_preset(noise_uplift=-1.0)

    def test_serialization(self):
        """Test dumping and loading a preset."""
        preset = Preset(mode=BrushMode.EROSION, erosion_seed=7)

        loaded = Preset.model_validate_json(preset.model_dump_json())

        assert loaded == preset


class TestSettings:
    """Test environment driven settings."""

    def test_defaults(self):
        """Test default values."""
        settings = Settings()

        assert settings.undo_capacity >= 1
        assert settings.falloff_epsilon > 0

    def test_environment_override(self, monkeypatch):
        """Test that prefixed environment variables are read."""
        monkeypatch.setenv("EROSION_BRUSH_UNDO_CAPACITY", "5")
        monkeypatch.setenv("EROSION_BRUSH_RECORD_UNDO", "false")

        settings = Settings()

        assert settings.undo_capacity == 5
        assert settings.record_undo is False


class TestLogging:
    """Test structlog configuration."""

    @pytest.mark.parametrize("fmt", ["json", "console"])
    def test_configure_logging(self, fmt):
        """Test that both renderers can be configured and used."""
        import structlog
        from py_erosion_brush import configure_logging

        configure_logging(level="DEBUG", fmt=fmt)
        try:
            assert structlog.is_configured()
            structlog.get_logger("py_erosion_brush.tests").info("Logging configured", fmt=fmt)
        finally:
            structlog.reset_defaults()
