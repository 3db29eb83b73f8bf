"""Unit tests for SimSettings and the configuration dataclasses."""

import logging

import pytest

from gravsim.core.settings import (
    SimSettings,
    SimState,
    CollisionConfig,
    QuadTreeConfig,
    ClockConfig,
)


class TestSimSettings:
    """Tests for SimSettings defaults and the pause state machine."""

    def test_defaults(self):
        settings = SimSettings()
        assert settings.paused is True
        assert settings.gravity_constant == 500.0
        assert settings.enable_collisions is False
        assert settings.collision_substeps == 2
        assert settings.clear_all_requested is False
        assert settings.state == SimState.PAUSED

    def test_toggle_pause(self):
        settings = SimSettings()
        assert settings.toggle_pause() == SimState.RUNNING
        assert settings.paused is False
        assert settings.toggle_pause() == SimState.PAUSED
        assert settings.paused is True

    def test_toggle_pause_logs(self, caplog):
        settings = SimSettings()
        with caplog.at_level(logging.INFO, logger="gravsim"):
            settings.toggle_pause()
        assert "toggle pause" in caplog.text

    def test_request_clear(self):
        settings = SimSettings()
        settings.request_clear()
        assert settings.clear_all_requested is True


class TestClamping:
    """Invalid values are clamped where they are used, not rejected."""

    def test_negative_gravity_clamped(self):
        settings = SimSettings(gravity_constant=-3.0)
        assert settings.effective_gravity_constant() == 0.0
        # The raw value is left alone
        assert settings.gravity_constant == -3.0

    def test_valid_gravity_unchanged(self):
        assert SimSettings(gravity_constant=12.5).effective_gravity_constant() == 12.5

    @pytest.mark.parametrize("substeps", [0, -4])
    def test_substeps_clamped(self, substeps):
        settings = SimSettings(collision_substeps=substeps)
        assert settings.effective_substeps() == 1

    def test_valid_substeps_unchanged(self):
        assert SimSettings(collision_substeps=5).effective_substeps() == 5


class TestConfigs:
    """Defaults of the solver configuration dataclasses."""

    def test_collision_config(self):
        cfg = CollisionConfig()
        assert cfg.split == "equal"
        assert cfg.restitution is None
        assert cfg.broad_phase == "kdtree"

    def test_quadtree_config(self):
        cfg = QuadTreeConfig()
        assert cfg.capacity == 1
        assert cfg.max_depth == 24

    def test_clock_config(self):
        cfg = ClockConfig()
        assert cfg.hz == 120.0
        assert cfg.max_frame_time == 0.25
