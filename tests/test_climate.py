"""Tests for temperature and humidity fields."""

import numpy as np
import pytest

from terragen.climate import NOISE_PERIOD, ClimateModel, make_humidity, make_temperature
from terragen.config import ClimateConfig


@pytest.fixture
def model() -> ClimateModel:
    """Climate model with default parameters."""
    return ClimateModel.from_config(ClimateConfig(), np.random.default_rng(17))


class TestTemperature:
    """Tests for the lapse-rate temperature model."""

    def test_base_at_sea_level(self, model) -> None:
        """Elevation 0 reads the base temperature."""
        assert float(model.temperature(0.0)) == 25.0

    def test_falloff_per_200_units(self, model) -> None:
        """Temperature drops by the falloff every 200 world units."""
        assert float(model.temperature(200.0)) == pytest.approx(15.0)
        assert float(model.temperature(400.0)) == pytest.approx(5.0)

    def test_not_clamped(self, model) -> None:
        """High terrain can go below zero."""
        assert float(model.temperature(1000.0)) == pytest.approx(-25.0)

    def test_grid(self, model) -> None:
        """Grid temperature scales normalized heights by the elevation scale."""
        heights = np.array([[0.0, 0.5], [1.0, 0.25]], dtype=np.float32)
        temperature = make_temperature(heights, model, elevation_scale=400.0)
        assert temperature.dtype == np.float32
        np.testing.assert_allclose(temperature, [[25.0, 15.0], [5.0, 20.0]])


class TestHumidity:
    """Tests for the warped humidity field."""

    def test_offsets_within_noise_period(self, model) -> None:
        """Seed-derived offsets are drawn from one lattice period."""
        for value in model.humidity_offset + model.warp_shift:
            assert 0.0 <= value < NOISE_PERIOD

    def test_deterministic_per_stream(self) -> None:
        """Equal generators give equal models."""
        a = ClimateModel.from_config(ClimateConfig(), np.random.default_rng(3))
        b = ClimateModel.from_config(ClimateConfig(), np.random.default_rng(3))
        assert a == b

    def test_different_streams_differ(self) -> None:
        """Different generators give different offsets."""
        a = ClimateModel.from_config(ClimateConfig(), np.random.default_rng(3))
        b = ClimateModel.from_config(ClimateConfig(), np.random.default_rng(4))
        assert a.humidity_offset != b.humidity_offset

    def test_higher_ground_is_drier(self, model) -> None:
        """Humidity at full height is half the sea-level value."""
        rng = np.random.default_rng(1)
        x, y = rng.random(100), rng.random(100)
        low = model.humidity(x, y, 0.0)
        high = model.humidity(x, y, 1.0)
        np.testing.assert_allclose(high, low * 0.5, atol=1e-12)
        assert high.max() <= 0.5

    def test_grid_range_and_shape(self, model) -> None:
        """Humidity grid matches the height grid and stays in [0, 1]."""
        heights = np.random.default_rng(2).random((17, 17)).astype(np.float32)
        humidity = make_humidity(heights, model)
        assert humidity.shape == heights.shape
        assert humidity.dtype == np.float32
        assert humidity.min() >= 0.0
        assert humidity.max() <= 1.0

    def test_warp_is_bounded(self, model) -> None:
        """Centered warp moves coordinates at most half the amplitude."""
        x = np.linspace(0, 1, 33)
        warp_x, warp_y = model.warp(x, x[::-1])
        limit = model.warp_amplitude / 2 + 1e-12
        assert np.all(np.abs(warp_x - x) <= limit)
        assert np.all(np.abs(warp_y - x[::-1]) <= limit)

    def test_grid_uses_warped_coordinates(self, model) -> None:
        """Grid cells equal point samples at (x / N, y / N)."""
        heights = np.full((9, 9), 0.3, dtype=np.float32)
        humidity = make_humidity(heights, model)
        expected = model.sample_humidity(np.array([2 / 8]), np.array([6 / 8]), 0.3)[0]
        assert humidity[6, 2] == pytest.approx(expected, abs=1e-6)
