# -*- coding: utf-8 -*-
"""
Bias Correction Tests - Attitude composition, Snell re-steering, corrector.

Tests the attitude delta composition and beam rotation conventions
(starboard-down roll, bow-up pitch, clockwise heading), the Snell ratio
beam re-steering, and BiasCorrector per-ping, single-beam and in-place
corrections including time-lag interpolation and anomaly reporting.

Dependencies
------------
pytest
scipy

Author
------
swathviz developers

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-04

Modified
--------
2026-10-17
"""

import logging
import math

import numpy as np
import pytest

from swathviz.correction import (
    BiasCorrector,
    compose_attitude,
    rotate_beams,
    snell_correction,
)
from swathviz.exceptions import BadParameterError, NumericAnomalyError
from swathviz.models import BiasParameters, Ping, SurveyFile, TimeSeries
from swathviz.projection import Projection, coordinate_scale


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

class _ScaledDegrees(Projection):
    """Planar frame of scaled degrees, no external backend."""

    name = 'scaled degrees'

    def _forward_array(self, lons, lats):
        return lons * 1000.0, lats * 1000.0

    def _inverse_array(self, xs, ys):
        return xs / 1000.0, ys / 1000.0


class _EastCutoff(_ScaledDegrees):
    """Scaled degrees that cannot represent points east of -69.99985."""

    def _forward_array(self, lons, lats):
        xs, ys = super()._forward_array(lons, lats)
        return np.where(lons > -69.99985, np.inf, xs), ys


@pytest.fixture
def survey():
    """Two pings of five beams over flat 50 m water, sensor at 2 m."""
    across = np.array([-20.0, -10.0, 0.0, 10.0, 20.0])
    pings = [
        Ping(time=float(t), lon=-70.0, lat=40.0 + 1e-4 * t, heading=0.0,
             bath=np.full(5, 50.0), across=across, along=np.zeros(5),
             sensor_depth=2.0)
        for t in range(2)
    ]
    return SurveyFile('flat.mb58', pings)


# ---------------------------------------------------------------------------
# Attitude
# ---------------------------------------------------------------------------

class TestComposeAttitude:
    """Test attitude delta composition."""

    def test_identity(self):
        """Unchanged attitude and zero bias give a zero delta."""
        assert compose_attitude(1.0, 2.0, 1.0, 2.0, 0.0, 0.0, 45.0) == \
            (0.0, 0.0, 45.0)

    def test_heading_wrapped(self):
        """The returned heading is reduced to [0, 360)."""
        _, _, heading = compose_attitude(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 370.0)
        assert heading == pytest.approx(10.0)

    def test_roll_bias(self):
        """A pure roll bias becomes the roll delta."""
        roll, pitch, heading = compose_attitude(
            0.0, 0.0, 0.0, 0.0, 2.0, 0.0, 45.0
        )
        assert roll == pytest.approx(2.0)
        assert pitch == pytest.approx(0.0, abs=1e-12)
        assert heading == pytest.approx(45.0)

    def test_roll_change(self):
        """A changed platform roll is the difference, not the sum."""
        roll, pitch, _ = compose_attitude(1.0, 0.0, 3.0, 0.0, 0.0, 0.0, 45.0)
        assert roll == pytest.approx(2.0)
        assert pitch == pytest.approx(0.0, abs=1e-12)

    def test_pitch_bias(self):
        """A pure pitch bias becomes the pitch delta."""
        roll, pitch, _ = compose_attitude(0.0, 0.0, 0.0, 0.0, 0.0, 1.5, 45.0)
        assert roll == pytest.approx(0.0, abs=1e-12)
        assert pitch == pytest.approx(1.5)


class TestRotateBeams:
    """Test beam rotation conventions."""

    def test_heading_north(self):
        """At heading 0 starboard is east and forward is north."""
        east, north, down = rotate_beams(
            np.array([3.0]), np.array([4.0]), np.array([10.0]), 0.0, 0.0, 0.0
        )
        np.testing.assert_allclose([east[0], north[0], down[0]], [3.0, 4.0, 10.0],
                                   atol=1e-12)

    def test_heading_east(self):
        """At heading 90 forward is east and starboard is south."""
        east, north, _ = rotate_beams(
            np.array([1.0, 0.0]), np.array([0.0, 1.0]), np.zeros(2),
            0.0, 0.0, 90.0,
        )
        np.testing.assert_allclose(east, [0.0, 1.0], atol=1e-12)
        np.testing.assert_allclose(north, [-1.0, 0.0], atol=1e-12)

    def test_roll_moves_vertical_beam_to_port(self):
        """Starboard-down roll swings a vertical beam to port."""
        east, _, down = rotate_beams(
            np.array([0.0]), np.array([0.0]), np.array([10.0]), 30.0, 0.0, 0.0
        )
        assert east[0] == pytest.approx(-5.0)
        assert down[0] == pytest.approx(10.0 * math.cos(math.radians(30.0)))

    def test_pitch_moves_vertical_beam_forward(self):
        """Bow-up pitch swings a vertical beam forward."""
        _, north, _ = rotate_beams(
            np.array([0.0]), np.array([0.0]), np.array([10.0]), 0.0, 30.0, 0.0
        )
        assert north[0] == pytest.approx(5.0)


# ---------------------------------------------------------------------------
# Snell
# ---------------------------------------------------------------------------

class TestSnellCorrection:
    """Test Snell ratio re-steering."""

    def test_unit_ratio_is_identity(self):
        """A ratio of 1 leaves downward beams unchanged."""
        across = np.array([-30.0, 0.0, 12.0])
        along = np.array([1.0, 0.0, -2.0])
        down = np.array([40.0, 50.0, 45.0])
        out = snell_correction(1.0, 0.0, across, along, down)
        np.testing.assert_allclose(out[0], across, atol=1e-9)
        np.testing.assert_allclose(out[1], along, atol=1e-9)
        np.testing.assert_allclose(out[2], down, atol=1e-9)

    def test_ratio_steers_outward(self):
        """A ratio above 1 steers beams further out and preserves range."""
        across = np.array([-30.0, 30.0])
        down = np.array([40.0, 40.0])
        new_across, _, new_down = snell_correction(
            1.05, 0.0, across, np.zeros(2), down
        )
        assert new_across[0] < -30.0
        assert new_across[1] > 30.0
        np.testing.assert_allclose(np.hypot(new_across, new_down), 50.0)

    def test_vertical_beam_unchanged(self):
        """The nadir beam does not move for any ratio."""
        out = snell_correction(1.1, 0.0, np.array([0.0]), np.array([0.0]),
                               np.array([50.0]))
        assert out[0][0] == pytest.approx(0.0, abs=1e-9)
        assert out[2][0] == pytest.approx(50.0)

    def test_zero_range(self):
        """Degenerate zero-length beams stay at the origin."""
        out = snell_correction(1.1, 0.0, np.zeros(1), np.zeros(1), np.zeros(1))
        np.testing.assert_allclose(np.concatenate(out), 0.0, atol=1e-12)


# ---------------------------------------------------------------------------
# BiasCorrector
# ---------------------------------------------------------------------------

class TestBiasCorrector:
    """Test BiasCorrector."""

    def test_identity_reproduces_raw(self, survey):
        """Identity parameters reproduce the raw depths and offsets."""
        ping = survey.pings[0]
        result = BiasCorrector().correct_ping(survey, ping, BiasParameters())
        np.testing.assert_allclose(result.depth, ping.bath)
        m_to_deg_lon, _ = coordinate_scale(ping.lat)
        np.testing.assert_allclose(result.lon, ping.lon + m_to_deg_lon * ping.across)
        np.testing.assert_allclose(result.lat, ping.lat)
        assert result.valid.all()
        assert np.isnan(result.x).all()

    def test_roll_bias_tilts_swath(self, survey):
        """A roll bias shoals port beams and deepens starboard beams."""
        ping = survey.pings[0]
        result = BiasCorrector().correct_ping(
            survey, ping, BiasParameters(roll=2.0)
        )
        assert result.depth[0] < 50.0
        assert result.depth[4] > 50.0

    def test_time_lag_uses_series(self, survey):
        """A time lag reads attitude from the asynchronous series."""
        survey.attitude_series = TimeSeries([0.0, 1.0], [[0.0, 0.0], [2.0, 0.0]])
        ping = survey.pings[0]
        corrector = BiasCorrector()
        lagged = corrector.correct_ping(
            survey, ping, BiasParameters(time_lag=1.0)
        )
        biased = corrector.correct_ping(survey, ping, BiasParameters(roll=2.0))
        np.testing.assert_allclose(lagged.depth, biased.depth)

    def test_subset_of_beams(self, survey):
        """Only the requested beams are corrected."""
        result = BiasCorrector().correct_ping(
            survey, survey.pings[0], BiasParameters(), beams=[1, 3]
        )
        assert result.depth.shape == (2,)
        np.testing.assert_array_equal(result.beams, [1, 3])

    def test_single_beam(self, survey):
        """The scalar entry point returns projected x, y and depth."""
        corrector = BiasCorrector(_ScaledDegrees())
        x, y, depth = corrector.correct(
            survey, survey.pings[0], 2, BiasParameters()
        )
        assert x == pytest.approx(-70000.0)
        assert y == pytest.approx(40000.0)
        assert depth == pytest.approx(50.0)

    def test_single_beam_requires_projection(self, survey):
        """Projected correction without a projection is a bad parameter."""
        with pytest.raises(BadParameterError, match="projection"):
            BiasCorrector().correct(survey, survey.pings[0], 0, BiasParameters())

    def test_single_beam_anomaly(self, survey, caplog):
        """Non-finite navigation raises NumericAnomalyError."""
        ping = survey.pings[0]
        ping.lat = float('nan')
        corrector = BiasCorrector(_ScaledDegrees())
        with caplog.at_level(logging.WARNING, logger='swathviz.correction.corrector'):
            with pytest.raises(NumericAnomalyError, match="beam 2"):
                corrector.correct(survey, ping, 2, BiasParameters())
        assert 'Invalid correction' in caplog.text

    def test_apply_writes_corrected_fields(self, survey):
        """apply stores corrected values and projected navigation."""
        corrector = BiasCorrector(_ScaledDegrees())
        anomalies = corrector.apply(survey, BiasParameters(roll=1.0))
        assert anomalies == 0
        for ping in survey.pings:
            assert np.isfinite(ping.bath_corr).all()
            np.testing.assert_allclose(ping.bath_x, ping.bath_lon * 1000.0)
            assert ping.nav_x == pytest.approx(ping.lon * 1000.0)
        np.testing.assert_allclose(survey.pings[0].bath, 50.0)

    def test_apply_counts_anomalies(self, survey):
        """Beams with non-finite corrections are counted and stored as NaN."""
        survey.pings[1].lon = float('inf')
        anomalies = BiasCorrector().apply(survey, BiasParameters())
        assert anomalies == 5
        assert np.isnan(survey.pings[1].bath_lon).all()
        assert np.isfinite(survey.pings[0].bath_lon).all()

    def test_unprojectable_beam_masked(self, survey, caplog):
        """A beam the projection cannot place is masked, not raised."""
        corrector = BiasCorrector(_EastCutoff())
        with caplog.at_level(logging.WARNING, logger='swathviz.correction.corrector'):
            result = corrector.correct_ping(survey, survey.pings[0], BiasParameters())
        np.testing.assert_array_equal(result.valid, [True, True, True, True, False])
        assert 'beam(s) [4]' in caplog.text

    def test_out_of_range_position_masked(self, survey, caplog):
        """A beam thrown outside the geographic range is masked."""
        survey.pings[0].across[1] = 1e15
        corrector = BiasCorrector(_ScaledDegrees())
        with caplog.at_level(logging.WARNING, logger='swathviz.correction.corrector'):
            anomalies = corrector.apply(survey, BiasParameters())
        assert anomalies == 1
        ping = survey.pings[0]
        assert np.isnan(ping.bath_x[1])
        assert np.isfinite(np.delete(ping.bath_x, 1)).all()
        assert 'Invalid correction' in caplog.text
