# -*- coding: utf-8 -*-
"""
Bias Optimizer Tests - Recovering a roll bias from a flat seafloor.

Builds a survey over flat 50 m water recorded by a sonar mounted with a
2 degree starboard-down roll bias that the recorded attitude does not
include. Without correction the swath is tilted; the optimizer must find
the roll bias that flattens it again.

Dependencies
------------
pytest
pyproj
rasterio

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
2026-10-11

Modified
--------
2026-10-17
"""

import numpy as np
import pytest

from swathviz.exceptions import BadParameterError, OperationCancelledError
from swathviz.models import BiasParameters, Ping, SurveyFile
from swathviz.models.flags import FLAG_FLAG
from swathviz.processing import BiasOptimizer, OptimizationResult
from swathviz.projection import coordinate_scale
from swathviz.session import EditSession
from swathviz.vocabulary import BiasParameter


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

ROLL_BIAS = 2.0
WATER_DEPTH = 50.0
SENSOR_DEPTH = 2.0


def _tilted_survey(n_pings=20, spacing=0.5, lon=-70.5, lat=41.0):
    """Northbound line over flat water seen through a rolled sonar."""
    theta = np.radians(np.linspace(-60.0, 60.0, 121))
    rng = WATER_DEPTH / np.cos(theta - np.radians(ROLL_BIAS))
    across = rng * np.sin(theta)
    bath = SENSOR_DEPTH + rng * np.cos(theta)
    _, m_to_deg_lat = coordinate_scale(lat)
    pings = [
        Ping(time=float(k), lon=lon, lat=lat + k * spacing * m_to_deg_lat,
             heading=0.0, bath=bath, across=across,
             along=np.zeros(theta.size), sensor_depth=SENSOR_DEPTH)
        for k in range(n_pings)
    ]
    return SurveyFile('tilted.mb58', pings)


@pytest.fixture
def session():
    """Session with the tilted line gridded and fully selected."""
    s = EditSession()
    s.add_file(_tilted_survey())
    s.build_grid()
    s.select_pings([(0, k) for k in range(20)])
    return s


# ---------------------------------------------------------------------------
# Local variance
# ---------------------------------------------------------------------------

class TestLocalVariance:
    """Test the candidate score."""

    def test_true_bias_is_flat(self, session):
        """The true roll bias gives a near-zero variance."""
        optimizer = BiasOptimizer()
        flat, n_bins = optimizer.local_variance(
            session.selection, BiasParameters(roll=ROLL_BIAS)
        )
        tilted, _ = optimizer.local_variance(
            session.selection, BiasParameters()
        )
        assert n_bins > 0
        assert flat < 1e-8
        assert tilted > 1e-5

    def test_selection_untouched(self, session):
        """Scoring a candidate does not move the selection or the pings."""
        selection = session.selection
        z_before = selection.z.copy()
        depth_before = session.files[0].pings[0].bath_corr.copy()
        BiasOptimizer().local_variance(selection, BiasParameters(roll=3.0))
        np.testing.assert_array_equal(selection.z, z_before)
        np.testing.assert_array_equal(
            session.files[0].pings[0].bath_corr, depth_before
        )


# ---------------------------------------------------------------------------
# Optimization
# ---------------------------------------------------------------------------

class TestOptimize:
    """Test the coordinate-descent search."""

    def test_recovers_roll_bias(self, session):
        """Optimizing roll recovers the mounting bias."""
        result = session.optimize_bias([BiasParameter.ROLL])
        assert isinstance(result, OptimizationResult)
        assert abs(result.parameters.roll - ROLL_BIAS) < 0.1
        assert result.parameters.pitch == 0.0
        assert result.variance < result.initial_variance
        assert result.evaluations == 1 + 11 + 19

    def test_selection_updated_session_not(self, session):
        """The best parameters are applied to the selection only."""
        result = session.optimize_bias([BiasParameter.ROLL])
        assert session.selection.bias == result.parameters
        assert session.bias == BiasParameters()

    def test_adopting_result_flattens_grid(self, session):
        """Setting the optimized bias flattens the production grid."""
        before = session.grid.value_max - session.grid.value_min
        result = session.optimize_bias([BiasParameter.ROLL])
        session.set_bias(result.parameters)
        after = session.grid.value_max - session.grid.value_min
        assert before > 1.0
        assert after < 0.05
        assert session.selection is None

    def test_evaluation_count_with_resweep(self, session):
        """Later parameters trigger a fine re-sweep of earlier ones."""
        optimizer = BiasOptimizer(
            angle_coarse_steps=3, angle_fine_steps=3,
            time_lag_coarse_steps=3, time_lag_fine_steps=3,
        )
        result = optimizer.optimize(
            session.selection, [BiasParameter.TIME_LAG, BiasParameter.ROLL]
        )
        # roll (3 + 3), time lag (3 + 3), roll again (3)
        assert result.evaluations == 1 + 6 + 6 + 3

    def test_progress_reaches_one(self, session):
        """Progress is reported as a fraction of the evaluations."""
        seen = []
        BiasOptimizer(angle_coarse_steps=3, angle_fine_steps=3).optimize(
            session.selection, [BiasParameter.PITCH],
            progress_callback=seen.append,
        )
        assert seen == sorted(seen)
        assert seen[-1] == pytest.approx(1.0)

    def test_cancel_leaves_selection(self, session):
        """A cancelled search leaves the selection unchanged."""
        selection = session.selection
        x_before = selection.x.copy()
        calls = []

        def cancel_after_five(fraction):
            calls.append(fraction)
            return len(calls) < 5

        with pytest.raises(OperationCancelledError):
            session.optimize_bias([BiasParameter.ROLL],
                                  progress_callback=cancel_after_five)
        np.testing.assert_array_equal(selection.x, x_before)
        assert selection.bias == BiasParameters()

    def test_no_parameters(self, session):
        with pytest.raises(BadParameterError, match="No bias parameter"):
            session.optimize_bias([])

    def test_no_accepted_soundings(self, session):
        """A fully rejected selection cannot be optimized."""
        for ping in session.files[0].pings:
            ping.flags[:] = FLAG_FLAG
        with pytest.raises(BadParameterError, match="No accepted"):
            session.optimize_bias([BiasParameter.ROLL])

    def test_requires_selection(self, session):
        session.dismiss_selection()
        with pytest.raises(BadParameterError, match="No sounding selection"):
            session.optimize_bias([BiasParameter.ROLL])
