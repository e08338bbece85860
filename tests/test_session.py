# -*- coding: utf-8 -*-
"""
Edit Session Tests - Loading, gridding, editing and selection passes.

Exercises ``EditSession`` end to end on a small synthetic survey line
over flat water: file management, grid builds and their rollback on
cancellation, flag edits with incremental grid updates and event
batching, sounding selection and the sparse voxel filter.

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
2026-10-12

Modified
--------
2026-10-18
"""

import logging

import numpy as np
import pytest

from swathviz.config import SessionConfig
from swathviz.exceptions import (
    BadParameterError,
    OperationCancelledError,
    ValidationError,
)
from swathviz.gridding.grid import Grid
from swathviz.models import BiasParameters, EditEvent, Ping, SoundingHandle, \
    SurveyFile
from swathviz.models.flags import FLAG_FLAG, FLAG_MANUAL, FLAG_NONE, FLAG_NULL
from swathviz.projection import coordinate_scale
from swathviz.session import EditSession
from swathviz.vocabulary import GridAlgorithm


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

N_PINGS = 10
N_BEAMS = 21
REJECT = FLAG_FLAG | FLAG_MANUAL


def _line(name='line_0001.mb58', n_pings=N_PINGS, lon=-70.5, lat=41.0):
    """Northbound line, 1 m ping spacing, beams every 4 m over 52 m water."""
    _, m_to_deg_lat = coordinate_scale(lat)
    across = np.linspace(-40.0, 40.0, N_BEAMS)
    pings = [
        Ping(time=float(k), lon=lon, lat=lat + k * m_to_deg_lat,
             heading=0.0, bath=np.full(N_BEAMS, 52.0), across=across,
             along=np.zeros(N_BEAMS), sensor_depth=2.0)
        for k in range(n_pings)
    ]
    return SurveyFile(name, pings)


class _Recorder:
    """Collects callback invocations."""

    def __init__(self):
        self.cells = []
        self.batches = []
        self.grids = []

    def cell(self, col, row, value, stddev):
        self.cells.append((col, row, value, stddev))

    def edits(self, events):
        self.batches.append(list(events))

    def grid(self, grid):
        self.grids.append(grid)


@pytest.fixture
def recorder():
    return _Recorder()


@pytest.fixture
def session(recorder):
    """Session with one line loaded and gridded."""
    s = EditSession(
        cell_callback=recorder.cell,
        edit_callback=recorder.edits,
        grid_callback=recorder.grid,
    )
    s.add_file(_line())
    s.build_grid()
    return s


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

class TestFiles:
    """Test loading and unloading survey files."""

    def test_add_file_corrects(self):
        s = EditSession()
        index = s.add_file(_line())
        assert index == 0
        ping = s.files[0].pings[3]
        assert np.all(np.isfinite(ping.bath_lon))
        np.testing.assert_allclose(ping.bath_corr, 52.0)
        assert s.grid is None

    def test_add_file_drops_grid(self, session):
        session.select_pings([(0, 0)])
        session.add_file(_line('line_0002.mb58'))
        assert session.grid is None
        assert session.projection is None
        assert session.selection is None
        assert len(session.files) == 2

    def test_remove_file(self, session):
        removed = session.remove_file(0)
        assert removed.name == 'line_0001.mb58'
        assert session.files == []
        assert session.grid is None

    def test_remove_flushes_pending(self, session, recorder):
        session.edit(SoundingHandle(0, 2, 10), REJECT, flush=False)
        session.remove_file(0)
        assert len(recorder.batches) == 1

    def test_remove_out_of_range(self, session):
        with pytest.raises(ValidationError, match="File index 3"):
            session.remove_file(3)

    def test_resolve(self, session):
        survey, ping = session.resolve(SoundingHandle(0, 4, 7))
        assert survey is session.files[0]
        assert ping is survey.pings[4]

    @pytest.mark.parametrize("handle, match", [
        (SoundingHandle(1, 0, 0), "File index"),
        (SoundingHandle(0, N_PINGS, 0), "Ping index"),
        (SoundingHandle(0, 0, N_BEAMS), "Beam index"),
    ])
    def test_resolve_stale(self, session, handle, match):
        with pytest.raises(ValidationError, match=match):
            session.resolve(handle)


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------

class TestBuildGrid:
    """Test full grid builds."""

    def test_projection_and_geometry(self, session, recorder):
        grid = session.grid
        assert isinstance(grid, Grid)
        assert session.projection.zone == 19
        assert not session.projection.south
        assert grid.geometry.cell_size == pytest.approx(0.02 * 52.0)
        assert recorder.grids == [grid]

    def test_grids_soundings(self, session):
        total = session.grid.weight.sum()
        assert 0.0 < total <= N_PINGS * N_BEAMS
        assert session.grid.value_min == pytest.approx(52.0)
        assert session.grid.value_max == pytest.approx(52.0)

    def test_configured_cell_size(self):
        s = EditSession(SessionConfig(cell_size=5.0, algorithm='footprint'))
        s.add_file(_line())
        grid = s.build_grid()
        assert grid.geometry.cell_size == 5.0
        assert grid.algorithm is GridAlgorithm.FOOTPRINT

    def test_no_files(self):
        with pytest.raises(BadParameterError, match="No survey data"):
            EditSession().build_grid()

    def test_messages(self):
        messages = []
        s = EditSession()
        s.add_file(_line())
        s.build_grid(message_callback=messages.append)
        assert any("UTM 19N" in m for m in messages)

    def test_cancel_keeps_previous(self, session):
        old_grid = session.grid
        old_projection = session.projection
        with pytest.raises(OperationCancelledError):
            session.build_grid(progress_callback=lambda f: False)
        assert session.grid is old_grid
        assert session.projection is old_projection

    def test_cancel_first_build(self):
        s = EditSession()
        s.add_file(_line())
        with pytest.raises(OperationCancelledError):
            s.build_grid(progress_callback=lambda f: False)
        assert s.grid is None
        assert s.projection is None

    def test_wild_beam_skipped(self, caplog):
        """A beam thrown off the globe is logged and left out of the grid."""
        survey = _line()
        survey.pings[3].across[5] = 1e15
        s = EditSession()
        with caplog.at_level(logging.WARNING, logger='swathviz'):
            s.add_file(survey)
            grid = s.build_grid()
            assert 'Invalid correction' in caplog.text
            caplog.clear()
            s.set_bias(BiasParameters(roll=0.1))
            assert 'Invalid correction' in caplog.text
        ping = s.files[0].pings[3]
        assert np.isnan(ping.bath_x[5])
        assert np.isfinite(np.delete(ping.bath_x, 5)).all()
        assert s.bias.roll == 0.1
        assert s.grid is not grid
        assert s.grid.geometry is grid.geometry
        assert 0.0 < s.grid.weight.sum() <= N_PINGS * N_BEAMS - 1
        assert s.grid.value_max < 60.0


class TestSetBias:
    """Test bias changes and grid rebuilds."""

    def test_without_grid(self):
        s = EditSession()
        s.add_file(_line())
        assert s.set_bias(BiasParameters(roll=1.0)) is None
        assert s.bias.roll == 1.0
        ping = s.files[0].pings[0]
        assert ping.bath_corr[0] != pytest.approx(52.0)

    def test_rebuilds_same_geometry(self, session, recorder):
        old = session.grid
        grid = session.set_bias(BiasParameters(roll=1.0))
        assert grid is session.grid
        assert grid is not old
        assert grid.geometry is old.geometry
        assert session.bias.roll == 1.0
        assert len(recorder.grids) == 2

    def test_dismisses_selection(self, session):
        session.select_pings([(0, 0)])
        session.set_bias(BiasParameters(pitch=0.5))
        assert session.selection is None

    def test_cancel_keeps_bias(self, session):
        old_grid = session.grid
        depths = session.files[0].pings[0].bath_corr.copy()
        with pytest.raises(OperationCancelledError):
            session.set_bias(BiasParameters(roll=3.0),
                             progress_callback=lambda f: False)
        assert session.bias == BiasParameters()
        assert session.grid is old_grid
        np.testing.assert_allclose(session.files[0].pings[0].bath_corr, depths)


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------

class TestEdit:
    """Test flag edits and incremental grid updates."""

    def test_flag_updates_cells(self, session, recorder):
        handle = SoundingHandle(0, 5, 10)
        weight_before = session.grid.weight.sum()
        updates = session.edit(handle, REJECT)
        assert updates
        assert recorder.cells == updates
        assert session.files[0].pings[5].flags[10] == REJECT
        assert session.grid.weight.sum() == pytest.approx(weight_before - 1.0)

    def test_unflag_restores(self, session):
        handle = SoundingHandle(0, 5, 10)
        before = session.grid.weight.copy()
        session.edit(handle, REJECT)
        session.edit(handle, FLAG_NONE)
        np.testing.assert_allclose(session.grid.weight, before)

    def test_event_flushed(self, session, recorder):
        session.edit(SoundingHandle(0, 5, 10), REJECT)
        assert recorder.batches == [[EditEvent(0, 5, 10, REJECT)]]
        assert session.pending_edits == []

    def test_batched_events(self, session, recorder):
        session.edit(SoundingHandle(0, 1, 3), REJECT, flush=False)
        session.edit(SoundingHandle(0, 2, 3), REJECT, flush=False)
        assert recorder.batches == []
        assert len(session.pending_edits) == 2
        batch = session.flush_edits()
        assert len(batch) == 2
        assert recorder.batches == [batch]
        assert session.flush_edits() == []
        assert len(recorder.batches) == 1

    def test_same_flag_is_noop(self, session, recorder):
        assert session.edit(SoundingHandle(0, 5, 10), FLAG_NONE) == []
        assert recorder.batches == []

    @pytest.mark.parametrize("flag", [0x101, -1])
    def test_flag_outside_byte(self, session, recorder, flag):
        """An unrepresentable flag is rejected before the grid is touched."""
        weight = session.grid.weight.copy()
        with pytest.raises(ValidationError, match="outside 0x00..0xff"):
            session.edit(SoundingHandle(0, 1, 1), flag)
        np.testing.assert_array_equal(session.grid.weight, weight)
        assert session.files[0].pings[1].flags[1] == FLAG_NONE
        assert recorder.cells == []
        assert session.pending_edits == []

    def test_flag_change_without_grid_change(self, session, recorder):
        """Changing between rejected flags queues an event only."""
        handle = SoundingHandle(0, 5, 10)
        session.edit(handle, REJECT)
        recorder.cells.clear()
        assert session.edit(handle, FLAG_FLAG) == []
        assert recorder.cells == []
        assert recorder.batches[-1] == [EditEvent(0, 5, 10, FLAG_FLAG)]

    def test_null_beam(self, session):
        session.files[0].pings[0].flags[0] = FLAG_NULL
        with pytest.raises(ValidationError, match="null"):
            session.edit(SoundingHandle(0, 0, 0), REJECT)

    def test_stale_handle(self, session):
        with pytest.raises(ValidationError, match="Ping index"):
            session.edit(SoundingHandle(0, 99, 0), REJECT)

    @pytest.mark.parametrize("algorithm", ['simple_mean', 'footprint'])
    def test_incremental_matches_rebuild(self, algorithm):
        s = EditSession(SessionConfig(algorithm=algorithm))
        s.add_file(_line())
        s.build_grid()
        for ping in (1, 4, 7):
            for beam in (8, 10, 12):
                s.edit(SoundingHandle(0, ping, beam), REJECT, flush=False)
        s.edit(SoundingHandle(0, 4, 10), FLAG_NONE)
        value = s.grid.value.copy()
        weight = s.grid.weight.copy()

        s.set_bias(s.bias)
        np.testing.assert_allclose(s.grid.weight, weight, atol=1e-9)
        np.testing.assert_allclose(s.grid.value, value, atol=1e-6)

    def test_sounding_info(self, session):
        info = session.sounding_info(SoundingHandle(0, 3, 4))
        assert info.startswith('line_0001.mb58 ping 3 beam 4')
        assert 'depth 52.000 m' in info
        assert 'flag 0x00' in info


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

class TestSelection:
    """Test building selections through the session."""

    def test_select_region(self, session):
        nav = session.files[0].pings
        x0, y0 = nav[0].nav_x, nav[0].nav_y
        y1 = nav[-1].nav_y
        selection = session.select_region(x0 - 5.0, x0 + 5.0, y0 - 1.0, y1 + 1.0)
        assert session.selection is selection
        assert len(selection) == 3 * N_PINGS
        assert selection.bearing == 90.0

    def test_select_area(self, session):
        nav = session.files[0].pings
        start = (nav[0].nav_x, nav[0].nav_y - 1.0)
        end = (nav[-1].nav_x, nav[-1].nav_y + 1.0)
        selection = session.select_area(start, end, 10.0)
        assert len(selection) == 3 * N_PINGS
        assert abs(selection.bearing) < 5.0
        # local x runs along the line
        assert selection.xmax - selection.xmin > selection.ymax - selection.ymin

    def test_select_pings(self, session):
        selection = session.select_pings([(0, 2), (0, 3)])
        assert len(selection) == 2 * N_BEAMS
        assert selection.n_accepted == 2 * N_BEAMS
        assert selection.bias == session.bias

    def test_select_pings_out_of_range(self, session):
        with pytest.raises(ValidationError, match="Ping index"):
            session.select_pings([(0, N_PINGS)])

    def test_dismiss(self, session):
        session.select_pings([(0, 0)])
        session.dismiss_selection()
        assert session.selection is None

    def test_requires_grid(self):
        s = EditSession()
        s.add_file(_line())
        with pytest.raises(BadParameterError, match="grid must be built"):
            s.select_pings([(0, 0)])

    def test_passes_require_selection(self, session):
        with pytest.raises(BadParameterError, match="No sounding selection"):
            session.flag_sparse_voxels()


class TestSparseVoxels:
    """Test the voxel filter running through the session."""

    @pytest.fixture
    def spiked(self, recorder):
        survey = _line()
        survey.pings[5].bath[10] = 80.0
        s = EditSession(
            SessionConfig(voxel_min_soundings=2),
            edit_callback=recorder.edits,
        )
        s.add_file(survey)
        s.build_grid()
        s.select_pings([(0, k) for k in range(N_PINGS)])
        return s

    def test_flags_spike(self, spiked, recorder):
        weight_before = spiked.grid.weight.sum()
        result = spiked.flag_sparse_voxels()
        assert result.flagged == [SoundingHandle(0, 5, 10)]
        assert spiked.files[0].pings[5].flags[10] == REJECT
        assert recorder.batches == [[EditEvent(0, 5, 10, REJECT)]]
        assert spiked.grid.weight.sum() == pytest.approx(weight_before - 1.0)

    def test_override_threshold(self, spiked):
        result = spiked.flag_sparse_voxels(min_soundings=1)
        assert result.flagged == []
