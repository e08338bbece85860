# -*- coding: utf-8 -*-
"""
Sparse Voxel Filter Tests - 3-D density outlier rejection.

Tests voxel neighbourhood counting on a dense cluster with an isolated
outlier, the density threshold, the handling of already rejected
soundings, and flagging through the owning session with a single flush.

Dependencies
------------
pytest

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
2026-10-10

Modified
--------
2026-10-17
"""

import numpy as np
import pytest

from swathviz.exceptions import BadParameterError, OperationCancelledError
from swathviz.models import SoundingHandle
from swathviz.models.flags import FLAG_FLAG, FLAG_MANUAL
from swathviz.processing import SparseVoxelFilter, VoxelFilterResult


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

class _RecordingSession:
    """Session stand-in that records edits and flushes."""

    def __init__(self):
        self.edits = []
        self.flushes = 0

    def edit(self, handle, flag, flush=True):
        self.edits.append((handle, flag, flush))
        return []

    def flush_edits(self):
        self.flushes += 1
        return []


class _Selection:
    """Selection stand-in over explicit local coordinates."""

    def __init__(self, x, y, z, accepted=None, cell_size=1.0):
        self.x = np.asarray(x, dtype=np.float64)
        self.y = np.asarray(y, dtype=np.float64)
        self.z = np.asarray(z, dtype=np.float64)
        self.accepted = np.ones(self.x.size, dtype=bool) \
            if accepted is None else np.asarray(accepted)
        self.cell_size = cell_size
        self.session = _RecordingSession()

    @property
    def n_accepted(self):
        return int(self.accepted.sum())

    def handle(self, index):
        return SoundingHandle(0, index // 10, index % 10)


@pytest.fixture
def cluster():
    """100 soundings within two voxels per axis plus one isolated sounding.

    The isolated sounding sits at the local origin, ten voxels away from
    the cluster along every axis.
    """
    rng = np.random.default_rng(7)
    pts = rng.uniform(10.05, 11.95, size=(100, 3))
    pts = np.vstack([pts, [0.0, 0.0, 0.0]])
    return _Selection(pts[:, 0], pts[:, 1], pts[:, 2])


# ---------------------------------------------------------------------------
# sparse_soundings
# ---------------------------------------------------------------------------

class TestSparseSoundings:
    """Test voxel density analysis."""

    def test_isolated_sounding_found(self, cluster):
        """Only the isolated sounding lies in a sparse voxel."""
        indices, n_voxels, n_sparse, size = SparseVoxelFilter().sparse_soundings(
            cluster
        )
        np.testing.assert_array_equal(indices, [100])
        assert n_sparse == 1
        assert 2 <= n_voxels <= 9
        assert size == 1.0

    def test_threshold_above_cluster(self, cluster):
        """A threshold above the cluster size flags everything."""
        indices, _, _, _ = SparseVoxelFilter(min_soundings=101).sparse_soundings(
            cluster
        )
        assert indices.size == 101

    def test_runtime_override(self, cluster):
        """Per-call overrides replace the instance parameters."""
        indices, _, _, size = SparseVoxelFilter().sparse_soundings(
            cluster, min_soundings=1, size_multiplier=2.0
        )
        assert indices.size == 0
        assert size == 2.0

    def test_rejected_soundings_ignored(self, cluster):
        """Soundings that are already rejected are neither counted nor flagged."""
        cluster.accepted[100] = False
        indices, _, n_sparse, _ = SparseVoxelFilter().sparse_soundings(cluster)
        assert indices.size == 0
        assert n_sparse == 0

    def test_no_accepted(self):
        """A selection without accepted soundings is a bad parameter."""
        selection = _Selection([0.0], [0.0], [0.0], accepted=[False])
        with pytest.raises(BadParameterError, match="No accepted"):
            SparseVoxelFilter().sparse_soundings(selection)

    def test_cancel(self, cluster):
        """Cancelling through the progress callback stops the pass."""
        with pytest.raises(OperationCancelledError):
            SparseVoxelFilter().sparse_soundings(
                cluster, progress_callback=lambda f: False
            )


# ---------------------------------------------------------------------------
# apply
# ---------------------------------------------------------------------------

class TestApply:
    """Test flagging through the session."""

    def test_flags_and_flushes_once(self, cluster):
        """Each sparse sounding is edited without flushing, then flushed once."""
        result = SparseVoxelFilter().apply(cluster)
        assert isinstance(result, VoxelFilterResult)
        assert result.flagged == [SoundingHandle(0, 10, 0)]
        session = cluster.session
        assert session.edits == [
            (SoundingHandle(0, 10, 0), FLAG_FLAG | FLAG_MANUAL, False)
        ]
        assert session.flushes == 1

    def test_messages(self, cluster):
        """Progress messages are passed to the message callback."""
        messages = []
        SparseVoxelFilter().apply(cluster, message_callback=messages.append)
        assert messages[0].startswith('Voxel filtering 101 soundings')
        assert 'flagged 1 soundings' in messages[-1]
