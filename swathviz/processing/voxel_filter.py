# -*- coding: utf-8 -*-
"""
Sparse Voxel Filter - Flag soundings in sparsely populated 3-D regions.

Bins the accepted soundings of a selection into cubic voxels whose edge is
a multiple of the production grid cell size. Each occupied voxel counts
its own soundings and the soundings in its 26 neighbours; voxels whose
combined count falls below a threshold are treated as noise and every
sounding in them is flagged. Only occupied voxels are stored, as a sorted
table of integer voxel keys, so memory follows the number of soundings
rather than the volume of the selection.

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

# Standard library
import logging
from dataclasses import dataclass
from itertools import product
from typing import Annotated, Any, List, Tuple, TYPE_CHECKING

# Third-party
import numpy as np

# swathviz internal
from swathviz.exceptions import (
    BadParameterError,
    MemoryFailureError,
    OperationCancelledError,
)
from swathviz.models.common import SoundingHandle
from swathviz.models.flags import FLAG_FLAG, FLAG_MANUAL
from swathviz.processing.base import SoundingProcessor
from swathviz.processing.params import Desc, Range
from swathviz.processing.versioning import processor_version

if TYPE_CHECKING:
    from swathviz.selection import SoundingSelection

logger = logging.getLogger(__name__)

#: Voxel counts per axis are rounded up to whole buckets of this many voxels.
COARSE_BUCKET = 10

#: Soundings binned between progress reports.
PROGRESS_INTERVAL = 100000

_NEIGHBOURS = np.array(
    [offset for offset in product((-1, 0, 1), repeat=3) if offset != (0, 0, 0)],
    dtype=np.int64,
)


@dataclass
class VoxelFilterResult:
    """Outcome of a voxel filter pass.

    Parameters
    ----------
    flagged : List[SoundingHandle]
        Soundings flagged by the pass.
    n_voxels : int
        Number of occupied voxels.
    n_sparse_voxels : int
        Number of voxels below the density threshold.
    voxel_size : float
        Voxel edge length in metres.
    """

    flagged: List[SoundingHandle]
    n_voxels: int
    n_sparse_voxels: int
    voxel_size: float


def _axis_count(extent: float, size: float) -> int:
    n = int(extent / size) + 1
    return COARSE_BUCKET * (n // COARSE_BUCKET + 1)


@processor_version('1.0.0')
class SparseVoxelFilter(SoundingProcessor):
    """Flag accepted soundings that lie in sparse voxels.

    Parameters
    ----------
    size_multiplier : float
        Voxel edge as a multiple of the production grid cell size.
    min_soundings : int
        Minimum soundings in a voxel and its 26 neighbours for the voxel
        to be kept.

    Examples
    --------
    >>> filt = SparseVoxelFilter(size_multiplier=1.0, min_soundings=5)
    >>> result = filt.apply(session.selection)
    >>> len(result.flagged)
    3
    """

    size_multiplier: Annotated[
        float, Range(min=1e-3), Desc('Voxel size as a multiple of the grid cell size')
    ] = 1.0
    min_soundings: Annotated[
        int, Range(min=1), Desc('Minimum soundings in a voxel neighbourhood')
    ] = 5

    def sparse_soundings(
        self, selection: 'SoundingSelection', **kwargs: Any
    ) -> Tuple[np.ndarray, int, int, float]:
        """
        Indices of the selection entries that lie in sparse voxels.

        Parameters
        ----------
        selection : SoundingSelection
            Working set. Only accepted soundings are considered.
        **kwargs
            Parameter overrides and ``progress_callback``.

        Returns
        -------
        Tuple[np.ndarray, int, int, float]
            ``(indices, n_voxels, n_sparse_voxels, voxel_size)``.

        Raises
        ------
        BadParameterError
            If the selection has no accepted soundings.
        MemoryFailureError
            If the voxel table cannot be allocated.
        """
        params = self._resolve_params(kwargs)
        size = params['size_multiplier'] * selection.cell_size
        threshold = params['min_soundings']

        candidates = np.flatnonzero(
            selection.accepted
            & np.isfinite(selection.x)
            & np.isfinite(selection.y)
            & np.isfinite(selection.z)
        )
        if candidates.size == 0:
            raise BadParameterError("No accepted soundings in the selection")

        x = selection.x[candidates]
        y = selection.y[candidates]
        z = selection.z[candidates]
        origin = (x.min(), y.min(), z.min())
        nx = _axis_count(x.max() - origin[0], size)
        ny = _axis_count(y.max() - origin[1], size)
        nz = _axis_count(z.max() - origin[2], size)
        logger.debug(
            "Voxel volume %d x %d x %d, voxel size %.3f m", nx, ny, nz, size
        )

        try:
            keys = np.empty(candidates.size, dtype=np.int64)
            for start in range(0, candidates.size, PROGRESS_INTERVAL):
                stop = min(start + PROGRESS_INTERVAL, candidates.size)
                i = np.clip(((x[start:stop] - origin[0]) / size).astype(np.int64), 0, nx - 1)
                j = np.clip(((y[start:stop] - origin[1]) / size).astype(np.int64), 0, ny - 1)
                k = np.clip(((z[start:stop] - origin[2]) / size).astype(np.int64), 0, nz - 1)
                keys[start:stop] = (i * ny + j) * nz + k
                self._report_progress(kwargs, 0.5 * stop / candidates.size)

            voxels, inverse, counts = np.unique(
                keys, return_inverse=True, return_counts=True
            )
        except MemoryError as exc:
            raise MemoryFailureError(
                f"Unable to allocate voxel table for {candidates.size} soundings"
            ) from exc
        inverse = inverse.reshape(-1)

        vi = voxels // (ny * nz)
        vj = (voxels // nz) % ny
        vk = voxels % nz
        neighbours = np.zeros_like(counts)
        for di, dj, dk in _NEIGHBOURS:
            ni, nj, nk = vi + di, vj + dj, vk + dk
            inside = (
                (ni >= 0) & (ni < nx) & (nj >= 0) & (nj < ny)
                & (nk >= 0) & (nk < nz)
            )
            nkeys = (ni * ny + nj) * nz + nk
            pos = np.searchsorted(voxels, nkeys)
            pos = np.minimum(pos, voxels.size - 1)
            found = inside & (voxels[pos] == nkeys)
            neighbours[found] += counts[pos[found]]
        self._report_progress(kwargs, 0.75)

        sparse = (counts + neighbours) < threshold
        indices = candidates[sparse[inverse]]
        return indices, int(voxels.size), int(np.count_nonzero(sparse)), size

    def apply(
        self, selection: 'SoundingSelection', **kwargs: Any
    ) -> VoxelFilterResult:
        """
        Flag the soundings of *selection* that lie in sparse voxels.

        Each flagged sounding is edited through the selection's session
        with ``FLAG_FLAG | FLAG_MANUAL``, updating the grid and queueing an
        edit event; the queue is flushed once at the end, including when
        the pass is cancelled part way.

        Parameters
        ----------
        selection : SoundingSelection
            Working set.
        **kwargs
            Parameter overrides, ``progress_callback`` and
            ``message_callback``.

        Returns
        -------
        VoxelFilterResult
        """
        params = self._resolve_params(kwargs)
        self._report_message(
            kwargs,
            f"Voxel filtering {selection.n_accepted} soundings "
            f"(size x{params['size_multiplier']}, "
            f"threshold {params['min_soundings']})",
        )
        indices, n_voxels, n_sparse, size = self.sparse_soundings(
            selection, **kwargs
        )

        session = selection.session
        flagged: List[SoundingHandle] = []
        try:
            for count, index in enumerate(indices, start=1):
                handle = selection.handle(int(index))
                session.edit(handle, FLAG_FLAG | FLAG_MANUAL, flush=False)
                flagged.append(handle)
                if count % PROGRESS_INTERVAL == 0:
                    self._report_progress(
                        kwargs, 0.75 + 0.25 * count / indices.size
                    )
        except OperationCancelledError:
            session.flush_edits()
            raise
        session.flush_edits()
        self._report_progress(kwargs, 1.0)

        self._report_message(
            kwargs,
            f"Voxel filter flagged {len(flagged)} soundings in "
            f"{n_sparse} of {n_voxels} voxels",
        )
        return VoxelFilterResult(flagged, n_voxels, n_sparse, size)
