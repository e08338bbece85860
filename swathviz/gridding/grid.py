# -*- coding: utf-8 -*-
"""
Grid - The production bathymetry grid with incremental editing support.

Provides ``Grid``, which owns the grid geometry, the projection the grid
lives in, the per-cell accumulators, the gridding strategy chosen at
build time, and the global minimum and maximum of the materialized depth
and standard deviation. ``recompute_full`` rebuilds from every accepted
beam; ``insert_beam`` and ``remove_beam`` apply a single flag toggle and
rematerialize only the touched cells.

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
2026-10-07

Modified
--------
2026-10-17
"""

# Standard library
import logging
from typing import Any, List, Optional, Sequence, Set, Tuple

# Third-party
import numpy as np

# swathviz internal
from swathviz.gridding.accumulator import CellAccumulator, NODATA_VALUE
from swathviz.gridding.algorithms import (
    Gridder,
    SimpleMeanGridder,
    create_gridder,
)
from swathviz.gridding.geometry import GridGeometry
from swathviz.models.survey import Ping, SurveyFile
from swathviz.processing.base import report_progress
from swathviz.projection.base import Projection
from swathviz.vocabulary import GridAlgorithm, TopographyType

logger = logging.getLogger(__name__)

#: Materialized update of one cell: ``(col, row, value, stddev)``.
CellUpdate = Tuple[int, int, float, float]


def grid_mask(ping: Ping) -> np.ndarray:
    """Beams of *ping* that belong in the grid: accepted and finite."""
    return (
        ping.ok
        & np.isfinite(ping.bath_corr)
        & np.isfinite(ping.bath_x)
        & np.isfinite(ping.bath_y)
    )


class Grid:
    """Production bathymetry grid.

    Parameters
    ----------
    geometry : GridGeometry
        Grid layout.
    algorithm : GridAlgorithm or str
        Gridding algorithm for multibeam files.
    projection : Projection, optional
        Planar frame of the grid.

    Attributes
    ----------
    value_min, value_max : float
        Range of materialized depths, ``NODATA_VALUE`` when empty.
    stddev_min, stddev_max : float
        Range of materialized standard deviations.

    Raises
    ------
    MemoryFailureError
        If the cell arrays cannot be allocated.

    Examples
    --------
    >>> grid = Grid(geometry, GridAlgorithm.SIMPLE_MEAN, projection)
    >>> n = grid.recompute_full(session.files)
    >>> grid.value.shape == geometry.shape
    True
    """

    def __init__(
        self,
        geometry: GridGeometry,
        algorithm: GridAlgorithm,
        projection: Optional[Projection] = None,
    ) -> None:
        self.geometry = geometry
        self.algorithm = GridAlgorithm(algorithm)
        self.projection = projection
        self.accumulator = CellAccumulator(geometry.shape)
        self._gridder = create_gridder(self.algorithm, geometry, self.accumulator)
        if isinstance(self._gridder, SimpleMeanGridder):
            self._simple = self._gridder
        else:
            self._simple = SimpleMeanGridder(geometry, self.accumulator)
        self._reset_statistics()

    # -----------------------------------------------------------------
    # Accessors
    # -----------------------------------------------------------------
    @property
    def value(self) -> np.ndarray:
        """Materialized depth per cell, ``[row, col]``."""
        return self.accumulator.value

    @property
    def stddev(self) -> np.ndarray:
        """Materialized standard deviation per cell, ``[row, col]``."""
        return self.accumulator.stddev

    @property
    def weight(self) -> np.ndarray:
        return self.accumulator.weight

    @property
    def stale_cells(self) -> Set[Tuple[int, int]]:
        """Shoal-bias cells whose value may be too shallow after edits."""
        return getattr(self._gridder, 'stale_cells', set())

    def cell(self, col: int, row: int) -> Tuple[float, float, float]:
        """``(value, stddev, weight)`` of one cell."""
        return (
            float(self.value[row, col]),
            float(self.stddev[row, col]),
            float(self.weight[row, col]),
        )

    def gridder_for(self, survey: SurveyFile) -> Gridder:
        """Strategy for beams of *survey*.

        Non-multibeam sensors always use the simple mean.
        """
        if survey.topography is TopographyType.MULTIBEAM:
            return self._gridder
        return self._simple

    # -----------------------------------------------------------------
    # Full rebuild
    # -----------------------------------------------------------------
    def recompute_full(
        self,
        files: Sequence[SurveyFile],
        progress_interval: int = 250,
        **kwargs: Any,
    ) -> int:
        """
        Rebuild every cell from the accepted beams of *files*.

        Parameters
        ----------
        files : Sequence[SurveyFile]
            Survey files with corrected, projected beams.
        progress_interval : int
            Pings between progress reports.
        **kwargs
            ``progress_callback(fraction)``; returning ``False`` cancels.

        Returns
        -------
        int
            Number of beams gridded.

        Raises
        ------
        OperationCancelledError
            If the progress callback cancels the rebuild. The grid is
            then incomplete and should be discarded.
        """
        self.accumulator.clear()
        self.stale_cells.clear()
        total = sum(s.n_pings for s in files)
        done = 0
        gridded = 0
        report_progress(kwargs, 0.0)
        for survey in files:
            gridder = self.gridder_for(survey)
            for ping in survey.pings:
                beams = np.flatnonzero(grid_mask(ping))
                if beams.size:
                    gridder.add_ping(survey, ping, beams)
                    gridded += beams.size
                done += 1
                if done % progress_interval == 0:
                    report_progress(kwargs, done / total)
        self.materialize()
        report_progress(kwargs, 1.0)
        logger.info(
            "Gridded %d beams from %d file(s) into %d x %d cells (%s)",
            gridded, len(files), self.geometry.n_columns, self.geometry.n_rows,
            self.algorithm.value,
        )
        return gridded

    def materialize(self) -> None:
        """Materialize every cell and recompute the global ranges."""
        self.accumulator.materialize_all()
        self._reset_statistics()
        filled = self.accumulator.filled
        if np.any(filled):
            values = self.value[filled]
            stddevs = self.stddev[filled]
            self.value_min = float(values.min())
            self.value_max = float(values.max())
            self.stddev_min = float(stddevs.min())
            self.stddev_max = float(stddevs.max())

    def _reset_statistics(self) -> None:
        self.value_min = NODATA_VALUE
        self.value_max = NODATA_VALUE
        self.stddev_min = NODATA_VALUE
        self.stddev_max = NODATA_VALUE

    # -----------------------------------------------------------------
    # Incremental editing
    # -----------------------------------------------------------------
    def insert_beam(
        self, survey: SurveyFile, ping: Ping, beam: int
    ) -> List[CellUpdate]:
        """
        Add a newly accepted beam and rematerialize its cells.

        Beams with non-finite corrected values are ignored.

        Returns
        -------
        List[Tuple[int, int, float, float]]
            ``(col, row, value, stddev)`` of every touched cell.
        """
        if not self._griddable(ping, beam):
            return []
        cols, rows = self.gridder_for(survey).add_beam(survey, ping, beam)
        return self._update_cells(cols, rows)

    def remove_beam(
        self, survey: SurveyFile, ping: Ping, beam: int
    ) -> List[CellUpdate]:
        """Remove a newly rejected beam and rematerialize its cells."""
        if not self._griddable(ping, beam):
            return []
        cols, rows = self.gridder_for(survey).remove_beam(survey, ping, beam)
        return self._update_cells(cols, rows)

    @staticmethod
    def _griddable(ping: Ping, beam: int) -> bool:
        return bool(
            np.isfinite(ping.bath_corr[beam])
            and np.isfinite(ping.bath_x[beam])
            and np.isfinite(ping.bath_y[beam])
        )

    def _update_cells(
        self, cols: np.ndarray, rows: np.ndarray
    ) -> List[CellUpdate]:
        updates: List[CellUpdate] = []
        for col, row in zip(cols.tolist(), rows.tolist()):
            value, stddev = self.accumulator.materialize(col, row)
            if value != NODATA_VALUE:
                self._extend_statistics(value, stddev)
            updates.append((col, row, value, stddev))
        return updates

    def _extend_statistics(self, value: float, stddev: float) -> None:
        if self.value_min == NODATA_VALUE:
            self.value_min = self.value_max = value
            self.stddev_min = self.stddev_max = stddev
            return
        self.value_min = min(self.value_min, value)
        self.value_max = max(self.value_max, value)
        self.stddev_min = min(self.stddev_min, stddev)
        self.stddev_max = max(self.stddev_max, stddev)

    def __repr__(self) -> str:
        return f"Grid({self.geometry!r}, algorithm={self.algorithm.value!r})"
