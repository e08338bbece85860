# -*- coding: utf-8 -*-
"""
Gridding Algorithms - One strategy per gridding algorithm.

Each ``Gridder`` decides which cells a beam contributes to and how. A grid
selects its strategy once at build time from ``GridAlgorithm``; files from
non-multibeam sensors are always routed to ``SimpleMeanGridder``.

- ``SimpleMeanGridder``: weight 1 in the nearest cell.
- ``FootprintGridder``: integrated footprint weight in every cell the
  footprint covers.
- ``ShoalBiasGridder``: each cell keeps the shallowest depth seen.

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
2026-10-06

Modified
--------
2026-10-17
"""

# Standard library
import logging
from abc import ABC, abstractmethod
from typing import Set, Tuple

# Third-party
import numpy as np

# swathviz internal
from swathviz.gridding.accumulator import CellAccumulator
from swathviz.gridding.footprint import beam_footprint, bin_weights
from swathviz.gridding.geometry import GridGeometry
from swathviz.models.survey import Ping, SurveyFile
from swathviz.vocabulary import GridAlgorithm

logger = logging.getLogger(__name__)

Cells = Tuple[np.ndarray, np.ndarray]

_EMPTY = np.empty(0, dtype=np.intp)


class Gridder(ABC):
    """
    Abstract gridding strategy.

    Parameters
    ----------
    geometry : GridGeometry
        Grid layout.
    accumulator : CellAccumulator
        Accumulators the strategy writes into.
    """

    algorithm: GridAlgorithm

    def __init__(
        self, geometry: GridGeometry, accumulator: CellAccumulator
    ) -> None:
        self.geometry = geometry
        self.accumulator = accumulator

    def nearest_cell(self, ping: Ping, beam: int) -> Cells:
        cols, rows, inside = self.geometry.cells_of(
            ping.bath_x[beam:beam + 1], ping.bath_y[beam:beam + 1]
        )
        if not inside[0]:
            return _EMPTY, _EMPTY
        return cols, rows

    @abstractmethod
    def add_beam(self, survey: SurveyFile, ping: Ping, beam: int) -> Cells:
        """
        Add one beam to the accumulators.

        Parameters
        ----------
        survey : SurveyFile
            File that owns *ping*.
        ping : Ping
            Ping with corrected, projected beam positions.
        beam : int
            Beam index. The caller has checked the beam is accepted and
            its corrected values are finite.

        Returns
        -------
        Tuple[np.ndarray, np.ndarray]
            ``(cols, rows)`` of the cells touched.
        """
        ...

    @abstractmethod
    def remove_beam(self, survey: SurveyFile, ping: Ping, beam: int) -> Cells:
        """Remove one beam from the accumulators, mirroring ``add_beam``."""
        ...

    def add_ping(
        self, survey: SurveyFile, ping: Ping, beams: np.ndarray
    ) -> None:
        """Add many beams of one ping. Used by full rebuilds."""
        for beam in beams:
            self.add_beam(survey, ping, int(beam))


class SimpleMeanGridder(Gridder):
    """Unit weight in the nearest cell."""

    algorithm = GridAlgorithm.SIMPLE_MEAN

    def add_beam(self, survey: SurveyFile, ping: Ping, beam: int) -> Cells:
        cols, rows = self.nearest_cell(ping, beam)
        if cols.size:
            self.accumulator.add(cols, rows, 1.0, ping.bath_corr[beam])
        return cols, rows

    def remove_beam(self, survey: SurveyFile, ping: Ping, beam: int) -> Cells:
        cols, rows = self.nearest_cell(ping, beam)
        if cols.size:
            self.accumulator.remove(cols, rows, 1.0, ping.bath_corr[beam])
        return cols, rows

    def add_ping(
        self, survey: SurveyFile, ping: Ping, beams: np.ndarray
    ) -> None:
        cols, rows, inside = self.geometry.cells_of(
            ping.bath_x[beams], ping.bath_y[beams]
        )
        self.accumulator.add_many(
            cols[inside], rows[inside],
            np.ones(int(inside.sum())), ping.bath_corr[beams][inside],
        )


class FootprintGridder(Gridder):
    """Integrated footprint weight in every cell the footprint covers.

    Beams with a degenerate footprint fall back to unit weight in the
    nearest cell.
    """

    algorithm = GridAlgorithm.FOOTPRINT

    def contributions(
        self, survey: SurveyFile, ping: Ping, beam: int
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Cells and weights a beam contributes to.

        Returns
        -------
        Tuple[np.ndarray, np.ndarray, np.ndarray]
            ``(cols, rows, weights)`` of the cells whose usage policy is
            ``YES``.
        """
        footprint = beam_footprint(
            ping, beam, survey.beamwidth_xtrack, survey.beamwidth_ltrack
        )
        if footprint is None:
            logger.debug(
                "Degenerate footprint for %s ping t=%.3f beam %d, "
                "using nearest cell", survey.name, ping.time, beam,
            )
            cols, rows = self.nearest_cell(ping, beam)
            return cols, rows, np.ones(cols.size)

        geom = self.geometry
        center = geom.cell_of(footprint.x, footprint.y)
        if center is None:
            return _EMPTY, _EMPTY, np.empty(0)
        dix, diy = footprint.search_radius(geom.cell_size)
        col0 = max(center[0] - dix, 0)
        col1 = min(center[0] + dix, geom.n_columns - 1)
        row0 = max(center[1] - diy, 0)
        row1 = min(center[1] + diy, geom.n_rows - 1)
        cols, rows = np.meshgrid(
            np.arange(col0, col1 + 1), np.arange(row0, row1 + 1)
        )
        cols = cols.ravel()
        rows = rows.ravel()
        xs, ys = geom.cell_center(cols, rows)
        half = 0.5 * geom.cell_size
        weights, use = bin_weights(
            footprint, xs - footprint.x, ys - footprint.y, (half, half)
        )
        keep = (use == 0) & (weights > 0.0)
        return cols[keep], rows[keep], weights[keep]

    def add_beam(self, survey: SurveyFile, ping: Ping, beam: int) -> Cells:
        cols, rows, weights = self.contributions(survey, ping, beam)
        if cols.size:
            self.accumulator.add(cols, rows, weights, ping.bath_corr[beam])
        return cols, rows

    def remove_beam(self, survey: SurveyFile, ping: Ping, beam: int) -> Cells:
        cols, rows, weights = self.contributions(survey, ping, beam)
        if cols.size:
            self.accumulator.remove(cols, rows, weights, ping.bath_corr[beam])
        return cols, rows


class ShoalBiasGridder(Gridder):
    """Each cell holds the shallowest accepted depth with weight 1.

    Removal cannot recover the previous shallowest depth, so a removed
    beam leaves its cell unchanged and the cell is recorded in
    ``stale_cells`` until the next full rebuild.
    """

    algorithm = GridAlgorithm.SHOAL_BIAS

    def __init__(
        self, geometry: GridGeometry, accumulator: CellAccumulator
    ) -> None:
        super().__init__(geometry, accumulator)
        self.stale_cells: Set[Tuple[int, int]] = set()

    def add_beam(self, survey: SurveyFile, ping: Ping, beam: int) -> Cells:
        cols, rows = self.nearest_cell(ping, beam)
        if cols.size:
            col, row = int(cols[0]), int(rows[0])
            depth = ping.bath_corr[beam]
            acc = self.accumulator
            if acc.weight[row, col] == 0.0 or depth < acc.sum[row, col]:
                acc.set(col, row, 1.0, depth)
        return cols, rows

    def remove_beam(self, survey: SurveyFile, ping: Ping, beam: int) -> Cells:
        cols, rows = self.nearest_cell(ping, beam)
        if cols.size:
            cell = (int(cols[0]), int(rows[0]))
            self.stale_cells.add(cell)
            logger.debug(
                "Shoal bias cell %s left unchanged after removing a beam", cell
            )
        return cols, rows

    def add_ping(
        self, survey: SurveyFile, ping: Ping, beams: np.ndarray
    ) -> None:
        cols, rows, inside = self.geometry.cells_of(
            ping.bath_x[beams], ping.bath_y[beams]
        )
        if not np.any(inside):
            return
        acc = self.accumulator
        flat = rows[inside] * acc.shape[1] + cols[inside]
        depths = ping.bath_corr[beams][inside]
        shallowest = acc.sum.reshape(-1)
        weight = acc.weight.reshape(-1)
        sum2 = acc.sum2.reshape(-1)
        empty = flat[weight[flat] == 0.0]
        shallowest[empty] = np.inf
        np.minimum.at(shallowest, flat, depths)
        weight[flat] = 1.0
        sum2[flat] = shallowest[flat] ** 2


_GRIDDERS = {
    GridAlgorithm.SIMPLE_MEAN: SimpleMeanGridder,
    GridAlgorithm.FOOTPRINT: FootprintGridder,
    GridAlgorithm.SHOAL_BIAS: ShoalBiasGridder,
}


def create_gridder(
    algorithm: GridAlgorithm,
    geometry: GridGeometry,
    accumulator: CellAccumulator,
) -> Gridder:
    """Instantiate the strategy for *algorithm*."""
    return _GRIDDERS[GridAlgorithm(algorithm)](geometry, accumulator)
