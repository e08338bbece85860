# -*- coding: utf-8 -*-
"""
Cell Accumulator - Running weighted depth sums per grid cell.

Provides ``CellAccumulator``, the per-cell running sums ``weight``,
``sum`` (weighted depth) and ``sum2`` (weighted squared depth) from which
each cell's mean depth and standard deviation are materialized. Adding and
removing a beam are symmetric, so a single sounding toggled during editing
updates only the cells it touched.

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
2026-10-05

Modified
--------
2026-10-16
"""

# Standard library
import logging
from typing import Tuple, Union

# Third-party
import numpy as np

# swathviz internal
from swathviz.exceptions import MemoryFailureError

logger = logging.getLogger(__name__)

#: Weights below this are clamped to zero together with the cell's sums.
WEIGHT_EPSILON = 1e-7

#: Value and standard deviation of cells without data.
NODATA_VALUE = -10000000.0

IndexLike = Union[int, np.ndarray]


def _allocate(shape: Tuple[int, int], fill: float = 0.0) -> np.ndarray:
    try:
        return np.full(shape, fill, dtype=np.float64)
    except (MemoryError, ValueError) as exc:
        raise MemoryFailureError(
            f"Unable to allocate grid array of shape {shape}"
        ) from exc


class CellAccumulator:
    """Per-cell accumulators and materialized values for a 2-D grid.

    Arrays are indexed ``[row, col]``.

    Parameters
    ----------
    shape : Tuple[int, int]
        ``(n_rows, n_columns)``.

    Attributes
    ----------
    weight, sum, sum2 : np.ndarray
        Running accumulators.
    value, stddev : np.ndarray
        Materialized mean depth and standard deviation, ``NODATA_VALUE``
        where the weight is zero.

    Raises
    ------
    MemoryFailureError
        If the arrays cannot be allocated.

    Examples
    --------
    >>> acc = CellAccumulator((4, 4))
    >>> acc.add(1, 2, 1.0, 10.0)
    >>> acc.add(1, 2, 1.0, 20.0)
    >>> acc.materialize(1, 2)
    (15.0, 5.0)
    """

    def __init__(self, shape: Tuple[int, int]) -> None:
        self.shape = (int(shape[0]), int(shape[1]))
        logger.debug(
            "Allocating accumulators for %d x %d cells", self.shape[0], self.shape[1]
        )
        self.weight = _allocate(self.shape)
        self.sum = _allocate(self.shape)
        self.sum2 = _allocate(self.shape)
        self.value = _allocate(self.shape, NODATA_VALUE)
        self.stddev = _allocate(self.shape, NODATA_VALUE)

    def clear(self) -> None:
        """Reset every cell to no data."""
        self.weight.fill(0.0)
        self.sum.fill(0.0)
        self.sum2.fill(0.0)
        self.value.fill(NODATA_VALUE)
        self.stddev.fill(NODATA_VALUE)

    def add(
        self,
        col: IndexLike,
        row: IndexLike,
        weight: Union[float, np.ndarray],
        depth: float,
    ) -> None:
        """
        Add a weighted depth to one or more distinct cells.

        Parameters
        ----------
        col, row : int or np.ndarray
            Cell indices. Array inputs must not repeat a cell.
        weight : float or np.ndarray
            Contribution weight(s).
        depth : float
            Depth in metres, positive down.
        """
        self._accumulate(col, row, weight, depth, 1.0)

    def remove(
        self,
        col: IndexLike,
        row: IndexLike,
        weight: Union[float, np.ndarray],
        depth: float,
    ) -> None:
        """Subtract a contribution previously made with ``add``."""
        self._accumulate(col, row, weight, depth, -1.0)

    def _accumulate(self, col, row, weight, depth, sign: float) -> None:
        weight = sign * np.asarray(weight, dtype=np.float64)
        self.weight[row, col] += weight
        self.sum[row, col] += weight * depth
        self.sum2[row, col] += weight * depth * depth
        self._clamp(col, row)

    def _clamp(self, col: IndexLike, row: IndexLike) -> None:
        small = self.weight[row, col] < WEIGHT_EPSILON
        if np.any(small):
            rows = np.asarray(row)
            cols = np.asarray(col)
            if rows.ndim == 0:
                self.weight[row, col] = 0.0
                self.sum[row, col] = 0.0
                self.sum2[row, col] = 0.0
            else:
                rows = rows[small]
                cols = cols[small]
                self.weight[rows, cols] = 0.0
                self.sum[rows, cols] = 0.0
                self.sum2[rows, cols] = 0.0

    def add_many(
        self,
        cols: np.ndarray,
        rows: np.ndarray,
        weights: np.ndarray,
        depths: np.ndarray,
    ) -> None:
        """Accumulate many contributions; cells may repeat."""
        index = (np.asarray(rows), np.asarray(cols))
        weights = np.asarray(weights, dtype=np.float64)
        depths = np.asarray(depths, dtype=np.float64)
        np.add.at(self.weight, index, weights)
        np.add.at(self.sum, index, weights * depths)
        np.add.at(self.sum2, index, weights * depths * depths)

    def set(self, col: int, row: int, weight: float, depth: float) -> None:
        """Replace a cell's accumulators with a single weighted depth."""
        self.weight[row, col] = weight
        self.sum[row, col] = weight * depth
        self.sum2[row, col] = weight * depth * depth

    def materialize(self, col: int, row: int) -> Tuple[float, float]:
        """
        Mean depth and standard deviation of one cell.

        ``value = sum / weight`` and
        ``stddev = sqrt(|sum2 / weight - value**2|)``. The stored
        ``value`` and ``stddev`` arrays are updated as well.

        Returns
        -------
        Tuple[float, float]
            ``(value, stddev)``, both ``NODATA_VALUE`` for an empty cell.
        """
        w = self.weight[row, col]
        if w > 0.0:
            value = self.sum[row, col] / w
            stddev = float(np.sqrt(abs(self.sum2[row, col] / w - value * value)))
            value = float(value)
        else:
            value = stddev = NODATA_VALUE
        self.value[row, col] = value
        self.stddev[row, col] = stddev
        return value, stddev

    def materialize_all(self) -> None:
        """Recompute ``value`` and ``stddev`` for every cell."""
        filled = self.weight > 0.0
        w = np.where(filled, self.weight, 1.0)
        mean = self.sum / w
        var = np.abs(self.sum2 / w - mean * mean)
        self.value[...] = np.where(filled, mean, NODATA_VALUE)
        self.stddev[...] = np.where(filled, np.sqrt(var), NODATA_VALUE)

    @property
    def filled(self) -> np.ndarray:
        """Boolean mask of cells with data."""
        return self.weight > 0.0
