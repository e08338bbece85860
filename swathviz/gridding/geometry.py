# -*- coding: utf-8 -*-
"""
Grid Geometry - Node-registered planar grid layout and geotransform.

Provides ``GridGeometry``, the layout of the production grid in the
projected frame: origin, cell size, column and row counts, and the
``rasterio.transform.Affine`` that maps cell indices to map coordinates.
Cells are node-registered: cell ``(col, row)`` is centered on
``(xmin + col * dx, ymin + row * dy)`` and a point belongs to the nearest
node.

Dependencies
------------
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
2026-10-05

Modified
--------
2026-10-15
"""

# Standard library
import math
from typing import Tuple, Union

# Third-party
import numpy as np
from rasterio.transform import Affine

# swathviz internal
from swathviz.exceptions import BadParameterError
from swathviz.projection.utils import Bounds


class GridGeometry:
    """Layout of a node-registered grid with square cells.

    The affine transform maps ``(col, row)`` of cell *edges* to map
    ``(x, y)``::

        x = c + col * a
        y = f + row * e

    with ``a = e = cell_size`` and ``(c, f)`` half a cell below and left of
    the first node. Rows increase northward.

    Parameters
    ----------
    xmin : float
        Easting of the first column of nodes.
    ymin : float
        Northing of the first row of nodes.
    cell_size : float
        Node spacing in metres.
    n_columns : int
        Number of columns.
    n_rows : int
        Number of rows.

    Raises
    ------
    BadParameterError
        If the cell size is not positive or the counts are below 1.

    Examples
    --------
    >>> geom = GridGeometry.from_bounds(Bounds(0.0, 95.0, 0.0, 40.0), 10.0)
    >>> geom.shape
    (5, 10)
    >>> geom.cell_of(12.0, 26.0)
    (1, 3)
    """

    def __init__(
        self,
        xmin: float,
        ymin: float,
        cell_size: float,
        n_columns: int,
        n_rows: int,
    ) -> None:
        if not (math.isfinite(cell_size) and cell_size > 0.0):
            raise BadParameterError(f"Cell size must be positive, got {cell_size}")
        if n_columns < 1 or n_rows < 1:
            raise BadParameterError(
                f"Grid must have at least one cell, got {n_columns}x{n_rows}"
            )
        self.xmin = float(xmin)
        self.ymin = float(ymin)
        self.cell_size = float(cell_size)
        self.n_columns = int(n_columns)
        self.n_rows = int(n_rows)

        half = 0.5 * self.cell_size
        self.transform = Affine(
            self.cell_size, 0.0, self.xmin - half,
            0.0, self.cell_size, self.ymin - half,
        )
        self._inverse = ~self.transform

    @classmethod
    def from_bounds(cls, bounds: Bounds, cell_size: float) -> 'GridGeometry':
        """
        Grid covering projected *bounds* with the given cell size.

        ``n = floor((max - min) / cell_size) + 1`` along each axis; the
        upper bound is then snapped to ``min + (n - 1) * cell_size``.

        Parameters
        ----------
        bounds : Bounds
            Projected bounds in metres.
        cell_size : float
            Node spacing in metres.

        Returns
        -------
        GridGeometry

        Raises
        ------
        BadParameterError
            If *bounds* is degenerate or *cell_size* is not positive.
        """
        if bounds.is_degenerate:
            raise BadParameterError(
                f"Degenerate grid bounds {bounds.width} x {bounds.height} m"
            )
        if not (math.isfinite(cell_size) and cell_size > 0.0):
            raise BadParameterError(f"Cell size must be positive, got {cell_size}")
        n_columns = int(math.floor(bounds.width / cell_size)) + 1
        n_rows = int(math.floor(bounds.height / cell_size)) + 1
        return cls(bounds.xmin, bounds.ymin, cell_size, n_columns, n_rows)

    @property
    def shape(self) -> Tuple[int, int]:
        """Array shape ``(n_rows, n_columns)``."""
        return self.n_rows, self.n_columns

    @property
    def xmax(self) -> float:
        return self.xmin + (self.n_columns - 1) * self.cell_size

    @property
    def ymax(self) -> float:
        return self.ymin + (self.n_rows - 1) * self.cell_size

    @property
    def bounds(self) -> Bounds:
        """Node bounds, after snapping."""
        return Bounds(self.xmin, self.xmax, self.ymin, self.ymax)

    def cells_of(
        self, xs: np.ndarray, ys: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Nearest-node cell indices for arrays of points.

        Parameters
        ----------
        xs, ys : np.ndarray
            Projected coordinates in metres.

        Returns
        -------
        Tuple[np.ndarray, np.ndarray, np.ndarray]
            ``(cols, rows, inside)``. Indices of points outside the grid
            (or non-finite) are meaningless; *inside* masks them out.
        """
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        with np.errstate(invalid='ignore'):
            fcols, frows = self._inverse * (xs, ys)
            fcols = np.floor(fcols)
            frows = np.floor(frows)
            inside = (
                (fcols >= 0) & (fcols < self.n_columns)
                & (frows >= 0) & (frows < self.n_rows)
            )
        cols = np.where(inside, fcols, -1).astype(np.intp)
        rows = np.where(inside, frows, -1).astype(np.intp)
        return cols, rows, inside

    def cell_of(self, x: float, y: float) -> Union[Tuple[int, int], None]:
        """Cell ``(col, row)`` containing a point, or ``None`` if outside."""
        cols, rows, inside = self.cells_of(np.array([x]), np.array([y]))
        if not inside[0]:
            return None
        return int(cols[0]), int(rows[0])

    def cell_center(
        self,
        col: Union[int, np.ndarray],
        row: Union[int, np.ndarray],
    ) -> Tuple[Union[float, np.ndarray], Union[float, np.ndarray]]:
        """Map coordinates of cell node(s)."""
        return (
            self.xmin + np.asarray(col) * self.cell_size,
            self.ymin + np.asarray(row) * self.cell_size,
        )

    def __repr__(self) -> str:
        return (
            f"GridGeometry(xmin={self.xmin!r}, ymin={self.ymin!r}, "
            f"cell_size={self.cell_size!r}, n_columns={self.n_columns}, "
            f"n_rows={self.n_rows})"
        )
