# -*- coding: utf-8 -*-
"""
Projection Base Class - Abstract interface for planar map projections.

Defines the ``Projection`` ABC that converts geographic (lon, lat)
positions to a local planar (easting, northing) frame and back. Concrete
subclasses implement vectorized array methods; the public ``forward`` and
``inverse`` methods dispatch scalar, separate-array, and stacked ``(2, N)``
inputs onto them.

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
2026-10-03

Modified
--------
2026-10-12
"""

# Standard library
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple, Union

# Third-party
import numpy as np

# swathviz internal
from swathviz.exceptions import ProjectionError

Coordinates = Union[
    Tuple[float, float], Tuple[np.ndarray, np.ndarray], np.ndarray
]


def _is_scalar(val: Any) -> bool:
    """Check if a value is a scalar (not array-like)."""
    if isinstance(val, np.ndarray):
        return val.ndim == 0
    return isinstance(val, (int, float, np.integer, np.floating))


def _to_array(val: Any) -> np.ndarray:
    """Convert scalar, list, or array to 1D numpy array of float64."""
    arr = np.asarray(val, dtype=np.float64)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    return arr


class Projection(ABC):
    """
    Abstract base class for geographic to planar projections.

    Accepts three input forms on both ``forward`` and ``inverse``:

    - **Scalar:** ``forward(lon, lat)`` returns ``(x, y)`` floats.
    - **Separate arrays:** ``forward(lons, lats)`` returns ``(xs, ys)``.
    - **Stacked array:** ``forward(points_2xN)`` returns a ``(2, N)``
      ndarray with rows ``[xs; ys]``.

    Subclasses implement ``_forward_array`` and ``_inverse_array``, which
    receive and return 1D float64 arrays.
    """

    #: Human-readable name of the planar frame, e.g. ``'UTM 19N'``.
    name: str = ''

    def forward(
        self,
        lon_or_points: Union[float, list, np.ndarray],
        lat: Optional[Union[float, list, np.ndarray]] = None,
        strict: bool = True,
    ) -> Coordinates:
        """
        Project geographic coordinates to planar coordinates.

        Parameters
        ----------
        lon_or_points : float, list, np.ndarray
            Longitude(s) in degrees when ``lat`` is provided, or a
            ``(2, N)`` ndarray of stacked ``[lons; lats]``.
        lat : float, list, or np.ndarray, optional
            Latitude(s) in degrees.
        strict : bool
            Raise if finite input projects to non-finite output. With
            ``False`` such points are returned as non-finite for the
            caller to mask.

        Returns
        -------
        Tuple[float, float]
            ``(x, y)`` in metres for scalar input.
        Tuple[np.ndarray, np.ndarray]
            ``(xs, ys)`` for separate array inputs.
        np.ndarray
            Shape ``(2, N)`` for stacked input.

        Raises
        ------
        ValueError
            If a stacked input does not have shape ``(2, N)``.
        ProjectionError
            If *strict* and finite input projects to non-finite output.

        Examples
        --------
        >>> x, y = proj.forward(-70.5, 41.2)
        >>> xs, ys = proj.forward([-70.5, -70.4], [41.2, 41.3])
        """
        return self._dispatch(self._forward_array, lon_or_points, lat, strict)

    def inverse(
        self,
        x_or_points: Union[float, list, np.ndarray],
        y: Optional[Union[float, list, np.ndarray]] = None,
        strict: bool = True,
    ) -> Coordinates:
        """
        Convert planar coordinates back to geographic coordinates.

        Parameters
        ----------
        x_or_points : float, list, np.ndarray
            Easting(s) in metres when ``y`` is provided, or a ``(2, N)``
            ndarray of stacked ``[xs; ys]``.
        y : float, list, or np.ndarray, optional
            Northing(s) in metres.
        strict : bool
            Raise on non-finite output for finite input.

        Returns
        -------
        Tuple[float, float]
            ``(lon, lat)`` in degrees for scalar input.
        Tuple[np.ndarray, np.ndarray]
            ``(lons, lats)`` for separate array inputs.
        np.ndarray
            Shape ``(2, N)`` for stacked input.
        """
        return self._dispatch(self._inverse_array, x_or_points, y, strict)

    def _dispatch(self, func, first, second, strict) -> Coordinates:
        if second is None:
            pts = np.asarray(first, dtype=np.float64)
            if pts.ndim != 2 or pts.shape[0] != 2:
                raise ValueError(
                    f"Expected (2, N) array, got shape {pts.shape}"
                )
            a, b = self._checked(func, pts[0], pts[1], strict)
            return np.vstack([a, b])
        if _is_scalar(first) and _is_scalar(second):
            a, b = self._checked(func, _to_array(first), _to_array(second), strict)
            return float(a[0]), float(b[0])
        return self._checked(func, _to_array(first), _to_array(second), strict)

    @staticmethod
    def _checked(func, a: np.ndarray, b: np.ndarray, strict: bool):
        if a.shape != b.shape:
            raise ValueError(
                f"Coordinate arrays differ in shape: {a.shape} vs {b.shape}"
            )
        out_a, out_b = func(a, b)
        out_a = np.asarray(out_a, dtype=np.float64)
        out_b = np.asarray(out_b, dtype=np.float64)
        finite_in = np.isfinite(a) & np.isfinite(b)
        finite_out = np.isfinite(out_a) & np.isfinite(out_b)
        if strict and np.any(finite_in & ~finite_out):
            raise ProjectionError(
                f"Projection produced non-finite output for "
                f"{int(np.sum(finite_in & ~finite_out))} finite input point(s)"
            )
        return out_a, out_b

    @abstractmethod
    def _forward_array(
        self, lons: np.ndarray, lats: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Project 1D arrays of (lon, lat) to (x, y)."""
        ...

    @abstractmethod
    def _inverse_array(
        self, xs: np.ndarray, ys: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Convert 1D arrays of (x, y) back to (lon, lat)."""
        ...
