# -*- coding: utf-8 -*-
"""
UTM Projection - Universal Transverse Mercator planar frame via pyproj.

Provides ``UTMProjection``, the concrete ``Projection`` used for gridding.
The zone is chosen from the reference position of the survey bounds so
that the whole survey falls inside (or close to) a single zone.

Coordinate flow:

    WGS84 (lon, lat)  --pyproj-->  UTM (easting, northing)

Dependencies
------------
pyproj

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
import logging
from typing import Tuple

# Third-party
import numpy as np
import pyproj

# swathviz internal
from swathviz.exceptions import BadParameterError
from swathviz.projection.base import Projection
from swathviz.projection.utils import Bounds, utm_zone

logger = logging.getLogger(__name__)


class UTMProjection(Projection):
    """UTM projection on the WGS84 ellipsoid.

    Parameters
    ----------
    zone : int
        UTM zone number, 1..60.
    south : bool
        Use the southern-hemisphere false northing.

    Attributes
    ----------
    epsg : int
        EPSG code of the projected CRS (``326zz`` or ``327zz``).

    Raises
    ------
    BadParameterError
        If *zone* is outside 1..60.

    Examples
    --------
    >>> proj = UTMProjection(19)
    >>> x, y = proj.forward(-69.0, 42.0)
    >>> lon, lat = proj.inverse(x, y)
    """

    def __init__(self, zone: int, south: bool = False) -> None:
        if not 1 <= int(zone) <= 60:
            raise BadParameterError(f"Invalid UTM zone {zone}")
        self.zone = int(zone)
        self.south = bool(south)
        self.epsg = (32700 if self.south else 32600) + self.zone
        self.name = f"UTM {self.zone}{'S' if self.south else 'N'}"

        wgs84 = pyproj.CRS('EPSG:4326')
        utm = pyproj.CRS.from_epsg(self.epsg)
        self._from_wgs84 = pyproj.Transformer.from_crs(
            wgs84, utm, always_xy=True
        )
        self._to_wgs84 = pyproj.Transformer.from_crs(
            utm, wgs84, always_xy=True
        )
        logger.debug("Initialized %s projection (EPSG:%d)", self.name, self.epsg)

    @classmethod
    def from_bounds(cls, bounds: Bounds) -> 'UTMProjection':
        """Create the projection for the zone at the center of *bounds*.

        Parameters
        ----------
        bounds : Bounds
            Geographic bounds in degrees.

        Returns
        -------
        UTMProjection
        """
        lon, lat = bounds.center
        zone, south = utm_zone(lon, lat)
        return cls(zone, south)

    def _forward_array(
        self, lons: np.ndarray, lats: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        return self._from_wgs84.transform(lons, lats)

    def _inverse_array(
        self, xs: np.ndarray, ys: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        return self._to_wgs84.transform(xs, ys)

    def project_bounds(self, bounds: Bounds) -> Bounds:
        """Planar bounds enclosing the projected corners of *bounds*."""
        lons, lats = bounds.corners()
        xs, ys = self.forward(lons, lats)
        return Bounds.from_points(xs, ys)

    def __repr__(self) -> str:
        return f"UTMProjection(zone={self.zone}, south={self.south})"
