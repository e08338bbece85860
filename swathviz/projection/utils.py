# -*- coding: utf-8 -*-
"""
Projection Utilities - Bounds, scale factors, and cell-size selection.

Helper functions for the projection layer: local metres-per-degree scale
factors, the geographic bounding box of loaded survey data, UTM zone
selection, and the grid cell-size heuristic.

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
2026-10-15
"""

# Standard library
import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple, TYPE_CHECKING, Union

# Third-party
import numpy as np

# swathviz internal
from swathviz.exceptions import BadParameterError

if TYPE_CHECKING:
    from swathviz.models.survey import SurveyFile

logger = logging.getLogger(__name__)

#: Longitude range accepted for positions, covering both the -180..180 and
#: 0..360 conventions.
LONGITUDE_RANGE = (-180.0, 360.0)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box.

    Used both for geographic bounds (x = longitude, y = latitude, degrees)
    and for projected bounds (metres).

    Parameters
    ----------
    xmin, xmax : float
        Horizontal extent.
    ymin, ymax : float
        Vertical extent.
    """

    xmin: float
    xmax: float
    ymin: float
    ymax: float

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def center(self) -> Tuple[float, float]:
        return 0.5 * (self.xmin + self.xmax), 0.5 * (self.ymin + self.ymax)

    @property
    def is_degenerate(self) -> bool:
        """Whether the box has zero (or negative, or non-finite) area."""
        return not (self.width > 0.0 and self.height > 0.0)

    def corners(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return the four corner coordinates as ``(xs, ys)`` arrays."""
        xs = np.array([self.xmin, self.xmax, self.xmax, self.xmin])
        ys = np.array([self.ymin, self.ymin, self.ymax, self.ymax])
        return xs, ys

    @classmethod
    def from_points(cls, xs: np.ndarray, ys: np.ndarray) -> 'Bounds':
        """Bounds enclosing the finite points of *xs*, *ys*."""
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        keep = np.isfinite(xs) & np.isfinite(ys)
        if not np.any(keep):
            raise BadParameterError("No finite points to bound")
        return cls(
            float(xs[keep].min()), float(xs[keep].max()),
            float(ys[keep].min()), float(ys[keep].max()),
        )


def coordinate_scale(lat: float) -> Tuple[float, float]:
    """
    Degrees per metre in longitude and latitude at a given latitude.

    Uses the WGS84 ellipsoid series expansion for the length of a degree
    of longitude and latitude.

    Parameters
    ----------
    lat : float
        Latitude in degrees.

    Returns
    -------
    Tuple[float, float]
        ``(m_to_deg_lon, m_to_deg_lat)`` conversion factors.

    Examples
    --------
    >>> m_to_deg_lon, m_to_deg_lat = coordinate_scale(0.0)
    >>> round(1.0 / m_to_deg_lat)
    110574
    """
    radlat = math.radians(lat)
    m_per_deg_lon = (
        111412.84 * math.cos(radlat)
        - 93.5 * math.cos(3.0 * radlat)
        + 0.118 * math.cos(5.0 * radlat)
    )
    m_per_deg_lat = (
        111132.92
        - 559.82 * math.cos(2.0 * radlat)
        + 1.175 * math.cos(4.0 * radlat)
        - 0.0023 * math.cos(6.0 * radlat)
    )
    return 1.0 / abs(m_per_deg_lon), 1.0 / abs(m_per_deg_lat)


def valid_geographic(lon, lat) -> Union[bool, np.ndarray]:
    """Whether longitude and latitude are finite and inside their ranges."""
    lon = np.asarray(lon, dtype=np.float64)
    lat = np.asarray(lat, dtype=np.float64)
    with np.errstate(invalid='ignore'):
        return (
            np.isfinite(lon) & np.isfinite(lat)
            & (lon >= LONGITUDE_RANGE[0]) & (lon <= LONGITUDE_RANGE[1])
            & (np.abs(lat) <= 90.0)
        )


def compute_bounds(files: Sequence['SurveyFile']) -> Bounds:
    """
    Geographic bounding box of the navigation and usable beams.

    Beam positions are the corrected positions currently stored on each
    ping. Positions that are not finite or fall outside the geographic
    range are left out and logged.

    Parameters
    ----------
    files : Sequence[SurveyFile]
        Loaded survey files.

    Returns
    -------
    Bounds
        Longitude/latitude bounds in degrees.

    Raises
    ------
    BadParameterError
        If no files or no pings are loaded, or the bounds have zero width
        or height.
    """
    lons = []
    lats = []
    for survey in files:
        for ping in survey.pings:
            usable = ping.usable
            lons.append(np.append(ping.bath_lon[usable], ping.lon))
            lats.append(np.append(ping.bath_lat[usable], ping.lat))
    if not lons:
        raise BadParameterError("No survey data loaded, cannot compute bounds")

    lons = np.concatenate(lons)
    lats = np.concatenate(lats)
    keep = valid_geographic(lons, lats)
    dropped = int(keep.size - np.count_nonzero(keep))
    if dropped:
        logger.warning(
            "Leaving %d position(s) with invalid longitude or latitude "
            "out of the survey bounds", dropped,
        )
    bounds = Bounds.from_points(lons[keep], lats[keep])
    if bounds.is_degenerate:
        raise BadParameterError(
            f"Degenerate survey bounds: longitude {bounds.xmin}..{bounds.xmax}, "
            f"latitude {bounds.ymin}..{bounds.ymax}"
        )
    return bounds


def utm_zone(lon: float, lat: float) -> Tuple[int, bool]:
    """
    UTM zone containing a reference position.

    Parameters
    ----------
    lon : float
        Reference longitude in degrees, any wrap.
    lat : float
        Reference latitude in degrees.

    Returns
    -------
    Tuple[int, bool]
        ``(zone, south)`` with ``zone`` in 1..60.

    Raises
    ------
    BadParameterError
        If the position is not finite or falls outside the UTM zones.
    """
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise BadParameterError(
            f"Invalid projection reference position ({lon}, {lat})"
        )
    if abs(lat) > 90.0:
        raise BadParameterError(f"Invalid reference latitude {lat}")
    lon = (lon + 180.0) % 360.0 - 180.0
    zone = int((lon + 183.0) / 6.0 + 0.5)
    if not 1 <= zone <= 60:
        raise BadParameterError(f"Invalid UTM zone {zone} for longitude {lon}")
    return zone, lat < 0.0


def cell_size_heuristic(
    files: Sequence['SurveyFile'], projected_width: float
) -> float:
    """
    Default grid cell size derived from the loaded data.

    Two percent of the largest sonar altitude if any is known, otherwise
    two percent of the largest depth, otherwise 1/250 of the projected
    survey width.

    Parameters
    ----------
    files : Sequence[SurveyFile]
        Loaded survey files.
    projected_width : float
        Width of the projected bounds in metres.

    Returns
    -------
    float
        Cell size in metres.
    """
    altitude_max = max((f.altitude_max for f in files), default=0.0)
    if altitude_max > 0.0:
        return 0.02 * altitude_max
    depth_max = max((f.depth_max for f in files), default=0.0)
    if depth_max > 0.0:
        return 0.02 * depth_max
    return projected_width / 250.0
