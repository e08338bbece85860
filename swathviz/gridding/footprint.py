# -*- coding: utf-8 -*-
"""
Footprint Model - Elliptical beam footprints and their grid-cell weights.

Each beam insonifies an elliptical patch of seafloor. The footprint's
half-width (across the beam) grows with incidence angle and the
across-track beamwidth; its half-length (along the beam) with slant range
and the along-track beamwidth. A grid cell's share of a beam is the
integral of the Gaussian kernel::

    w(x, y) = 1 / (pi a b) * exp(-(x**2 / a**2 + y**2 / b**2))

over the cell rectangle, which separates into differences of error
functions evaluated at the cell edges.

Dependencies
------------
scipy

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
2026-10-16
"""

# Standard library
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

# Third-party
import numpy as np
from scipy.special import erf

# swathviz internal
from swathviz.models.survey import Ping
from swathviz.vocabulary import FootprintUse

logger = logging.getLogger(__name__)

#: Cells with an integrated weight above this are always used.
MIN_WEIGHT = 0.05

#: Half beamwidth in degrees used when a file reports none.
DEFAULT_HALF_BEAMWIDTH = 1.0

# Corner sign pattern for the four cell corners.
_CORNERS = np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0]])


@dataclass(frozen=True)
class Footprint:
    """Elliptical acoustic footprint of one beam on the seafloor.

    Parameters
    ----------
    x, y : float
        Projected beam position, the footprint center.
    half_width : float
        1/e half-extent across the beam, along *orientation*, metres.
    half_length : float
        1/e half-extent along the beam, perpendicular to *orientation*,
        metres.
    orientation : float
        Direction of the half-width axis in radians counter-clockwise from
        the +x (east) axis. Points from the sonar toward the beam.
    """

    x: float
    y: float
    half_width: float
    half_length: float
    orientation: float

    def to_local(
        self, dx: Union[float, np.ndarray], dy: Union[float, np.ndarray]
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Rotate map offsets from the center into footprint axes."""
        c = math.cos(self.orientation)
        s = math.sin(self.orientation)
        dx = np.asarray(dx, dtype=np.float64)
        dy = np.asarray(dy, dtype=np.float64)
        return c * dx + s * dy, -s * dx + c * dy

    def search_radius(self, cell_size: float) -> Tuple[int, int]:
        """
        Cell-index radius that encloses twice the footprint ellipse.

        Parameters
        ----------
        cell_size : float
            Grid node spacing in metres.

        Returns
        -------
        Tuple[int, int]
            ``(columns, rows)`` to search either side of the center cell.
        """
        c = abs(math.cos(self.orientation))
        s = abs(math.sin(self.orientation))
        ext_x = max(self.half_width * c, self.half_length * s)
        ext_y = max(self.half_width * s, self.half_length * c)
        return (
            int(math.ceil(2.0 * ext_x / cell_size)),
            int(math.ceil(2.0 * ext_y / cell_size)),
        )


def beam_footprint(
    ping: Ping,
    beam: int,
    beamwidth_xtrack: float,
    beamwidth_ltrack: float,
) -> Optional[Footprint]:
    """
    Footprint of a corrected beam.

    The incidence angle comes from the horizontal distance between the
    projected navigation and beam positions and the corrected depth below
    the sonar. Slant range uses the ping altitude when known, otherwise the
    depth below the sonar.

    Parameters
    ----------
    ping : Ping
        Ping with corrected and projected beam positions.
    beam : int
        Beam index.
    beamwidth_xtrack, beamwidth_ltrack : float
        Beamwidths in degrees. Non-positive values fall back to
        ``2 * DEFAULT_HALF_BEAMWIDTH``.

    Returns
    -------
    Footprint or None
        ``None`` when the footprint is degenerate (beam at or beyond
        grazing incidence, or non-finite geometry).
    """
    dx = ping.bath_x[beam] - ping.nav_x
    dy = ping.bath_y[beam] - ping.nav_y
    lateral = math.hypot(dx, dy)
    orientation = math.atan2(dy, dx) if lateral > 0.0 else 0.0

    vertical = ping.bath_corr[beam] - ping.sensor_depth
    altitude = ping.altitude if ping.altitude > 0.0 else vertical
    slant = math.sqrt(lateral * lateral + altitude * altitude)
    theta = math.degrees(math.atan2(lateral, vertical))

    dtheta = 0.5 * beamwidth_xtrack if beamwidth_xtrack > 0.0 \
        else DEFAULT_HALF_BEAMWIDTH
    dphi = 0.5 * beamwidth_ltrack if beamwidth_ltrack > 0.0 \
        else DEFAULT_HALF_BEAMWIDTH

    if theta + dtheta >= 90.0:
        return None
    half_width = vertical * math.tan(math.radians(theta + dtheta)) - lateral
    half_length = slant * math.tan(math.radians(dphi))
    if not (math.isfinite(half_width) and math.isfinite(half_length)
            and half_width > 0.0 and half_length > 0.0):
        return None
    return Footprint(
        float(ping.bath_x[beam]), float(ping.bath_y[beam]),
        half_width, half_length, orientation,
    )


def bin_weights(
    footprint: Footprint,
    offset_x: np.ndarray,
    offset_y: np.ndarray,
    half_extents: Tuple[float, float],
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Integrated footprint weight and usage for many cells.

    Parameters
    ----------
    footprint : Footprint
        Beam footprint.
    offset_x, offset_y : np.ndarray
        Cell center offsets from the footprint center, map axes, metres.
    half_extents : Tuple[float, float]
        Cell half-width and half-height in metres.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        ``(weights, use)`` where *use* holds ``0`` for ``YES``, ``1`` for
        ``CONDITIONAL`` and ``2`` for ``NO``.
    """
    a = footprint.half_width
    b = footprint.half_length
    hx, hy = half_extents
    pcx, pcy = footprint.to_local(offset_x, offset_y)

    weights = 0.25 \
        * (erf((pcx + hx) / a) - erf((pcx - hx) / a)) \
        * (erf((pcy + hy) / b) - erf((pcy - hy) / b))

    # Corner distance relative to the 1/e radius along the same bearing.
    ox = np.asarray(offset_x, dtype=np.float64)[..., None] + _CORNERS[:, 0] * hx
    oy = np.asarray(offset_y, dtype=np.float64)[..., None] + _CORNERS[:, 1] * hy
    px, py = footprint.to_local(ox, oy)
    ang = np.arctan2(py, px)
    radius = np.hypot(a * np.cos(ang), b * np.sin(ang))
    ratio = (np.hypot(px, py) / radius).min(axis=-1)

    use = np.where(ratio <= 1.0, 0, np.where(ratio <= 2.0, 1, 2))
    use = np.where(weights > MIN_WEIGHT, 0, use)
    return weights, use


_USE = (FootprintUse.YES, FootprintUse.CONDITIONAL, FootprintUse.NO)


def bin_weight(
    footprint: Footprint,
    offset: Tuple[float, float],
    half_extents: Tuple[float, float],
) -> Tuple[float, FootprintUse]:
    """
    Integrated footprint weight and usage policy for one cell.

    Parameters
    ----------
    footprint : Footprint
        Beam footprint.
    offset : Tuple[float, float]
        Cell center offset from the footprint center, map axes, metres.
    half_extents : Tuple[float, float]
        Cell half-width and half-height in metres.

    Returns
    -------
    Tuple[float, FootprintUse]
        Weight in [0, 1] and whether the cell takes a contribution.

    Examples
    --------
    >>> fp = Footprint(0.0, 0.0, 2.0, 1.0, 0.0)
    >>> w, use = bin_weight(fp, (0.0, 0.0), (0.5, 0.5))
    >>> use
    <FootprintUse.YES: 'yes'>
    """
    weights, use = bin_weights(
        footprint, np.array([offset[0]]), np.array([offset[1]]), half_extents
    )
    return float(weights[0]), _USE[int(use[0])]
