# -*- coding: utf-8 -*-
"""
Sounding Selection - Working sets of soundings for 3-D inspection.

Provides ``SoundingSelection``, a transient set of sounding references with
locally re-centered coordinates, and the functions that build one from a
map region, from a rotated area along a line, or from chosen pings. A
selection is the working set for the voxel density filter and the bias
optimizer, and can be recomputed under candidate bias parameters without
touching the loaded pings.

Local frame: ``x`` runs along the selection bearing, ``y`` across it,
``z`` is elevation (negative depth) relative to the middle of the depth
range. For a bearing of 90 degrees the local axes are east and north.

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
2026-10-09

Modified
--------
2026-10-17
"""

# Standard library
import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, TYPE_CHECKING

# Third-party
import numpy as np

# swathviz internal
from swathviz.exceptions import BadParameterError, ValidationError
from swathviz.models.common import BiasParameters, SoundingHandle
from swathviz.models.flags import beam_flagged, beam_ok

if TYPE_CHECKING:
    from swathviz.session import EditSession

logger = logging.getLogger(__name__)


@dataclass
class LocalPositions:
    """Local coordinates of every sounding in a selection.

    Parameters
    ----------
    x, y, z : np.ndarray
        Local coordinates in metres, NaN where *valid* is False.
    valid : np.ndarray
        Boolean mask of soundings with a finite correction.
    """

    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    valid: np.ndarray


class SoundingSelection:
    """A set of soundings with locally re-centered coordinates.

    Parameters
    ----------
    session : EditSession
        Session owning the referenced survey files. Must have a grid.
    file_index, ping_index, beam_index : np.ndarray
        Parallel sounding references.
    bearing : float
        Bearing of the local x axis in degrees clockwise from north.
    center : Tuple[float, float], optional
        Projected origin of the local frame. Defaults to the center of the
        selected soundings.

    Attributes
    ----------
    x, y, z : np.ndarray
        Local coordinates under ``bias``.
    bias : BiasParameters
        Bias parameters the stored coordinates were computed with.
    cell_size : float
        Production grid cell size at selection time.
    xmin, xmax, ymin, ymax, zmin, zmax : float
        Local extents of the selection.

    Raises
    ------
    BadParameterError
        If the session has no grid.
    ValidationError
        If the reference arrays differ in length.
    """

    def __init__(
        self,
        session: 'EditSession',
        file_index: np.ndarray,
        ping_index: np.ndarray,
        beam_index: np.ndarray,
        bearing: float = 90.0,
        center: Optional[Tuple[float, float]] = None,
    ) -> None:
        if session.grid is None:
            raise BadParameterError("A grid must be built before selecting soundings")
        self.session = session
        self.file_index = np.asarray(file_index, dtype=np.intp)
        self.ping_index = np.asarray(ping_index, dtype=np.intp)
        self.beam_index = np.asarray(beam_index, dtype=np.intp)
        if not (self.file_index.shape == self.ping_index.shape
                == self.beam_index.shape):
            raise ValidationError("Sounding reference arrays differ in length")
        self.bearing = float(bearing)
        self.cell_size = session.grid.geometry.cell_size
        self.bias = session.bias
        self._groups = self._group_by_ping()

        px, py, depth = self._stored_positions()
        if center is None:
            finite = np.isfinite(px) & np.isfinite(py)
            if np.any(finite):
                center = (
                    0.5 * (px[finite].min() + px[finite].max()),
                    0.5 * (py[finite].min() + py[finite].max()),
                )
            else:
                center = (0.0, 0.0)
        self.x_origin, self.y_origin = float(center[0]), float(center[1])
        finite_depth = depth[np.isfinite(depth)]
        if finite_depth.size:
            self.depth_origin = 0.5 * float(finite_depth.min() + finite_depth.max())
        else:
            self.depth_origin = 0.0

        self.x, self.y, self.z = self._to_local(px, py, depth)
        self._update_extents()

    # -----------------------------------------------------------------
    # Construction helpers
    # -----------------------------------------------------------------
    def _group_by_ping(self) -> List[Tuple[int, int, np.ndarray, np.ndarray]]:
        groups = []
        if self.file_index.size == 0:
            return groups
        keys = np.stack([self.file_index, self.ping_index], axis=1)
        unique, inverse = np.unique(keys, axis=0, return_inverse=True)
        inverse = inverse.reshape(-1)
        for g, (fi, pi) in enumerate(unique):
            positions = np.flatnonzero(inverse == g)
            groups.append((int(fi), int(pi), positions, self.beam_index[positions]))
        return groups

    def _stored_positions(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        n = len(self)
        px = np.full(n, np.nan)
        py = np.full(n, np.nan)
        depth = np.full(n, np.nan)
        for fi, pi, positions, beams in self._groups:
            ping = self.session.files[fi].pings[pi]
            px[positions] = ping.bath_x[beams]
            py[positions] = ping.bath_y[beams]
            depth[positions] = ping.bath_corr[beams]
        return px, py, depth

    def _to_local(
        self, px: np.ndarray, py: np.ndarray, depth: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        b = math.radians(self.bearing)
        sb, cb = math.sin(b), math.cos(b)
        dx = px - self.x_origin
        dy = py - self.y_origin
        return dx * sb + dy * cb, -dx * cb + dy * sb, self.depth_origin - depth

    def _update_extents(self) -> None:
        finite = np.isfinite(self.x) & np.isfinite(self.y) & np.isfinite(self.z)
        if np.any(finite):
            x, y, z = self.x[finite], self.y[finite], self.z[finite]
            self.xmin, self.xmax = float(x.min()), float(x.max())
            self.ymin, self.ymax = float(y.min()), float(y.max())
            self.zmin, self.zmax = float(z.min()), float(z.max())
        else:
            self.xmin = self.xmax = self.ymin = self.ymax = 0.0
            self.zmin = self.zmax = 0.0

    # -----------------------------------------------------------------
    # Accessors
    # -----------------------------------------------------------------
    def __len__(self) -> int:
        return int(self.beam_index.size)

    def handle(self, index: int) -> SoundingHandle:
        """Sounding handle of selection entry *index*."""
        return SoundingHandle(
            int(self.file_index[index]),
            int(self.ping_index[index]),
            int(self.beam_index[index]),
        )

    @property
    def flags(self) -> np.ndarray:
        """Current beam flags, read from the pings."""
        flags = np.zeros(len(self), dtype=np.uint8)
        for fi, pi, positions, beams in self._groups:
            flags[positions] = self.session.files[fi].pings[pi].flags[beams]
        return flags

    @property
    def accepted(self) -> np.ndarray:
        """Boolean mask of accepted soundings."""
        return beam_ok(self.flags)

    @property
    def n_accepted(self) -> int:
        return int(np.count_nonzero(self.accepted))

    @property
    def n_flagged(self) -> int:
        return int(np.count_nonzero(beam_flagged(self.flags)))

    # -----------------------------------------------------------------
    # Bias recomputation
    # -----------------------------------------------------------------
    def recompute(self, params: BiasParameters) -> LocalPositions:
        """
        Local coordinates of every sounding under *params*.

        The pings and the stored coordinates are left untouched.

        Parameters
        ----------
        params : BiasParameters
            Candidate bias parameters.

        Returns
        -------
        LocalPositions
        """
        n = len(self)
        px = np.full(n, np.nan)
        py = np.full(n, np.nan)
        depth = np.full(n, np.nan)
        valid = np.zeros(n, dtype=bool)
        corrector = self.session.corrector
        for fi, pi, positions, beams in self._groups:
            survey = self.session.files[fi]
            result = corrector.correct_ping(survey, survey.pings[pi], params, beams)
            px[positions] = result.x
            py[positions] = result.y
            depth[positions] = result.depth
            valid[positions] = result.valid
        x, y, z = self._to_local(px, py, depth)
        x[~valid] = np.nan
        y[~valid] = np.nan
        z[~valid] = np.nan
        return LocalPositions(x, y, z, valid)

    def apply_bias(self, params: BiasParameters) -> None:
        """Store local coordinates recomputed under *params*."""
        positions = self.recompute(params)
        self.x, self.y, self.z = positions.x, positions.y, positions.z
        self.bias = params
        self._update_extents()

    def __repr__(self) -> str:
        return (
            f"SoundingSelection({len(self)} soundings, "
            f"{self.n_accepted} accepted, bearing={self.bearing})"
        )


def _collect(
    session: 'EditSession', predicate
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    files, pings, beams = [], [], []
    for fi, survey in enumerate(session.files):
        for pi, ping in enumerate(survey.pings):
            mask = ping.usable & np.isfinite(ping.bath_x) & np.isfinite(ping.bath_y)
            if not np.any(mask):
                continue
            mask &= predicate(ping.bath_x, ping.bath_y)
            idx = np.flatnonzero(mask)
            if idx.size:
                files.append(np.full(idx.size, fi))
                pings.append(np.full(idx.size, pi))
                beams.append(idx)
    if not beams:
        empty = np.empty(0, dtype=np.intp)
        return empty, empty, empty
    return np.concatenate(files), np.concatenate(pings), np.concatenate(beams)


def select_region(
    session: 'EditSession',
    xmin: float,
    xmax: float,
    ymin: float,
    ymax: float,
) -> SoundingSelection:
    """
    Select the usable soundings inside an axis-aligned projected box.

    Parameters
    ----------
    session : EditSession
        Session with a built grid.
    xmin, xmax, ymin, ymax : float
        Box in projected metres.

    Returns
    -------
    SoundingSelection
        Local axes east and north, origin at the box center.

    Raises
    ------
    BadParameterError
        If the box is degenerate.
    """
    if not (xmax > xmin and ymax > ymin):
        raise BadParameterError(
            f"Degenerate selection region x {xmin}..{xmax}, y {ymin}..{ymax}"
        )

    def inside(x, y):
        return (x >= xmin) & (x <= xmax) & (y >= ymin) & (y <= ymax)

    refs = _collect(session, inside)
    selection = SoundingSelection(
        session, *refs, bearing=90.0,
        center=(0.5 * (xmin + xmax), 0.5 * (ymin + ymax)),
    )
    logger.info("Selected %d soundings in region", len(selection))
    return selection


def select_area(
    session: 'EditSession',
    start: Tuple[float, float],
    end: Tuple[float, float],
    width: float,
) -> SoundingSelection:
    """
    Select the usable soundings in a rectangle laid along a line.

    Parameters
    ----------
    session : EditSession
        Session with a built grid.
    start, end : Tuple[float, float]
        Projected end points of the rectangle's center line.
    width : float
        Full width of the rectangle in metres.

    Returns
    -------
    SoundingSelection
        Local x along the line from *start* toward *end*, local y across
        it, origin at the line midpoint.

    Raises
    ------
    BadParameterError
        If the line has zero length or the width is not positive.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.hypot(dx, dy)
    if not (length > 0.0 and width > 0.0):
        raise BadParameterError(
            f"Degenerate selection area: length {length}, width {width}"
        )
    bearing = math.degrees(math.atan2(dx, dy))
    cx = 0.5 * (start[0] + end[0])
    cy = 0.5 * (start[1] + end[1])
    sb = dx / length
    cb = dy / length

    def inside(x, y):
        ox = x - cx
        oy = y - cy
        along = ox * sb + oy * cb
        across = -ox * cb + oy * sb
        return (np.abs(along) <= 0.5 * length) & (np.abs(across) <= 0.5 * width)

    refs = _collect(session, inside)
    selection = SoundingSelection(
        session, *refs, bearing=bearing, center=(cx, cy)
    )
    logger.info(
        "Selected %d soundings in %.1f x %.1f m area at bearing %.1f",
        len(selection), length, width, bearing,
    )
    return selection


def select_pings(
    session: 'EditSession', pings: Iterable[Tuple[int, int]]
) -> SoundingSelection:
    """
    Select every usable sounding of the given pings.

    Parameters
    ----------
    session : EditSession
        Session with a built grid.
    pings : Iterable[Tuple[int, int]]
        ``(file_index, ping_index)`` pairs.

    Returns
    -------
    SoundingSelection
        Local axes east and north.

    Raises
    ------
    ValidationError
        If a pair does not reference a loaded ping.
    """
    files, ping_ids, beams = [], [], []
    for fi, pi in pings:
        survey = session.resolve_file(fi)
        if not 0 <= pi < survey.n_pings:
            raise ValidationError(
                f"Ping index {pi} out of range for file {fi} "
                f"({survey.n_pings} pings)"
            )
        ping = survey.pings[pi]
        idx = np.flatnonzero(
            ping.usable & np.isfinite(ping.bath_x) & np.isfinite(ping.bath_y)
        )
        files.append(np.full(idx.size, fi, dtype=np.intp))
        ping_ids.append(np.full(idx.size, pi, dtype=np.intp))
        beams.append(idx)
    if beams:
        refs = (np.concatenate(files), np.concatenate(ping_ids), np.concatenate(beams))
    else:
        empty = np.empty(0, dtype=np.intp)
        refs = (empty, empty, empty)
    selection = SoundingSelection(session, *refs, bearing=90.0)
    logger.info("Selected %d soundings from navigation", len(selection))
    return selection
