# -*- coding: utf-8 -*-
"""
Survey Data Model - Pings, survey files, and asynchronous sensor streams.

A ``SurveyFile`` owns an ordered list of ``Ping`` records decoded by an
external swath-format reader, the per-file beamwidths and topography
sensor type, and the asynchronous heading, sensor-depth and attitude
series used when an attitude time lag is applied. Each ``Ping`` carries
parallel per-beam arrays of raw and corrected values.

Depths are positive down, measured from the sea surface. Across-track
offsets are positive to starboard, along-track offsets positive forward.

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
2026-10-02

Modified
--------
2026-10-17
"""

# Standard library
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

# Third-party
import numpy as np

# swathviz internal
from swathviz.exceptions import ValidationError
from swathviz.models.flags import (
    FLAG_DTYPE,
    FLAG_NULL,
    beam_ok,
    beam_usable,
)
from swathviz.vocabulary import TopographyType

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class TimeSeries:
    """Time-tagged sensor values, linearly interpolated on demand.

    Parameters
    ----------
    time : np.ndarray
        Sample times in seconds, shape ``(N,)``, non-decreasing.
    values : np.ndarray
        Sample values, shape ``(N,)`` or ``(N, K)``.
    angular : bool
        Treat values as angles in degrees that wrap at 360 (heading).
        Interpolation then follows the shortest way round.

    Raises
    ------
    ValidationError
        If the series is empty, the time axis is not one-dimensional and
        non-decreasing, or the value count does not match the time count.
    """

    time: np.ndarray
    values: np.ndarray
    angular: bool = False

    def __post_init__(self) -> None:
        self.time = np.asarray(self.time, dtype=np.float64)
        self.values = np.asarray(self.values, dtype=np.float64)
        if self.time.ndim != 1 or self.time.size == 0:
            raise ValidationError(
                f"Time series needs a non-empty 1D time axis, "
                f"got shape {self.time.shape}"
            )
        if self.values.ndim not in (1, 2) or len(self.values) != len(self.time):
            raise ValidationError(
                f"Time series values shape {self.values.shape} does not "
                f"match {len(self.time)} sample times"
            )
        if np.any(np.diff(self.time) < 0.0):
            raise ValidationError("Time series sample times must be non-decreasing")
        if self.angular:
            self._unwrapped = np.degrees(np.unwrap(np.radians(self.values), axis=0))
        else:
            self._unwrapped = self.values

    def __len__(self) -> int:
        return len(self.time)

    def interpolate(self, t: float) -> Union[float, np.ndarray]:
        """Linearly interpolate the series at time *t*.

        Times outside the series take the nearest end value.

        Parameters
        ----------
        t : float
            Time in seconds.

        Returns
        -------
        float or np.ndarray
            Interpolated scalar for a 1D series, or a ``(K,)`` array.
        """
        if self._unwrapped.ndim == 1:
            value = float(np.interp(t, self.time, self._unwrapped))
            return value % 360.0 if self.angular else value
        result = np.array([
            np.interp(t, self.time, self._unwrapped[:, k])
            for k in range(self._unwrapped.shape[1])
        ])
        return np.mod(result, 360.0) if self.angular else result


@dataclass(eq=False)
class Ping:
    """One multibeam transmit/receive cycle and its beams.

    Parameters
    ----------
    time : float
        Ping timestamp in seconds.
    lon : float
        Navigation longitude in degrees.
    lat : float
        Navigation latitude in degrees.
    heading : float
        Heading in degrees clockwise from north.
    bath : np.ndarray
        Raw beam depths in metres below the sea surface, shape ``(B,)``.
    across : np.ndarray
        Across-track offsets in metres, positive to starboard.
    along : np.ndarray
        Along-track offsets in metres, positive forward.
    flags : np.ndarray, optional
        Beam flags (``uint8``). Defaults to every beam accepted.
    amp : np.ndarray, optional
        Beam amplitudes. Defaults to zeros.
    speed : float
        Speed over ground in km/h.
    sensor_depth : float
        Sonar depth below the sea surface in metres.
    roll : float
        Roll in degrees applied to the raw beams, positive starboard down.
    pitch : float
        Pitch in degrees applied to the raw beams, positive bow up.
    heave : float
        Heave in metres.
    altitude : float
        Sonar altitude above the seafloor in metres, ``0`` if unknown.

    Attributes
    ----------
    flags_original : np.ndarray
        Copy of the flags as loaded.
    bath_corr : np.ndarray
        Corrected beam depths (positive down).
    bath_lon, bath_lat : np.ndarray
        Corrected beam geographic positions.
    bath_x, bath_y : np.ndarray
        Corrected beam projected positions.
    nav_x, nav_y : float
        Projected navigation position.

    Raises
    ------
    ValidationError
        If the per-beam arrays differ in length.
    """

    time: float
    lon: float
    lat: float
    heading: float
    bath: np.ndarray
    across: np.ndarray
    along: np.ndarray
    flags: Optional[np.ndarray] = None
    amp: Optional[np.ndarray] = None
    speed: float = 0.0
    sensor_depth: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    heave: float = 0.0
    altitude: float = 0.0

    flags_original: np.ndarray = field(init=False, repr=False)
    bath_corr: np.ndarray = field(init=False, repr=False)
    bath_lon: np.ndarray = field(init=False, repr=False)
    bath_lat: np.ndarray = field(init=False, repr=False)
    bath_x: np.ndarray = field(init=False, repr=False)
    bath_y: np.ndarray = field(init=False, repr=False)
    nav_x: float = field(init=False, default=float('nan'))
    nav_y: float = field(init=False, default=float('nan'))

    def __post_init__(self) -> None:
        self.bath = np.asarray(self.bath, dtype=np.float64)
        self.across = np.asarray(self.across, dtype=np.float64)
        self.along = np.asarray(self.along, dtype=np.float64)
        if self.bath.ndim != 1:
            raise ValidationError(
                f"Ping bath must be 1D, got shape {self.bath.shape}"
            )
        n = self.bath.shape[0]

        if self.flags is None:
            self.flags = np.zeros(n, dtype=FLAG_DTYPE)
        else:
            self.flags = np.asarray(self.flags, dtype=FLAG_DTYPE).copy()
        if self.amp is None:
            self.amp = np.zeros(n, dtype=np.float64)
        else:
            self.amp = np.asarray(self.amp, dtype=np.float64)

        for name in ('across', 'along', 'flags', 'amp'):
            shape = getattr(self, name).shape
            if shape != (n,):
                raise ValidationError(
                    f"Ping {name} shape {shape} does not match {n} beams"
                )

        bad = ~(
            np.isfinite(self.bath)
            & np.isfinite(self.across)
            & np.isfinite(self.along)
        ) & beam_usable(self.flags)
        if np.any(bad):
            logger.warning(
                "Ping at t=%.3f: nulling %d beam(s) with non-finite "
                "depth or offsets: %s",
                self.time, int(bad.sum()), np.flatnonzero(bad).tolist(),
            )
            self.flags[bad] = FLAG_NULL

        self.flags_original = self.flags.copy()
        self.bath_corr = self.bath.copy()
        self.bath_lon = np.full(n, np.nan)
        self.bath_lat = np.full(n, np.nan)
        self.bath_x = np.full(n, np.nan)
        self.bath_y = np.full(n, np.nan)

    @property
    def n_beams(self) -> int:
        return self.bath.shape[0]

    @property
    def ok(self) -> np.ndarray:
        """Boolean mask of accepted beams."""
        return beam_ok(self.flags)

    @property
    def usable(self) -> np.ndarray:
        """Boolean mask of non-null beams."""
        return beam_usable(self.flags)

    @property
    def swath_limits(self) -> Tuple[float, float]:
        """Port and starboard across-track limits of the usable beams.

        Returns
        -------
        Tuple[float, float]
            ``(port, starboard)`` offsets in metres, ``(0.0, 0.0)`` when
            the ping has no usable beams.
        """
        usable = self.usable
        if not np.any(usable):
            return 0.0, 0.0
        across = self.across[usable]
        return float(across.min()), float(across.max())


@dataclass(eq=False)
class SurveyFile:
    """A decoded survey file: ordered pings plus per-file constants.

    Parameters
    ----------
    name : str
        File name or path, used in log messages and sounding info.
    pings : List[Ping]
        Pings in acquisition order.
    beamwidth_xtrack : float
        Across-track beamwidth in degrees.
    beamwidth_ltrack : float
        Along-track beamwidth in degrees.
    topography : TopographyType
        Sensor type. Non-multibeam files are always gridded with the
        simple mean.
    heading_series : TimeSeries, optional
        Asynchronous heading (degrees). Derived from the pings if omitted.
    sensor_depth_series : TimeSeries, optional
        Asynchronous sensor depth (metres). Derived from the pings if
        omitted.
    attitude_series : TimeSeries, optional
        Asynchronous ``(roll, pitch)`` pairs in degrees. Derived from the
        pings if omitted.

    Examples
    --------
    >>> ping = Ping(time=0.0, lon=-70.0, lat=40.0, heading=0.0,
    ...             bath=[100.0], across=[0.0], along=[0.0])
    >>> survey = SurveyFile('line_0001.mb58', [ping])
    >>> survey.n_soundings
    1
    """

    name: str
    pings: List[Ping]
    beamwidth_xtrack: float = 2.0
    beamwidth_ltrack: float = 2.0
    topography: TopographyType = TopographyType.MULTIBEAM
    heading_series: Optional[TimeSeries] = None
    sensor_depth_series: Optional[TimeSeries] = None
    attitude_series: Optional[TimeSeries] = None

    def __post_init__(self) -> None:
        self.pings = list(self.pings)
        if not self.pings:
            return
        times = np.array([p.time for p in self.pings])
        if self.heading_series is None:
            self.heading_series = TimeSeries(
                times, [p.heading for p in self.pings], angular=True
            )
        if self.sensor_depth_series is None:
            self.sensor_depth_series = TimeSeries(
                times, [p.sensor_depth for p in self.pings]
            )
        if self.attitude_series is None:
            self.attitude_series = TimeSeries(
                times, [(p.roll, p.pitch) for p in self.pings]
            )
        if self.attitude_series.values.ndim != 2 or \
                self.attitude_series.values.shape[1] != 2:
            raise ValidationError(
                "Attitude series values must be (roll, pitch) pairs"
            )

    @property
    def n_pings(self) -> int:
        return len(self.pings)

    @property
    def n_soundings(self) -> int:
        return sum(p.n_beams for p in self.pings)

    @property
    def depth_max(self) -> float:
        """Largest usable raw depth, ``0.0`` when there is none."""
        depths = [p.bath[p.usable] for p in self.pings]
        depths = [d for d in depths if d.size]
        if not depths:
            return 0.0
        return float(max(d.max() for d in depths))

    @property
    def altitude_max(self) -> float:
        if not self.pings:
            return 0.0
        return float(max(p.altitude for p in self.pings))
