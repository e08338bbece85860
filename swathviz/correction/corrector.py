# -*- coding: utf-8 -*-
"""
Bias Corrector - Recompute corrected sounding positions from bias parameters.

Provides ``BiasCorrector``, which applies the five ``BiasParameters`` (roll,
pitch and heading bias, attitude time lag, Snell ratio) to the raw beams of
a ping and produces corrected depths, geographic positions and projected
positions. The per-ping path is vectorized over beams; non-finite results
are logged with their context and reported through a validity mask rather
than propagated.

Coordinate flow:

    raw beam offsets  --attitude/Snell-->  east/north/down offsets
        --metres per degree-->  (lon, lat)  --projection-->  (x, y)

Dependencies
------------
scipy
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
2026-10-04

Modified
--------
2026-10-17
"""

# Standard library
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

# Third-party
import numpy as np

# swathviz internal
from swathviz.correction.attitude import compose_attitude, rotate_beams
from swathviz.correction.snell import snell_correction
from swathviz.exceptions import BadParameterError, NumericAnomalyError
from swathviz.models.common import BiasParameters
from swathviz.models.survey import Ping, SurveyFile
from swathviz.projection.base import Projection
from swathviz.projection.utils import coordinate_scale, valid_geographic

logger = logging.getLogger(__name__)


@dataclass
class PingAttitude:
    """Attitude solution for one ping under a set of bias parameters.

    Parameters
    ----------
    roll_delta : float
        Roll change applied to the raw beams, degrees.
    pitch_delta : float
        Pitch change applied to the raw beams, degrees.
    heading : float
        Absolute heading including the heading bias, degrees.
    sensor_depth : float
        Sensor depth at the (possibly lagged) ping time, metres.
    """

    roll_delta: float
    pitch_delta: float
    heading: float
    sensor_depth: float


@dataclass
class CorrectedBeams:
    """Corrected positions for a subset of the beams of one ping.

    Parameters
    ----------
    beams : np.ndarray
        Beam indices within the ping, shape ``(N,)``.
    depth : np.ndarray
        Corrected depths, positive down.
    lon, lat : np.ndarray
        Corrected geographic positions, degrees.
    x, y : np.ndarray
        Corrected projected positions, metres. NaN when no projection was
        available.
    valid : np.ndarray
        Boolean mask of beams whose corrected values are all finite.
    """

    beams: np.ndarray
    depth: np.ndarray
    lon: np.ndarray
    lat: np.ndarray
    x: np.ndarray
    y: np.ndarray
    valid: np.ndarray


class BiasCorrector:
    """Applies bias parameters to raw beams.

    Parameters
    ----------
    projection : Projection, optional
        Planar projection for the corrected positions. Without one only
        depths and geographic positions are produced.

    Examples
    --------
    >>> corrector = BiasCorrector(UTMProjection(19))
    >>> beams = corrector.correct_ping(survey, survey.pings[0],
    ...                                BiasParameters(roll=0.5))
    >>> beams.depth.shape
    (256,)
    """

    def __init__(self, projection: Optional[Projection] = None) -> None:
        self.projection = projection

    def ping_attitude(
        self, survey: SurveyFile, ping: Ping, params: BiasParameters
    ) -> PingAttitude:
        """
        Attitude solution for *ping* under *params*.

        With a non-zero time lag the heading, sensor depth and attitude are
        interpolated from the file's asynchronous series at
        ``ping.time + time_lag``; otherwise the ping's own values are used.

        Parameters
        ----------
        survey : SurveyFile
            File that owns *ping*.
        ping : Ping
            The ping.
        params : BiasParameters
            Bias parameters to apply.

        Returns
        -------
        PingAttitude
        """
        if params.time_lag != 0.0:
            t = ping.time + params.time_lag
            heading = survey.heading_series.interpolate(t)
            sensor_depth = survey.sensor_depth_series.interpolate(t)
            roll, pitch = survey.attitude_series.interpolate(t)
        else:
            heading = ping.heading
            sensor_depth = ping.sensor_depth
            roll, pitch = ping.roll, ping.pitch

        roll_delta, pitch_delta, heading = compose_attitude(
            ping.roll, ping.pitch, float(roll), float(pitch),
            params.roll, params.pitch, heading + params.heading,
        )
        return PingAttitude(roll_delta, pitch_delta, heading, float(sensor_depth))

    def correct_ping(
        self,
        survey: SurveyFile,
        ping: Ping,
        params: BiasParameters,
        beams: Optional[Union[Sequence[int], np.ndarray]] = None,
    ) -> CorrectedBeams:
        """
        Corrected positions for the beams of one ping.

        Parameters
        ----------
        survey : SurveyFile
            File that owns *ping*.
        ping : Ping
            The ping.
        params : BiasParameters
            Bias parameters to apply.
        beams : sequence of int, optional
            Beam indices to correct. Defaults to every beam.

        Returns
        -------
        CorrectedBeams
            Corrected values with a validity mask. Invalid beams have
            already been logged.
        """
        if beams is None:
            beams = np.arange(ping.n_beams)
        else:
            beams = np.asarray(beams, dtype=np.intp)

        attitude = self.ping_attitude(survey, ping, params)
        across = ping.across[beams]
        along = ping.along[beams]
        down = ping.bath[beams] - ping.sensor_depth

        if params.snell != 1.0:
            across, along, down = snell_correction(
                params.snell, ping.roll + attitude.roll_delta,
                across, along, down,
            )

        with np.errstate(invalid='ignore', over='ignore'):
            east, north, down = rotate_beams(
                across, along, down,
                attitude.roll_delta, attitude.pitch_delta, attitude.heading,
            )
            depth = down + attitude.sensor_depth
            m_to_deg_lon, m_to_deg_lat = coordinate_scale(ping.lat)
            lon = ping.lon + m_to_deg_lon * east
            lat = ping.lat + m_to_deg_lat * north

        valid = np.isfinite(depth) & valid_geographic(lon, lat)
        if self.projection is not None:
            lon_in = np.where(valid, lon, np.nan)
            lat_in = np.where(valid, lat, np.nan)
            x, y = self.projection.forward(lon_in, lat_in, strict=False)
            valid &= np.isfinite(x) & np.isfinite(y)
        else:
            x = np.full(beams.shape, np.nan)
            y = np.full(beams.shape, np.nan)

        anomalous = ~valid & ping.usable[beams]
        if np.any(anomalous):
            self._log_anomaly(survey, ping, params, attitude, beams, anomalous)

        return CorrectedBeams(beams, depth, lon, lat, x, y, valid)

    def correct(
        self,
        survey: SurveyFile,
        ping: Ping,
        beam: int,
        params: BiasParameters,
    ) -> Tuple[float, float, float]:
        """
        Corrected position of a single beam.

        Parameters
        ----------
        survey : SurveyFile
            File that owns *ping*.
        ping : Ping
            The ping.
        beam : int
            Beam index within the ping.
        params : BiasParameters
            Bias parameters to apply.

        Returns
        -------
        Tuple[float, float, float]
            ``(easting, northing, depth)`` in metres.

        Raises
        ------
        BadParameterError
            If the corrector has no projection.
        NumericAnomalyError
            If any corrected value is NaN or Inf, or the position is
            outside the geographic range.
        """
        if self.projection is None:
            raise BadParameterError(
                "Projected correction requested without a projection"
            )
        result = self.correct_ping(survey, ping, params, [beam])
        if not result.valid[0]:
            raise NumericAnomalyError(
                f"Non-finite correction for {survey.name} ping t={ping.time:.3f} "
                f"beam {beam}: x={result.x[0]}, y={result.y[0]}, "
                f"depth={result.depth[0]}"
            )
        return float(result.x[0]), float(result.y[0]), float(result.depth[0])

    def apply(self, survey: SurveyFile, params: BiasParameters) -> int:
        """
        Store corrected values on every ping of *survey*.

        Beams whose correction is not finite get NaN corrected values and
        are skipped by gridding.

        Parameters
        ----------
        survey : SurveyFile
            File to correct in place.
        params : BiasParameters
            Bias parameters to apply.

        Returns
        -------
        int
            Number of beams with a non-finite or out-of-range correction.
        """
        anomalies = 0
        for ping in survey.pings:
            result = self.correct_ping(survey, ping, params)
            invalid = ~result.valid
            anomalies += int(np.sum(invalid & ping.usable))
            ping.bath_corr = np.where(invalid, np.nan, result.depth)
            ping.bath_lon = np.where(invalid, np.nan, result.lon)
            ping.bath_lat = np.where(invalid, np.nan, result.lat)
            ping.bath_x = np.where(invalid, np.nan, result.x)
            ping.bath_y = np.where(invalid, np.nan, result.y)
            if self.projection is not None:
                ping.nav_x, ping.nav_y = self.projection.forward(
                    ping.lon, ping.lat, strict=False
                )
        return anomalies

    @staticmethod
    def _log_anomaly(
        survey: SurveyFile,
        ping: Ping,
        params: BiasParameters,
        attitude: PingAttitude,
        beams: np.ndarray,
        invalid: np.ndarray,
    ) -> None:
        bad = beams[invalid]
        logger.warning(
            "Invalid correction in %s ping t=%.3f for beam(s) %s: "
            "lon=%.8f lat=%.8f heading=%.3f roll=%.3f pitch=%.3f "
            "sensor_depth=%.3f attitude=%s params=%s",
            survey.name, ping.time, bad.tolist(), ping.lon, ping.lat,
            ping.heading, ping.roll, ping.pitch, ping.sensor_depth,
            attitude, params,
        )
