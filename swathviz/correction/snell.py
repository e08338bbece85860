# -*- coding: utf-8 -*-
"""
Snell Correction - Re-steer beams for a sound-speed ratio at the array.

Models a refraction error at the transducer face: the sine of each beam's
steering angle, measured from the transducer normal, is scaled by the
Snell ratio. Beams are converted to range, along-track angle and
across-track elevation, re-steered, and converted back.

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
2026-10-09
"""

# Standard library
from typing import Tuple

# Third-party
import numpy as np

#: Ranges below this (metres) are treated as a vertical beam.
MIN_RANGE = 0.001


def snell_correction(
    snell: float,
    roll: float,
    across: np.ndarray,
    along: np.ndarray,
    down: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Re-steer beam vectors by a Snell ratio.

    The across-track elevation angle ``beta`` is measured from the
    starboard horizontal (``pi/2`` is vertical). The transducer is rolled
    by *roll*, so the steering angle relative to the array normal is
    ``beta - roll - pi/2``; its sine is multiplied by *snell*, clamped to
    [-1, 1], and the result rotated back by *roll*.

    Parameters
    ----------
    snell : float
        Snell ratio. ``1.0`` leaves downward beams unchanged.
    roll : float
        Transducer roll in degrees, positive starboard down.
    across, along, down : np.ndarray
        Beam vectors relative to the sonar in metres.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray, np.ndarray]
        Re-steered ``(across, along, down)`` in metres. Beam ranges are
        preserved.
    """
    across = np.asarray(across, dtype=np.float64)
    along = np.asarray(along, dtype=np.float64)
    down = np.asarray(down, dtype=np.float64)

    rng = np.sqrt(across * across + along * along + down * down)
    short = rng < MIN_RANGE
    safe_rng = np.where(short, 1.0, rng)

    alpha = np.arcsin(np.clip(along / safe_rng, -1.0, 1.0))
    cos_alpha = np.cos(alpha)
    flat = np.abs(cos_alpha) < 1e-12
    safe_cos = np.where(flat, 1.0, cos_alpha)
    beta = np.arccos(np.clip(across / safe_rng / safe_cos, -1.0, 1.0))
    beta = np.where(down < 0.0, 2.0 * np.pi - beta, beta)
    alpha = np.where(short, 0.0, alpha)
    beta = np.where(short | flat, 0.5 * np.pi, beta)

    roll_rad = np.radians(roll)
    beta = beta - roll_rad
    beta = np.arcsin(np.clip(snell * np.sin(beta - 0.5 * np.pi), -1.0, 1.0)) \
        + 0.5 * np.pi
    beta = beta + roll_rad

    cos_alpha = np.cos(alpha)
    new_along = rng * np.sin(alpha)
    new_across = rng * cos_alpha * np.cos(beta)
    new_down = rng * cos_alpha * np.sin(beta)
    return new_across, new_along, new_down
