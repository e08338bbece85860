# -*- coding: utf-8 -*-
"""
Attitude Composition - Compose old and new platform attitude corrections.

Raw beam offsets arrive already corrected for the attitude recorded at
acquisition. Applying a bias, or an attitude re-interpolated with a time
lag, means undoing the old rotation and applying the new one. The rotations
are composed with ``scipy.spatial.transform.Rotation`` rather than summed,
then expressed as a net roll delta, pitch delta and absolute heading.

Frame convention: x starboard, y forward, z down. Roll is positive
starboard down, pitch positive bow up, heading clockwise from north.

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
2026-10-04

Modified
--------
2026-10-13
"""

# Standard library
from typing import Tuple

# Third-party
import numpy as np
from scipy.spatial.transform import Rotation


def attitude_rotation(roll: float, pitch: float) -> Rotation:
    """
    Rotation taking sonar-frame vectors to the level frame.

    Roll is applied first, then pitch.

    Parameters
    ----------
    roll : float
        Roll in degrees, positive starboard down.
    pitch : float
        Pitch in degrees, positive bow up.

    Returns
    -------
    scipy.spatial.transform.Rotation
    """
    return Rotation.from_euler('yx', [-roll, -pitch], degrees=True)


def compose_attitude(
    old_roll: float,
    old_pitch: float,
    new_roll: float,
    new_pitch: float,
    roll_bias: float,
    pitch_bias: float,
    heading: float,
) -> Tuple[float, float, float]:
    """
    Net rotation that moves beams from the old attitude to the new one.

    The new sonar attitude is the platform attitude *new_roll*,
    *new_pitch* with the sonar mounting bias applied in the platform frame.
    The delta rotation is ``R(new) * R(bias) * R(old)^-1``. Its yaw
    component, non-zero only when roll and pitch both change, is folded
    into the returned heading.

    Parameters
    ----------
    old_roll, old_pitch : float
        Attitude already applied to the raw beams, degrees.
    new_roll, new_pitch : float
        Platform attitude to apply, degrees.
    roll_bias, pitch_bias : float
        Sonar mounting biases, degrees.
    heading : float
        Platform heading plus heading bias, degrees.

    Returns
    -------
    Tuple[float, float, float]
        ``(roll_delta, pitch_delta, heading)`` in degrees.

    Examples
    --------
    >>> compose_attitude(1.0, 2.0, 1.0, 2.0, 0.0, 0.0, 45.0)
    (0.0, 0.0, 45.0)
    """
    if old_roll == new_roll and old_pitch == new_pitch \
            and roll_bias == 0.0 and pitch_bias == 0.0:
        return 0.0, 0.0, float(heading) % 360.0

    delta = (
        attitude_rotation(new_roll, new_pitch)
        * attitude_rotation(roll_bias, pitch_bias)
        * attitude_rotation(old_roll, old_pitch).inv()
    )
    a, b, c = delta.as_euler('yxz', degrees=True)
    return float(-a), float(-b), float(heading - c) % 360.0


def rotate_beams(
    across: np.ndarray,
    along: np.ndarray,
    down: np.ndarray,
    roll_delta: float,
    pitch_delta: float,
    heading: float,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Rotate beam vectors by an attitude delta and into east/north/down.

    Parameters
    ----------
    across, along, down : np.ndarray
        Beam vectors relative to the sonar in metres.
    roll_delta, pitch_delta : float
        Attitude change to apply, degrees.
    heading : float
        Heading in degrees clockwise from north.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray, np.ndarray]
        ``(east, north, down)`` offsets in metres.
    """
    matrix = Rotation.from_euler(
        'yxz', [-roll_delta, -pitch_delta, -heading], degrees=True
    ).as_matrix()
    vectors = np.vstack([
        np.asarray(across, dtype=np.float64),
        np.asarray(along, dtype=np.float64),
        np.asarray(down, dtype=np.float64),
    ])
    east, north, depth = matrix @ vectors
    return east, north, depth
