# -*- coding: utf-8 -*-
"""
Correction - Sensor bias correction of sounding positions.

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

from swathviz.correction.attitude import (
    attitude_rotation,
    compose_attitude,
    rotate_beams,
)
from swathviz.correction.corrector import (
    BiasCorrector,
    CorrectedBeams,
    PingAttitude,
)
from swathviz.correction.snell import snell_correction

__all__ = [
    'BiasCorrector',
    'CorrectedBeams',
    'PingAttitude',
    'attitude_rotation',
    'compose_attitude',
    'rotate_beams',
    'snell_correction',
]
