# -*- coding: utf-8 -*-
"""
Projection - Geographic to planar coordinate conversion.

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

from swathviz.projection.base import Projection
from swathviz.projection.utm import UTMProjection
from swathviz.projection.utils import (
    Bounds,
    cell_size_heuristic,
    compute_bounds,
    coordinate_scale,
    utm_zone,
    valid_geographic,
)

__all__ = [
    'Projection',
    'UTMProjection',
    'Bounds',
    'cell_size_heuristic',
    'compute_bounds',
    'coordinate_scale',
    'utm_zone',
    'valid_geographic',
]
