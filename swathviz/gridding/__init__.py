# -*- coding: utf-8 -*-
"""
Gridding - Production grid geometry, accumulation and gridding algorithms.

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
2026-10-05

Modified
--------
2026-10-17
"""

from swathviz.gridding.accumulator import (
    CellAccumulator,
    NODATA_VALUE,
    WEIGHT_EPSILON,
)
from swathviz.gridding.algorithms import (
    FootprintGridder,
    Gridder,
    ShoalBiasGridder,
    SimpleMeanGridder,
    create_gridder,
)
from swathviz.gridding.footprint import (
    Footprint,
    beam_footprint,
    bin_weight,
    bin_weights,
)
from swathviz.gridding.geometry import GridGeometry
from swathviz.gridding.grid import Grid, grid_mask

__all__ = [
    'CellAccumulator',
    'NODATA_VALUE',
    'WEIGHT_EPSILON',
    'Gridder',
    'SimpleMeanGridder',
    'FootprintGridder',
    'ShoalBiasGridder',
    'create_gridder',
    'Footprint',
    'beam_footprint',
    'bin_weight',
    'bin_weights',
    'GridGeometry',
    'Grid',
    'grid_mask',
]
