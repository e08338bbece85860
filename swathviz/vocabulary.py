# -*- coding: utf-8 -*-
"""
Vocabulary - Canonical enums for swathviz.

Defines the controlled vocabularies used across the package: gridding
algorithms, topography sensor types, bias parameters, edit actions, and
the footprint cell-usage policy.

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
2026-10-14
"""

from enum import Enum


class GridAlgorithm(Enum):
    """Gridding algorithm used to accumulate soundings into grid cells.

    Selected once per grid build.
    """

    SIMPLE_MEAN = "simple_mean"
    FOOTPRINT = "footprint"
    SHOAL_BIAS = "shoal_bias"


class TopographyType(Enum):
    """Kind of topography sensor that produced a survey file.

    Only ``MULTIBEAM`` files honour the configured gridding algorithm;
    every other type is gridded with the simple mean.
    """

    UNKNOWN = "unknown"
    ECHOSOUNDER = "echosounder"
    MULTIBEAM = "multibeam"
    SIDESCAN = "sidescan"
    INTERFEROMETRIC = "interferometric"
    LIDAR = "lidar"
    CAMERA = "camera"
    GRIDDED = "gridded"
    POINT = "point"


class BiasParameter(Enum):
    """Bias parameters the optimizer can sweep.

    Declaration order is the order in which the optimizer sweeps them.
    """

    ROLL = "roll"
    PITCH = "pitch"
    HEADING = "heading"
    TIME_LAG = "time_lag"
    SNELL = "snell"


class EditAction(Enum):
    """Edit action implied by a beam's new flag value."""

    UNFLAG = "unflag"
    FLAG = "flag"
    FILTER = "filter"
    ZERO = "zero"


class FootprintUse(Enum):
    """Whether a grid cell receives a contribution from a beam footprint."""

    YES = "yes"
    CONDITIONAL = "conditional"
    NO = "no"
