# -*- coding: utf-8 -*-
"""
swathviz - Incremental bathymetric gridding and sensor bias correction.

Maintains an editable depth grid over multibeam soundings from many survey
files. Soundings are corrected for roll, pitch and heading bias, attitude
time lag and sound-speed (Snell) error, projected to UTM and accumulated
into the grid with a simple mean, a beam-footprint weighted mean or a
shoal-biased minimum. Single-sounding flag edits update the grid
incrementally. Selections of soundings can be filtered for sparse 3-D
outliers and used to search for the bias parameters that minimize local
depth variance.

Dependencies
------------
numpy
scipy
pyproj
rasterio

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
2026-10-01

Modified
--------
2026-10-18
"""

__version__ = "0.1.0"

from swathviz.config import SessionConfig
from swathviz.exceptions import (
    BadParameterError,
    MemoryFailureError,
    NumericAnomalyError,
    OperationCancelledError,
    ProjectionError,
    SwathvizError,
    ValidationError,
)
from swathviz.models import (
    BiasParameters,
    EditEvent,
    Ping,
    SoundingHandle,
    SurveyFile,
    TimeSeries,
)
from swathviz.processing import (
    BiasOptimizer,
    OptimizationResult,
    SparseVoxelFilter,
    VoxelFilterResult,
)
from swathviz.selection import SoundingSelection
from swathviz.session import EditSession
from swathviz.vocabulary import (
    BiasParameter,
    EditAction,
    FootprintUse,
    GridAlgorithm,
    TopographyType,
)

__all__ = [
    '__version__',
    'SessionConfig',
    'EditSession',
    'SoundingSelection',
    'BiasParameters',
    'EditEvent',
    'Ping',
    'SoundingHandle',
    'SurveyFile',
    'TimeSeries',
    'BiasOptimizer',
    'OptimizationResult',
    'SparseVoxelFilter',
    'VoxelFilterResult',
    'BiasParameter',
    'EditAction',
    'FootprintUse',
    'GridAlgorithm',
    'TopographyType',
    'SwathvizError',
    'ValidationError',
    'BadParameterError',
    'MemoryFailureError',
    'NumericAnomalyError',
    'ProjectionError',
    'OperationCancelledError',
]
