# -*- coding: utf-8 -*-
"""
Processing - Long-running passes over sounding selections.

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
2026-10-08

Modified
--------
2026-10-17
"""

from swathviz.processing.base import (
    SoundingProcessor,
    report_message,
    report_progress,
)
from swathviz.processing.bias_optimizer import BiasOptimizer, OptimizationResult
from swathviz.processing.params import Desc, Options, ParamSpec, Range, Tunable
from swathviz.processing.versioning import processor_version
from swathviz.processing.voxel_filter import SparseVoxelFilter, VoxelFilterResult

__all__ = [
    'SoundingProcessor',
    'report_message',
    'report_progress',
    'BiasOptimizer',
    'OptimizationResult',
    'SparseVoxelFilter',
    'VoxelFilterResult',
    'Desc',
    'Options',
    'ParamSpec',
    'Range',
    'Tunable',
    'processor_version',
]
