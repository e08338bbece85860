# -*- coding: utf-8 -*-
"""
Session Configuration - Tunable settings of an editing session.

``SessionConfig`` holds the user-facing settings that shape the production
grid and the default parameters of the selection passes. Values are
validated at construction; use ``replace`` to derive a modified copy.

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
2026-10-10

Modified
--------
2026-10-16
"""

# Standard library
from typing import Annotated

# swathviz internal
from swathviz.processing.params import Desc, Options, Range, Tunable
from swathviz.vocabulary import GridAlgorithm


class SessionConfig(Tunable):
    """Settings of an :class:`~swathviz.session.EditSession`.

    Parameters
    ----------
    algorithm : str
        Gridding algorithm for multibeam files: ``'simple_mean'``,
        ``'footprint'`` or ``'shoal_bias'``.
    cell_size : float
        Grid cell size in metres. ``0`` derives it from the loaded data.
    interpolation_gap : int
        Gap-fill distance in cells. Stored for display collaborators; the
        engine grid is never interpolated.
    voxel_size_multiplier : float
        Default voxel size for the sparse voxel filter, as a multiple of
        the cell size.
    voxel_min_soundings : int
        Default density threshold for the sparse voxel filter.
    progress_interval : int
        Pings between progress reports during a full grid rebuild.

    Examples
    --------
    >>> config = SessionConfig(algorithm='shoal_bias', cell_size=5.0)
    >>> config.grid_algorithm
    <GridAlgorithm.SHOAL_BIAS: 'shoal_bias'>
    """

    algorithm: Annotated[
        str, Options('simple_mean', 'footprint', 'shoal_bias'),
        Desc('Gridding algorithm'),
    ] = 'simple_mean'
    cell_size: Annotated[
        float, Range(min=0.0), Desc('Grid cell size in metres, 0 for automatic')
    ] = 0.0
    interpolation_gap: Annotated[
        int, Range(min=0), Desc('Gap interpolation distance in cells')
    ] = 0
    voxel_size_multiplier: Annotated[
        float, Range(min=1e-3), Desc('Voxel size as a multiple of the cell size')
    ] = 1.0
    voxel_min_soundings: Annotated[
        int, Range(min=1), Desc('Minimum soundings in a voxel neighbourhood')
    ] = 5
    progress_interval: Annotated[
        int, Range(min=1), Desc('Pings between grid progress reports')
    ] = 250

    @property
    def grid_algorithm(self) -> GridAlgorithm:
        return GridAlgorithm(self.algorithm)
