# -*- coding: utf-8 -*-
"""
Bias Optimizer - Coordinate-descent search for sensor bias parameters.

Searches for the bias parameters that make a selection of soundings most
self-consistent. Every candidate re-corrects the whole selection, bins the
corrected soundings into a coarse local grid, and scores the candidate by
the mean per-bin depth variance. Each requested parameter is swept coarse
then fine around the best value so far while the others are held; when
several parameters are requested, earlier parameters are re-swept (fine
only) after each later one. The search runs a fixed number of evaluations
and is a heuristic, not a guaranteed global optimum.

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
2026-10-11

Modified
--------
2026-10-17
"""

# Standard library
import logging
from dataclasses import dataclass
from typing import Annotated, Any, Dict, Iterable, List, Optional, Tuple, \
    TYPE_CHECKING

# Third-party
import numpy as np

# swathviz internal
from swathviz.exceptions import BadParameterError
from swathviz.models.common import BiasParameters
from swathviz.processing.base import SoundingProcessor
from swathviz.processing.params import Desc, Range
from swathviz.processing.versioning import processor_version
from swathviz.vocabulary import BiasParameter

if TYPE_CHECKING:
    from swathviz.selection import SoundingSelection

logger = logging.getLogger(__name__)


@dataclass
class OptimizationResult:
    """Outcome of a bias optimization.

    Parameters
    ----------
    parameters : BiasParameters
        Best parameters found.
    variance : float
        Mean per-bin depth variance at the best parameters, ``inf`` if no
        candidate produced an occupied bin.
    initial_variance : float
        Mean per-bin depth variance at the starting parameters.
    evaluations : int
        Number of candidates evaluated, including the start.
    """

    parameters: BiasParameters
    variance: float
    initial_variance: float
    evaluations: int


@dataclass
class _LocalBins:
    xmin: float
    ymin: float
    size: float
    nx: int
    ny: int


@processor_version('1.0.0')
class BiasOptimizer(SoundingProcessor):
    """Minimize local depth variance over bias parameters.

    Sweeps run over ``best +/- half_span`` in ``steps`` evenly spaced
    candidates.

    Parameters
    ----------
    angle_coarse_steps, angle_coarse_span : int, float
        Coarse sweep for roll, pitch and heading (degrees).
    angle_fine_steps, angle_fine_span : int, float
        Fine sweep for roll, pitch and heading (degrees).
    time_lag_coarse_steps, time_lag_coarse_span : int, float
        Coarse time-lag sweep (seconds).
    time_lag_fine_steps, time_lag_fine_span : int, float
        Fine time-lag sweep (seconds).
    snell_coarse_steps, snell_coarse_span : int, float
        Coarse Snell ratio sweep.
    snell_fine_steps, snell_fine_span : int, float
        Fine Snell ratio sweep.
    bin_scale : float
        Local bin size as a multiple of the production cell size.
    bounds_expansion : float
        Fraction of the selection extent added on each side of the local
        bins.

    Examples
    --------
    >>> optimizer = BiasOptimizer()
    >>> result = optimizer.optimize(selection, [BiasParameter.ROLL])
    >>> result.parameters.roll
    2.0
    """

    angle_coarse_steps: Annotated[int, Range(min=1), Desc('Coarse angle steps')] = 11
    angle_coarse_span: Annotated[float, Range(min=0.0), Desc('Coarse angle half-span (deg)')] = 5.0
    angle_fine_steps: Annotated[int, Range(min=1), Desc('Fine angle steps')] = 19
    angle_fine_span: Annotated[float, Range(min=0.0), Desc('Fine angle half-span (deg)')] = 0.9
    time_lag_coarse_steps: Annotated[int, Range(min=1), Desc('Coarse time-lag steps')] = 21
    time_lag_coarse_span: Annotated[float, Range(min=0.0), Desc('Coarse time-lag half-span (s)')] = 1.0
    time_lag_fine_steps: Annotated[int, Range(min=1), Desc('Fine time-lag steps')] = 19
    time_lag_fine_span: Annotated[float, Range(min=0.0), Desc('Fine time-lag half-span (s)')] = 0.09
    snell_coarse_steps: Annotated[int, Range(min=1), Desc('Coarse Snell steps')] = 21
    snell_coarse_span: Annotated[float, Range(min=0.0, max=0.5), Desc('Coarse Snell half-span')] = 0.1
    snell_fine_steps: Annotated[int, Range(min=1), Desc('Fine Snell steps')] = 19
    snell_fine_span: Annotated[float, Range(min=0.0, max=0.5), Desc('Fine Snell half-span')] = 0.009
    bin_scale: Annotated[float, Range(min=1e-3), Desc('Bin size / grid cell size')] = 2.0
    bounds_expansion: Annotated[float, Range(min=0.0), Desc('Bin bounds expansion')] = 0.25

    # -----------------------------------------------------------------
    # Scoring
    # -----------------------------------------------------------------
    def _local_bins(
        self, selection: 'SoundingSelection', params: Dict[str, Any]
    ) -> _LocalBins:
        size = params['bin_scale'] * selection.cell_size
        expand = params['bounds_expansion']
        dx = selection.xmax - selection.xmin
        dy = selection.ymax - selection.ymin
        xmin = selection.xmin - expand * dx
        xmax = selection.xmax + expand * dx
        ymin = selection.ymin - expand * dy
        ymax = selection.ymax + expand * dy
        return _LocalBins(
            xmin, ymin, size,
            int((xmax - xmin) / size) + 1,
            int((ymax - ymin) / size) + 1,
        )

    def local_variance(
        self,
        selection: 'SoundingSelection',
        bias: BiasParameters,
        **kwargs: Any,
    ) -> Tuple[float, int]:
        """
        Mean per-bin depth variance of *selection* under *bias*.

        Depths in each bin are taken relative to the first sounding that
        fell in the bin before summing, which keeps the variance accurate
        for large absolute depths.

        Parameters
        ----------
        selection : SoundingSelection
            Working set. Only accepted soundings are scored.
        bias : BiasParameters
            Candidate bias parameters.
        **kwargs
            Parameter overrides.

        Returns
        -------
        Tuple[float, int]
            ``(variance, occupied_bins)``; variance is ``inf`` when no
            bin is occupied.
        """
        params = self._resolve_params(kwargs)
        return self._score(selection, bias, self._local_bins(selection, params))

    def _score(
        self,
        selection: 'SoundingSelection',
        bias: BiasParameters,
        bins: _LocalBins,
        accepted: Optional[np.ndarray] = None,
    ) -> Tuple[float, int]:
        if accepted is None:
            accepted = selection.accepted
        positions = selection.recompute(bias)
        keep = positions.valid & accepted
        x = positions.x[keep]
        y = positions.y[keep]
        z = positions.z[keep]

        i = np.floor((x - bins.xmin) / bins.size).astype(np.int64)
        j = np.floor((y - bins.ymin) / bins.size).astype(np.int64)
        inside = (i >= 0) & (i < bins.nx) & (j >= 0) & (j < bins.ny)
        if not np.any(inside):
            return float('inf'), 0
        keys = i[inside] * bins.ny + j[inside]
        z = z[inside]

        _, first, inverse, counts = np.unique(
            keys, return_index=True, return_inverse=True, return_counts=True
        )
        inverse = inverse.reshape(-1)
        dz = z - z[first][inverse]
        s = np.bincount(inverse, weights=dz)
        s2 = np.bincount(inverse, weights=dz * dz)
        var = (s2 - s * s / counts) / counts
        return float(var.mean()), int(counts.size)

    # -----------------------------------------------------------------
    # Search
    # -----------------------------------------------------------------
    def _sweep_table(
        self, params: Dict[str, Any]
    ) -> Dict[BiasParameter, Tuple[Tuple[int, float], Tuple[int, float]]]:
        angle = (
            (params['angle_coarse_steps'], params['angle_coarse_span']),
            (params['angle_fine_steps'], params['angle_fine_span']),
        )
        return {
            BiasParameter.ROLL: angle,
            BiasParameter.PITCH: angle,
            BiasParameter.HEADING: angle,
            BiasParameter.TIME_LAG: (
                (params['time_lag_coarse_steps'], params['time_lag_coarse_span']),
                (params['time_lag_fine_steps'], params['time_lag_fine_span']),
            ),
            BiasParameter.SNELL: (
                (params['snell_coarse_steps'], params['snell_coarse_span']),
                (params['snell_fine_steps'], params['snell_fine_span']),
            ),
        }

    @staticmethod
    def _plan(
        order: List[BiasParameter]
    ) -> List[Tuple[BiasParameter, bool]]:
        """Sequence of ``(parameter, coarse_and_fine)`` sweeps."""
        plan: List[Tuple[BiasParameter, bool]] = []
        for k, parameter in enumerate(order):
            plan.append((parameter, True))
            for earlier in order[:k]:
                plan.append((earlier, False))
        return plan

    def optimize(
        self,
        selection: 'SoundingSelection',
        parameters: Iterable[BiasParameter],
        start: Optional[BiasParameters] = None,
        **kwargs: Any,
    ) -> OptimizationResult:
        """
        Search for the bias parameters minimizing local depth variance.

        Parameters are swept in the order roll, pitch, heading, time lag,
        Snell whatever the order of *parameters*. A candidate replaces the
        best only if it has occupied bins and a strictly smaller variance.
        On success the selection's stored coordinates are recomputed with
        the best parameters; the session's parameters are not changed.

        Parameters
        ----------
        selection : SoundingSelection
            Working set.
        parameters : Iterable[BiasParameter]
            Parameters to optimize.
        start : BiasParameters, optional
            Starting parameters. Defaults to those the selection was
            computed with.
        **kwargs
            Parameter overrides, ``progress_callback`` and
            ``message_callback``.

        Returns
        -------
        OptimizationResult

        Raises
        ------
        BadParameterError
            If no parameter is requested or the selection has no accepted
            soundings.
        OperationCancelledError
            If the progress callback cancels the search. The selection is
            left unchanged.
        """
        params = self._resolve_params(kwargs)
        requested = {BiasParameter(p) for p in parameters}
        if not requested:
            raise BadParameterError("No bias parameter requested for optimization")
        accepted = selection.accepted
        if not np.any(accepted):
            raise BadParameterError("No accepted soundings in the selection")

        order = [p for p in BiasParameter if p in requested]
        table = self._sweep_table(params)
        plan = self._plan(order)
        total = 1 + sum(
            table[p][0][0] + table[p][1][0] if both else table[p][1][0]
            for p, both in plan
        )

        bins = self._local_bins(selection, params)
        best = start if start is not None else selection.bias
        best_var, n_bins = self._score(selection, best, bins, accepted)
        initial_var = best_var
        found = n_bins > 0
        evaluations = 1
        self._report_message(
            kwargs,
            f"Optimizing {', '.join(p.value for p in order)} over "
            f"{int(np.count_nonzero(accepted))} soundings, "
            f"initial variance {initial_var:.6g}",
        )
        self._report_progress(kwargs, evaluations / total)

        for parameter, both in plan:
            phases = table[parameter] if both else table[parameter][1:]
            for steps, span in phases:
                center = best.value(parameter)
                step = 2.0 * span / (steps - 1) if steps > 1 else 0.0
                for n in range(steps):
                    value = center - span + n * step if steps > 1 else center
                    candidate = best.with_value(parameter, value)
                    var, n_bins = self._score(selection, candidate, bins, accepted)
                    evaluations += 1
                    if n_bins > 0 and (not found or var < best_var):
                        best, best_var, found = candidate, var, True
                    logger.debug(
                        "%s=%.6f variance=%.6g bins=%d",
                        parameter.value, value, var, n_bins,
                    )
                    self._report_progress(kwargs, evaluations / total)
            self._report_message(
                kwargs,
                f"Best {parameter.value} {best.value(parameter):.4f}, "
                f"variance {best_var:.6g}",
            )

        selection.apply_bias(best)
        return OptimizationResult(best, best_var, initial_var, evaluations)
