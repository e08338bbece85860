# -*- coding: utf-8 -*-
"""
Edit Session - Loaded surveys, bias parameters, grid and selection.

``EditSession`` is the explicit context object of the engine. It owns the
loaded survey files, the current bias parameters, the projection and
production grid, the current sounding selection and the queue of pending
edit events, and it is the single entry point for operations that must
keep those pieces consistent: loading and unloading files, rebuilding the
grid, changing the bias parameters, and toggling sounding flags.

Display and persistence collaborators are plain callables passed at
construction: ``cell_callback(column, row, value, stddev)`` receives
single-cell updates after an edit, ``grid_callback(grid)`` receives every
rebuilt grid, and ``edit_callback(events)`` receives each flushed batch of
edit events.

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
2026-10-18
"""

# Standard library
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

# swathviz internal
from swathviz.config import SessionConfig
from swathviz.correction.corrector import BiasCorrector
from swathviz.exceptions import BadParameterError, SwathvizError, ValidationError
from swathviz.gridding.geometry import GridGeometry
from swathviz.gridding.grid import CellUpdate, Grid
from swathviz.models.common import BiasParameters, EditEvent, SoundingHandle
from swathviz.models.flags import beam_ok, beam_usable
from swathviz.models.survey import Ping, SurveyFile
from swathviz.processing.base import report_message
from swathviz.processing.bias_optimizer import BiasOptimizer, OptimizationResult
from swathviz.processing.voxel_filter import SparseVoxelFilter, VoxelFilterResult
from swathviz.projection.base import Projection
from swathviz.projection.utils import cell_size_heuristic, compute_bounds
from swathviz.projection.utm import UTMProjection
from swathviz.selection import (
    SoundingSelection,
    select_area,
    select_pings,
    select_region,
)
from swathviz.vocabulary import BiasParameter

logger = logging.getLogger(__name__)

CellCallback = Callable[[int, int, float, float], Any]
EditCallback = Callable[[List[EditEvent]], Any]
GridCallback = Callable[[Grid], Any]


class EditSession:
    """Context object for interactive bathymetry editing.

    Parameters
    ----------
    config : SessionConfig, optional
        Session settings. Defaults to ``SessionConfig()``.
    bias : BiasParameters, optional
        Initial bias parameters. Defaults to the identity.
    cell_callback : callable, optional
        ``cell_callback(column, row, value, stddev)`` for cells changed
        by an edit.
    edit_callback : callable, optional
        ``edit_callback(events)`` for each flushed batch of edit events.
    grid_callback : callable, optional
        ``grid_callback(grid)`` after every full grid rebuild.

    Attributes
    ----------
    files : List[SurveyFile]
        Loaded survey files in load order.
    bias : BiasParameters
        Bias parameters applied to every loaded file.
    projection : Projection or None
        Projection of the current grid.
    grid : Grid or None
        Production grid, ``None`` until built or after the loaded files
        change.
    selection : SoundingSelection or None
        Current working set.
    pending_edits : List[EditEvent]
        Edit events not yet flushed.

    Examples
    --------
    >>> session = EditSession(SessionConfig(algorithm='footprint'))
    >>> session.add_file(survey)
    0
    >>> grid = session.build_grid()
    >>> session.edit(SoundingHandle(0, 12, 40), FLAG_FLAG | FLAG_MANUAL)
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        bias: Optional[BiasParameters] = None,
        cell_callback: Optional[CellCallback] = None,
        edit_callback: Optional[EditCallback] = None,
        grid_callback: Optional[GridCallback] = None,
    ) -> None:
        self.config = config if config is not None else SessionConfig()
        self.bias = bias if bias is not None else BiasParameters()
        self.cell_callback = cell_callback
        self.edit_callback = edit_callback
        self.grid_callback = grid_callback
        self.files: List[SurveyFile] = []
        self.projection: Optional[Projection] = None
        self.grid: Optional[Grid] = None
        self.selection: Optional[SoundingSelection] = None
        self.pending_edits: List[EditEvent] = []

    @property
    def corrector(self) -> BiasCorrector:
        """Bias corrector in the current projection."""
        return BiasCorrector(self.projection)

    # -----------------------------------------------------------------
    # Files
    # -----------------------------------------------------------------
    def add_file(self, survey: SurveyFile) -> int:
        """
        Load a survey file and correct it with the current bias.

        The grid and selection are dropped; call :meth:`build_grid` once
        every file is loaded.

        Parameters
        ----------
        survey : SurveyFile
            Decoded survey file.

        Returns
        -------
        int
            Index of the file in :attr:`files`.
        """
        self._invalidate_grid()
        anomalies = BiasCorrector().apply(survey, self.bias)
        self.files.append(survey)
        logger.info(
            "Loaded %s: %d pings, %d soundings%s",
            survey.name, survey.n_pings, survey.n_soundings,
            f", {anomalies} invalid corrections" if anomalies else "",
        )
        return len(self.files) - 1

    def remove_file(self, index: int) -> SurveyFile:
        """
        Unload the file at *index*.

        Pending edits are flushed first since their file indices would no
        longer be valid.

        Returns
        -------
        SurveyFile
            The unloaded file.
        """
        survey = self.resolve_file(index)
        self.flush_edits()
        self._invalidate_grid()
        del self.files[index]
        logger.info("Unloaded %s", survey.name)
        return survey

    def _invalidate_grid(self) -> None:
        self.grid = None
        self.projection = None
        self.selection = None

    def resolve_file(self, index: int) -> SurveyFile:
        """Loaded file at *index*; ``ValidationError`` if out of range."""
        if not 0 <= index < len(self.files):
            raise ValidationError(
                f"File index {index} out of range ({len(self.files)} loaded)"
            )
        return self.files[index]

    def resolve(self, handle: SoundingHandle) -> Tuple[SurveyFile, Ping]:
        """
        Validate *handle* against the loaded data.

        Parameters
        ----------
        handle : SoundingHandle
            Sounding reference.

        Returns
        -------
        Tuple[SurveyFile, Ping]
            The file and ping the handle points into.

        Raises
        ------
        ValidationError
            If any index of the handle is out of range.
        """
        survey = self.resolve_file(handle.file)
        if not 0 <= handle.ping < survey.n_pings:
            raise ValidationError(
                f"Ping index {handle.ping} out of range for {survey.name} "
                f"({survey.n_pings} pings)"
            )
        ping = survey.pings[handle.ping]
        if not 0 <= handle.beam < ping.n_beams:
            raise ValidationError(
                f"Beam index {handle.beam} out of range for {survey.name} "
                f"ping {handle.ping} ({ping.n_beams} beams)"
            )
        return survey, ping

    # -----------------------------------------------------------------
    # Grid
    # -----------------------------------------------------------------
    def build_grid(self, **kwargs: Any) -> Grid:
        """
        Build the production grid from every loaded file.

        Computes the geographic bounds, selects the UTM zone at their
        center, derives the cell size (from the configuration, or from the
        data when it is ``0``), recorrects every file in the new projection
        and grids every accepted beam.

        Parameters
        ----------
        **kwargs
            ``progress_callback`` and ``message_callback``.

        Returns
        -------
        Grid
            The new grid, also stored in :attr:`grid`.

        Raises
        ------
        BadParameterError
            If no data is loaded or the bounds are degenerate.
        MemoryFailureError
            If the grid cannot be allocated.
        OperationCancelledError
            If the progress callback cancels the rebuild.

        On any failure the previous grid, projection and corrected
        positions are kept.
        """
        bounds = compute_bounds(self.files)
        projection = UTMProjection.from_bounds(bounds)
        projected = projection.project_bounds(bounds)
        cell_size = self.config.cell_size or cell_size_heuristic(
            self.files, projected.width
        )
        geometry = GridGeometry.from_bounds(projected, cell_size)
        report_message(
            kwargs,
            f"Gridding {len(self.files)} file(s) in {projection.name}: "
            f"{geometry.n_columns} x {geometry.n_rows} cells of "
            f"{cell_size:.3f} m",
        )
        grid = Grid(geometry, self.config.grid_algorithm, projection)
        self._rebuild(grid, projection, self.bias, kwargs)
        return grid

    def set_bias(self, params: BiasParameters, **kwargs: Any) -> Optional[Grid]:
        """
        Replace the bias parameters and recorrect every loaded file.

        If a grid exists it is rebuilt with the same geometry.

        Parameters
        ----------
        params : BiasParameters
            New bias parameters.
        **kwargs
            ``progress_callback`` and ``message_callback``.

        Returns
        -------
        Grid or None
            The rebuilt grid, ``None`` if no grid has been built.

        Raises
        ------
        OperationCancelledError
            If the progress callback cancels the rebuild. The previous
            parameters and grid are kept.
        """
        report_message(kwargs, f"Applying bias parameters {params}")
        if self.grid is None:
            self._apply_correction(params)
            self.bias = params
            return None
        grid = Grid(self.grid.geometry, self.grid.algorithm, self.projection)
        self._rebuild(grid, self.projection, params, kwargs)
        return grid

    def _rebuild(
        self,
        grid: Grid,
        projection: Projection,
        params: BiasParameters,
        kwargs: dict,
    ) -> None:
        old_projection = self.projection
        self.projection = projection
        try:
            self._apply_correction(params)
            grid.recompute_full(
                self.files,
                progress_interval=self.config.progress_interval,
                **kwargs,
            )
        except SwathvizError:
            logger.warning("Grid rebuild aborted, keeping the previous grid")
            self.projection = old_projection
            self._apply_correction(self.bias)
            raise
        self.bias = params
        self.grid = grid
        if self.selection is not None:
            logger.info("Dismissing selection after grid rebuild")
            self.selection = None
        if self.grid_callback is not None:
            self.grid_callback(grid)

    def _apply_correction(self, params: BiasParameters) -> None:
        corrector = self.corrector
        anomalies = sum(corrector.apply(survey, params) for survey in self.files)
        if anomalies:
            logger.warning(
                "%d beam(s) with invalid corrections excluded from the grid",
                anomalies,
            )

    # -----------------------------------------------------------------
    # Editing
    # -----------------------------------------------------------------
    def edit(
        self, handle: SoundingHandle, flag: int, flush: bool = True
    ) -> List[CellUpdate]:
        """
        Set the flag of one sounding and update the grid incrementally.

        If the sounding's accepted state changes, its contribution is
        added to or removed from the grid and every touched cell is
        rematerialized and reported through ``cell_callback``. An
        :class:`EditEvent` is queued, and flushed immediately unless
        *flush* is ``False``. Setting the flag a sounding already has is
        a no-op.

        Parameters
        ----------
        handle : SoundingHandle
            Sounding to edit.
        flag : int
            New beam flag.
        flush : bool
            Flush the edit queue after this edit.

        Returns
        -------
        List[Tuple[int, int, float, float]]
            ``(column, row, value, stddev)`` of every touched cell.

        Raises
        ------
        ValidationError
            If the handle is stale or the sounding is null, or if
            *flag* does not fit in a byte.
        """
        survey, ping = self.resolve(handle)
        beam = handle.beam
        old = int(ping.flags[beam])
        flag = int(flag)
        if not 0 <= flag <= 0xFF:
            raise ValidationError(
                f"Flag {flag:#x} for sounding {handle} is outside 0x00..0xff"
            )
        if not beam_usable(old):
            raise ValidationError(
                f"Sounding {handle} of {survey.name} is null and cannot be edited"
            )
        if flag == old:
            return []

        was_ok = beam_ok(old)
        now_ok = beam_ok(flag)
        updates: List[CellUpdate] = []
        if self.grid is not None and was_ok != now_ok:
            if now_ok:
                updates = self.grid.insert_beam(survey, ping, beam)
            else:
                updates = self.grid.remove_beam(survey, ping, beam)
        ping.flags[beam] = flag

        if self.cell_callback is not None:
            for update in updates:
                self.cell_callback(*update)
        self.pending_edits.append(
            EditEvent(handle.file, handle.ping, beam, flag)
        )
        logger.debug("Edited %s: flag 0x%02x -> 0x%02x", handle, old, flag)
        if flush:
            self.flush_edits()
        return updates

    def flush_edits(self) -> List[EditEvent]:
        """
        Hand the queued edit events to ``edit_callback``.

        Returns
        -------
        List[EditEvent]
            The flushed batch, empty if nothing was queued.
        """
        batch, self.pending_edits = self.pending_edits, []
        if batch and self.edit_callback is not None:
            self.edit_callback(batch)
        return batch

    def sounding_info(self, handle: SoundingHandle) -> str:
        """Human-readable description of one sounding."""
        survey, ping = self.resolve(handle)
        beam = handle.beam
        return (
            f"{survey.name} ping {handle.ping} beam {beam}: "
            f"time {ping.time:.3f} s, "
            f"lon {ping.bath_lon[beam]:.8f} lat {ping.bath_lat[beam]:.8f}, "
            f"depth {ping.bath_corr[beam]:.3f} m "
            f"(raw {ping.bath[beam]:.3f} m), "
            f"across {ping.across[beam]:.3f} m along {ping.along[beam]:.3f} m, "
            f"amplitude {ping.amp[beam]:.3f}, "
            f"flag 0x{int(ping.flags[beam]):02x} "
            f"(original 0x{int(ping.flags_original[beam]):02x})"
        )

    # -----------------------------------------------------------------
    # Selection
    # -----------------------------------------------------------------
    def select_region(
        self, xmin: float, xmax: float, ymin: float, ymax: float
    ) -> SoundingSelection:
        """Select an axis-aligned projected box; see :func:`select_region`."""
        self.selection = select_region(self, xmin, xmax, ymin, ymax)
        return self.selection

    def select_area(
        self,
        start: Tuple[float, float],
        end: Tuple[float, float],
        width: float,
    ) -> SoundingSelection:
        """Select a rectangle along a line; see :func:`select_area`."""
        self.selection = select_area(self, start, end, width)
        return self.selection

    def select_pings(
        self, pings: Iterable[Tuple[int, int]]
    ) -> SoundingSelection:
        """Select whole pings; see :func:`select_pings`."""
        self.selection = select_pings(self, pings)
        return self.selection

    def dismiss_selection(self) -> None:
        """Drop the current selection."""
        self.selection = None

    def _require_selection(self) -> SoundingSelection:
        if self.selection is None:
            raise BadParameterError("No sounding selection")
        return self.selection

    # -----------------------------------------------------------------
    # Selection passes
    # -----------------------------------------------------------------
    def flag_sparse_voxels(self, **kwargs: Any) -> VoxelFilterResult:
        """
        Run the sparse voxel filter over the current selection.

        Voxel size and threshold default to the session configuration and
        may be overridden through ``size_multiplier`` and
        ``min_soundings``.
        """
        selection = self._require_selection()
        voxel_filter = SparseVoxelFilter(
            size_multiplier=self.config.voxel_size_multiplier,
            min_soundings=self.config.voxel_min_soundings,
        )
        return voxel_filter.apply(selection, **kwargs)

    def optimize_bias(
        self, parameters: Sequence[BiasParameter], **kwargs: Any
    ) -> OptimizationResult:
        """
        Optimize bias parameters over the current selection.

        The search starts from the session's bias parameters. The result
        is not applied to the session; pass ``result.parameters`` to
        :meth:`set_bias` to adopt it.
        """
        selection = self._require_selection()
        return BiasOptimizer().optimize(
            selection, parameters, start=self.bias, **kwargs
        )

    def __repr__(self) -> str:
        return (
            f"EditSession({len(self.files)} file(s), bias={self.bias}, "
            f"grid={self.grid!r})"
        )
