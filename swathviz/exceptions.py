# -*- coding: utf-8 -*-
"""
Swathviz Exception Hierarchy - Domain-specific exceptions for swath editing.

Provides a small exception hierarchy that lets the display layer catch
swathviz-specific errors distinctly from Python built-in exceptions. All
swathviz exceptions subclass both ``SwathvizError`` and the appropriate
built-in exception so callers catching ``ValueError`` or ``MemoryError``
keep working.

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
2026-10-18
"""


class SwathvizError(Exception):
    """Base exception for all swathviz errors."""


class ValidationError(SwathvizError, ValueError):
    """Invalid input data, parameters, or configuration.

    Raised for per-beam array length mismatches, malformed time series,
    and sounding handles that fall outside the loaded data.
    """


class BadParameterError(ValidationError):
    """Parameters that make the requested operation impossible.

    Raised for degenerate bounds (zero width or height), operations that
    need loaded data when none is loaded, and invalid projection zones.
    The caller must not proceed to allocate a grid.
    """


class MemoryFailureError(SwathvizError, MemoryError):
    """Allocation failure for grid or voxel arrays.

    Aborts the current operation only. Any previously built grid is left
    in place as the last-known-good state.
    """


class NumericAnomalyError(SwathvizError, ArithmeticError):
    """NaN or Inf detected in a corrected position or depth.

    Only raised by single-beam entry points. Vectorized passes mark the
    offending beams invalid, log them, and continue.
    """


class ProjectionError(SwathvizError, RuntimeError):
    """Coordinate transformation failure.

    Raised when the map projection returns non-finite coordinates for
    finite geographic input.
    """


class OperationCancelledError(SwathvizError, RuntimeError):
    """A long-running pass was cancelled through its progress callback."""
