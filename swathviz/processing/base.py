# -*- coding: utf-8 -*-
"""
Processing Base Classes - Common base for passes over sounding selections.

Defines the ``SoundingProcessor`` base class for the long-running passes
that operate on a ``SoundingSelection`` (voxel density filtering, bias
optimization). ``SoundingProcessor`` provides version checking at first
instantiation, ``typing.Annotated``-based tunable parameters with runtime
resolution through ``**kwargs``, and progress and message reporting with
cooperative cancellation.

Progress callbacks receive a fraction in [0, 1]. A callback that returns
``False`` cancels the pass with ``OperationCancelledError``; any other
return value (including ``None``) continues.

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
2026-10-16
"""

# Standard library
import logging
import warnings
from abc import ABC
from typing import Any, Dict

# swathviz internal
from swathviz.exceptions import OperationCancelledError
from swathviz.processing.params import Tunable

logger = logging.getLogger(__name__)


def report_progress(kwargs: Dict[str, Any], fraction: float) -> None:
    """Report progress to an optional ``progress_callback`` in *kwargs*.

    Parameters
    ----------
    kwargs : Dict[str, Any]
        Keyword arguments of the long-running call.
    fraction : float
        Progress fraction in [0.0, 1.0].

    Raises
    ------
    OperationCancelledError
        If the callback returns ``False``.
    """
    cb = kwargs.get('progress_callback')
    if cb is not None and cb(float(fraction)) is False:
        raise OperationCancelledError(
            f"Operation cancelled at {100.0 * fraction:.1f}%"
        )


def report_message(kwargs: Dict[str, Any], message: str) -> None:
    """Log *message* and pass it to an optional ``message_callback``."""
    logger.info(message)
    cb = kwargs.get('message_callback')
    if cb is not None:
        cb(message)


class SoundingProcessor(Tunable, ABC):
    """
    Common base class for passes over a sounding selection.

    **Version checking**: concrete subclasses that do not declare a
    processor version via ``@processor_version('x.y.z')`` trigger a
    ``UserWarning`` at first instantiation.

    **Tunable parameters**: subclasses declare ``typing.Annotated``
    class-body fields using ``Range``, ``Options`` and ``Desc``. Values
    can be overridden per call through ``**kwargs`` and are merged by
    ``_resolve_params``.
    """

    # Track which classes have been checked to warn only once per class.
    _version_warned_classes: set = set()

    def __new__(cls, *args: Any, **kwargs: Any) -> 'SoundingProcessor':
        if cls not in SoundingProcessor._version_warned_classes:
            SoundingProcessor._version_warned_classes.add(cls)
            if (
                not getattr(cls, '__processor_version__', None)
                and not getattr(cls, '__abstractmethods__', None)
            ):
                warnings.warn(
                    f"{cls.__qualname__} does not declare a processor version. "
                    f"Use @processor_version('x.y.z') to declare one.",
                    UserWarning,
                    stacklevel=2,
                )
        logger.debug("Instantiating %s", cls.__qualname__)
        return super().__new__(cls)

    def _report_progress(
        self, kwargs: Dict[str, Any], fraction: float
    ) -> None:
        """Report progress; see :func:`report_progress`."""
        report_progress(kwargs, fraction)

    def _report_message(self, kwargs: Dict[str, Any], message: str) -> None:
        """Report a progress message; see :func:`report_message`."""
        report_message(kwargs, message)
