# -*- coding: utf-8 -*-
"""
Beam Flags - Per-beam accept/reject flag bits and predicates.

Every beam carries a ``uint8`` flag word. A beam is *ok* (accepted and
gridded) when neither ``FLAG_FLAG`` nor ``FLAG_NULL`` is set, and *usable*
(editable) when ``FLAG_NULL`` is not set. The predicates accept scalars or
numpy arrays.

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
2026-10-11
"""

# Standard library
from typing import Union

# Third-party
import numpy as np

# swathviz internal
from swathviz.vocabulary import EditAction

FLAG_NONE = 0x00
FLAG_FLAG = 0x01
FLAG_NULL = 0x02
FLAG_MANUAL = 0x04
FLAG_FILTER = 0x08
FLAG_FILTER2 = 0x10
FLAG_SONAR = 0x20
FLAG_MULTIPICK = 0x40

FLAG_DTYPE = np.uint8

FlagLike = Union[int, np.ndarray]


def beam_ok(flags: FlagLike) -> Union[bool, np.ndarray]:
    """Whether the beam is accepted (neither flagged nor null)."""
    result = (np.asarray(flags) & (FLAG_FLAG | FLAG_NULL)) == 0
    return bool(result) if np.ndim(result) == 0 else result


def beam_usable(flags: FlagLike) -> Union[bool, np.ndarray]:
    """Whether the beam holds a measurement that may be edited."""
    result = (np.asarray(flags) & FLAG_NULL) == 0
    return bool(result) if np.ndim(result) == 0 else result


def beam_flagged(flags: FlagLike) -> Union[bool, np.ndarray]:
    """Whether the beam is a usable but rejected measurement."""
    arr = np.asarray(flags)
    result = ((arr & FLAG_FLAG) != 0) & ((arr & FLAG_NULL) == 0)
    return bool(result) if np.ndim(result) == 0 else result


def edit_action(flag: int) -> EditAction:
    """Classify a new flag value into the edit action it represents.

    Parameters
    ----------
    flag : int
        New beam flag value.

    Returns
    -------
    EditAction
        ``UNFLAG`` for an accepted beam, ``FILTER`` for a beam rejected by
        an automatic filter, ``FLAG`` for any other rejection and ``ZERO``
        for a null beam.
    """
    flag = int(flag)
    if beam_ok(flag):
        return EditAction.UNFLAG
    if flag & FLAG_NULL:
        return EditAction.ZERO
    if flag & (FLAG_FILTER | FLAG_FILTER2):
        return EditAction.FILTER
    return EditAction.FLAG
