# -*- coding: utf-8 -*-
"""
Models - Survey data model and shared value types.

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
2026-10-16
"""

from swathviz.models.common import BiasParameters, EditEvent, SoundingHandle
from swathviz.models.flags import (
    FLAG_FILTER,
    FLAG_FILTER2,
    FLAG_FLAG,
    FLAG_MANUAL,
    FLAG_MULTIPICK,
    FLAG_NONE,
    FLAG_NULL,
    FLAG_SONAR,
    beam_flagged,
    beam_ok,
    beam_usable,
    edit_action,
)
from swathviz.models.survey import Ping, SurveyFile, TimeSeries

__all__ = [
    'BiasParameters',
    'EditEvent',
    'SoundingHandle',
    'Ping',
    'SurveyFile',
    'TimeSeries',
    'FLAG_NONE',
    'FLAG_FLAG',
    'FLAG_NULL',
    'FLAG_MANUAL',
    'FLAG_FILTER',
    'FLAG_FILTER2',
    'FLAG_SONAR',
    'FLAG_MULTIPICK',
    'beam_ok',
    'beam_usable',
    'beam_flagged',
    'edit_action',
]
