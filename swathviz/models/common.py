# -*- coding: utf-8 -*-
"""
Common Value Types - Sounding handles, bias parameters, and edit events.

Small immutable value types shared by every layer of the package. A
``SoundingHandle`` replaces raw (file, ping, beam) index triples and is
validated against the loaded data before each dereference.

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

# Standard library
import dataclasses
import math
from dataclasses import dataclass

# swathviz internal
from swathviz.exceptions import ValidationError
from swathviz.models.flags import edit_action
from swathviz.vocabulary import BiasParameter, EditAction


@dataclass(frozen=True)
class SoundingHandle:
    """Reference to one beam of one ping of one loaded survey file.

    Parameters
    ----------
    file : int
        Index of the survey file in the session.
    ping : int
        Index of the ping within the file.
    beam : int
        Index of the beam within the ping.
    """

    file: int
    ping: int
    beam: int

    def __post_init__(self) -> None:
        for name in ('file', 'ping', 'beam'):
            value = getattr(self, name)
            if value < 0:
                raise ValidationError(
                    f"Sounding handle {name} index must be >= 0, got {value}"
                )


_FIELD_FOR = {
    BiasParameter.ROLL: 'roll',
    BiasParameter.PITCH: 'pitch',
    BiasParameter.HEADING: 'heading',
    BiasParameter.TIME_LAG: 'time_lag',
    BiasParameter.SNELL: 'snell',
}


@dataclass(frozen=True)
class BiasParameters:
    """Sensor bias corrections applied to every sounding.

    Parameters
    ----------
    roll : float
        Roll bias in degrees, positive starboard down.
    pitch : float
        Pitch bias in degrees, positive bow up.
    heading : float
        Heading bias in degrees, clockwise.
    time_lag : float
        Attitude time lag in seconds.
    snell : float
        Snell ratio applied to beam steering. ``1.0`` disables the
        correction.

    Examples
    --------
    >>> params = BiasParameters(roll=1.5)
    >>> params.with_value(BiasParameter.PITCH, -0.2).pitch
    -0.2
    """

    roll: float = 0.0
    pitch: float = 0.0
    heading: float = 0.0
    time_lag: float = 0.0
    snell: float = 1.0

    def __post_init__(self) -> None:
        for name in _FIELD_FOR.values():
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValidationError(
                    f"Bias parameter '{name}' must be finite, got {value!r}"
                )
        if self.snell <= 0.0:
            raise ValidationError(
                f"Snell ratio must be positive, got {self.snell!r}"
            )

    @property
    def is_identity(self) -> bool:
        """Whether these parameters leave every sounding unchanged."""
        return (
            self.roll == 0.0 and self.pitch == 0.0 and self.heading == 0.0
            and self.time_lag == 0.0 and self.snell == 1.0
        )

    def value(self, parameter: BiasParameter) -> float:
        """Return the value of one bias parameter."""
        return getattr(self, _FIELD_FOR[parameter])

    def with_value(
        self, parameter: BiasParameter, value: float
    ) -> 'BiasParameters':
        """Return a copy with one bias parameter replaced."""
        return dataclasses.replace(self, **{_FIELD_FOR[parameter]: float(value)})


@dataclass(frozen=True)
class EditEvent:
    """Flag change of a single sounding, emitted to the persistence layer.

    Parameters
    ----------
    file : int
        Index of the survey file.
    ping : int
        Index of the ping within the file.
    beam : int
        Index of the beam within the ping.
    flag : int
        New beam flag value.
    """

    file: int
    ping: int
    beam: int
    flag: int

    @property
    def handle(self) -> SoundingHandle:
        return SoundingHandle(self.file, self.ping, self.beam)

    @property
    def action(self) -> EditAction:
        """Edit action implied by the new flag."""
        return edit_action(self.flag)
