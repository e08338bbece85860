# -*- coding: utf-8 -*-
"""
Tunable Parameters - Annotated settings for the session and processors.

The session configuration and the sounding processors declare their
settings as ``typing.Annotated`` class attributes carrying ``Range``,
``Options`` and ``Desc`` markers. Subclassing ``Tunable`` turns those
declarations into ``ParamSpec`` records and a validating keyword-only
constructor, so a bad voxel size or sweep span is rejected where it is
set rather than deep inside a grid rebuild.

Usage
-----
::

    from typing import Annotated
    from swathviz.processing.params import Desc, Options, Range, Tunable

    class GridSettings(Tunable):
        cell_size: Annotated[float, Range(min=0.0), Desc('Cell size (m)')] = 0.0
        algorithm: Annotated[str, Options('simple_mean', 'footprint')] = 'simple_mean'

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
2026-10-18
"""

# Standard library
import inspect
from dataclasses import dataclass
from typing import (
    Annotated,
    Any,
    Dict,
    Optional,
    Tuple,
    get_origin,
    get_type_hints,
)

# swathviz internal
from swathviz.exceptions import ValidationError


# =====================================================================
# Markers
# =====================================================================

class ParamMeta:
    """Base of the markers recognised inside ``Annotated`` settings."""


@dataclass(frozen=True)
class Range(ParamMeta):
    """Inclusive numeric bounds; ``None`` leaves a side open."""

    min: Optional[float] = None
    max: Optional[float] = None


class Options(ParamMeta):
    """Fixed set of allowed values."""

    def __init__(self, *choices: Any) -> None:
        if not choices:
            raise ValueError("Options requires at least one choice")
        self.choices = choices


@dataclass(frozen=True)
class Desc(ParamMeta):
    """Human-readable description of a setting."""

    text: str


# =====================================================================
# ParamSpec
# =====================================================================

@dataclass(frozen=True)
class ParamSpec:
    """
    One declared setting of a ``Tunable`` class.

    Attributes
    ----------
    name : str
        Keyword under which the setting is passed.
    param_type : type
        Declared type. ``float`` settings also take ``int``; numeric
        settings never take ``bool``.
    default : Any
        Class-level default, ``None`` when there is none.
    has_default : bool
        Whether the class declares a default.
    description : str
        Text of the ``Desc`` marker.
    min_value, max_value : float or None
        Inclusive bounds from ``Range``.
    choices : tuple or None
        Allowed values from ``Options``.
    """

    name: str
    param_type: type
    default: Any
    has_default: bool
    description: str
    min_value: Optional[float]
    max_value: Optional[float]
    choices: Optional[Tuple]

    @property
    def required(self) -> bool:
        return not self.has_default

    def validate(self, value: Any) -> None:
        """
        Check *value* against the declared type and constraints.

        Raises
        ------
        TypeError
            If *value* has the wrong type.
        ValidationError
            If *value* is out of range or not one of the choices.
        """
        accepted = (int, float) if self.param_type is float else self.param_type
        numeric = self.param_type in (int, float)
        if (numeric and isinstance(value, bool)) or not isinstance(value, accepted):
            raise TypeError(
                f"Parameter '{self.name}' must be "
                f"{self.param_type.__name__}, got {type(value).__name__}"
            )
        if self.min_value is not None and value < self.min_value:
            raise ValidationError(
                f"Parameter '{self.name}' value {value!r} "
                f"is below minimum {self.min_value!r}"
            )
        if self.max_value is not None and value > self.max_value:
            raise ValidationError(
                f"Parameter '{self.name}' value {value!r} "
                f"is above maximum {self.max_value!r}"
            )
        if self.choices is not None and value not in self.choices:
            raise ValidationError(
                f"Parameter '{self.name}' value {value!r} "
                f"is not in allowed choices {self.choices!r}"
            )


_MISSING = object()


def collect_param_specs(cls: type) -> Tuple[ParamSpec, ...]:
    """
    Settings declared on *cls* and its bases, base classes first.

    Attributes without a ``ParamMeta`` marker are plain annotations and
    are skipped.

    Raises
    ------
    TypeError
        If one setting carries both ``Range`` and ``Options``.
    """
    hints = get_type_hints(cls, include_extras=True)
    names: Dict[str, None] = {}
    for klass in reversed(cls.__mro__):
        for name in inspect.get_annotations(klass):
            if name in hints:
                names.setdefault(name)

    specs = []
    for name in names:
        hint = hints[name]
        if get_origin(hint) is not Annotated:
            continue
        markers = {type(m): m for m in hint.__metadata__
                   if isinstance(m, ParamMeta)}
        if not markers:
            continue
        bounds = markers.get(Range)
        options = markers.get(Options)
        desc = markers.get(Desc)
        if bounds is not None and options is not None:
            raise TypeError(
                f"Parameter '{name}' on {cls.__qualname__}: "
                f"Range and Options are mutually exclusive."
            )
        default = getattr(cls, name, _MISSING)
        specs.append(ParamSpec(
            name=name,
            param_type=hint.__args__[0],
            default=None if default is _MISSING else default,
            has_default=default is not _MISSING,
            description=desc.text if desc is not None else '',
            min_value=bounds.min if bounds is not None else None,
            max_value=bounds.max if bounds is not None else None,
            choices=options.choices if options is not None else None,
        ))
    return tuple(specs)


def _keyword_init(specs: Tuple[ParamSpec, ...]):
    """Validating keyword-only ``__init__`` for a ``Tunable`` subclass."""
    known = {spec.name for spec in specs}

    def __init__(self, **kwargs):
        unexpected = set(kwargs) - known
        if unexpected:
            raise TypeError(
                f"{type(self).__name__}() got unexpected "
                f"keyword arguments: {', '.join(sorted(unexpected))}"
            )
        for spec in specs:
            if spec.name in kwargs:
                value = kwargs[spec.name]
            elif spec.has_default:
                value = spec.default
            else:
                raise TypeError(
                    f"{type(self).__name__}() missing required "
                    f"keyword argument: '{spec.name}'"
                )
            spec.validate(value)
            setattr(self, spec.name, value)

    kind = inspect.Parameter.KEYWORD_ONLY
    params = [inspect.Parameter('self', inspect.Parameter.POSITIONAL_OR_KEYWORD)]
    params += [
        inspect.Parameter(spec.name, kind, default=spec.default)
        if spec.has_default else inspect.Parameter(spec.name, kind)
        for spec in specs
    ]
    __init__.__signature__ = inspect.Signature(params)
    return __init__


# =====================================================================
# Tunable
# =====================================================================

class Tunable:
    """
    Base for objects configured through annotated settings.

    Subclasses get ``__param_specs__`` and, unless they define their own
    ``__init__``, a keyword-only constructor that validates every value.
    """

    __param_specs__: Tuple[ParamSpec, ...] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__param_specs__ = collect_param_specs(cls)
        if cls.__param_specs__ and '__init__' not in cls.__dict__:
            cls.__init__ = _keyword_init(cls.__param_specs__)

    def _resolve_params(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Settings for one run: instance values overridden by *kwargs*.

        Keys of *kwargs* that are not settings, such as
        ``progress_callback``, are ignored. Overrides are validated.
        """
        resolved = {}
        for spec in type(self).__param_specs__:
            value = kwargs.get(spec.name, getattr(self, spec.name))
            spec.validate(value)
            resolved[spec.name] = value
        return resolved

    def to_dict(self) -> Dict[str, Any]:
        """Current setting values keyed by name."""
        return {s.name: getattr(self, s.name) for s in type(self).__param_specs__}

    def replace(self, **changes: Any) -> 'Tunable':
        """Copy with some settings changed."""
        return type(self)(**{**self.to_dict(), **changes})

    def __repr__(self) -> str:
        args = ', '.join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"{type(self).__name__}({args})"
