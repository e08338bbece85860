# -*- coding: utf-8 -*-
"""
Processor Versioning - Version decorator for sounding processors.

Provides the ``@processor_version`` class decorator that stamps a semantic
version string on a processor class. Edits produced by a processor can then
be traced back to the algorithm version that produced them.

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
2026-10-08
"""

# Standard library
import importlib.metadata
from typing import Optional, Type, TypeVar

T = TypeVar('T')


def processor_version(version: Optional[str] = None):
    """Class decorator that stamps a processor version.

    Sets ``__processor_version__`` as a class attribute. When *version* is
    omitted the installed ``swathviz`` package version is used.

    Parameters
    ----------
    version : str, optional
        Semantic version string (e.g., ``'1.0.0'``).

    Returns
    -------
    Callable
        Class decorator.

    Examples
    --------
    >>> @processor_version('1.0.0')
    ... class MyFilter(SoundingProcessor):
    ...     pass
    >>> MyFilter.__processor_version__
    '1.0.0'
    """
    def decorator(cls: Type[T]) -> Type[T]:
        if version:
            cls.__processor_version__ = version
        else:
            try:
                cls.__processor_version__ = importlib.metadata.version('swathviz')
            except importlib.metadata.PackageNotFoundError:
                cls.__processor_version__ = "unknown"
        return cls
    return decorator
