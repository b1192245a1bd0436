"""
Argstep utilities (internal helpers shared by every layer).

Overview
- UnsetType / Unset
  • Singleton sentinel meaning "not provided", distinct from None (None is a
    meaningful value for several settings, e.g. output=None disables the sink).
- coalesce(value, default=None)
  • Replace Unset with a concrete default while preserving falsey values.
- rename(callable, name) / @rename("name")
  • Give generated wrappers and decorators readable names in tracebacks.
- mirror("attr")
  • Read-only property exposing a private backing field (self._attr).
- ordinal(n)
  • Human-friendly argv position labels used in fault messages.

Quick examples
    >>> coalesce(Unset, "--")
    '--'
    >>> coalesce(None, "--") is None
    True
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Sentinel type for values that were not provided.

    Characteristics
    - Boolean-false, but distinct from None and 0.
    - repr(Unset) -> "Unset".
    - One instance per process; subclassing is forbidden.
    """

    def __or__(self, other, /):
        # Support `str | Unset` in isinstance checks.
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return UnsetType, ()

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return `default` when `object` is Unset, otherwise `object` unchanged.

    Falsey values such as None, 0 or "" are preserved; only the sentinel is
    replaced.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set __name__/__qualname__ on a callable, or return a decorator doing so.

    Forms
    - rename(callable, name) -> callable
    - rename(name)           -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def mirror(name, /):
    """
    Define a read-only property that mirrors the backing attribute "_{name}".

    Containers are exposed as immutable views (tuple, MappingProxyType,
    frozenset) so callers cannot mutate engine state through the public API.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        value = getattr(self, "_" + name)
        if isinstance(value, Sequence) and not isinstance(value, str):
            return tuple(value)
        if isinstance(value, Mapping):
            return MappingProxyType(value)
        if isinstance(value, Set):
            return frozenset(value)
        return value

    return property(getter)


def ordinal(number, /):
    """
    Return an ordinal label for an argv position ("first", ..., "11th", "22nd").
    """
    if words := {
        1: "first",
        2: "second",
        3: "third",
        4: "fourth",
        5: "fifth",
        6: "sixth",
        7: "seventh",
        8: "eighth",
        9: "ninth",
        10: "tenth",
    }.get(number):
        return words

    # 11th, 12th, 13th (and 111th, 112th, ...)
    if 10 < number % 100 < 20:
        return f"{number}th"
    return f"{number}%s" % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


Unset = UnsetType()


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "ordinal",
    "UnsetType",
    "Unset",
)
