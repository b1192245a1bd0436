r"""
Argstep argument descriptors and decorators.

Overview
- Descriptors
  • Argument: one declared option or subcommand. Its kind decides whether a
    value is extracted (Kind.STRING, Kind.INTEGER), nothing is extracted
    (Kind.VOID), or a nested parsing scope takes over (Kind.SUBCOMMAND).
  • Positional: catchall for positional tokens, with the usage text shown in
    the synthesized usage line.
  • Other: catchall for tokens that match nothing.
  • Ending: end-of-input handler, run once all input was consumed.

- Decorators
  • @switch(...), @option(...), @integer(...), @command(...): build an
    Argument and bind the decorated function as its handler.
  • @positional(...), @other(), @ending(): build the matching marker and bind
    the decorated function.
  Each decorator returns the declared object; calling it forwards to the
  bound handler (a no-op when nothing is bound).

Metadata (sanitized on construction)
- short: Unset | None | str of exactly one character.
- long: Unset | None | non-empty str without '=' (the name/value separator).
- descr: Unset | None | non-empty str; without a description the entry is
  hidden from help output.
- hint: Unset | non-empty str shown as the value placeholder (<HINT>).
- id: opaque dispatch key reported back by the matcher; defaults to the
  descriptor itself.

Quick example:
    >>> from argstep.arguments import switch, integer, positional
    >>> @switch("v", "verbose", "Enable verbose logging")
    ... def on_verbose(parser): ...
    >>> @integer("j", "jobs", "Number of jobs to run in parallel", hint="JOBS")
    ... def on_jobs(parser, jobs): ...
    >>> @positional("input.json...")
    ... def on_input(parser, token): ...
"""
import functools
import operator
import re
from enum import IntEnum

from .faults import NamelessArgumentError
from .utils import *


class Kind(IntEnum):
    """
    Argument kinds, in the order values are coerced.
    """
    VOID = 0
    INTEGER = 1
    STRING = 2
    SUBCOMMAND = 3

    @property
    def typename(self):
        """
        Generic name used in help when no value hint is available.
        """
        return {Kind.INTEGER: "int", Kind.STRING: "string"}.get(self)

    @property
    def valued(self):
        return self in (Kind.INTEGER, Kind.STRING)


class ArgumentType(type):
    """
    Metaclass giving descriptors stable introspection.

    Responsibilities
    - __typename__ derived from the class name (camel-case split with hyphens)
      for messages.
    - Read-only properties for every name in __introspectable__ via mirror().
    - Concise __repr__ and a __rich_repr__ for pretty printers.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                # The default id is the descriptor itself; skip it to avoid recursion.
                if name == "id" and self._id is self:
                    continue
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class Handled:
    """
    Mixin for declared objects carrying an optional bound handler.
    """
    _callback = Unset

    def bind(self, callback, /):
        """
        Bind `callback` as this object's handler (allowed only once).
        """
        name = type(self).__typename__
        if not callable(callback):
            raise TypeError(f"{name} handler must be callable")
        if self._callback is not Unset:
            raise TypeError(f"{name} handler can be bound only once")
        self._callback = callback
        return self

    @property
    def bound(self):
        return self._callback is not Unset

    def __call__(self, *args):
        if self._callback is Unset:
            return
        return self._callback(*args)


def _sanitize_text(cls, metadata, field, /):
    # Unset and None both mean "absent"; strings must be non-empty.
    value = metadata[field]
    if value is None or value is Unset:
        metadata[field] = None
    elif not isinstance(value, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    elif not value.strip():
        raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate short/long names of an Argument.

    Rules
    - short: exactly one character when provided.
    - long: non-empty, no '=' (the long-option value separator) and no
      whitespace.
    - at least one of them must be present (NamelessArgumentError otherwise).
    - subcommands are addressed by their long name only.
    """
    short, long = metadata["short"], metadata["long"]
    short = None if short is Unset else short
    long = None if long is Unset else long

    if short is not None:
        if not isinstance(short, str):
            raise TypeError(f"{cls.__typename__} 'short' must be a string")
        elif len(short) != 1:
            raise ValueError(f"{cls.__typename__} 'short' must be a single character")

    if long is not None:
        if not isinstance(long, str):
            raise TypeError(f"{cls.__typename__} 'long' must be a string")
        elif not long or re.search(r"[=\s]", long):
            raise ValueError(f"{cls.__typename__} 'long' must be non-empty and contain no '=' or whitespace")

    if short is None and long is None:
        raise NamelessArgumentError(f"{cls.__typename__} must have a short or a long name")

    if metadata["kind"] is Kind.SUBCOMMAND and short is not None:
        raise ValueError(f"{cls.__typename__} subcommands are addressed by name only")

    metadata["short"] = short
    metadata["long"] = long


class Argument(Handled, metaclass=ArgumentType):
    """
    One declared option or subcommand.

    An Argument is a lightweight, immutable descriptor. Its handler (if any)
    is bound with bind() or by the decorator factories, and is looked up by
    the driver through the argument's id.

    Properties
    - id: dispatch key reported back in matches (defaults to the argument).
    - short / long: names; at least one is set.
    - descr: help description; None hides the entry from help.
    - kind: Kind member.
    - hint: value placeholder name for help; None falls back to kind.typename.
    """

    __introspectable__ = (
        "id",
        "short",
        "long",
        "descr",
        "kind",
        "hint",
    )

    def __init__(self, short=Unset, long=Unset, descr=Unset, *, kind=Kind.VOID, hint=Unset, id=Unset):
        if not isinstance(kind, Kind):
            raise TypeError(f"{type(self).__typename__} 'kind' must be a Kind member")

        metadata = {
            "short": short,
            "long": long,
            "descr": descr,
            "kind": kind,
            "hint": hint,
        }
        _sanitize_names(type(self), metadata)
        _sanitize_text(type(self), metadata, "descr")
        _sanitize_text(type(self), metadata, "hint")

        if metadata["hint"] is not None and not kind.valued:
            raise TypeError(f"{type(self).__typename__} 'hint' is only allowed for valued kinds")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._id = coalesce(id, self)

    @property
    def valued(self):
        """
        True when a value is extracted after this argument matches.
        """
        return self._kind.valued

    def placeholder(self, varnames=True):
        """
        Return the help placeholder for the value, e.g. "<NAME>" or "<int>".

        Returns an empty string for arguments that take no value.
        """
        if not self.valued:
            return ""
        if varnames and self._hint:
            return f"<{self._hint}>"
        return f"<{self._kind.typename}>"

    def label(self, prefix="--", varnames=True):
        """
        Return the help label, e.g. "-j, --jobs <JOBS>", "    --dry-run" or "-x".

        Short names occupy a fixed two-character slot followed by ", " (or
        two spaces when there is no short name) so long names line up.
        Subcommands are labelled by their name alone.
        """
        if self._kind is Kind.SUBCOMMAND:
            return self._long
        short = f"-{self._short}" if self._short is not None else "  "
        if self._long is not None:
            label = short + (", " if self._short is not None else "  ") + prefix + self._long
        else:
            label = short
        if self.valued:
            label += " " + self.placeholder(varnames)
        return label

    def display(self, prefix="--"):
        """
        Return the spelling used in messages: prefix+long, else -short.
        """
        if self._kind is Kind.SUBCOMMAND:
            return self._long
        if self._long is not None:
            return prefix + self._long
        return "-" + self._short


class Positional(Handled, metaclass=ArgumentType):
    """
    Positional catchall marker; `usage` is shown in the usage line.
    """

    __introspectable__ = ("usage",)

    def __init__(self, usage=Unset):
        metadata = {"usage": usage}
        _sanitize_text(type(self), metadata, "usage")
        self._usage = metadata["usage"]


class Other(Handled, metaclass=ArgumentType):
    """
    Catchall for tokens that match no declared argument.
    """


class Ending(Handled, metaclass=ArgumentType):
    """
    End-of-input handler marker.
    """


def _decorator(name, object, /):
    # Build a single-use decorator binding the function to `object`.
    @rename(name)
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError(f"@{name}() must be applied to a callable")
        if object.bound:
            raise TypeError(f"@{name}() must be applied only once")
        return object.bind(callback)

    return wrapper


def switch(short=Unset, long=Unset, descr=Unset, *, id=Unset):
    """
    Decorator/factory for a value-less option: handler(parser).
    """
    return _decorator("switch", Argument(short, long, descr, kind=Kind.VOID, id=id))


def option(short=Unset, long=Unset, descr=Unset, *, hint=Unset, id=Unset):
    """
    Decorator/factory for a string option: handler(parser, value).
    """
    return _decorator("option", Argument(short, long, descr, kind=Kind.STRING, hint=hint, id=id))


def integer(short=Unset, long=Unset, descr=Unset, *, hint=Unset, id=Unset):
    """
    Decorator/factory for an integer option: handler(parser, value).

    Values are parsed with base autodetection (0x.. hex, 0.. octal, decimal).
    """
    return _decorator("integer", Argument(short, long, descr, kind=Kind.INTEGER, hint=hint, id=id))


def command(name, descr=Unset, *, id=Unset):
    """
    Decorator/factory for a subcommand: handler(parser).

    The handler typically opens the nested scope with parser.enter(...).
    """
    return _decorator("command", Argument(Unset, name, descr, kind=Kind.SUBCOMMAND, id=id))


def positional(usage=Unset):
    """
    Decorator/factory for the positional catchall: handler(parser, token).
    """
    return _decorator("positional", Positional(usage))


def other():
    """
    Decorator/factory for the unmatched-token catchall: handler(parser, token).
    """
    return _decorator("other", Other())


def ending():
    """
    Decorator/factory for the end-of-input handler: handler(parser).
    """
    return _decorator("ending", Ending())


__all__ = (
    # Types
    "Kind",
    "Argument",
    "Positional",
    "Other",
    "Ending",

    # Decorators
    "switch",
    "option",
    "integer",
    "command",
    "positional",
    "other",
    "ending",
)

# Keep the metaclass out of star-imports.
del ArgumentType
