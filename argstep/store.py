"""
Argstep descriptor store and lookup indexes.

A Store is filled in two passes over the same declarations:
1. tally(): count every declaration by bucket and allocate fixed-size tables.
2. install(): place every declaration in its tables, then seal() sorts the
   buckets, rejects duplicates and computes help column widths.

Buckets
- commands: subcommands, sorted by name.
- longs: options with a long name, sorted by name. Subcommands and long
  options live in separate namespaces.
- shorts: options with a short name, sorted by character. Short names are
  unique across the whole context, and two bitmaps (indexed by code point)
  answer "is this a known short option?" and "does it expect a value?" in
  constant time while short option groups are validated.

Lookups use binary search; the flat declaration-order table drives help.
"""
import bisect
import operator

from .arguments import Kind, Argument, Positional, Other, Ending
from .matcher import Tag
from .faults import (
    NoHandlersError,
    DuplicateNameError,
    CapacityMismatchError,
    ReservedIdentifierError,
)

# Long names wider than this wrap their description onto the next line.
LONG_NAME_LIMIT = 30

_MARKERS = {Positional: "positional", Other: "other", Ending: "ending"}


def _declarations(source):
    # Declarations are an iterable, or a callable producing one per pass.
    return source() if callable(source) else source


class Store:
    """
    Descriptor tables of one parsing context.
    """

    def __init__(self):
        self._capacity = None
        self._fill = {}
        self._arguments = []
        self._commands = []
        self._longs = []
        self._shorts = []
        self._shortmap = 0
        self._valuemap = 0
        self._positional = None
        self._other = None
        self._ending = None
        self._sealed = False
        self.option_width = 0
        self.command_width = 0

    def tally(self, source, /):
        """
        Counting pass: size every bucket for the declarations in `source`.
        """
        capacity = dict.fromkeys(("arguments", "commands", "longs", "shorts"), 0)
        catchall = False
        for object in _declarations(source):
            if isinstance(object, Argument):
                capacity["arguments"] += 1
                if object.kind is Kind.SUBCOMMAND:
                    capacity["commands"] += 1
                elif object.long is not None:
                    capacity["longs"] += 1
                if object.short is not None:
                    capacity["shorts"] += 1
            elif isinstance(object, (Positional, Other)):
                catchall = True
            elif not isinstance(object, Ending):
                raise TypeError(f"cannot declare {object!r}, expected an argument or a catchall marker")

        if not capacity["arguments"] and not catchall:
            raise NoHandlersError("no arguments or catchall handlers were declared")

        self._capacity = capacity
        self._arguments = [None] * capacity["arguments"]
        self._commands = [None] * capacity["commands"]
        self._longs = [None] * capacity["longs"]
        self._shorts = [None] * capacity["shorts"]
        self._fill = dict.fromkeys(capacity, 0)
        return capacity

    def install(self, source, /):
        """
        Initialization pass: place every declaration in its tables.
        """
        if self._capacity is None:
            raise RuntimeError("install() called before tally()")
        for object in _declarations(source):
            self.add(object)

    def add(self, object, /):
        if self._sealed:
            raise RuntimeError("cannot add declarations to a sealed store")

        if isinstance(object, tuple(_MARKERS)):
            name = "_" + _MARKERS[type(object)]
            if getattr(self, name) is not None:
                raise DuplicateNameError(f"{_MARKERS[type(object)]} handler declared more than once")
            setattr(self, name, object)
            return

        if not isinstance(object, Argument):
            raise TypeError(f"cannot declare {object!r}, expected an argument or a catchall marker")

        if isinstance(object.id, Tag):
            raise ReservedIdentifierError(f"argument id {object.id!r} is reserved for control steps")

        self._put("arguments", self._arguments, object)
        if object.kind is Kind.SUBCOMMAND:
            self._put("commands", self._commands, object)
        elif object.long is not None:
            self._put("longs", self._longs, object)
        if object.short is not None:
            self._put("shorts", self._shorts, object)
            self._shortmap |= 1 << ord(object.short)
            if object.valued:
                self._valuemap |= 1 << ord(object.short)

    def _put(self, bucket, table, object):
        position = self._fill[bucket]
        if position >= len(table):
            raise CapacityMismatchError(
                f"more {bucket} were declared during initialization than counted ({len(table)})"
            )
        table[position] = object
        self._fill[bucket] = position + 1

    def seal(self, config, /):
        """
        Finish initialization: sort, reject duplicates and size help columns.
        """
        for bucket, count in self._capacity.items():
            if self._fill[bucket] != count:
                raise CapacityMismatchError(
                    f"{self._fill[bucket]} {bucket} were declared during initialization but {count} were counted"
                )

        self._commands.sort(key=operator.attrgetter("long"))
        self._longs.sort(key=operator.attrgetter("long"))
        self._shorts.sort(key=operator.attrgetter("short"))

        for table, field, spell in (
            (self._commands, "long", lambda name: f"subcommand {name!r}"),
            (self._longs, "long", lambda name: f"option '{config.prefix}{name}'"),
            (self._shorts, "short", lambda name: f"option '-{name}'"),
        ):
            for previous, current in zip(table, table[1:]):
                if getattr(previous, field) == getattr(current, field):
                    raise DuplicateNameError(f"{spell(getattr(current, field))} declared more than once")

        visible = [argument for argument in self._arguments if argument.descr is not None]
        self.option_width = max((
            len(argument.label(config.prefix, config.varnames))
            for argument in visible if argument.kind is not Kind.SUBCOMMAND
        ), default=0)
        self.option_width = min(self.option_width, 4 + len(config.prefix) + LONG_NAME_LIMIT)
        self.command_width = max((
            len(argument.long) for argument in visible if argument.kind is Kind.SUBCOMMAND
        ), default=0)

        self._sealed = True

    def release(self):
        """
        Drop every table; lookups on a released store find nothing.
        """
        self.__init__()

    @property
    def sealed(self):
        return self._sealed

    @property
    def arguments(self):
        """
        Arguments in declaration order.
        """
        return tuple(self._arguments)

    @property
    def commands(self):
        return tuple(self._commands)

    @property
    def longs(self):
        return tuple(self._longs)

    @property
    def shorts(self):
        """
        Short-named arguments, sorted by character.
        """
        return tuple(self._shorts)

    @property
    def positional(self):
        return self._positional

    @property
    def other(self):
        return self._other

    @property
    def ending(self):
        return self._ending

    @property
    def catchall(self):
        """
        True when unmatched tokens have somewhere to go.
        """
        return self._positional is not None or self._other is not None

    def command(self, name, /):
        return self._search(self._commands, "long", name)

    def long(self, name, /):
        return self._search(self._longs, "long", name)

    def short(self, char, /):
        if not self.has_short(char):
            return None
        return self._search(self._shorts, "short", char)

    def has_short(self, char, /):
        return bool(self._shortmap >> ord(char) & 1)

    def expects_value(self, char, /):
        return bool(self._valuemap >> ord(char) & 1)

    @staticmethod
    def _search(table, field, key):
        getter = operator.attrgetter(field)
        position = bisect.bisect_left(table, key, key=getter)
        if position < len(table) and getter(table[position]) == key:
            return table[position]
        return None


__all__ = (
    "Store",
    "LONG_NAME_LIMIT",
)
