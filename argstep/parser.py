"""
Argstep parser: the step-wise parsing driver.

A Parser is one parsing context: an argument vector, a shared cursor into it,
the declared arguments, a Config and (for subcommands) a parent context.
Each call to step() advances the context's lifecycle by one step:

    COUNTING      -> Tag.COUNT   (declarations are counted, tables allocated)
    INITIALIZING  -> Tag.INIT    (declarations installed, indexes sealed)
    PARSING       -> one classification per step:
                     Tag.MATCHED, Tag.POSITIONAL, Tag.UNMATCHED, Tag.HELP,
                     Tag.ERROR (parse fault, reported to the output sink)
                     or Tag.END once input is exhausted
    END/BREAK/ERROR -> the context is released and step() returns None

Reaching the end of input still delivers one END step so the ending handler
can run. A subcommand match finishes the parent: its next step is END, after
the subcommand (entered with enter()) consumed the rest of the input.

Two ways to drive a context:

    # 1. dispatch to bound handlers
    parser = Parser(sys.argv, [verbose, jobs, build])
    outcome = parser.run()

    # 2. iterate raw steps
    for match in Parser(sys.argv, [verbose, jobs]):
        if match.id is verbose: ...

Handlers return None/Flow.CONTINUE to keep going, Flow.END to stop
consuming input (the ending handler still runs) or Flow.BREAK to stop
immediately.
"""
import logging
import os
import weakref
from enum import Enum

from rich.text import Text

from . import formatter
from .arguments import Kind, Positional, Other, Ending
from .config import Config
from .faults import ReservedIdentifierError
from .matcher import Tag, Match, Matcher
from .store import Store
from .utils import *
from .values import extract

logger = logging.getLogger(__name__)


class Flow(Enum):
    """
    Handler return values steering the loop.
    """
    CONTINUE = "continue"
    END = "end"
    BREAK = "break"


class State(Enum):
    COUNTING = "counting"
    INITIALIZING = "initializing"
    PARSING = "parsing"
    END = "end"
    BREAK = "break"
    ERROR = "error"
    RELEASED = "released"


_OUTCOMES = {State.END: Tag.END, State.BREAK: Tag.BREAK, State.ERROR: Tag.ERROR}

_IMPLICIT = ((Tag.POSITIONAL, Positional), (Tag.UNMATCHED, Other), (Tag.END, Ending))


class Cursor:
    """
    Mutable argv position shared by a context and its subcommand contexts.
    """
    __slots__ = ("index",)

    def __init__(self, index=1):
        if not isinstance(index, int) or isinstance(index, bool) or index < 0:
            raise TypeError("cursor index must be a non-negative integer")
        self.index = index

    def __repr__(self):
        return f"cursor(index={self.index})"


class Parser:
    """
    One parsing context.

    Parameters
    - argv: the full argument vector; argv[0] names the program.
    - arguments: declared Arguments and catchall markers, or a callable
      returning them (called once per initialization pass).
    - name: context name shown in usage; defaults to basename(argv[0]).
    - cursor: shared Cursor; defaults to a fresh one at index 1.
    - parent: enclosing context for subcommands.
    - **config: Config settings (see argstep.config).
    """

    def __init__(self, argv, arguments=(), /, *, name=Unset, cursor=Unset, parent=None, **config):
        argv = tuple(argv)
        if not all(isinstance(token, str) for token in argv):
            raise TypeError("argv must contain only strings")
        if name is Unset:
            if not argv:
                raise ValueError("argv must start with the program name")
            name = os.path.basename(argv[0]) or argv[0]
        if not isinstance(name, str) or not name:
            raise TypeError("parser name must be a non-empty string")
        if parent is not None and not isinstance(parent, Parser):
            raise TypeError("parser parent must be a Parser")

        cursor = coalesce(cursor, Cursor())
        if not isinstance(cursor, Cursor):
            raise TypeError("parser cursor must be a Cursor")

        self._argv = argv
        self._name = name
        self._parent = weakref.ref(parent) if parent is not None else None
        self._cursor = cursor
        self._start = cursor.index
        self._config = parent.config.inherit(**config) if parent is not None else Config(**config)
        self._declarations = arguments if callable(arguments) else list(arguments)
        self._implicit = []
        self._store = Store()
        self._matcher = Matcher(self)
        self._state = State.COUNTING
        self._outcome = None
        self._match = None
        self._error = None
        self._finishing = False

    @classmethod
    def resume(cls, argv, cursor, arguments=(), /, **options):
        """
        Start a context over `argv` at an existing cursor position.

        Used to continue parsing in a separate function, e.g. one function
        per subcommand sharing the same cursor.
        """
        return cls(argv, arguments, cursor=cursor, **options)

    name = mirror("name")
    argv = mirror("argv")
    cursor = mirror("cursor")
    config = mirror("config")
    state = mirror("state")
    outcome = mirror("outcome")

    @property
    def parent(self):
        """
        The enclosing context (held weakly), or None at the root.
        """
        return self._parent() if self._parent is not None else None

    @property
    def path(self):
        """
        Contexts from the root down to this one.
        """
        path, context = [], self
        while context is not None:
            path.append(context)
            context = context.parent
        return tuple(reversed(path))

    @property
    def root(self):
        return self.path[0]

    @property
    def chain(self):
        """
        Space-separated context names, e.g. "tool build".
        """
        return " ".join(context._name for context in self.path)

    @property
    def fault(self):
        """
        The ParseError that ended this context, if any.
        """
        return self._error

    @property
    def match(self):
        """
        The most recently delivered step.
        """
        return self._match

    @property
    def argument(self):
        if self._match is None:
            return None
        return self._match.argument

    @property
    def value(self):
        """
        Decoded value of the current match (int or str), None when valueless.
        """
        if self._match is None:
            return None
        return self._match.value

    @property
    def index(self):
        """
        argv index of the token currently being handled.
        """
        if self._match is None:
            return None
        return self._match.index

    def declare(self, object, /):
        """
        Add a declaration before counting starts; returns `object` so it can
        be stacked on top of the decorator factories.
        """
        if self._state is not State.COUNTING:
            raise RuntimeError("arguments can only be declared before parsing starts")
        if callable(self._declarations):
            raise TypeError("cannot declare arguments on a parser built from a declaration callable")
        self._declarations.append(object)
        return object

    def configure(self, **options):
        """
        Change settings; allowed until the INIT step is produced.
        """
        if self._state not in (State.COUNTING, State.INITIALIZING):
            raise RuntimeError("configuration can only change before parsing starts")
        self._config = self._config.update(**options)

    def _declared(self):
        if callable(self._declarations):
            yield from self._declarations()
        else:
            yield from self._declarations
        yield from self._implicit

    def _take(self):
        # Consume the token under the cursor, if any.
        if self._cursor.index >= len(self._argv):
            return None
        token = self._argv[self._cursor.index]
        self._cursor.index += 1
        return token

    def step(self):
        """
        Advance by one step and return its Match, or None once released.
        """
        match self._state:
            case State.COUNTING:
                capacity = self._store.tally(self._declared)
                self._trace(
                    "counted %d arguments (%d commands, %d long, %d short)",
                    capacity["arguments"], capacity["commands"], capacity["longs"], capacity["shorts"],
                )
                self._state = State.INITIALIZING
                return self._deliver(Match(Tag.COUNT))

            case State.INITIALIZING:
                self._store.install(self._declared)
                self._store.seal(self._config)
                self._state = State.PARSING
                return self._deliver(Match(Tag.INIT))

            case State.PARSING:
                if self._finishing:
                    match = Match(Tag.END)
                else:
                    match = self._matcher.classify()
                    if match.tag is Tag.MATCHED and match.argument.kind is not Kind.SUBCOMMAND:
                        match = extract(self, match)

                if match.tag is Tag.END:
                    self._state = State.END
                elif match.tag is Tag.ERROR:
                    self._state = State.ERROR
                    self._error = match.fault
                    self._report(match.fault)
                elif match.tag is Tag.MATCHED and match.argument.kind is Kind.SUBCOMMAND:
                    self._finishing = True
                return self._deliver(match)

            case State.END | State.BREAK | State.ERROR:
                self._release()
                return None

            case _:
                return None

    def __iter__(self):
        while (match := self.step()) is not None:
            yield match

    def run(self, handlers=None, /):
        """
        Drive the context to completion, dispatching every step.

        `handlers` optionally maps argument ids (or Tag.POSITIONAL,
        Tag.UNMATCHED, Tag.END) to callables, taking precedence over handlers
        bound with the decorators. Returns Tag.END, Tag.BREAK or Tag.ERROR.
        """
        table = self._table(handlers)
        try:
            for match in self:
                flow = self._dispatch(match, table)
                if flow is None or flow is Flow.CONTINUE:
                    continue
                if flow is Flow.BREAK:
                    self.abort()
                elif flow is Flow.END:
                    self.finish()
                else:
                    raise TypeError(f"handlers must return a Flow member or None, not {flow!r}")
        finally:
            self._release()
        return self._outcome

    def _table(self, handlers):
        table = {}
        for key, handler in (handlers or {}).items():
            if isinstance(key, Tag) and key not in dict(_IMPLICIT):
                raise ReservedIdentifierError(f"{key!r} is a control step and cannot be handled")
            if not callable(handler):
                raise TypeError(f"handler for {key!r} must be callable")
            table[key] = handler

        # Tag handlers stand in for undeclared catchall markers.
        if self._state is State.COUNTING:
            declared = list(self._declared())
            for tag, marker in _IMPLICIT:
                if tag in table and not any(isinstance(object, marker) for object in declared):
                    self._implicit.append(marker())
        return table

    def _dispatch(self, match, table):
        store = self._store
        match match.tag:
            case Tag.MATCHED:
                argument = match.argument
                handler = table.get(argument.id, argument)
                if argument.valued:
                    return handler(self, match.value)
                return handler(self)
            case Tag.POSITIONAL:
                return table.get(Tag.POSITIONAL, store.positional)(self, match.token)
            case Tag.UNMATCHED:
                if Tag.UNMATCHED in table:
                    return table[Tag.UNMATCHED](self, match.token)
                if store.other is not None:
                    return store.other(self, match.token)
                return table.get(Tag.POSITIONAL, store.positional)(self, match.token)
            case Tag.END:
                if (handler := table.get(Tag.END, store.ending)) is not None:
                    return handler(self)
            case Tag.HELP:
                self.help()
                return Flow.BREAK
        return None

    def enter(self, arguments=(), /, **config):
        """
        Open the nested context of the subcommand currently being handled.

        The child shares this context's cursor and inherits its settings
        (except usage, suffix and pinned columns).
        """
        match = self._match
        if (
            self._state is not State.PARSING
            or match is None
            or match.tag is not Tag.MATCHED
            or match.argument.kind is not Kind.SUBCOMMAND
        ):
            raise RuntimeError("enter() is only valid while handling a subcommand match")
        self._trace("entering subcommand %r at index %d", match.argument.long, self._cursor.index)
        return Parser(self._argv, arguments, name=match.argument.long, cursor=self._cursor, parent=self, **config)

    def next(self):
        """
        Consume and return the next raw token, or None at the end of input.
        """
        if self._state is not State.PARSING:
            raise RuntimeError("next() is only valid while parsing")
        return self._take()

    def rewind(self, count=1, /):
        """
        Move the cursor back by `count` tokens so they are classified again.
        """
        if not isinstance(count, int) or isinstance(count, bool) or count < 0:
            raise TypeError("rewind() count must be a non-negative integer")
        if self._state is not State.PARSING:
            raise RuntimeError("rewind() is only valid while parsing")
        if self._cursor.index - count < self._start:
            raise ValueError(f"cannot rewind {count} tokens past the start of {self._name!r}")
        self._matcher.reset()
        self._cursor.index -= count

    def abort(self):
        """
        Stop parsing; the next step releases the context with Tag.BREAK.
        """
        if self._state in (State.RELEASED, State.ERROR):
            return
        self._trace("aborted")
        self._state = State.BREAK

    def finish(self):
        """
        Stop consuming input; the next step is the END grace step.
        """
        if self._state is State.PARSING:
            self._matcher.reset()
            self._finishing = True

    def help(self):
        """
        Print the help text to the output sink and return it as plain text.
        """
        self._ensure_sealed("help")
        text = formatter.render(self)
        if (console := self._config.console) is not None:
            console.print(text, soft_wrap=True, highlight=False)
        return text.plain

    def usage(self):
        """
        Return the usage line as plain text.
        """
        self._ensure_sealed("usage")
        return formatter.usage(self).plain

    def _ensure_sealed(self, operation):
        if self._state is State.RELEASED:
            raise RuntimeError(f"{operation}() is not available once the parser was released")
        if not self._store.sealed:
            raise RuntimeError(f"{operation}() is not available before the arguments are initialized")

    def _deliver(self, match):
        self._match = match
        self._trace("step %r", match)
        return match

    def _release(self):
        if self._state is State.RELEASED:
            return
        self._outcome = _OUTCOMES.get(self._state)
        self._trace("released (%s)", self._outcome.name.lower() if self._outcome else "interrupted")
        self._store.release()
        self._matcher.reset()
        self._state = State.RELEASED

    def _hint(self):
        if self._config.autohelp or self._store.long("help") is not None:
            return f"run '{self.chain} {self._config.prefix}help' to see the valid arguments"
        return None

    def _fault(self, cls, message, /, **options):
        return cls(message, **({
            "prog": self.chain,
            "colorful": self._config.colorful,
            "hint": self._hint(),
        } | options))

    def _report(self, fault):
        logger.debug("%s: %s", self.chain, fault)
        if (console := self._config.console) is not None:
            console.print(fault, soft_wrap=True)

    def _trace(self, message, /, *args):
        logger.debug("%s: " + message, self.chain, *args)
        if self._config.debug and (console := self._config.console) is not None:
            console.print(
                Text(f"[argstep] {self.chain}: {message % args}", style="dim" if self._config.colorful else ""),
                soft_wrap=True,
            )

    def __rich_repr__(self):
        yield "name", self._name
        yield "state", self._state
        yield "cursor", self._cursor

    def __repr__(self):
        return "parser(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


__all__ = (
    "Flow",
    "State",
    "Cursor",
    "Parser",
)
