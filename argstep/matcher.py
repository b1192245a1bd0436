"""
Argstep matcher: token classification.

What this module provides
- Tag: the cases of a classification step. Control tags (COUNT, INIT, END,
  BREAK, ERROR, HELP) never share a value space with descriptor ids, which
  are carried separately on MATCHED results.
- Match: one classification result (tag + matched argument, token, decoded
  value, fault, embedded '=value' candidate and argv index).
- Matcher: classifies the next token of a parser context.

Classification order
1. pending characters of a short option group (e.g. the 'zf' of '-xzf')
2. input exhausted                           -> END
3. after the dashdash marker                 -> POSITIONAL
4. exact subcommand name                     -> MATCHED (subcommand)
5. <prefix>name[=value]                      -> MATCHED | HELP | UNMATCHED
6. the dashdash marker itself                -> switch to positional mode
7. '', '-' or no leading dash                -> POSITIONAL
8. '-x'                                      -> MATCHED | UNMATCHED
9. '-xyz' (short group)                      -> MATCHED | UNMATCHED | ERROR

POSITIONAL degrades to UNMATCHED when no positional catchall was declared,
and UNMATCHED becomes an UnknownOptionError when there is no catchall at all.
"""
from enum import Enum

from .faults import UnknownOptionError, MalformedShortGroupError
from .utils import ordinal


class Tag(Enum):
    COUNT = "count"
    INIT = "init"
    MATCHED = "matched"
    POSITIONAL = "positional"
    UNMATCHED = "unmatched"
    END = "end"
    BREAK = "break"
    ERROR = "error"
    HELP = "help"


class Match:
    """
    One classification step.

    Attributes
    - tag: Tag member.
    - argument: matched Argument (MATCHED only).
    - token: the argv token that produced this step, if any.
    - value: decoded value for valued arguments (after extraction).
    - fault: ParseError for ERROR steps.
    - embedded: text after '=' of a long option, before extraction.
    - index: argv index of `token`.
    """
    __slots__ = ("tag", "argument", "token", "value", "fault", "embedded", "index")

    def __init__(self, tag, /, argument=None, token=None, *, value=None, fault=None, embedded=None, index=None):
        self.tag = tag
        self.argument = argument
        self.token = token
        self.value = value
        self.fault = fault
        self.embedded = embedded
        self.index = index

    @property
    def id(self):
        """
        The matched argument's dispatch id (None for non-MATCHED steps).
        """
        return self.argument.id if self.argument is not None else None

    def __rich_repr__(self):
        yield "tag", self.tag
        for name in ("argument", "token", "value", "fault", "embedded", "index"):
            if (value := getattr(self, name)) is not None:
                yield name, value

    def __repr__(self):
        return "match(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


class Matcher:
    """
    Classifier bound to one parser context.

    State kept between steps
    - the unread remainder of a short option group;
    - whether the dashdash marker was seen (everything else is positional).
    """

    def __init__(self, parser, /):
        self._parser = parser
        self._group = ""
        self._verbatim = False

    def reset(self):
        """
        Drop any pending short option group characters.
        """
        self._group = ""

    def classify(self):
        """
        Return the Match for the next unread token (or pending group char).
        """
        parser = self._parser
        store = parser._store
        config = parser._config

        if self._group:
            char, self._group = self._group[0], self._group[1:]
            return Match(Tag.MATCHED, store.short(char), self._token, index=self._index)

        index = parser._cursor.index
        if (token := parser._take()) is None:
            return Match(Tag.END)
        self._token, self._index = token, index

        if self._verbatim:
            return self._positional(token, index)

        if (argument := store.command(token)) is not None:
            return Match(Tag.MATCHED, argument, token, index=index)

        prefix = config.prefix
        if token.startswith(prefix) and len(token) > len(prefix):
            name, separator, embedded = token[len(prefix):].partition("=")
            if (argument := store.long(name)) is not None:
                return Match(Tag.MATCHED, argument, token, embedded=embedded if separator else None, index=index)
            if config.autohelp and name == "help":
                return Match(Tag.HELP, token=token, index=index)
            return self._unmatched(token, index)

        if config.dashdash and token == prefix and not store.has_short("-"):
            parser._trace("dashdash marker at index %d, remaining tokens are positional", index)
            self._verbatim = True
            return self.classify()

        if not token.startswith("-") or len(token) == 1:
            return self._positional(token, index)

        if len(token) == 2:
            if (argument := store.short(token[1])) is not None:
                return Match(Tag.MATCHED, argument, token, index=index)
            return self._unmatched(token, index)

        if not config.shortgroups:
            return self._unmatched(token, index)

        last = len(token) - 1
        for position, char in enumerate(token[1:], 1):
            if not store.has_short(char):
                return self._unmatched(token, index, parser._fault(
                    MalformedShortGroupError,
                    "unsupported option '-%s' in %r at %s position" % (char, token, ordinal(index)),
                    token=token,
                    index=index,
                ))
            if store.expects_value(char) and position != last:
                return self._unmatched(token, index, parser._fault(
                    MalformedShortGroupError,
                    "option '-%s' in %r at %s position expects a value and must be the last character" % (
                        char, token, ordinal(index)
                    ),
                    token=token,
                    index=index,
                    hint="move '-%s' to the end of the group or pass it on its own" % char,
                ))

        self._group = token[2:]
        return Match(Tag.MATCHED, store.short(token[1]), token, index=index)

    def _positional(self, token, index):
        if self._parser._store.positional is not None:
            return Match(Tag.POSITIONAL, token=token, index=index)
        return self._unmatched(token, index)

    def _unmatched(self, token, index, fault=None):
        parser = self._parser
        if parser._store.catchall:
            return Match(Tag.UNMATCHED, token=token, index=index)
        if fault is None:
            fault = parser._fault(
                UnknownOptionError,
                "unexpected argument %r at %s position" % (token, ordinal(index)),
                token=token,
                index=index,
            )
        return Match(Tag.ERROR, token=token, fault=fault, index=index)


__all__ = (
    "Tag",
    "Match",
    "Matcher",
)
