"""
Argstep value extraction and integer decoding.

- parse_integer(text): strict integer parsing with base autodetection
  ("0x"/"0X" -> 16, leading "0" -> 8, otherwise 10). The whole text must be
  consumed; empty text, surrounding whitespace, "08" and a bare "0x" are
  rejected. Values are unbounded Python ints.
- extract(parser, match): resolve the value of a MATCHED step. The value
  comes from the embedded "--name=value" text when present, otherwise from
  the next argv token (consumed even when it starts with a dash).
"""
import re

from .arguments import Kind
from .faults import MissingValueError, InvalidIntegerError, EmbeddedValueError
from .matcher import Tag, Match
from .utils import ordinal

_INTEGER = re.compile(r"([+-]?)(?:0[xX]([0-9a-fA-F]+)|(0[0-7]*)|([1-9][0-9]*))")


def parse_integer(text, /):
    """
    Parse `text` as a signed integer, raising ValueError when it is not one.

    >>> parse_integer("0x1F"), parse_integer("017"), parse_integer("-42")
    (31, 15, -42)
    """
    if not isinstance(text, str):
        raise TypeError("parse_integer() argument must be a string")
    if (match := _INTEGER.fullmatch(text)) is None:
        raise ValueError(f"invalid integer literal {text!r}")

    sign, hexadecimal, octal, decimal = match.groups()
    if hexadecimal is not None:
        value = int(hexadecimal, 16)
    elif octal is not None:
        value = int(octal, 8)
    else:
        value = int(decimal, 10)
    return -value if sign == "-" else value


def extract(parser, match, /):
    """
    Return `match` with its value resolved, or an ERROR/UNMATCHED step.
    """
    argument = match.argument
    config = parser._config

    if not argument.valued:
        if match.embedded is None:
            return match
        # '--flag=value' for a value-less option
        if parser._store.catchall:
            return Match(Tag.UNMATCHED, token=match.token, index=match.index)
        return Match(Tag.ERROR, token=match.token, index=match.index, fault=parser._fault(
            EmbeddedValueError,
            "option '%s' at %s position does not take a value" % (argument.display(config.prefix), ordinal(match.index)),
            token=match.token,
            index=match.index,
            hint="pass '%s' without '=%s'" % (argument.display(config.prefix), match.embedded),
        ))

    text = match.embedded
    if text is None and (text := parser._take()) is None:
        return Match(Tag.ERROR, token=match.token, index=match.index, fault=parser._fault(
            MissingValueError,
            "option '%s' at %s position expects a value" % (argument.display(config.prefix), ordinal(match.index)),
            token=match.token,
            index=match.index,
            hint="usage: %s %s" % (argument.display(config.prefix), argument.placeholder(config.varnames)),
        ))

    if argument.kind is Kind.INTEGER:
        try:
            value = parse_integer(text)
        except ValueError:
            return Match(Tag.ERROR, token=match.token, index=match.index, fault=parser._fault(
                InvalidIntegerError,
                "option '%s' expects an integer but got %r" % (argument.display(config.prefix), text),
                token=match.token,
                index=match.index,
                hint="use a decimal (42), octal (052) or hexadecimal (0x2A) number",
            ))
    else:
        value = text

    return Match(Tag.MATCHED, argument, match.token, value=value, index=match.index)


__all__ = (
    "parse_integer",
    "extract",
)
