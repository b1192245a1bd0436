"""
Argstep faults (parse errors and configuration errors) and rendering.

Scope
- FaultCode: stable numeric identifiers for every fault the engine can report.
  Codes are grouped by domain so logs and searches stay predictable:
  • 111xx: parse errors caused by the argument vector (recoverable).
  • 131xx: configuration errors caused by how the engine was declared (fatal).
- ParseError: base type for bad input. Parse errors are reported to the
  context's output sink and end the current parsing loop in the Error state;
  they are never raised out of the driver.
- ConfigurationError: base type for programmer errors. These are raised
  immediately and are never caught by the engine.

Rendering
- ParseError implements __rich__ so a rich Console prints a short header,
  the lowercased message and a single actionable hint.
- Styling is applied only when the fault carries colorful=True; a host can
  override the palette with a __styles__ mapping in __main__.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - parse errors (111xx)
      • MALFORMED_SHORT_GROUP, UNKNOWN_OPTION, EMBEDDED_VALUE,
        MISSING_VALUE, INVALID_INTEGER
    - configuration errors (131xx)
      • NO_HANDLERS, DUPLICATE_NAME, NAMELESS_ARGUMENT,
        CAPACITY_MISMATCH, RESERVED_IDENTIFIER
    """
    # --- parse errors (111xx) ---
    MALFORMED_SHORT_GROUP   = 11111
    UNKNOWN_OPTION          = 11112
    EMBEDDED_VALUE          = 11113
    MISSING_VALUE           = 11117
    INVALID_INTEGER         = 11124

    # --- configuration errors (131xx) ---
    NO_HANDLERS             = 13101
    DUPLICATE_NAME          = 13102
    NAMELESS_ARGUMENT       = 13103
    CAPACITY_MISMATCH       = 13104
    RESERVED_IDENTIFIER     = 13105


class ParseError(Exception):
    """
    Base type for recoverable faults found in the argument vector.

    The message is a short lowercase sentence; everything else (title, code,
    hint, token, index, prog, colorful) lives in the read-only `options`
    mapping so renderers and callers can inspect it.
    """
    code = Unset
    title = "parse error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": self.code, "title": self.title} | options)

    @property
    def token(self):
        return self.options.get("token")

    @property
    def index(self):
        return self.options.get("index")

    def __str__(self):
        return str(self.message) if self.message else self.title

    def __rich__(self):
        colorful = self.options.get("colorful", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(__import__("__main__"), "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        header = Text.assemble(
            "[ ",
            text(self.options.get("prog") or "argstep", "prog-name"),
            " - ",
            text(self.options["code"], "code"),
            " | ",
            text(self.options["title"].title(), "error-title"),
            " ]"
        )
        renders = [header, text(self.message, "error-message")]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" -> ", "hint-arrow"), text(hint, "hint")))
        return Group(*renders)


class UnknownOptionError(ParseError):
    code = FaultCode.UNKNOWN_OPTION
    title = "unknown option"


class MissingValueError(ParseError):
    code = FaultCode.MISSING_VALUE
    title = "missing value"


class InvalidIntegerError(ParseError):
    code = FaultCode.INVALID_INTEGER
    title = "invalid integer"


class MalformedShortGroupError(ParseError):
    code = FaultCode.MALFORMED_SHORT_GROUP
    title = "malformed short option group"


class EmbeddedValueError(ParseError):
    code = FaultCode.EMBEDDED_VALUE
    title = "unexpected value"


class ConfigurationError(Exception):
    """
    Base type for programmer errors (broken declarations, never bad input).
    """
    code = Unset

    def __init__(self, message, /):
        super().__init__(message)
        self.message = message


class NoHandlersError(ConfigurationError):
    code = FaultCode.NO_HANDLERS


class DuplicateNameError(ConfigurationError):
    code = FaultCode.DUPLICATE_NAME


class NamelessArgumentError(ConfigurationError):
    code = FaultCode.NAMELESS_ARGUMENT


class CapacityMismatchError(ConfigurationError):
    code = FaultCode.CAPACITY_MISMATCH


class ReservedIdentifierError(ConfigurationError):
    code = FaultCode.RESERVED_IDENTIFIER


__all__ = (
    "FaultCode",
    "ParseError",
    "UnknownOptionError",
    "MissingValueError",
    "InvalidIntegerError",
    "MalformedShortGroupError",
    "EmbeddedValueError",
    "ConfigurationError",
    "NoHandlersError",
    "DuplicateNameError",
    "NamelessArgumentError",
    "CapacityMismatchError",
    "ReservedIdentifierError",
)
