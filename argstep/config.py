"""
Argstep per-context configuration.

Every parsing context owns one Config. Settings are validated once, exposed
read-only, and copied into child contexts by inherit():

    setting         default               inherited
    output          Console(stderr=True)  yes
    usage           None (synthesized)    no
    suffix          None                  no
    command_column  None (computed)       no
    option_column   None (computed)       no
    indent          2                     yes
    padding         2                     yes
    varnames        True                  yes
    typehints       False                 yes
    shortgroups     True                  yes
    autohelp        True                  yes
    dashdash        True                  yes
    prefix          "--"                  yes
    debug           False                 yes
    colorful        False                 yes

`output` accepts a rich Console, any object with a write() method (wrapped in
a Console writing to it), or None/False to silence help and fault output.
"""
from rich.console import Console

from .utils import *

_LOCAL = ("usage", "suffix", "command_column", "option_column")


def _text(name, value):
    if value is not None and (not isinstance(value, str) or not value):
        raise TypeError(f"config {name!r} must be a non-empty string or None")
    return value


def _column(name, value):
    if value is None:
        return value
    return _width(name, value)


def _width(name, value):
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"config {name!r} must be an integer")
    if value < 0:
        raise ValueError(f"config {name!r} cannot be negative")
    return value


def _flag(name, value):
    if not isinstance(value, bool):
        raise TypeError(f"config {name!r} must be a boolean")
    return value


def _prefix(name, value):
    if not isinstance(value, str) or not value or "=" in value or value.isspace():
        raise TypeError(f"config {name!r} must be a non-empty string without '='")
    return value


def _output(name, value):
    if value is None or value is False:
        return None
    if value is Unset:
        return Console(stderr=True)
    if isinstance(value, Console):
        return value
    if callable(getattr(value, "write", None)):
        return Console(file=value)
    raise TypeError(f"config {name!r} must be a rich Console, a writable stream or None")


class Config:
    """
    Validated, read-only settings of one parsing context.
    """
    __fields__ = {
        "output": (_output, Unset),
        "usage": (_text, None),
        "suffix": (_text, None),
        "command_column": (_column, None),
        "option_column": (_column, None),
        "indent": (_width, 2),
        "padding": (_width, 2),
        "varnames": (_flag, True),
        "typehints": (_flag, False),
        "shortgroups": (_flag, True),
        "autohelp": (_flag, True),
        "dashdash": (_flag, True),
        "prefix": (_prefix, "--"),
        "debug": (_flag, False),
        "colorful": (_flag, False),
    }

    __slots__ = tuple("_" + name for name in __fields__)

    def __init__(self, **options):
        for name, (sanitize, default) in self.__fields__.items():
            setattr(self, "_" + name, sanitize(name, options.pop(name, default)))
        if options:
            raise TypeError(f"unknown config option {next(iter(options))!r}")

    def update(self, **options):
        """
        Return a new Config with `options` applied over this one.
        """
        current = {name: getattr(self, "_" + name) for name in self.__fields__}
        return Config(**(current | options))

    def inherit(self, **options):
        """
        Return the Config of a child context: everything but the usage line,
        help suffix and pinned columns is carried over.
        """
        current = {name: getattr(self, "_" + name) for name in self.__fields__ if name not in _LOCAL}
        return Config(**(current | options))

    @property
    def console(self):
        """
        The output sink (rich Console) or None when output is disabled.
        """
        return self._output

    def __rich_repr__(self):
        for name, (_, default) in self.__fields__.items():
            value = getattr(self, "_" + name)
            if name != "output" and value != default:
                yield name, value

    def __repr__(self):
        return "config(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


for _name in Config.__fields__:
    setattr(Config, _name, mirror(_name))
del _name


__all__ = (
    "Config",
)
