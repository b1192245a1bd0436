"""
Argstep help rendering.

Layout (plain rendering, default config):

    Usage: tool [-Hjv] [OPTIONS] [FILE...] COMMAND...

    Commands:
      build  Build the project

    Options:
      -v, --verbose      Enable verbose logging
      -j, --jobs <JOBS>  Number of jobs to run in parallel
      -H                 Hello but in caps

- The usage line lists the context chain (root name then subcommand names),
  every short option name (case-insensitive order, uppercase first on ties),
  "[OPTIONS]" when long options exist, the positional usage text and
  "COMMAND..." when subcommands exist. A custom usage replaces it verbatim.
- Only arguments with a description are listed. Descriptions start at the
  pinned column or at indent + widest label + padding; when a label reaches
  past the column its description moves to the next line. Multi-line
  descriptions continue at the same column.
- typehints prefixes descriptions of valued options with "[int] "/"[string] ".

Styling applies only when the context is colorful; the palette can be
overridden with a __styles__ mapping in __main__.
"""
from collections import defaultdict

from rich.text import Text

from .arguments import Kind


def _palette(colorful):
    styles = defaultdict(str, {
        # === Head ===
        "usage-label": "bold #00E6FF",  # CYAN headline
        "program-name": "bold #FF4D94",  # MAGENTA-PINK brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE custom usage
        "suffix-section": "#737373",  # Dim footer gray

        # === Sections ===
        "group-label": "bold #FFFFFF",
        "argument-description": "#9CA3AF",  # Muted gray

        # === Names ===
        "option-name": "bold #00E6FF",
        "flag-name": "bold #22C55E",
        "command-name": "bold #36C5F0",
        "metavar": "bold #FFD600",  # AMBER placeholders
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        return Text(str(fragment), styler(style))

    return text


def _shortcut(char):
    return char.upper(), char


def usage(parser, /):
    """
    Return the usage line of `parser` as rich Text.
    """
    config = parser._config
    store = parser._store
    text = _palette(config.colorful)

    if config.usage is not None:
        return text(config.usage, "usage-section")

    line = Text.assemble(
        text("Usage:", "usage-label"),
        " ",
        text(" ".join(context.name for context in parser.path), "program-name"),
    )
    if shorts := "".join(sorted((argument.short for argument in store.shorts), key=_shortcut)):
        line.append(" [-").append_text(text(shorts, "option-name")).append("]")
    if store.longs:
        line.append(" [OPTIONS]")
    if store.positional is not None and store.positional.usage:
        line.append(" ").append_text(text(store.positional.usage, "metavar"))
    if store.commands:
        line.append(" COMMAND...")
    return line


def _entry(label, descr, indent, column, text):
    # label is already styled; descr lines start at `column`
    line = Text(" " * indent).append_text(label)
    if not descr:
        return line
    if len(line) >= column:
        line.append("\n" + " " * column)
    else:
        line.append(" " * (column - len(line)))
    first, *rest = descr.split("\n")
    line.append_text(text(first, "argument-description"))
    for continuation in rest:
        line.append("\n" + " " * column).append_text(text(continuation, "argument-description"))
    return line


def _label(argument, config, text):
    # Styled counterpart of Argument.label()
    name = "flag-name" if not argument.valued else "option-name"
    label = Text()
    if argument.short is not None:
        label.append_text(text("-" + argument.short, name))
    else:
        label.append("  ")
    if argument.long is not None:
        label.append(", " if argument.short is not None else "  ")
        label.append_text(text(config.prefix + argument.long, name))
    if argument.valued:
        label.append(" ").append_text(text(argument.placeholder(config.varnames), "metavar"))
    return label


def render(parser, /):
    """
    Return the full help text of `parser` as rich Text.
    """
    config = parser._config
    store = parser._store
    text = _palette(config.colorful)

    sections = [usage(parser)]

    commands = [argument for argument in store.arguments if argument.kind is Kind.SUBCOMMAND and argument.descr]
    if commands:
        column = config.command_column
        if column is None:
            column = config.indent + store.command_width + config.padding
        sections.append(Text("\n").join([
            text("Commands:", "group-label"),
            *(
                _entry(text(argument.long, "command-name"), argument.descr, config.indent, column, text)
                for argument in commands
            ),
        ]))

    options = [argument for argument in store.arguments if argument.kind is not Kind.SUBCOMMAND and argument.descr]
    if options:
        column = config.option_column
        if column is None:
            column = config.indent + store.option_width + config.padding
        entries = []
        for argument in options:
            descr = argument.descr
            if config.typehints and argument.valued:
                descr = f"[{argument.kind.typename}] {descr}"
            entries.append(_entry(_label(argument, config, text), descr, config.indent, column, text))
        sections.append(Text("\n").join([text("Options:", "group-label"), *entries]))

    if config.suffix is not None:
        sections.append(text(config.suffix, "suffix-section"))

    return Text("\n\n").join(sections)


__all__ = (
    "usage",
    "render",
)
