"""
Faults module behavioral tests (codes, options and rich rendering).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from argstep import (
    FaultCode,
    ParseError,
    UnknownOptionError,
    MissingValueError,
    ConfigurationError,
    DuplicateNameError,
    ReservedIdentifierError,
)


def render(fault):
    output = io.StringIO()
    Console(file=output, width=120).print(fault, soft_wrap=True)
    return output.getvalue()


class TestParseError(TestCase):
    """Behavioral tests for recoverable faults."""

    def testCodesAndTitles(self):
        fault = UnknownOptionError("unexpected argument '--x' at first position")
        self.assertEqual(fault.code, FaultCode.UNKNOWN_OPTION)
        self.assertEqual(fault.options["code"], 11112)
        self.assertEqual(fault.options["title"], "unknown option")
        self.assertIsInstance(fault, ParseError)

    def testStrIsMessage(self):
        self.assertEqual(str(MissingValueError("option '--name' expects a value")), "option '--name' expects a value")
        self.assertEqual(str(MissingValueError()), "missing value")

    def testOptionsAreReadOnly(self):
        fault = UnknownOptionError("bad", token="--x", index=3)
        self.assertEqual(fault.token, "--x")
        self.assertEqual(fault.index, 3)
        with self.assertRaises(TypeError):
            fault.options["token"] = "--y"

    def testRenderHeaderMessageAndHint(self):
        fault = UnknownOptionError("unexpected argument '--x'", prog="tool build", hint="run 'tool build --help'")
        lines = render(fault).splitlines()
        self.assertEqual(lines, [
            "[ tool build - 11112 | Unknown Option ]",
            "unexpected argument '--x'",
            " -> run 'tool build --help'",
        ])

    def testRenderWithoutHint(self):
        lines = render(MissingValueError("option '--name' expects a value")).splitlines()
        self.assertEqual(lines[0], "[ argstep - 11117 | Missing Value ]")
        self.assertEqual(len(lines), 2)


class TestConfigurationError(TestCase):
    """Behavioral tests for programmer errors."""

    def testCodes(self):
        self.assertEqual(DuplicateNameError("dup").code, FaultCode.DUPLICATE_NAME)
        self.assertEqual(ReservedIdentifierError("tag").code, FaultCode.RESERVED_IDENTIFIER)
        self.assertIsInstance(DuplicateNameError("dup"), ConfigurationError)
        self.assertNotIsInstance(DuplicateNameError("dup"), ParseError)

    def testMessage(self):
        self.assertEqual(str(DuplicateNameError("option '--x' declared more than once")),
                         "option '--x' declared more than once")


if __name__ == "__main__":
    unittest.main()
