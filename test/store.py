"""
Store module behavioral tests (two-pass registration and lookups).

Scope
- Validate counting/initializing passes and capacity checks.
- Validate bucket sorting, duplicate rejection and namespaces.
- Validate bitmap and binary-search lookups.
- Validate help column widths.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argstep import (
    Kind,
    Argument,
    Positional,
    Other,
    Ending,
    Tag,
    NoHandlersError,
    DuplicateNameError,
    CapacityMismatchError,
    ReservedIdentifierError,
)
from argstep.config import Config
from argstep.store import Store, LONG_NAME_LIMIT


def build(declarations, **options):
    store = Store()
    store.tally(declarations)
    store.install(declarations)
    store.seal(Config(output=None, **options))
    return store


class TestRegistration(TestCase):
    """Behavioral tests for the two-pass protocol."""

    def testTallyCountsBuckets(self):
        declarations = [
            Argument("v", "verbose"),
            Argument("H"),
            Argument(long="dry-run"),
            Argument(long="build", kind=Kind.SUBCOMMAND),
            Positional(),
        ]
        capacity = Store().tally(declarations)
        self.assertEqual(capacity, {"arguments": 4, "commands": 1, "longs": 2, "shorts": 2})

    def testNoHandlersRejected(self):
        with self.assertRaises(NoHandlersError):
            Store().tally([])
        with self.assertRaises(NoHandlersError):
            Store().tally([Ending()])

    def testCatchallAloneIsEnough(self):
        store = build([Positional()])
        self.assertTrue(store.catchall)
        self.assertEqual(store.arguments, ())

    def testUnknownDeclarationRejected(self):
        with self.assertRaises(TypeError):
            Store().tally(["--verbose"])

    def testInstallBeforeTallyRejected(self):
        with self.assertRaises(RuntimeError):
            Store().install([Argument("v")])

    def testCapacityMismatchWhenMoreDeclared(self):
        store = Store()
        store.tally([Argument("v")])
        with self.assertRaises(CapacityMismatchError):
            store.install([Argument("v"), Argument("q")])

    def testCapacityMismatchWhenFewerDeclared(self):
        store = Store()
        store.tally([Argument("v"), Argument("q")])
        store.install([Argument("v")])
        with self.assertRaises(CapacityMismatchError):
            store.seal(Config(output=None))

    def testCallableDeclarationsCalledPerPass(self):
        calls = []

        def declarations():
            calls.append(1)
            return [Argument("v")]

        store = Store()
        store.tally(declarations)
        store.install(declarations)
        self.assertEqual(len(calls), 2)

    def testReservedIdRejected(self):
        store = Store()
        declarations = [Argument("v", id=Tag.END)]
        store.tally(declarations)
        with self.assertRaises(ReservedIdentifierError):
            store.install(declarations)

    def testDuplicateMarkerRejected(self):
        with self.assertRaises(DuplicateNameError):
            build([Positional(), Positional()])


class TestDuplicates(TestCase):
    """Behavioral tests for duplicate-name rejection."""

    def testDuplicateLongRejected(self):
        with self.assertRaises(DuplicateNameError):
            build([Argument(long="verbose"), Argument("v", "verbose")])

    def testDuplicateShortRejected(self):
        with self.assertRaises(DuplicateNameError):
            build([Argument("v", "verbose"), Argument("v", "version")])

    def testDuplicateCommandRejected(self):
        with self.assertRaises(DuplicateNameError):
            build([
                Argument(long="build", kind=Kind.SUBCOMMAND),
                Argument(long="build", kind=Kind.SUBCOMMAND),
            ])

    def testCommandAndLongNamespacesSeparate(self):
        store = build([
            Argument(long="build", kind=Kind.SUBCOMMAND),
            Argument(long="build"),
        ])
        self.assertIs(store.command("build").kind, Kind.SUBCOMMAND)
        self.assertIs(store.long("build").kind, Kind.VOID)


class TestLookups(TestCase):
    """Behavioral tests for sorted buckets, bitmaps and binary search."""

    def setUp(self):
        self.zeta = Argument("z", "zeta")
        self.alpha = Argument("a", "alpha", kind=Kind.STRING)
        self.count = Argument("c", "count", kind=Kind.INTEGER)
        self.upper = Argument("A")
        self.store = build([self.zeta, self.alpha, self.count, self.upper, Other()])

    def testDeclarationOrderKept(self):
        self.assertEqual(self.store.arguments, (self.zeta, self.alpha, self.count, self.upper))

    def testBucketsSorted(self):
        self.assertEqual([a.long for a in self.store.longs], ["alpha", "count", "zeta"])
        self.assertEqual([a.short for a in self.store.shorts], ["A", "a", "c", "z"])

    def testLongLookupExact(self):
        self.assertIs(self.store.long("alpha"), self.alpha)
        self.assertIsNone(self.store.long("alph"))
        self.assertIsNone(self.store.long("alphabet"))

    def testShortLookup(self):
        self.assertIs(self.store.short("a"), self.alpha)
        self.assertIs(self.store.short("A"), self.upper)
        self.assertIsNone(self.store.short("q"))

    def testBitmaps(self):
        self.assertTrue(self.store.has_short("z"))
        self.assertFalse(self.store.has_short("y"))
        self.assertTrue(self.store.expects_value("a"))
        self.assertTrue(self.store.expects_value("c"))
        self.assertFalse(self.store.expects_value("z"))

    def testNonAsciiShortName(self):
        store = build([Argument("é", kind=Kind.STRING)])
        self.assertTrue(store.has_short("é"))
        self.assertTrue(store.expects_value("é"))

    def testMarkers(self):
        self.assertIsNone(self.store.positional)
        self.assertIsInstance(self.store.other, Other)
        self.assertTrue(self.store.catchall)

    def testReleaseClearsTables(self):
        self.store.release()
        self.assertIsNone(self.store.long("alpha"))
        self.assertFalse(self.store.has_short("a"))
        self.assertFalse(self.store.sealed)


class TestWidths(TestCase):
    """Behavioral tests for help column widths."""

    def testOptionWidthFromVisibleLabels(self):
        store = build([
            Argument("j", "jobs", "Jobs", kind=Kind.INTEGER, hint="JOBS"),
            Argument(long="extremely-long-but-hidden"),
        ])
        self.assertEqual(store.option_width, len("-j, --jobs <JOBS>"))

    def testOptionWidthCapped(self):
        store = build([Argument("l", "l" * 60, "Long")])
        self.assertEqual(store.option_width, 4 + len("--") + LONG_NAME_LIMIT)

    def testCommandWidth(self):
        store = build([
            Argument(long="build", descr="Build", kind=Kind.SUBCOMMAND),
            Argument(long="install", descr="Install", kind=Kind.SUBCOMMAND),
        ])
        self.assertEqual(store.command_width, len("install"))
        self.assertEqual(store.option_width, 0)


if __name__ == "__main__":
    unittest.main()
