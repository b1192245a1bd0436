"""
Tests for the shared helpers.

This module verifies:
- Unset sentinel guarantees (singleton, falsy, stable repr, copy/pickle
  identity, finality, union support).
- coalesce(), rename(), mirror() and ordinal() behavior.
"""
import copy
import pickle
import unittest
from types import MappingProxyType
from unittest import TestCase

from argstep.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` singleton.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the exported instance on every call.
        """
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsyButDistinct(self) -> None:
        """
        Unset is falsy but is neither None nor 0.
        """
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, 0)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testCopyAndPicklePreserveIdentity(self) -> None:
        """
        copy, deepcopy and pickle round-trips give back the same object.
        """
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFinal(self) -> None:
        """
        The sentinel type cannot be subclassed.
        """
        with self.assertRaises(TypeError):
            class Derived(UnsetType):  # NOQA: F-841
                pass

    def testUnionWithTypes(self) -> None:
        """
        `str | Unset` can be used in isinstance checks.
        """
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", Unset | str))
        self.assertFalse(isinstance(1, str | Unset))


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), rename(), mirror() and ordinal().
    """

    def testCoalesceReplacesOnlyUnset(self) -> None:
        self.assertEqual(coalesce(Unset, "--"), "--")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "--"))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertEqual(coalesce("", "x"), "")

    def testRenameDirect(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameDecorator(self) -> None:
        @rename("decorated")
        def function():
            pass

        self.assertEqual(function.__name__, "decorated")

    def testRenameRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 42)
        with self.assertRaises(TypeError):
            rename()

    def testMirrorExposesImmutableViews(self) -> None:
        class Holder:
            items = mirror("items")
            table = mirror("table")
            names = mirror("names")
            label = mirror("label")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}
                self._names = {"x"}
                self._label = "text"

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        self.assertIsInstance(holder.table, MappingProxyType)
        self.assertEqual(holder.names, frozenset({"x"}))
        self.assertEqual(holder.label, "text")
        with self.assertRaises(AttributeError):
            holder.items = ()

    def testOrdinal(self) -> None:
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(12), "12th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(111), "111th")


if __name__ == '__main__':
    unittest.main()
