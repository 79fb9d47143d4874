"""
Utilities behavioral tests (Unset sentinel, coalesce, rename, mirror).

Conventions
- Test method names follow CamelCase per project convention.
"""

import unittest
from unittest import TestCase

from protopt.utils import Unset, UnsetType, coalesce, rename, mirror


class TestUnset(TestCase):
    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsey(self):
        self.assertFalse(Unset)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            class Derived(UnsetType): ...

    def testUnionSyntax(self):
        self.assertTrue(isinstance("x", str | Unset))
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertFalse(isinstance(1, str | Unset))


class TestCoalesce(TestCase):
    def testUnsetIsReplaced(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))

    def testFalseyValuesPassThrough(self):
        for value in (None, 0, "", []):
            with self.subTest(value=value):
                self.assertIs(coalesce(value, "fallback"), value)


class TestRename(TestCase):
    def testDirectForm(self):
        def f(): ...
        self.assertIs(rename(f, "g"), f)
        self.assertEqual(f.__name__, "g")
        self.assertEqual(f.__qualname__, "g")

    def testDecoratorForm(self):
        @rename("named")
        def f(): ...
        self.assertEqual(f.__name__, "named")

    def testInvalidArguments(self):
        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 1)
        with self.assertRaises(TypeError):
            rename(len, "size")
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(1)
        with self.assertRaises(TypeError):
            rename("name")(1)


class TestMirror(TestCase):
    class Holder:
        names = mirror("names")
        table = mirror("table")
        label = mirror("label")

        def __init__(self):
            self._names = ("a", "alpha")
            self._table = {"k": ["v"]}
            self._label = "x"

    def testSequencesAreDetachedLists(self):
        holder = self.Holder()
        names = holder.names
        self.assertEqual(names, ["a", "alpha"])
        names.append("b")
        self.assertEqual(holder.names, ["a", "alpha"])

    def testNestedContainersAreDetached(self):
        holder = self.Holder()
        holder.table["k"].append("w")
        self.assertEqual(holder.table, {"k": ["v"]})

    def testScalarsAreReturnedAsIs(self):
        self.assertEqual(self.Holder().label, "x")

    def testReadOnly(self):
        with self.assertRaises(AttributeError):
            self.Holder().names = []

    def testRequiresString(self):
        with self.assertRaises(TypeError):
            mirror(1)


if __name__ == "__main__":
    unittest.main()
