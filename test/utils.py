"""
Utils module behavioral tests (sentinel, rename, mirror).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from trellis.utils import Unset, UnsetType, mirror, rename


class TestUnset(TestCase):

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalseyAndRepr(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testSealed(self):
        with self.assertRaises(TypeError):
            type("Sub", (UnsetType,), {})

    def testOnlyPublicHelpersAreExported(self):
        import trellis.utils

        self.assertEqual(set(trellis.utils.__all__), {"rename", "mirror", "UnsetType", "Unset"})
        self.assertFalse(hasattr(UnsetType, "__or__"))


class TestRename(TestCase):

    def testFunctionForm(self):
        def f():
            pass

        self.assertIs(rename(f, "g"), f)
        self.assertEqual((f.__name__, f.__qualname__), ("g", "g"))

    def testDecoratorForm(self):
        @rename("handler")
        def f():
            pass

        self.assertEqual(f.__name__, "handler")

    def testArity(self):
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):

    def testReadOnlySnapshot(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = [1, [2, 3]]

        holder = Holder()
        self.assertEqual(holder.items, (1, (2, 3)))
        with self.assertRaises(AttributeError):
            holder.items = ()


if __name__ == "__main__":
    unittest.main()
