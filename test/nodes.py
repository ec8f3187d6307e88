"""
Nodes module behavioral tests (composition, ordering, parsing, usages, rendering).

Scope
- Builder validation and single-owner enforcement.
- Literal-before-argument ordering regardless of registration order.
- parse(...) success, dead ends, decode failures and permission gates.
- usages(...) listing and rich rendering.

Conventions
- Test method names follow CamelCase per project convention.
- Token stacks are written reversed, exactly as CommandManager hands them over.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from rich.console import Console

from recording import RecordingSource
from trellis import BOOLEAN, NUMBER, STRING, CommandNode, NodeKind, argument, literal, namespace


def stack(line):
    tokens = line.split(" ")
    tokens.reverse()
    return tokens


class TestComposition(TestCase):
    """Behavioral tests for node construction and then()."""

    def testFactoriesTagKinds(self):
        self.assertIs(literal("tp").kind, NodeKind.LITERAL)
        self.assertIs(argument("x", NUMBER).kind, NodeKind.ARGUMENT)
        self.assertIs(namespace("core").kind, NodeKind.NAMESPACE)

    def testThenReturnsSelf(self):
        node = literal("a")
        self.assertIs(node.then(literal("b")), node)
        self.assertIs(node.execute(lambda source: None), node)
        self.assertIs(node.require("perm"), node)

    def testLiteralsPrecedeArguments(self):
        node = literal("root")
        node.then(argument("x", STRING)).then(literal("a")).then(argument("y", STRING)).then(literal("b"))
        self.assertEqual([str(child) for child in node.children], ["a", "b", "<x>", "<y>"])

    def testChildrenSnapshotIsDetached(self):
        node = literal("root").then(literal("a"))
        children = node.children
        node.then(literal("b"))
        self.assertEqual(len(children), 1)
        self.assertIsInstance(children, tuple)

    def testParentIsTracked(self):
        child = literal("child")
        parent = literal("parent").then(child)
        self.assertIs(child.parent, parent)
        self.assertEqual(child.path, (parent, child))

    def testAttachedNodeCannotBeReused(self):
        shared = literal("shared")
        literal("one").then(shared)
        with self.assertRaises(ValueError):
            literal("two").then(shared)

    def testCyclesRejected(self):
        top = literal("top")
        middle = literal("middle")
        top.then(middle)
        with self.assertRaises(ValueError):
            middle.then(middle)
        with self.assertRaises(ValueError):
            top.then(top)

    def testNamespaceCannotBeChild(self):
        with self.assertRaises(TypeError):
            literal("a").then(namespace("core"))

    def testThenRequiresNode(self):
        with self.assertRaises(TypeError):
            literal("a").then("b")

    def testNameValidation(self):
        with self.assertRaises(TypeError):
            literal(3)
        with self.assertRaises(ValueError):
            literal("")
        with self.assertRaises(ValueError):
            literal("two words")
        with self.assertRaises(ValueError):
            argument("", STRING)

    def testArgumentNeedsCallableDecoder(self):
        with self.assertRaises(TypeError):
            argument("x", "NUMBER")

    def testLiteralCannotHaveDecoder(self):
        with self.assertRaises(TypeError):
            CommandNode(NodeKind.LITERAL, "a", NUMBER)

    def testExecuteAndRequireValidation(self):
        with self.assertRaises(TypeError):
            literal("a").execute("handler")
        with self.assertRaises(TypeError):
            literal("a").require(1)
        with self.assertRaises(ValueError):
            literal("a").require("")

    def testStringForms(self):
        self.assertEqual(str(literal("tp")), "tp")
        self.assertEqual(str(argument("x", NUMBER)), "<x>")
        self.assertEqual(str(namespace("core")), "core")
        self.assertEqual(repr(literal("tp")), "literal(name='tp', children=0, executable=False)")


class TestParse(TestCase):
    """Behavioral tests for parse(...)."""

    def setUp(self):
        self.source = RecordingSource()
        self.calls = []

    def record(self, *args):
        self.calls.append(args)

    def testLiteralHandlerWithoutArguments(self):
        root = namespace("core").then(literal("foo").execute(self.record))
        self.assertTrue(root.parse(stack("foo"), self.source))
        self.assertEqual(self.calls, [(self.source,)])
        self.assertEqual(self.source.failures, [])

    def testArgumentsDecodedLeftToRight(self):
        root = namespace("core").then(
            literal("set").then(
                argument("flag", BOOLEAN).then(
                    argument("amount", NUMBER).then(
                        argument("label", STRING).execute(self.record)
                    )
                )
            )
        )
        self.assertTrue(root.parse(stack("set true 2.5 hi"), self.source))
        self.assertEqual(self.calls, [(self.source, True, 2.5, "hi")])

    def testLiteralWinsOverArgument(self):
        for literal_first in (True, False):
            with self.subTest(literal_first=literal_first):
                hits = []
                word = literal("a").execute(lambda source: hits.append("literal"))
                capture = argument("any", STRING).execute(lambda source, value: hits.append("argument"))
                root = namespace("core")
                for child in ((word, capture) if literal_first else (capture, word)):
                    root.then(child)
                self.assertTrue(root.parse(stack("a"), self.source))
                self.assertTrue(root.parse(stack("b"), self.source))
                self.assertEqual(hits, ["literal", "argument"])

    def testFirstLiteralMatchDoesNotBacktrack(self):
        first = literal("go")
        second = literal("go").then(literal("now").execute(self.record))
        root = namespace("core").then(first).then(second)
        self.assertFalse(root.parse(stack("go now"), self.source))
        self.assertEqual(self.calls, [])
        self.assertEqual(self.source.failures, ["Invalid command"])

    def testHandlerAndChildrenOnSameNode(self):
        node = literal("list").execute(lambda source: self.calls.append("all"))
        node.then(argument("page", NUMBER).execute(lambda source, page: self.calls.append(page)))
        root = namespace("core").then(node)
        self.assertTrue(root.parse(stack("list"), self.source))
        self.assertTrue(root.parse(stack("list 2"), self.source))
        self.assertEqual(self.calls, ["all", 2])

    def testMissingHandlerIsDeadEnd(self):
        root = namespace("core").then(literal("tp").then(argument("x", NUMBER).execute(self.record)))
        self.assertFalse(root.parse(stack("tp"), self.source))
        self.assertEqual(self.source.failures, ["Invalid command"])

    def testExtraTokensOnLeafAreDeadEnd(self):
        root = namespace("core").then(literal("ping").execute(self.record))
        self.assertFalse(root.parse(stack("ping extra"), self.source))
        self.assertEqual(self.calls, [])
        self.assertEqual(self.source.failures, ["Invalid command"])

    def testUnmatchedTokenReportsNothing(self):
        root = namespace("core").then(literal("ping").execute(self.record))
        self.assertFalse(root.parse(stack("pong"), self.source))
        self.assertEqual(self.source.failures, [])

    def testEmptyTokenDoesNotMatchLiteral(self):
        root = namespace("core").then(literal("a").then(literal("b").execute(self.record)))
        self.assertFalse(root.parse(stack("a  b"), self.source))
        self.assertEqual(self.calls, [])

    def testEmptyTokenSatisfiesString(self):
        root = namespace("core").then(literal("say").then(argument("text", STRING).execute(self.record)))
        self.assertTrue(root.parse(stack("say "), self.source))
        self.assertEqual(self.calls, [(self.source, "")])

    def testDecodeFailureAbortsWithMessage(self):
        root = namespace("core").then(
            literal("tp").then(argument("x", NUMBER).then(argument("y", NUMBER).execute(self.record)))
        )
        self.assertFalse(root.parse(stack("tp 10 north"), self.source))
        self.assertEqual(self.source.failures, ["Invalid number north"])
        self.assertEqual(self.calls, [])

    def testDecodeFailureDoesNotTryLaterArguments(self):
        node = literal("give")
        node.then(argument("count", NUMBER).execute(self.record))
        node.then(argument("item", STRING).execute(self.record))
        root = namespace("core").then(node)
        self.assertFalse(root.parse(stack("give sword"), self.source))
        self.assertEqual(self.source.failures, ["Invalid number sword"])
        self.assertEqual(self.calls, [])

    def testBuiltinConverterAsDecoder(self):
        root = namespace("core").then(literal("n").then(argument("value", int).execute(self.record)))
        self.assertFalse(root.parse(stack("n x"), self.source))
        self.assertIn("invalid literal for int()", self.source.failures[0])
        self.assertTrue(root.parse(stack("n 4"), self.source))
        self.assertEqual(self.calls, [(self.source, 4)])

    def testPermissionDenied(self):
        root = namespace("core").then(literal("ban").require("admin").execute(self.record))
        self.assertFalse(root.parse(stack("ban"), self.source))
        self.assertEqual(self.source.failures, ["Permission denied"])
        self.assertEqual(self.calls, [])
        self.assertEqual(self.source.checks, ["admin"])

    def testPermissionCheckedBeforeDecoding(self):
        root = namespace("core").then(
            literal("ban").require("admin").then(argument("minutes", NUMBER).execute(self.record))
        )
        self.assertFalse(root.parse(stack("ban soon"), self.source))
        self.assertEqual(self.source.failures, ["Permission denied"])

    def testPermissionGranted(self):
        source = RecordingSource(permissions={"admin"})
        root = namespace("core").then(literal("ban").require("admin").execute(self.record))
        self.assertTrue(root.parse(stack("ban"), source))
        self.assertEqual(self.calls, [(source,)])

    def testArgumentAccumulatorIsNotShared(self):
        node = argument("x", NUMBER).execute(self.record)
        root = namespace("core").then(literal("one").then(node))
        prefix = (1,)
        self.assertTrue(root.parse(stack("one 2"), self.source, prefix))
        self.assertEqual(prefix, (1,))
        self.assertEqual(self.calls, [(self.source, 1, 2)])

    def testTokensAreConsumed(self):
        tokens = stack("tp 1")
        root = namespace("core").then(literal("tp").then(argument("x", NUMBER).execute(self.record)))
        root.parse(tokens, self.source)
        self.assertEqual(tokens, [])

    def testHandlerExceptionsPropagate(self):
        def explode(source):
            raise RuntimeError("boom")

        root = namespace("core").then(literal("boom").execute(explode))
        with self.assertRaises(RuntimeError):
            root.parse(stack("boom"), self.source)


class TestUsages(TestCase):
    """Behavioral tests for usages(...) and rendering."""

    def build(self):
        root = namespace("core")
        root.then(literal("tp").then(argument("x", NUMBER).then(argument("y", NUMBER).execute(print))))
        root.then(literal("list").execute(print).then(argument("page", NUMBER).execute(print)))
        root.then(literal("ban").require("admin").then(argument("who", STRING).execute(print)))
        return root

    def testAllUsages(self):
        self.assertEqual(list(self.build().usages()), [
            "tp <x> <y>",
            "list",
            "list <page>",
            "ban <who>",
        ])

    def testUsagesFilteredBySource(self):
        self.assertNotIn("ban <who>", list(self.build().usages(RecordingSource())))
        self.assertIn("ban <who>", list(self.build().usages(RecordingSource(permissions={"admin"}))))

    def testRichTree(self):
        console = Console(record=True, width=80, color_system=None)
        console.print(self.build())
        output = console.export_text()
        for fragment in ("core", "tp", "<x>", "<y>", "[admin]"):
            self.assertIn(fragment, output)


if __name__ == "__main__":
    unittest.main()
