"""
Trellis command nodes: build command trees and parse token stacks against them.

What this module provides
- NodeKind: the tag of a node (LITERAL, ARGUMENT, NAMESPACE). Dispatch matches
  on the tag, never on the Python type, and the tag's value is also the sort
  rank that keeps literals ahead of arguments.
- CommandNode: one node class for every kind. Shared state is the ordered
  child list, an optional handler and an optional required permission; the
  variant state is the name (literal/argument/namespace) and the decoder
  (argument only).
- literal(name), argument(name, decoder), namespace(key): node factories.

Building
    tp = literal("tp").then(
        argument("x", NUMBER).then(
            argument("y", NUMBER).execute(lambda source, x, y: source.success(f"{x} {y}"))
        )
    )

Parsing
- parse(tokens, source, arguments=()) walks the tree one token at a time.
  tokens is a reversed list used as a stack; arguments is an immutable tuple
  that grows by one decoded value per argument node on the way down.
- Every failure is reported to the source through trigger() and surfaces as a
  False return; nothing is raised for malformed input.

Ownership
- A node belongs to at most one parent. then() refuses already attached nodes,
  the node itself and any of its ancestors, so every namespace is a tree.
"""
import logging
import operator
from enum import IntEnum

from rich.text import Text
from rich.tree import Tree

from .arguments import Decoded, Rejected, decode
from .faults import DeadEndError, PermissionDeniedError, trigger
from .utils import Unset, mirror

logger = logging.getLogger(__name__)


class NodeKind(IntEnum):
    """
    node variant tag.

    the numeric value is the ordering rank among siblings: every LITERAL child
    precedes every ARGUMENT child. NAMESPACE nodes are roots and never children.
    """
    LITERAL = 0
    ARGUMENT = 1
    NAMESPACE = 2


def _sanitize_name(kind, name, /):
    """
    Validate a node name for the given kind and return it unchanged.

    - must be a string, non-empty.
    - literal and argument names cannot contain spaces (a token never does).
    """
    label = kind.name.lower()
    if not isinstance(name, str):
        raise TypeError(f"{label} name must be a string")
    elif not name:
        raise ValueError(f"{label} name cannot be empty")
    elif kind is not NodeKind.NAMESPACE and " " in name:
        raise ValueError(f"{label} name cannot contain spaces")
    return name


class CommandNode:
    """
    A node of a command tree.

    Introspection (read-only)
    - kind: NodeKind tag.
    - name: literal text, argument display name, or namespace key.
    - decoder: the argument decoder (None for other kinds).
    - handler: terminal callable or None.
    - permission: required permission or None.
    - parent: owning node or None.
    - children: tuple snapshot, literals first.

    Chaining
    - then(child), execute(handler) and require(permission) return self.
    """
    kind = mirror("kind")
    name = mirror("name")
    decoder = mirror("decoder")
    handler = mirror("handler")
    permission = mirror("permission")
    parent = mirror("parent")
    children = mirror("children")

    def __init__(self, kind, name, /, decoder=Unset):
        if not isinstance(kind, NodeKind):
            raise TypeError("node kind must be a NodeKind")
        self._kind = kind
        self._name = _sanitize_name(kind, name)

        if kind is NodeKind.ARGUMENT:
            if not callable(decoder):
                raise TypeError(f"argument {name!r} decoder must be callable")
            self._decoder = decoder
        elif decoder is not Unset:
            raise TypeError(f"{kind.name.lower()} {name!r} cannot have a decoder")
        else:
            self._decoder = None

        self._handler = None
        self._permission = None
        self._parent = None
        self._children = []

    @property
    def executable(self):
        """True when a handler is set (the node can end a command)."""
        return self._handler is not None

    @property
    def path(self):
        """
        Return the ancestry from the topmost node down to this one.
        """
        path = [node := self]
        while node._parent is not None:
            path.append(node := node._parent)
        return tuple(reversed(path))

    def then(self, child, /):
        """
        Attach child and keep literal children ahead of argument children.

        Raises
        - TypeError: child is not a CommandNode, or is a namespace root.
        - ValueError: child already has a parent, or attaching it would create
          a cycle (child is this node or one of its ancestors).
        """
        if not isinstance(child, CommandNode):
            raise TypeError("then() argument must be a command node")
        elif child._kind is NodeKind.NAMESPACE:
            raise TypeError(f"namespace {child._name!r} cannot be attached to another node")
        elif child._parent is not None:
            raise ValueError(f"{child._kind.name.lower()} {child._name!r} is already attached to {child._parent!r}")
        elif any(node is child for node in self.path):
            raise ValueError(f"{child._kind.name.lower()} {child._name!r} cannot be attached below itself")

        child._parent = self
        self._children.append(child)
        # list.sort is stable: registration order survives inside each kind
        self._children.sort(key=operator.attrgetter("_kind"))
        return self

    def execute(self, handler, /):
        """
        Set the terminal handler, called as handler(source, *arguments).
        """
        if not callable(handler):
            raise TypeError("execute() argument must be callable")
        self._handler = handler
        return self

    def require(self, permission, /):
        """
        Require permission before this node is entered during parse.
        """
        if not isinstance(permission, str):
            raise TypeError("require() argument must be a string")
        elif not permission:
            raise ValueError("require() argument cannot be empty")
        self._permission = permission
        return self

    def parse(self, tokens, source, arguments=(), /):
        """
        Recursive descent over a reversed token stack.

        Parameters
        - tokens: list[str], the remaining tokens reversed (the next token is
          tokens[-1]). Consumed tokens are popped.
        - source: CommandSource receiving failures and passed to the handler.
        - arguments: values decoded so far, in left-to-right order.

        Steps
        1. a required permission the source lacks → "Permission denied".
        2. no tokens left → run the handler, or "Invalid command" without one.
        3. pop a token; no children → "Invalid command".
        4. the first literal child equal to the token takes it.
        5. otherwise the first argument child decodes it; a rejection reports
           the decoder message and stops.
        6. no child took the token → False, nothing reported here.

        Returns
        - True when a handler ran, False otherwise.
        """
        arguments = tuple(arguments)

        if self._permission is not None and not source.has_permission(self._permission):
            trigger(PermissionDeniedError(
                "Permission denied",
                node=self,
                permission=self._permission,
                hint=f"requires permission {self._permission!r}",
            ), source)
            return False

        if not tokens:
            if self._handler is None:
                trigger(DeadEndError(
                    "Invalid command",
                    node=self,
                    hint=self._expectation(),
                ), source)
                return False
            logger.debug("invoking %s with %r", " ".join(map(str, self.path)), arguments)
            self._handler(source, *arguments)
            return True

        token = tokens.pop()

        if not self._children:
            trigger(DeadEndError("Invalid command", node=self, token=token), source)
            return False

        for child in self._children:
            match child._kind:
                case NodeKind.LITERAL if child._name == token:
                    return child.parse(tokens, source, arguments)
                case NodeKind.ARGUMENT:
                    match decode(child._decoder, token, argument=child._name):
                        case Decoded(value):
                            return child.parse(tokens, source, (*arguments, value))
                        case Rejected(fault):
                            trigger(fault, source)
                            return False

        return False

    def _expectation(self):
        if not self._children:
            return None
        return "expected %s" % " | ".join(map(str, self._children))

    def usages(self, source=Unset, /):
        """
        Yield one display line per executable node in this subtree.

        Literals render as their name, arguments as <name>; a namespace root
        contributes nothing to the path. When a source is given, subtrees whose
        permission it lacks are skipped.

        Example
        - literal("tp") → <x> → <y> (executable) yields "tp <x> <y>".
        """
        if source is not Unset and self._permission is not None and not source.has_permission(self._permission):
            return
        path = () if self._kind is NodeKind.NAMESPACE else (str(self),)
        if self._handler is not None and path:
            yield " ".join(path)
        for child in self._children:
            for usage in child.usages(source):
                yield " ".join((*path, usage))

    def __str__(self):
        if self._kind is NodeKind.ARGUMENT:
            return f"<{self._name}>"
        return self._name

    def __repr__(self):
        return "%s(name=%r, children=%d, executable=%r)" % (
            self._kind.name.lower(),
            self._name,
            len(self._children),
            self.executable,
        )

    def __rich__(self):
        def label(node):
            text = Text(str(node), style={
                NodeKind.LITERAL: "bold",
                NodeKind.ARGUMENT: "cyan",
                NodeKind.NAMESPACE: "bold magenta",
            }[node._kind])
            if node._permission is not None:
                text.append(f" [{node._permission}]", style="yellow dim")
            if node._handler is not None:
                text.append(" *", style="green")
            return text

        def grow(branch, node):
            for child in node._children:
                grow(branch.add(label(child)), child)

        grow(tree := Tree(label(self)), self)
        return tree


def literal(name, /):
    """Build a detached node matching exactly the token name."""
    return CommandNode(NodeKind.LITERAL, name)


def argument(name, decoder, /):
    """Build a detached node capturing any token through decoder."""
    return CommandNode(NodeKind.ARGUMENT, name, decoder)


def namespace(key, /):
    """Build an empty namespace root (used by CommandManager)."""
    return CommandNode(NodeKind.NAMESPACE, key)


__all__ = (
    "NodeKind",
    "CommandNode",
    "literal",
    "argument",
    "namespace",
)
