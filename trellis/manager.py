"""
Trellis command manager: namespaces, tokenizing and dispatch.

Responsibilities
- Own one root node per namespace, in registration order.
- Tokenize a command line: check and strip the prefix, split on single spaces.
- Dispatch: try each namespace root with a fresh copy of the reversed tokens;
  the first root whose parse succeeds ends the dispatch.

Example
    manager = CommandManager()
    manager.register("teleport", manager.literal("tp").then(
        manager.argument("x", NUMBER).then(
            manager.argument("y", NUMBER).execute(teleport)
        )
    ))
    manager.execute(source, "/tp 10 20")  # teleport(source, 10, 20)

Namespace order
- dict insertion order is the dispatch order. Removing a namespace and
  registering it again moves it to the end.
"""
import logging

from rich.tree import Tree

from .faults import NoNamespaceMatchedError, PrefixMismatchError, trigger
from .nodes import CommandNode, NodeKind, argument, literal
from .utils import Unset, mirror

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "/"


class CommandManager:
    """
    Registry of namespace roots and entry point for command lines.

    Parameters
    - prefix: str, non-empty marker every command line must start with.

    Introspection (read-only)
    - prefix: the configured prefix.
    - namespaces: tuple of namespace keys in dispatch order.
    """
    prefix = mirror("prefix")

    def __init__(self, prefix=DEFAULT_PREFIX, /):
        if not isinstance(prefix, str):
            raise TypeError("CommandManager prefix must be a string")
        elif not prefix:
            raise ValueError("CommandManager prefix cannot be empty")
        self._prefix = prefix
        self._roots = {}

    @property
    def namespaces(self):
        return tuple(self._roots)

    def root(self, namespace, /):
        """
        Return the root node of namespace.

        Raises
        - KeyError: namespace is not registered.
        """
        try:
            return self._roots[namespace]
        except KeyError:
            raise KeyError(f"namespace {namespace!r} is not registered") from None

    def register(self, namespace, node, /):
        """
        Attach node under the root of namespace, creating the root on first use.

        Raises
        - TypeError/ValueError: invalid namespace key, or node rejected by then()
          (not a node, a namespace root, or already attached elsewhere). A
          namespace is never created by a rejected registration.
        """
        if not isinstance(node, CommandNode):
            raise TypeError("register() second argument must be a command node")
        root = self._roots.get(namespace) or CommandNode(NodeKind.NAMESPACE, namespace)
        root.then(node)
        self._roots.setdefault(namespace, root)
        logger.debug("registered %r in namespace %r", node, namespace)

    def remove(self, namespace, /):
        """
        Delete namespace and every subtree registered in it.

        The subtrees are detached from the removed root, so the same nodes can
        be registered again later (unloading and reloading a plugin).

        Returns
        - the removed, now empty root node, or None when namespace was not
          registered.
        """
        root = self._roots.pop(namespace, None)
        if root is not None:
            for child in root._children:
                child._parent = None
            root._children.clear()
            logger.debug("removed namespace %r", namespace)
        return root

    def literal(self, name, /):
        return literal(name)

    def argument(self, name, decoder, /):
        return argument(name, decoder)

    def execute(self, source, line, /):
        """
        Dispatch one command line on behalf of source.

        Behavior
        - line without the prefix → "Invalid command", no namespace is tried.
        - otherwise each namespace root parses its own copy of the tokens, in
          registration order, until one succeeds.
        - no namespace succeeded → "Invalid command".

        Returns
        - True when a handler ran, False otherwise.

        Handler exceptions propagate to the caller unchanged.
        """
        if not isinstance(line, str):
            raise TypeError("execute() second argument must be a string")

        if not line.startswith(self._prefix):
            trigger(PrefixMismatchError(
                "Invalid command",
                line=line,
                prefix=self._prefix,
                hint=f"commands start with {self._prefix!r}",
            ), source)
            return False

        tokens = line[len(self._prefix):].split(" ")
        tokens.reverse()
        logger.debug("dispatching %r from %s", line, getattr(source, "name", source))

        # snapshot: a handler may register or remove namespaces while we iterate
        for namespace, root in tuple(self._roots.items()):
            if root.parse(list(tokens), source):
                logger.debug("namespace %r handled %r", namespace, line)
                return True

        trigger(NoNamespaceMatchedError(
            "Invalid command",
            line=line,
            namespaces=self.namespaces,
        ), source)
        return False

    def usages(self, source=Unset, /):
        """
        Yield prefixed usage lines across namespaces, in dispatch order.

        Lines shadowed by an earlier namespace are yielded once. When a source
        is given, lines behind permissions it lacks are left out.
        """
        seen = set()
        for root in self._roots.values():
            for usage in root.usages(source):
                if (usage := self._prefix + usage) not in seen:
                    seen.add(usage)
                    yield usage

    def __repr__(self):
        return f"{type(self).__name__}(prefix={self._prefix!r}, namespaces={self.namespaces!r})"

    def __rich__(self):
        tree = Tree(f"{type(self).__name__} {self._prefix!r}")
        for root in self._roots.values():
            tree.add(root)
        return tree


__all__ = (
    "CommandManager",
    "DEFAULT_PREFIX",
)
