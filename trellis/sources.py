"""
Command sources: who runs a command, what they may run, where feedback goes.

- CommandSource: the protocol the engine consumes. Nodes call has_permission()
  while descending and fail() on every failure path; handlers decide when to
  call success(). The engine never calls success() itself.
- ConsoleSource: a ready-made source printing feedback to a rich console,
  useful for local tools, tests and demos. Chat or game integrations write
  their own source against the protocol.
"""
from collections import defaultdict
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

WILDCARD = "*"


@runtime_checkable
class CommandSource(Protocol):
    """Identity, permission lookup and feedback channels of a command invoker."""

    @property
    def name(self) -> str: ...

    def has_permission(self, permission: str, /) -> bool: ...

    def success(self, message: str, /) -> None: ...

    def fail(self, message: str, /) -> None: ...


class ConsoleSource:
    """
    Command source rendering feedback with rich.

    Parameters
    - name: str, non-empty identity shown in the panel title (fancy mode).
    - permissions: Iterable[str], granted permissions; "*" grants everything.
    - console: rich Console to print to (stderr console by default).
    - colorful: style success green and failures red.
    - fancy: wrap each message in a titled panel.

    Palette overrides come from __styles__ in __main__ ("success", "fail",
    "panel-title"), as for fault rendering.
    """

    def __init__(self, name, /, permissions=(), *, console=None, colorful=True, fancy=False):
        if not isinstance(name, str):
            raise TypeError("ConsoleSource name must be a string")
        elif not (name := name.strip()):
            raise ValueError("ConsoleSource name cannot be empty")
        if isinstance(permissions, str):
            raise TypeError("ConsoleSource permissions must be an iterable of strings, not a string")
        permissions = frozenset(permissions)
        if not all(isinstance(permission, str) for permission in permissions):
            raise TypeError("ConsoleSource permissions must be strings")

        self._name = name
        self._permissions = permissions
        self._console = console if console is not None else Console(stderr=True)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)

    @property
    def name(self):
        return self._name

    @property
    def permissions(self):
        return self._permissions

    def has_permission(self, permission, /):
        return WILDCARD in self._permissions or permission in self._permissions

    def success(self, message, /):
        self._print("success", message)

    def fail(self, message, /):
        self._print("fail", message)

    def _print(self, kind, message):
        styles = defaultdict(str, {
            "success": "#9CE19C",
            "fail": "bold #FF4DA6",
            "panel-title": "bold #E6E6F0",
        } | getattr(__import__("__main__"), "__styles__", {}))

        body = Text(str(message), styles[kind] if self._colorful else "")
        if self._fancy:
            title = Text(f"[ {self._name} ]", styles["panel-title"] if self._colorful else "")
            self._console.print(Panel(body, title=title, title_align="left"))
        else:
            self._console.print(body)

    def __repr__(self):
        return f"{type(self).__name__}(name={self._name!r}, permissions={sorted(self._permissions)!r})"


__all__ = (
    "CommandSource",
    "ConsoleSource",
    "WILDCARD",
)
