"""
Trellis faults (dispatch failures) and their rendering.

Scope
- FaultCode: stable numeric identifiers for every failure the engine reports.
  Codes are grouped by domain so logs and host-side lookups stay predictable.
- CommandFault: base type carrying a user-facing message and read-only options
  (code, token, node, permission, namespace, ...). Faults render themselves
  with rich and know how to report themselves to a command source.
- trigger(fault, source): central entry point used by nodes and the manager.

Reporting model
- Faults are values. The engine never raises them during dispatch; it builds
  one, hands it to trigger(), and returns False up the parse. The source's
  fail(message) channel receives fault.message.
- MalformedArgumentError is also a ValueError, so decoders may raise it
  directly and builtin converters (int, float, ...) fit the same contract.

Host customization
- __codes__ in __main__ remaps FaultCode members to custom labels (normalize()).
- __styles__ in __main__ overrides the rich palette used by __rich__.
"""
import logging
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

logger = logging.getLogger(__name__)


class FaultCode(IntEnum):
    """
    canonical fault codes reported by the dispatcher (stable identifiers).

    grouping
    - input (211xx): PREFIX_MISMATCH
    - routing (212xx): DEAD_END, NO_NAMESPACE_MATCHED
    - access (213xx): PERMISSION_DENIED
    - arguments (214xx): MALFORMED_ARGUMENT
    """
    # --- input errors ---
    PREFIX_MISMATCH             = 21101

    # --- routing errors ---
    DEAD_END                    = 21201
    NO_NAMESPACE_MATCHED        = 21202

    # --- access errors ---
    PERMISSION_DENIED           = 21301

    # --- argument errors ---
    MALFORMED_ARGUMENT          = 21401

    def normalize(self):
        """
        return a host-normalized label for this code.

        a __codes__ mapping in __main__ overrides the numeric id; without one the
        numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandFault(Exception):
    """
    Base class of every reported dispatch failure.

    Class attributes
    - code: default FaultCode for the subclass (overridable through options).
    - title: short lowercase headline used by the rich renderer.

    Instance attributes
    - message: exactly what the source's fail() channel receives.
    - options: read-only mapping with at least "code"; engine-provided context
      such as "token", "node", "permission" or "namespace" when known.
    """
    code = Unset
    title = "command fault"

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": type(self).code} | options)

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def text(fragment, style):
            return Text(str(fragment), styles[style] if colorful else "")

        code = self.options["code"]
        header = Text.assemble(
            "[ ",
            text(code.normalize() if isinstance(code, FaultCode) else "-", "code"),
            " | ",
            text(self.title, "title"),
            " ]",
        )
        parts = [text(self.message, "message")]
        if hint := self.options.get("hint"):
            parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*parts), title=header, title_align="left")
        return Group(header, *parts)

    def __trigger__(self, source):
        logger.debug(
            "reporting %s to %s: %s",
            getattr(self.options["code"], "name", self.options["code"]),
            getattr(source, "name", source),
            self.message,
        )
        source.fail(self.message)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r})"


class PrefixMismatchError(CommandFault):
    code = FaultCode.PREFIX_MISMATCH
    title = "missing prefix"


class DeadEndError(CommandFault):
    code = FaultCode.DEAD_END
    title = "invalid command"


class NoNamespaceMatchedError(CommandFault):
    code = FaultCode.NO_NAMESPACE_MATCHED
    title = "unknown command"


class PermissionDeniedError(CommandFault):
    code = FaultCode.PERMISSION_DENIED
    title = "permission denied"


class MalformedArgumentError(CommandFault, ValueError):
    code = FaultCode.MALFORMED_ARGUMENT
    title = "malformed argument"


def trigger(fault, source, /):
    """
    report a fault to a command source.

    contract
    - fault must provide a callable __trigger__(source) (CommandFault does).
    - the source receives fault.message through fail(); nothing is raised.
    """
    if not hasattr(fault, "__trigger__") or not callable(fault.__trigger__):
        raise TypeError("trigger() first argument must implement __trigger__ method")
    fault.__trigger__(source)


__all__ = (
    "FaultCode",
    "CommandFault",
    "PrefixMismatchError",
    "DeadEndError",
    "NoNamespaceMatchedError",
    "PermissionDeniedError",
    "MalformedArgumentError",
    "trigger",
)
