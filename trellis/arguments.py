r"""
Trellis argument decoders.

A decoder is a plain callable taking one token (str) and returning a typed value.
It fails by raising ValueError; MalformedArgumentError is the preferred subclass
because it carries the user-facing message verbatim.

Built-ins
- BOOLEAN: "true" / "false" only (case-sensitive); "Invalid boolean <token>".
- NUMBER: signed integer or floating point literal; integral literals decode to
  int, the rest to float. nan/inf/overflow are rejected; "Invalid number <token>".
- STRING: identity, never fails.

Building decoders
- @decoder("kind") wraps a conversion function so that any ValueError it raises
  is reported as "Invalid <kind> <token>". Plain callables such as int or
  ipaddress.ip_address are accepted as decoders too; their exception text
  becomes the reported message.

Result type
- decode(decoder, token) never unwinds on malformed input: it returns
  Decoded(value) or Rejected(fault), which argument nodes pattern-match on.

Quick example:
    >>> @decoder("port")
    ... def PORT(token):
    ...     if not 0 < (port := int(token)) < 65536:
    ...         raise ValueError(token)
    ...     return port
    ...
    >>> decode(PORT, "http")
    Rejected(fault=MalformedArgumentError('Invalid port http'))
    >>> decode(NUMBER, "-2.5")
    Decoded(value=-2.5)
    >>> decode(BOOLEAN, "yes")
    Rejected(fault=MalformedArgumentError('Invalid boolean yes'))
"""
import copy
import functools
import math
import re
from collections import namedtuple

from .faults import MalformedArgumentError
from .utils import rename

Decoded = namedtuple("Decoded", ("value",))
Decoded.__doc__ = "Successful decode outcome holding the typed value."

Rejected = namedtuple("Rejected", ("fault",))
Rejected.__doc__ = "Failed decode outcome holding the MalformedArgumentError to report."

# optional sign, ASCII digits with optional fraction (or a bare fraction), optional exponent
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_INTEGER = re.compile(r"[+-]?\d+", re.ASCII)


def decoder(kind, /):
    """
    Decorator factory turning a conversion function into a decoder.

    Parameters
    - kind: str
      Label used in the failure message ("Invalid <kind> <token>").

    Behavior
    - MalformedArgumentError raised by the function passes through unchanged.
    - Any other ValueError becomes MalformedArgumentError("Invalid <kind> <token>").
    - The resulting decoder exposes .kind for introspection.
    """
    if not isinstance(kind, str):
        raise TypeError("decoder() argument must be a string")
    elif not (kind := kind.strip()):
        raise ValueError("decoder() argument cannot be empty")

    def wrapper(function):
        if not callable(function):
            raise TypeError("@decoder() must be applied to a callable")

        @functools.wraps(function)
        def decode(token, /):
            try:
                return function(token)
            except MalformedArgumentError:
                raise
            except ValueError:
                raise MalformedArgumentError(f"Invalid {kind} {token}", token=token, kind=kind) from None

        decode.kind = kind
        return decode

    return rename(wrapper, "decoder")


@decoder("boolean")
def BOOLEAN(token, /):  # NOQA: N-802
    """Decode exactly "true" or "false"."""
    match token:
        case "true":
            return True
        case "false":
            return False
    raise ValueError(token)


@decoder("number")
def NUMBER(token, /):  # NOQA: N-802
    """Decode a signed integer or finite floating point literal."""
    if not _NUMBER.fullmatch(token):
        raise ValueError(token)
    if _INTEGER.fullmatch(token):
        return int(token)
    if not math.isfinite(value := float(token)):
        raise ValueError(token)
    return value


def STRING(token, /):  # NOQA: N-802
    """Return the token unchanged."""
    return token


def decode(decoder, token, /, **context):
    """
    Run a decoder and wrap the outcome.

    Parameters
    - decoder: Callable[[str], T]
    - token: str
    - **context: extra fault options (e.g., argument=<node name>) attached to a
      rejection so renderers can point at the offending node.

    Returns
    - Decoded(value) on success.
    - Rejected(fault) when the decoder raised ValueError; fault is always a
      MalformedArgumentError whose message is what the source will be told.

    Other exceptions (TypeError, KeyError, ...) are programming errors in the
    decoder and propagate.
    """
    try:
        return Decoded(decoder(token))
    except MalformedArgumentError as fault:
        return Rejected(copy.replace(fault, token=token, **context))
    except ValueError as error:
        message = str(error) or f"Invalid argument {token}"
        return Rejected(MalformedArgumentError(message, token=token, **context))


__all__ = (
    # Decoders
    "BOOLEAN",
    "NUMBER",
    "STRING",

    # Factories
    "decoder",
    "decode",

    # Results
    "Decoded",
    "Rejected",
)
