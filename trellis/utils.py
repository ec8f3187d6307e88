"""
Trellis utilities (small helpers shared by the node, manager and fault layers).

Overview
- UnsetType / Unset
  • Singleton sentinel meaning "not provided"; distinct from None, which is a
    legitimate value for handlers and decoded arguments.
  • Falsey, printable as "Unset", sealed against subclassing.

- rename(callable, name) / @rename("name")
  • Give generated callables (decorated decoders, wrappers) a stable
    __name__/__qualname__ for tracebacks and reprs.

- mirror("attr")
  • Read-only property over a private backing field (self._attr); containers
    are handed out as fresh copies so the tree cannot be mutated through them.

Usage guidance
- Node APIs default optional parameters (decoder, source) to Unset and compare
  against it by identity, so None stays an ordinary value.
- Names not in __all__ are internal and may change without notice.
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for "value not provided".

    Characteristics
    - Boolean-false, distinct from None.
    - Singleton per process: UnsetType() always yields Unset.
    - Non-subclassable.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def rename(*parameters):
    """
    Set __name__/__qualname__ on a callable, or return a decorator doing so.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - @rename(name)           -> decorator

    Raises
    - TypeError on non-callables, non-string names, built-ins that refuse the
      update, or a wrong number of arguments.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _detach(object):
    """
    Copy containers one level at a time so callers never share tree state.

    - Sequence (non-string) → tuple
    - Mapping → dict
    - Set → frozenset
    - anything else (nodes, callables, strings) → unchanged
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return tuple(map(_detach, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_detach, object.values())))
    elif isinstance(object, Set):
        return frozenset(map(_detach, object))
    return object


def mirror(name, /):
    """
    Build a read-only property exposing self._{name}.

    Example
    - children = mirror("children") publishes self._children as a tuple snapshot.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


Unset = UnsetType()
"""
Process-wide "not provided" marker; test for it with `is Unset`.
"""


__all__ = (
    # Functions
    "rename",
    "mirror",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
