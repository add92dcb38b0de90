"""Domain layer - Type compatibility and naming rules."""

import inspect
from enum import Enum
from types import UnionType
from typing import Any, Callable, Optional, Union, get_args, get_origin

SIMPLE_TYPES = (str, int, float, bool, bytes, complex)
UNION_ORIGINS = (Union, UnionType)


def _runtime_class(candidate: Any) -> Any:
    origin = get_origin(candidate)
    return origin if origin is not None else candidate


def can_be_cast_to(source: Optional[Any], target: Optional[Any]) -> bool:
    """Check whether values of ``source`` may be used where ``target`` is expected.

    Unknown types (``None``), ``Any`` and ``object`` are always compatible.
    Parameterized generics are compared by their runtime origin.

    Args:
        source: The type being offered.
        target: The type being requested.

    Returns:
        True when ``source`` is assignable to ``target``.
    """
    if source is None or target is None or target is Any or target is object:
        return True

    if get_origin(target) in UNION_ORIGINS:
        return any(can_be_cast_to(source, arg) for arg in get_args(target))

    source_class = _runtime_class(source)
    target_class = _runtime_class(target)
    if source_class is target_class:
        return True

    try:
        return issubclass(source_class, target_class)
    except TypeError:
        return False


def is_simple(candidate: Optional[Any]) -> bool:
    """Simple types can never be auto-wired and must be bound explicitly."""
    if not inspect.isclass(candidate):
        return False
    return issubclass(candidate, SIMPLE_TYPES) or issubclass(candidate, Enum)


def full_name(candidate: Optional[Any]) -> str:
    """Render the qualified name of a type, e.g. ``app.services.UserService``."""
    if candidate is None:
        return "<unknown>"
    if not inspect.isclass(candidate):
        return repr(candidate)
    if candidate.__module__ == "builtins":
        return candidate.__qualname__
    return f"{candidate.__module__}.{candidate.__qualname__}"


def short_name(candidate: Optional[Any]) -> str:
    """Render the bare name of a type, e.g. ``UserService`` or ``Optional[UserService]``."""
    if candidate is None:
        return "?"
    if candidate is type(None):
        return "None"

    origin = get_origin(candidate)
    if origin is not None:
        arguments = get_args(candidate)
        if origin in UNION_ORIGINS:
            others = [arg for arg in arguments if arg is not type(None)]
            if len(others) == 1 and len(others) < len(arguments):
                return f"Optional[{short_name(others[0])}]"
            return f"Union[{', '.join(short_name(arg) for arg in arguments)}]"
        name = getattr(candidate, "_name", None) or short_name(origin)
        if not arguments:
            return name
        return f"{name}[{', '.join(short_name(arg) for arg in arguments)}]"

    if inspect.isclass(candidate):
        return candidate.__name__
    return getattr(candidate, "__name__", repr(candidate))


def callable_name(func: Callable[..., Any]) -> str:
    """Render ``Owner.method`` for a callable, dropping ``<locals>`` segments."""
    qualname = getattr(func, "__qualname__", None) or getattr(func, "__name__", None) or repr(func)
    return ".".join(part for part in qualname.split(".") if part != "<locals>")
