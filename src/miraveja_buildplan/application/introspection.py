"""Application layer - Constructor and callable introspection."""

import inspect
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, get_type_hints

from miraveja_buildplan.domain import ConstructorDescriptor, ConstructorParameter
from miraveja_buildplan.domain.type_rules import callable_name, short_name

CONSTRUCTOR_MARKER = "__buildplan_constructor__"

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def _mark(target: Any, selected: bool) -> Any:
    func = target.__func__ if isinstance(target, (classmethod, staticmethod)) else target
    setattr(func, CONSTRUCTOR_MARKER, selected)
    return target


def alternate_constructor(target: Any) -> Any:
    """Expose a classmethod as an additional constructor of its class.

    Example:
        >>> class Connection:
        ...     @alternate_constructor
        ...     @classmethod
        ...     def from_url(cls, url: str) -> "Connection": ...
    """
    return _mark(target, False)


def default_constructor(target: Any) -> Any:
    """Mark ``__init__`` or an alternate constructor as the one to select."""
    return _mark(target, True)


def safe_type_hints(func: Any) -> Dict[str, Any]:
    """Return resolved type hints, or an empty dict when they cannot be evaluated."""
    try:
        return get_type_hints(func)
    except Exception:  # unresolvable forward references, builtins without annotations
        return {}


def required_positional(func: Callable[..., Any]) -> List[inspect.Parameter]:
    """List the positional parameters of ``func`` that have no default."""
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return []
    return [p for p in signature.parameters.values() if p.kind in _POSITIONAL and p.default is p.empty]


def positional_arity(func: Callable[..., Any]) -> int:
    return len(required_positional(func))


def describe_callable(func: Callable[..., Any], fallbacks: Sequence[str] = ()) -> str:
    """Render a callable's signature for diagnostics.

    Classes render as ``new Owner(ArgTypes)``. Functions and methods render as
    ``Owner.method(ArgTypes)`` and lambdas as ``lambda(ArgTypes)``. Parameters
    without annotations take their name from ``fallbacks`` by position.

    Args:
        func: The callable to describe.
        fallbacks: Type names used for unannotated parameters.

    Returns:
        The rendered signature.
    """
    hints = safe_type_hints(func.__init__ if inspect.isclass(func) else func)
    names = []
    for index, parameter in enumerate(required_positional(func)):
        if parameter.name in hints:
            names.append(short_name(hints[parameter.name]))
        elif index < len(fallbacks):
            names.append(fallbacks[index])
        else:
            names.append("?")
    arguments = ", ".join(names)

    if inspect.isclass(func):
        return f"new {func.__name__}({arguments})"
    if getattr(func, "__name__", None) == "<lambda>":
        return f"lambda({arguments})"
    return f"{callable_name(func)}({arguments})"


class TypeIntrospector:
    """Produces constructor descriptors for concrete types.

    A type's constructors are its ``__init__`` followed by every classmethod
    marked with ``alternate_constructor``, in declaration order. Results are
    memoized per type.

    Attributes:
        _cache: Descriptors already produced, keyed by type.
        _lock: Guards the cache.
    """

    def __init__(self) -> None:
        self._cache: Dict[Type, List[ConstructorDescriptor]] = {}
        self._lock = threading.Lock()

    def constructors(self, plugged_type: Type) -> List[ConstructorDescriptor]:
        """Return the constructor descriptors of ``plugged_type``.

        Args:
            plugged_type: The concrete type to inspect.

        Returns:
            Ordered descriptors, ``__init__`` first.
        """
        with self._lock:
            cached = self._cache.get(plugged_type)
        if cached is not None:
            return list(cached)

        descriptors = [self._describe_init(plugged_type)]
        for name, member in vars(plugged_type).items():
            if not isinstance(member, (classmethod, staticmethod)):
                continue
            if not hasattr(member.__func__, CONSTRUCTOR_MARKER):
                continue
            factory = getattr(plugged_type, name)
            descriptors.append(
                ConstructorDescriptor(
                    owner=plugged_type,
                    name=name,
                    factory=factory,
                    parameters=self._parameters(factory, safe_type_hints(member.__func__)),
                    selected=getattr(member.__func__, CONSTRUCTOR_MARKER),
                )
            )

        with self._lock:
            self._cache[plugged_type] = descriptors
        return list(descriptors)

    def _describe_init(self, plugged_type: Type) -> ConstructorDescriptor:
        init = plugged_type.__init__
        return ConstructorDescriptor(
            owner=plugged_type,
            name="__init__",
            factory=plugged_type,
            parameters=self._parameters(init, safe_type_hints(init), skip_first=True),
            selected=bool(getattr(init, CONSTRUCTOR_MARKER, False)),
        )

    @staticmethod
    def _parameters(
        func: Callable[..., Any],
        hints: Dict[str, Any],
        skip_first: bool = False,
    ) -> List[ConstructorParameter]:
        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            return []

        parameters = list(signature.parameters.values())
        if skip_first and parameters and parameters[0].kind in _POSITIONAL:
            parameters = parameters[1:]

        result = []
        for parameter in parameters:
            # *args and **kwargs are never injected
            if parameter.kind in _VARIADIC:
                continue
            annotation: Optional[Any] = hints.get(parameter.name)
            if annotation is None and parameter.annotation is not parameter.empty:
                if not isinstance(parameter.annotation, str):
                    annotation = parameter.annotation
            result.append(
                ConstructorParameter(
                    name=parameter.name,
                    parameter_type=annotation,
                    default=parameter.default,
                )
            )
        return result
