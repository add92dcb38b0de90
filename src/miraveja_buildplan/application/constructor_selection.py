"""Application layer - Constructor selection strategies."""

from typing import Iterable, List, Optional, Type, get_args, get_origin

from miraveja_buildplan.application.dependency_collection import DependencyCollection
from miraveja_buildplan.application.introspection import TypeIntrospector
from miraveja_buildplan.domain import (
    ConfigurationError,
    ConstructorDescriptor,
    ConstructorParameter,
    IBuildSession,
    IConstructorSelector,
    IInstanceGraph,
)
from miraveja_buildplan.domain.type_rules import UNION_ORIGINS, full_name, is_simple

DEFAULT_INTROSPECTOR = TypeIntrospector()


def is_optional(parameter_type: object) -> bool:
    if get_origin(parameter_type) not in UNION_ORIGINS:
        return False
    return type(None) in get_args(parameter_type)


def is_enumerable(parameter_type: object) -> bool:
    return get_origin(parameter_type) is list


def is_satisfiable(
    parameter: ConstructorParameter,
    dependencies: DependencyCollection,
    graph: Optional[IInstanceGraph] = None,
) -> bool:
    """Check whether a parameter can be filled from what is currently known.

    A parameter is satisfiable when it is explicitly bound, has a default,
    asks for the session, a list or an optional value, or names a non-simple
    type that the graph (when given) has a default for.
    """
    if dependencies.has(parameter) or parameter.has_default:
        return True

    parameter_type = parameter.parameter_type
    if parameter_type is None or is_simple(parameter_type):
        return False
    if parameter_type is IBuildSession or is_optional(parameter_type) or is_enumerable(parameter_type):
        return True
    if graph is None:
        return True
    return graph.has_default_for_plugin_type(parameter_type)


class AttributeConstructorSelector(IConstructorSelector):
    """Selects the constructor explicitly marked with ``default_constructor``."""

    def __init__(self, introspector: TypeIntrospector = DEFAULT_INTROSPECTOR) -> None:
        self._introspector = introspector

    def find(
        self,
        plugged_type: Type,
        dependencies: DependencyCollection,
        graph: Optional[IInstanceGraph],
    ) -> Optional[ConstructorDescriptor]:
        return next((c for c in self._introspector.constructors(plugged_type) if c.selected), None)


class GreediestConstructorSelector(IConstructorSelector):
    """Selects the constructor with the most parameters that are all satisfiable."""

    def __init__(self, introspector: TypeIntrospector = DEFAULT_INTROSPECTOR) -> None:
        self._introspector = introspector

    def find(
        self,
        plugged_type: Type,
        dependencies: DependencyCollection,
        graph: Optional[IInstanceGraph],
    ) -> Optional[ConstructorDescriptor]:
        candidates = [
            constructor
            for constructor in self._introspector.constructors(plugged_type)
            if all(is_satisfiable(p, dependencies, graph) for p in constructor.parameters)
        ]
        if not candidates:
            return None
        # max() keeps the first declared constructor on ties
        return max(candidates, key=lambda c: len(c.parameters))


class FirstConstructor(IConstructorSelector):
    """Selects the first declared constructor, ``__init__``."""

    def __init__(self, introspector: TypeIntrospector = DEFAULT_INTROSPECTOR) -> None:
        self._introspector = introspector

    def find(
        self,
        plugged_type: Type,
        dependencies: DependencyCollection,
        graph: Optional[IInstanceGraph],
    ) -> Optional[ConstructorDescriptor]:
        constructors = self._introspector.constructors(plugged_type)
        return constructors[0] if constructors else None


DEFAULT_SELECTORS: List[IConstructorSelector] = [
    AttributeConstructorSelector(),
    GreediestConstructorSelector(),
    FirstConstructor(),
]


def select_constructor(
    plugged_type: Type,
    dependencies: Optional[DependencyCollection] = None,
    graph: Optional[IInstanceGraph] = None,
    selectors: Iterable[IConstructorSelector] = (),
) -> ConstructorDescriptor:
    """Choose a constructor for ``plugged_type``.

    Registered selectors are tried in order, then the built-in defaults
    (marked constructor, greediest satisfiable constructor, first constructor).
    The first selector returning a descriptor wins.

    Args:
        plugged_type: The concrete type to construct.
        dependencies: Bindings already known for the instance.
        graph: Optional instance graph used to judge satisfiability.
        selectors: Registered selectors, consulted before the defaults.

    Returns:
        The selected constructor descriptor.

    Raises:
        ConfigurationError: If no selector yields a constructor.
    """
    dependencies = dependencies if dependencies is not None else DependencyCollection()
    for selector in [*selectors, *DEFAULT_SELECTORS]:
        constructor = selector.find(plugged_type, dependencies, graph)
        if constructor is not None:
            return constructor

    raise ConfigurationError(
        f"Unable to select a constructor for concrete type {full_name(plugged_type)}",
        "No constructor selector returned a constructor.",
    )
