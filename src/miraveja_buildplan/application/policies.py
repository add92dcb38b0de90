"""Application layer - The policy pipeline applied to instances before compilation."""

from abc import abstractmethod
from typing import Callable, Iterator, List, Optional, Type

from miraveja_buildplan.application.constructor_selection import select_constructor
from miraveja_buildplan.application.dependency_collection import DependencyCollection
from miraveja_buildplan.application.instances import ConfiguredInstance, Instance
from miraveja_buildplan.domain import (
    ConstructorDescriptor,
    IConstructorSelector,
    IInstanceGraph,
    IInstancePolicy,
    IInterceptor,
    ILifecycle,
)
from miraveja_buildplan.domain.type_rules import can_be_cast_to

InstanceFilter = Callable[[Type, Instance], bool]


class ConfiguredInstancePolicy(IInstancePolicy):
    """A policy that only applies to ``ConfiguredInstance`` objects."""

    def apply(self, plugin_type: Type, instance: Instance) -> None:
        if isinstance(instance, ConfiguredInstance):
            self._apply(plugin_type, instance)

    @abstractmethod
    def _apply(self, plugin_type: Type, instance: ConfiguredInstance) -> None:
        """Mutate the configured instance."""


class ConstructorSelector(ConfiguredInstancePolicy):
    """Chooses the constructor of configured instances that have none yet.

    Registered selectors are consulted in registration order before the
    built-in defaults.

    Attributes:
        _graph: Optional graph used to judge which parameters are satisfiable.
        _selectors: Selectors registered by configuration.
    """

    def __init__(self, graph: Optional[IInstanceGraph] = None) -> None:
        self._graph = graph
        self._selectors: List[IConstructorSelector] = []

    def add(self, selector: IConstructorSelector) -> "ConstructorSelector":
        self._selectors.append(selector)
        return self

    def select(
        self,
        plugged_type: Type,
        dependencies: Optional[DependencyCollection] = None,
    ) -> ConstructorDescriptor:
        return select_constructor(plugged_type, dependencies, self._graph, self._selectors)

    def _apply(self, plugin_type: Type, instance: ConfiguredInstance) -> None:
        if instance.constructor is None:
            instance.constructor = self.select(instance.plugged_type, instance.dependencies)


class InterceptorPolicy(IInstancePolicy):
    """Attaches an interceptor to every instance whose type it can accept.

    Example:
        >>> policies.add(InterceptorPolicy(ActivatorInterceptor(Startable.start, accepts=Startable)))
    """

    def __init__(self, interceptor: IInterceptor, predicate: Optional[InstanceFilter] = None) -> None:
        self._interceptor = interceptor
        self._filter = predicate

    @property
    def interceptor(self) -> IInterceptor:
        return self._interceptor

    def apply(self, plugin_type: Type, instance: Instance) -> None:
        built_type = instance.returned_type or plugin_type
        if not can_be_cast_to(built_type, self._interceptor.accepts):
            return
        if self._filter is not None and not self._filter(plugin_type, instance):
            return
        if self._interceptor in instance.interceptors:
            return
        instance.add_interceptor(self._interceptor)


class LifecyclePolicy(IInstancePolicy):
    """Assigns a lifecycle to matching instances that declare none."""

    def __init__(self, lifecycle: ILifecycle, predicate: InstanceFilter) -> None:
        self._lifecycle = lifecycle
        self._filter = predicate

    def apply(self, plugin_type: Type, instance: Instance) -> None:
        if instance.lifecycle is None and self._filter(plugin_type, instance):
            instance.set_lifecycle_to(self._lifecycle)


class Policies:
    """Ordered set of policies finalizing instances before compilation.

    The constructor selector always runs first. Each policy is applied to a
    given instance at most once.

    Attributes:
        graph: Optional instance graph shared with the constructor selector.
        constructor_selector: The constructor selection policy.
    """

    def __init__(self, graph: Optional[IInstanceGraph] = None) -> None:
        self.graph = graph
        self.constructor_selector = ConstructorSelector(graph)
        self._policies: List[IInstancePolicy] = [self.constructor_selector]

    @classmethod
    def default(cls) -> "Policies":
        return cls()

    def add(self, policy: IInstancePolicy) -> "Policies":
        self._policies.append(policy)
        return self

    def apply(self, plugin_type: Type, instance: Instance) -> None:
        """Run every policy not yet applied to ``instance``, in order.

        Args:
            plugin_type: The requested type.
            instance: The instance to finalize. It is mutated, never replaced.
        """
        for policy in self._policies:
            if any(applied is policy for applied in instance.applied_policies):
                continue
            policy.apply(plugin_type, instance)
            instance.applied_policies.append(policy)

    def select_constructor(
        self,
        plugged_type: Type,
        dependencies: Optional[DependencyCollection] = None,
    ) -> ConstructorDescriptor:
        return self.constructor_selector.select(plugged_type, dependencies)

    def __iter__(self) -> Iterator[IInstancePolicy]:
        return iter(list(self._policies))

    def __len__(self) -> int:
        return len(self._policies)
