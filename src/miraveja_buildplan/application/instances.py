"""Application layer - Instances, the declarative descriptions of how to build a value."""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple, Type, get_args

from miraveja_buildplan.application.build_plan import BuildPlan
from miraveja_buildplan.application.constructor_selection import (
    is_enumerable,
    is_optional,
    select_constructor,
)
from miraveja_buildplan.application.dependency_collection import DependencyCollection
from miraveja_buildplan.application.dependency_sources import (
    AllPossibleValuesSource,
    ConcreteBuild,
    Constant,
    DefaultDependencySource,
    LambdaSource,
    LifecycleDependencySource,
    OptionalDependencySource,
    ReferencedDependencySource,
    SessionSource,
)
from miraveja_buildplan.application.introspection import describe_callable, safe_type_hints
from miraveja_buildplan.application.lifecycles import Lifecycles
from miraveja_buildplan.domain import (
    BuildException,
    BuildPlanError,
    ConfigurationError,
    ConstructorDescriptor,
    ConstructorParameter,
    IBuildPlan,
    IBuildSession,
    IDependencySource,
    IInstancePolicy,
    IInterceptor,
    ILifecycle,
    InstanceToken,
)
from miraveja_buildplan.domain.type_rules import can_be_cast_to, full_name, is_simple

if TYPE_CHECKING:
    from miraveja_buildplan.application.policies import Policies

logger = logging.getLogger(__name__)


class Instance(ABC):
    """Declarative description of one way to produce a value of a plugin type.

    The compiled build plan is cached on the instance. Policy application and
    compilation run at most once, under a per-instance lock, so concurrent
    callers always observe a fully finalized plan.

    Equality and hashing use the original (pre-rename) name only.

    Attributes:
        id: Process-unique identifier assigned at creation.
        applied_policies: Policies already applied to this instance.
    """

    def __init__(self) -> None:
        self.id = uuid.uuid4()
        self._original_name = str(self.id)
        self._name = self._original_name
        self._hash_code = hash(self._original_name)
        self._lifecycle: Optional[ILifecycle] = None
        self._interceptors: List[IInterceptor] = []
        self._keys: Dict[Type, int] = {}
        self._plan: Optional[IBuildPlan] = None
        self._build_lock = threading.RLock()
        self.applied_policies: List[IInstancePolicy] = []

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description of what the instance builds."""

    @property
    @abstractmethod
    def returned_type(self) -> Optional[Type]:
        """The concrete type built by this instance, or None when indeterminate."""

    @abstractmethod
    def to_dependency_source(self, plugin_type: Type) -> IDependencySource:
        """Describe how this instance is built as an inline dependency.

        Args:
            plugin_type: The requested type.
        """

    def to_builder(self, plugin_type: Type, policies: "Policies") -> IDependencySource:
        """Describe how this instance is built once policies have been applied."""
        return self.to_dependency_source(plugin_type)

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value

    def named(self, name: str) -> "Instance":
        self._name = name
        return self

    def has_explicit_name(self) -> bool:
        """Check whether the instance was given a user-defined name."""
        return self._name != self._original_name

    @property
    def lifecycle(self) -> Optional[ILifecycle]:
        return self._lifecycle

    def set_lifecycle_to(self, lifecycle: Optional[ILifecycle]) -> "Instance":
        self._lifecycle = lifecycle
        return self

    def determine_lifecycle(self, parent: Optional[ILifecycle] = None) -> ILifecycle:
        """Return the instance's own lifecycle, else ``parent``, else transient."""
        return self._lifecycle or parent or Lifecycles.TRANSIENT

    @property
    def interceptors(self) -> Tuple[IInterceptor, ...]:
        return tuple(self._interceptors)

    def add_interceptor(self, interceptor: IInterceptor) -> "Instance":
        """Attach an interceptor to this instance only.

        Args:
            interceptor: The activator or decorator to attach.

        Raises:
            ConfigurationError: If the returned type cannot be cast to the interceptor's accepted type.
        """
        if self.returned_type is not None and not can_be_cast_to(self.returned_type, interceptor.accepts):
            raise ConfigurationError(
                f"ReturnedType {full_name(self.returned_type)} cannot be cast to the "
                f"Interceptor Accepts type {full_name(interceptor.accepts)}",
                interceptor.description,
            )
        self._interceptors.append(interceptor)
        return self

    def create_token(self) -> InstanceToken:
        return InstanceToken(name=self._name, description=self.description)

    def describe(self, plugin_type: Optional[Type] = None) -> str:
        """Render ``Instance of <type> (<name>) -- <description>`` for diagnostics."""
        type_name = full_name(plugin_type or self.returned_type)
        if self.has_explicit_name():
            return f"Instance of {type_name} ({self._name}) -- {self.description}"
        return f"Instance of {type_name} -- {self.description}"

    def resolve_build_plan(self, plugin_type: Type, policies: "Policies") -> IBuildPlan:
        """Return the build plan for this instance, compiling it on first use.

        Concurrent callers block until the single compilation completes and
        then share its result.

        Args:
            plugin_type: The requested type.
            policies: Policies applied before compilation.

        Returns:
            The compiled build plan.

        Raises:
            BuildException: With a trail frame naming this instance, if compilation fails.
            BuildPlanError: If compilation fails for any other reason.
        """
        with self._build_lock:
            if self._plan is None:
                self._plan = self._build_plan(plugin_type, policies)
            return self._plan

    def clear_build_plan(self) -> None:
        """Discard the cached plan so the next request recompiles it."""
        with self._build_lock:
            if self._plan is not None:
                logger.debug("Clearing build plan of %s", self.describe())
            self._plan = None

    def has_build_plan(self) -> bool:
        return self._plan is not None

    def apply_all_policies(self, plugin_type: Type, policies: "Policies") -> None:
        with self._build_lock:
            policies.apply(plugin_type, self)

    def _build_plan(self, plugin_type: Type, policies: "Policies") -> IBuildPlan:
        try:
            policies.apply(plugin_type, self)
            source = self.to_builder(plugin_type, policies)
            plan = BuildPlan(plugin_type, self, source, policies, self.interceptors)
            logger.debug("Compiled build plan for %s", self.describe(plugin_type))
            return plan
        except BuildException as e:
            e.push(f"Attempting to create a BuildPlan for {self.describe(plugin_type)}")
            raise
        except Exception as e:
            raise BuildPlanError(
                f"Error while trying to create the BuildPlan for {self.describe(plugin_type)}.\n"
                "Please check the inner exception",
                f"{type(e).__name__}: {e}",
            ) from e

    def instance_key(self, plugin_type: Optional[Type] = None) -> int:
        """Return a hash unique to this instance and plugin type combination."""
        if plugin_type is None:
            return self._hash_code
        key = self._keys.get(plugin_type)
        if key is None:
            key = (self._hash_code * 397) ^ hash(full_name(plugin_type))
            self._keys[plugin_type] = key
        return key

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if other is None or type(other) is not type(self):
            return False
        return self._original_name == other._original_name  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return self._hash_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, description={self.description!r})"


class ObjectInstance(Instance):
    """An instance wrapping an already-built object."""

    def __init__(self, value: Any) -> None:
        super().__init__()
        self._value = value

    @property
    def value(self) -> Any:
        return self._value

    @property
    def description(self) -> str:
        return f"Object: {self._value!r}"

    @property
    def returned_type(self) -> Optional[Type]:
        return type(self._value) if self._value is not None else None

    def to_dependency_source(self, plugin_type: Type) -> IDependencySource:
        return Constant(self._value, self.returned_type)


class LambdaInstance(Instance):
    """An instance built by a factory function.

    The factory receives the build session when it takes one positional
    argument and nothing otherwise. The returned type defaults to the
    factory's return annotation.
    """

    def __init__(self, factory: Callable[..., Any], returned_type: Optional[Type] = None) -> None:
        super().__init__()
        self._factory = factory
        self._returned_type = returned_type or safe_type_hints(factory).get("return")

    @property
    def description(self) -> str:
        return f"Lambda: {describe_callable(self._factory, ['IBuildSession'])}"

    @property
    def returned_type(self) -> Optional[Type]:
        return self._returned_type

    def to_dependency_source(self, plugin_type: Type) -> IDependencySource:
        return LambdaSource(self._factory, self._returned_type)


class NullInstance(Instance):
    """An instance that always builds None."""

    @property
    def description(self) -> str:
        return "NULL"

    @property
    def returned_type(self) -> Optional[Type]:
        return None

    def to_dependency_source(self, plugin_type: Type) -> IDependencySource:
        return Constant(None)


class DefaultInstance(Instance):
    """An instance delegating to the session's default for the requested type."""

    @property
    def description(self) -> str:
        return "Default"

    @property
    def returned_type(self) -> Optional[Type]:
        return None

    def to_dependency_source(self, plugin_type: Type) -> IDependencySource:
        return DefaultDependencySource(plugin_type)


class ReferencedInstance(Instance):
    """An instance delegating to another, named instance of the requested type."""

    def __init__(self, reference_key: str) -> None:
        super().__init__()
        self._reference_key = reference_key

    @property
    def reference_key(self) -> str:
        return self._reference_key

    @property
    def description(self) -> str:
        return f'"{self._reference_key}"'

    @property
    def returned_type(self) -> Optional[Type]:
        return None

    def to_dependency_source(self, plugin_type: Type) -> IDependencySource:
        return ReferencedDependencySource(plugin_type, self._reference_key)


class ConfiguredInstance(Instance):
    """An instance built by invoking a constructor of a concrete type.

    Constructor arguments come from explicit bindings in ``dependencies``,
    parameter defaults, or the session (auto-wiring by type hint).

    Example:
        >>> instance = ConfiguredInstance(SqlRepository)
        >>> instance.dependencies.add("dsn", "postgresql://localhost/app")
        >>> instance.dependencies.add(Clock, ObjectInstance(FrozenClock()))
    """

    def __init__(self, plugged_type: Type, dependencies: Optional[DependencyCollection] = None) -> None:
        super().__init__()
        self._plugged_type = plugged_type
        self._dependencies = dependencies if dependencies is not None else DependencyCollection()
        self._constructor: Optional[ConstructorDescriptor] = None

    @property
    def plugged_type(self) -> Type:
        return self._plugged_type

    @property
    def dependencies(self) -> DependencyCollection:
        return self._dependencies

    @property
    def constructor(self) -> Optional[ConstructorDescriptor]:
        return self._constructor

    @constructor.setter
    def constructor(self, value: Optional[ConstructorDescriptor]) -> None:
        self._constructor = value

    def bind(self, key: Any, value: Any) -> "ConfiguredInstance":
        """Bind a constructor argument by parameter name or type."""
        self._dependencies.add(key, value)
        return self

    @property
    def description(self) -> str:
        return f"Configured: {full_name(self._plugged_type)}"

    @property
    def returned_type(self) -> Optional[Type]:
        return self._plugged_type

    def to_dependency_source(self, plugin_type: Type) -> IDependencySource:
        constructor = self._constructor or select_constructor(self._plugged_type, self._dependencies)
        return self._concrete_build(constructor)

    def to_builder(self, plugin_type: Type, policies: "Policies") -> IDependencySource:
        constructor = self._constructor or policies.select_constructor(self._plugged_type, self._dependencies)
        return self._concrete_build(constructor)

    def _concrete_build(self, constructor: ConstructorDescriptor) -> ConcreteBuild:
        arguments = [(parameter.name, self._source_for(parameter)) for parameter in constructor.parameters]
        return ConcreteBuild(constructor, arguments)

    def _source_for(self, parameter: ConstructorParameter) -> IDependencySource:
        binding = self._dependencies.find_for(parameter)
        if binding is not None:
            return self._source_for_value(parameter, binding.value)

        if parameter.has_default:
            return Constant(parameter.default, parameter.parameter_type)

        parameter_type = parameter.parameter_type
        if parameter_type is None:
            raise ConfigurationError(
                f"Unable to create a build plan for concrete type {full_name(self._plugged_type)}",
                f"Parameter '{parameter.name}' lacks type hint and has no default value.",
            )
        if parameter_type is IBuildSession:
            return SessionSource()
        if is_optional(parameter_type):
            inner = [arg for arg in get_args(parameter_type) if arg is not type(None)]
            return OptionalDependencySource(inner[0]) if len(inner) == 1 else DefaultDependencySource(parameter_type)
        if is_enumerable(parameter_type):
            element_types = get_args(parameter_type)
            return AllPossibleValuesSource(element_types[0] if element_types else object)
        if is_simple(parameter_type):
            raise ConfigurationError(
                f"Unable to create a build plan for concrete type {full_name(self._plugged_type)}",
                f"Missing required argument '{parameter.name}' of simple type {full_name(parameter_type)}.",
            )
        return DefaultDependencySource(parameter_type)

    @staticmethod
    def _source_for_value(parameter: ConstructorParameter, value: Any) -> IDependencySource:
        if isinstance(value, Instance):
            dependency_type = parameter.parameter_type or value.returned_type or object
            return LifecycleDependencySource(dependency_type, value)
        if isinstance(value, IDependencySource):
            return value
        return Constant(value, parameter.parameter_type)
