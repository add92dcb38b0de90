from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Type, TypeVar

from miraveja_buildplan.domain.enums import InterceptorRole, Lifetime
from miraveja_buildplan.domain.models import ConstructorDescriptor

if TYPE_CHECKING:
    from miraveja_buildplan.application.dependency_collection import DependencyCollection
    from miraveja_buildplan.application.instances import Instance

T = TypeVar("T")


class IBuildSession(ABC):
    """Abstract interface for the session objects are built within.

    A session is scoped to one logical build or request and is never shared
    between threads.
    """

    @abstractmethod
    def get_instance(self, plugin_type: Type[T], name: Optional[str] = None) -> T:
        """Resolve the default (or the named) object for a plugin type.

        Args:
            plugin_type: The requested type.
            name: Optional instance name.

        Raises:
            ConfigurationError: If no matching instance is configured.
        """

    @abstractmethod
    def try_get_instance(self, plugin_type: Type[T], name: Optional[str] = None) -> Optional[T]:
        """Like ``get_instance`` but returns None when nothing is configured."""

    @abstractmethod
    def get_all_instances(self, plugin_type: Type[T]) -> List[T]:
        """Resolve every configured instance of a plugin type."""

    @abstractmethod
    def get_object(self, plugin_type: Type, instance: "Instance") -> Any:
        """Resolve a specific instance through the session cache."""

    @abstractmethod
    def resolve_from_lifecycle(self, plugin_type: Type, instance: "Instance") -> Any:
        """Resolve an object through the instance's lifecycle.

        Args:
            plugin_type: The requested type.
            instance: The instance describing how to build the object.
        """

    @abstractmethod
    def build_unique(self, plugin_type: Type, instance: "Instance") -> Any:
        """Build a fresh object, never reusing a prior result."""

    @abstractmethod
    def build_new_in_session(self, plugin_type: Type, instance: "Instance") -> Any:
        """Build a new object by invoking the instance's compiled build plan."""

    @abstractmethod
    def build_new_in_original_context(self, plugin_type: Type, instance: "Instance") -> Any:
        """Build a new object in a root session free of explicit arguments."""


class IInstanceGraph(ABC):
    """Abstract interface over the configured instances.

    The engine only ever reads from the graph.
    """

    @abstractmethod
    def get_default(self, plugin_type: Type) -> Optional["Instance"]:
        """Return the default instance for a plugin type, or None."""

    @abstractmethod
    def has_default_for_plugin_type(self, plugin_type: Type) -> bool:
        """Check whether a default instance can be determined."""

    @abstractmethod
    def has_instance(self, plugin_type: Type, name: str) -> bool:
        """Check whether a named instance exists for a plugin type."""

    @abstractmethod
    def find_instance(self, plugin_type: Type, name: str) -> Optional["Instance"]:
        """Return the named instance for a plugin type, or None."""

    @abstractmethod
    def get_all_instances(self, plugin_type: Optional[Type] = None) -> List["Instance"]:
        """Return all instances, optionally restricted to one plugin type."""

    @abstractmethod
    def each_instance(self, action: Callable[[Type, "Instance"], None]) -> None:
        """Invoke ``action(plugin_type, instance)`` for every configured instance."""

    def lifecycle_for(self, plugin_type: Type) -> Optional["ILifecycle"]:
        """Return the lifecycle declared for a whole plugin type, if any."""
        return None


class IDependencySource(ABC):
    """Abstract description of one side-effect-free construction step."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description used in diagnostics."""

    @property
    def return_type(self) -> Optional[Type]:
        """The type produced by this source, when known."""
        return None

    @abstractmethod
    def evaluate(self, session: IBuildSession) -> Any:
        """Produce the value against a build session.

        Raises:
            BuildException: If construction fails.
        """


class IBuildPlan(ABC):
    """Abstract interface for a compiled build plan."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Description of the instance and plugin type the plan builds."""

    @abstractmethod
    def build(self, session: IBuildSession) -> Any:
        """Build the object within a session."""

    @abstractmethod
    def accept_visitor(self, visitor: "IBuildPlanVisitor") -> None:
        """Walk the plan's interceptors without building anything."""


class IInterceptor(ABC):
    """Abstract interface for activators and decorators."""

    @property
    @abstractmethod
    def role(self) -> InterceptorRole:
        """Whether the interceptor activates or decorates."""

    @property
    @abstractmethod
    def accepts(self) -> Type:
        """The type of object the interceptor accepts."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Rendered description including the interceptor's signature."""

    @abstractmethod
    def intercept(self, session: IBuildSession, target: Any) -> Any:
        """Run the interceptor against ``target`` and return the resulting object."""


class IBuildPlanVisitor(ABC):
    """Visitor over the closed set of interceptor variants."""

    @abstractmethod
    def activator(self, interceptor: IInterceptor) -> None:
        """Visit an activator."""

    @abstractmethod
    def decorator(self, interceptor: IInterceptor) -> None:
        """Visit a decorator."""


class IInstancePolicy(ABC):
    """A rule that finalizes an instance's configuration before compilation."""

    @abstractmethod
    def apply(self, plugin_type: Type, instance: "Instance") -> None:
        """Mutate the instance's configuration in place.

        Args:
            plugin_type: The requested type the plan is compiled for.
            instance: The instance being finalized.
        """


class IConstructorSelector(ABC):
    """Strategy choosing the constructor of a concrete type."""

    @abstractmethod
    def find(
        self,
        plugged_type: Type,
        dependencies: "DependencyCollection",
        graph: Optional[IInstanceGraph],
    ) -> Optional[ConstructorDescriptor]:
        """Return a constructor descriptor, or None to defer to the next selector."""


class ILifecycle(ABC):
    """Scoping policy deciding whether and where built objects are cached."""

    @property
    @abstractmethod
    def lifetime(self) -> Lifetime:
        """The kind of caching this lifecycle performs."""

    @property
    def description(self) -> str:
        return str(self.lifetime).capitalize()

    @property
    def memoizes_in_session(self) -> bool:
        """Whether the session cache may remember objects resolved through this lifecycle."""
        return self.lifetime != Lifetime.UNIQUE

    @abstractmethod
    def resolve(self, session: IBuildSession, plugin_type: Type, instance: "Instance") -> Any:
        """Produce the object for ``instance`` according to this lifecycle."""

    @abstractmethod
    def eject_all(self) -> None:
        """Drop every object cached by this lifecycle."""
