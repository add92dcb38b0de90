import inspect
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar, Union

from miraveja_buildplan.application.build_session import BuildSession
from miraveja_buildplan.application.circular_detector import CircularDependencyDetector
from miraveja_buildplan.application.instance_graph import InstanceGraph
from miraveja_buildplan.application.instances import (
    ConfiguredInstance,
    Instance,
    LambdaInstance,
    ObjectInstance,
)
from miraveja_buildplan.application.lifecycles import Lifecycles, SingletonLifecycle
from miraveja_buildplan.application.policies import Policies
from miraveja_buildplan.domain import ExplicitArguments, IBuildSession, ILifecycle, Lifetime

T = TypeVar("T")

Builder = Callable[[IBuildSession], Any]
Arguments = Union[ExplicitArguments, Mapping[Type, Any], None]

logger = logging.getLogger(__name__)


class Container:
    """Facade over an instance graph, its policies and build sessions.

    Registrations become instances in the graph. Every resolution opens a new
    build session, so transient objects are shared within one call only.

    Attributes:
        _graph: The instance graph holding all registrations.
        _policies: Policies applied to instances before compilation.
        _detector: Bidirectional dependency detector shared by all sessions.

    Example:
        >>> container = Container()
        >>> container.register(IRepository, SqlRepository, lifetime=Lifetime.SINGLETON)
        >>> container.register(ReportService)
        >>> service = container.get_instance(ReportService)
    """

    def __init__(self, graph: Optional[InstanceGraph] = None, policies: Optional[Policies] = None) -> None:
        self._graph = graph if graph is not None else InstanceGraph()
        self._policies = policies if policies is not None else Policies(self._graph)
        self._detector = CircularDependencyDetector()

    @property
    def graph(self) -> InstanceGraph:
        return self._graph

    @property
    def policies(self) -> Policies:
        return self._policies

    def register(
        self,
        plugin_type: Type,
        target: Any = None,
        name: Optional[str] = None,
        lifetime: Union[Lifetime, ILifecycle, None] = None,
        default: bool = True,
    ) -> Instance:
        """Register how to build a plugin type.

        ``target`` may be an ``Instance``, a concrete class, a builder taking
        the session, or a ready-made object. When omitted, the plugin type
        itself is constructed.

        Args:
            plugin_type: The requested type being configured.
            target: What to build for the plugin type.
            name: Optional instance name for named lookups.
            lifetime: Lifetime or lifecycle of the instance.
            default: Make the instance the plugin type's default.

        Returns:
            The registered instance, for further configuration.

        Example:
            >>> container.register(IClock, lambda session: SystemClock())
            >>> container.register(IRepository, SqlRepository).add_interceptor(
            ...     FuncInterceptor(CachingRepository, accepts=IRepository)
            ... )
        """
        instance = self._to_instance(plugin_type, target)
        if name is not None:
            instance.name = name
        if lifetime is not None:
            instance.set_lifecycle_to(self._to_lifecycle(lifetime))
        logger.debug("Registering %s", instance.describe(plugin_type))
        return self._graph.add(plugin_type, instance, default=default)

    def register_singletons(self, dependencies: Dict[Type, Builder]) -> None:
        """Register multiple singleton builders at once.

        Each builder receives the build session and returns the object.

        Args:
            dependencies: Dictionary mapping plugin types to builder functions.

        Example:
            >>> container.register_singletons({
            ...     DatabaseConfig: lambda s: DatabaseConfig.from_env(),
            ...     DatabaseConnection: lambda s: DatabaseConnection(s.get_instance(DatabaseConfig)),
            ... })
        """
        for plugin_type, builder in dependencies.items():
            self.register(plugin_type, LambdaInstance(builder, plugin_type), lifetime=Lifetime.SINGLETON)

    def register_transients(self, dependencies: Dict[Type, Builder]) -> None:
        """Register multiple transient builders at once.

        Args:
            dependencies: Dictionary mapping plugin types to builder functions.
        """
        for plugin_type, builder in dependencies.items():
            self.register(plugin_type, LambdaInstance(builder, plugin_type), lifetime=Lifetime.TRANSIENT)

    def start_session(self, arguments: Arguments = None) -> BuildSession:
        """Open a build session, optionally seeded with explicit arguments.

        Example:
            >>> session = container.start_session({Clock: FrozenClock()})
            >>> assert session.get_instance(ReportService) is session.get_instance(ReportService)
        """
        return BuildSession(self._graph, self._policies, self._to_arguments(arguments), self._detector)

    def get_instance(self, plugin_type: Type[T], name: Optional[str] = None, arguments: Arguments = None) -> T:
        """Resolve the default or named object for a plugin type in a new session.

        Raises:
            ConfigurationError: If nothing is configured for the plugin type.
            BuildException: If building fails.
        """
        return self.start_session(arguments).get_instance(plugin_type, name)

    def try_get_instance(
        self, plugin_type: Type[T], name: Optional[str] = None, arguments: Arguments = None
    ) -> Optional[T]:
        return self.start_session(arguments).try_get_instance(plugin_type, name)

    def get_all_instances(self, plugin_type: Type[T], arguments: Arguments = None) -> List[T]:
        return self.start_session(arguments).get_all_instances(plugin_type)

    def clear_build_plans(self) -> None:
        """Discard every compiled plan so the next request recompiles it."""
        self._graph.each_instance(lambda plugin_type, instance: instance.clear_build_plan())

    def eject_singletons(self) -> None:
        """Drop every cached singleton built for this container's instances."""

        def eject(plugin_type: Type, instance: Instance) -> None:
            lifecycle = instance.determine_lifecycle(self._graph.lifecycle_for(plugin_type))
            if isinstance(lifecycle, SingletonLifecycle):
                lifecycle.eject(instance)

        self._graph.each_instance(eject)
        self._graph.singletons.eject_all()

    def clear(self) -> None:
        """Clear all registrations and cached singletons.

        Useful for testing or resetting the container state.
        """
        self.eject_singletons()
        self._graph.clear()
        self._detector.clear()

    def _to_lifecycle(self, lifetime: Union[Lifetime, ILifecycle]) -> ILifecycle:
        if isinstance(lifetime, ILifecycle):
            return lifetime
        return Lifecycles.for_lifetime(Lifetime(lifetime), self._graph.singletons)

    @staticmethod
    def _to_instance(plugin_type: Type, target: Any) -> Instance:
        if isinstance(target, Instance):
            return target
        if target is None:
            return ConfiguredInstance(plugin_type)
        if inspect.isclass(target):
            return ConfiguredInstance(target)
        if callable(target):
            return LambdaInstance(target, plugin_type)
        return ObjectInstance(target)

    @staticmethod
    def _to_arguments(arguments: Arguments) -> Optional[ExplicitArguments]:
        if arguments is None or isinstance(arguments, ExplicitArguments):
            return arguments
        return ExplicitArguments(dict(arguments))
