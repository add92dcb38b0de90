import logging
from typing import TYPE_CHECKING, Any, List, Optional, Type, TypeVar

from miraveja_buildplan.application.circular_detector import CircularDependencyDetector
from miraveja_buildplan.application.policies import Policies
from miraveja_buildplan.application.session_cache import SessionCache
from miraveja_buildplan.domain import (
    ConfigurationError,
    ExplicitArguments,
    IBuildSession,
    IInstanceGraph,
    ILifecycle,
)
from miraveja_buildplan.domain.type_rules import full_name

if TYPE_CHECKING:
    from miraveja_buildplan.application.instances import Instance

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BuildSession(IBuildSession):
    """One resolution context over an instance graph.

    Every object built through a session is memoized according to its
    lifecycle: transient objects once per session, singletons once per
    process, unique objects never. Explicit arguments given to the session
    take precedence over configured defaults.

    A session is meant to be used by one thread at a time. Singletons are
    always built in a fresh root session sharing this session's detector.

    Attributes:
        _graph: The instance graph objects are resolved from.
        _policies: Policies applied to instances before compilation.
        _arguments: Explicit arguments for this session.
        _detector: Tracks the ``(plugin_type, instance)`` pairs being built.
        _cache: The session's object cache.

    Example:
        >>> session = BuildSession(graph, arguments=ExplicitArguments().set(Clock, FrozenClock()))
        >>> service = session.get_instance(ReportService)
    """

    def __init__(
        self,
        graph: IInstanceGraph,
        policies: Optional[Policies] = None,
        arguments: Optional[ExplicitArguments] = None,
        detector: Optional[CircularDependencyDetector] = None,
    ) -> None:
        self._graph = graph
        self._policies = policies if policies is not None else Policies(graph)
        self._arguments = arguments if arguments is not None else ExplicitArguments()
        self._detector = detector if detector is not None else CircularDependencyDetector()
        self._cache = SessionCache(self, self._arguments)

    @property
    def graph(self) -> IInstanceGraph:
        return self._graph

    @property
    def policies(self) -> Policies:
        return self._policies

    @property
    def arguments(self) -> ExplicitArguments:
        return self._arguments

    def get_instance(self, plugin_type: Type[T], name: Optional[str] = None) -> T:
        """Resolve the default or named object for a plugin type.

        Args:
            plugin_type: The requested type.
            name: Optional instance name. The default is used when omitted.

        Returns:
            The resolved object.

        Raises:
            ConfigurationError: If no matching instance is configured.
            BuildException: If building the object fails.
        """
        if name is None:
            return self._cache.get_default(plugin_type, self._graph)

        instance = self._graph.find_instance(plugin_type, name)
        if instance is None:
            raise ConfigurationError(
                f"Could not find an Instance named '{name}' for PluginType {full_name(plugin_type)}"
            )
        return self.get_object(plugin_type, instance)

    def try_get_instance(self, plugin_type: Type[T], name: Optional[str] = None) -> Optional[T]:
        """Like ``get_instance`` but returns None when nothing is configured."""
        if name is None:
            return self._cache.try_get_default(plugin_type, self._graph)

        instance = self._graph.find_instance(plugin_type, name)
        if instance is None:
            return None
        return self.get_object(plugin_type, instance)

    def get_all_instances(self, plugin_type: Type[T]) -> List[T]:
        """Resolve every instance configured for a plugin type, in registration order."""
        return [self.get_object(plugin_type, instance) for instance in self._graph.get_all_instances(plugin_type)]

    def get_object(self, plugin_type: Type, instance: "Instance") -> Any:
        return self._cache.get_object(plugin_type, instance, self._lifecycle_of(plugin_type, instance))

    def resolve_from_lifecycle(self, plugin_type: Type, instance: "Instance") -> Any:
        return self._lifecycle_of(plugin_type, instance).resolve(self, plugin_type, instance)

    def build_unique(self, plugin_type: Type, instance: "Instance") -> Any:
        return self._build(plugin_type, instance)

    def build_new_in_session(self, plugin_type: Type, instance: "Instance") -> Any:
        return self._build(plugin_type, instance)

    def build_new_in_original_context(self, plugin_type: Type, instance: "Instance") -> Any:
        """Build in a fresh root session without this session's explicit arguments."""
        root = BuildSession(self._graph, self._policies, detector=self._detector)
        return root.build_new_in_session(plugin_type, instance)

    def _lifecycle_of(self, plugin_type: Type, instance: "Instance") -> ILifecycle:
        return instance.determine_lifecycle(self._graph.lifecycle_for(plugin_type))

    def _build(self, plugin_type: Type, instance: "Instance") -> Any:
        plan = instance.resolve_build_plan(plugin_type, self._policies)

        self._detector.push(plugin_type, instance)
        try:
            return plan.build(self)
        finally:
            self._detector.pop()

    def __repr__(self) -> str:
        return f"BuildSession(arguments={self._arguments!r})"
