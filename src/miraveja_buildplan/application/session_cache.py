import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Type

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

logger = logging.getLogger(__name__)


class SessionCache:
    """Per-session memoization of built objects.

    Objects are remembered per ``(plugin type, instance)`` and per plugin type
    for defaults. Explicit arguments, captured when the cache is created, take
    precedence over any configured default. A session cache is used by one
    thread at a time.

    Attributes:
        _resolver: The session that builds objects on a miss.
        _explicit: Read-only snapshot of the explicit arguments.
        _objects: Built objects keyed by ``instance.instance_key(plugin_type)``.
        _defaults: Default objects keyed by plugin type.
    """

    def __init__(self, resolver: IBuildSession, arguments: Optional[ExplicitArguments] = None) -> None:
        self._resolver = resolver
        self._explicit: Mapping[Type, Any] = arguments.snapshot() if arguments is not None else MappingProxyType({})
        self._objects: Dict[int, Any] = {}
        self._defaults: Dict[Type, Any] = {}

    @property
    def explicit_arguments(self) -> Mapping[Type, Any]:
        return self._explicit

    def get_object(self, plugin_type: Type, instance: "Instance", lifecycle: ILifecycle) -> Any:
        """Return the object for ``instance``, building it at most once per session.

        Lifecycles that do not memoize always get a fresh object from the
        resolver.

        Args:
            plugin_type: The requested type.
            instance: The instance to build.
            lifecycle: The instance's effective lifecycle.

        Returns:
            The memoized or freshly built object.
        """
        if not lifecycle.memoizes_in_session:
            return self._resolver.build_unique(plugin_type, instance)

        key = instance.instance_key(plugin_type)
        if key in self._objects:
            return self._objects[key]

        result = self._resolver.resolve_from_lifecycle(plugin_type, instance)
        self._objects[key] = result
        return result

    def get_default(self, plugin_type: Type, graph: IInstanceGraph) -> Any:
        """Return the default object for ``plugin_type``.

        Args:
            plugin_type: The requested type.
            graph: The instance graph to find the default instance in.

        Returns:
            The explicit argument, or the object built from the default instance.

        Raises:
            ConfigurationError: If no explicit argument or default instance exists.
        """
        found, result = self._find_default(plugin_type, graph)
        if not found:
            raise ConfigurationError(
                f"No default Instance is registered and cannot be automatically determined for type "
                f"'{full_name(plugin_type)}'",
                self._missing_default_context(plugin_type, graph),
            )
        return result

    @staticmethod
    def _missing_default_context(plugin_type: Type, graph: IInstanceGraph) -> str:
        instances = graph.get_all_instances(plugin_type)
        if not instances:
            return f"There is no configuration specified for {full_name(plugin_type)}"

        lines = [
            f"No default instance is specified.  The current configuration for type {full_name(plugin_type)} is:"
        ]
        lines.extend(f"  - {instance.describe(plugin_type)}" for instance in instances)
        return "\n".join(lines)

    def try_get_default(self, plugin_type: Type, graph: IInstanceGraph) -> Optional[Any]:
        """Like ``get_default`` but returns None when no default exists."""
        _, result = self._find_default(plugin_type, graph)
        return result

    def _find_default(self, plugin_type: Type, graph: IInstanceGraph) -> tuple:
        if plugin_type in self._defaults:
            return True, self._defaults[plugin_type]

        if plugin_type in self._explicit:
            result = self._explicit[plugin_type]
            self._defaults[plugin_type] = result
            return True, result

        instance = graph.get_default(plugin_type)
        if instance is None:
            return False, None

        lifecycle = instance.determine_lifecycle(graph.lifecycle_for(plugin_type))
        logger.debug("Resolving default of %s from %s", full_name(plugin_type), instance.describe(plugin_type))
        result = self.get_object(plugin_type, instance, lifecycle)
        if lifecycle.memoizes_in_session:
            self._defaults[plugin_type] = result
        return True, result
