import inspect
import threading
from typing import Callable, Dict, List, Optional, Type

from miraveja_buildplan.application.instances import ConfiguredInstance, Instance
from miraveja_buildplan.application.lifecycles import Lifecycles, SingletonLifecycle
from miraveja_buildplan.domain import IInstanceGraph, ILifecycle
from miraveja_buildplan.domain.type_rules import is_simple


class InstanceGraph(IInstanceGraph):
    """In-memory registry of instances per plugin type.

    Instances are kept in registration order. Adding an instance with the
    same name as an existing one of the same plugin type replaces it.

    Concrete classes with no registration are auto-wired: the first request
    for their default registers a ``ConfiguredInstance`` of the class itself.

    Attributes:
        singletons: Singleton lifecycle owned by this graph.
        _families: Instances keyed by plugin type.
        _defaults: Explicit default instance per plugin type.
        _lifecycles: Lifecycle per plugin type.
        _lock: Guards all three maps.
    """

    def __init__(self) -> None:
        self.singletons: SingletonLifecycle = Lifecycles.singleton()
        self._families: Dict[Type, List[Instance]] = {}
        self._defaults: Dict[Type, Instance] = {}
        self._lifecycles: Dict[Type, ILifecycle] = {}
        self._lock = threading.RLock()

    def add(self, plugin_type: Type, instance: Instance, default: bool = False) -> Instance:
        """Register an instance for a plugin type.

        Args:
            plugin_type: The type the instance is registered under.
            instance: The instance to register.
            default: Make the instance the plugin type's default.

        Returns:
            The registered instance.

        Example:
            >>> graph.add(IRepository, ConfiguredInstance(SqlRepository), default=True)
        """
        with self._lock:
            family = self._families.setdefault(plugin_type, [])
            for index, existing in enumerate(family):
                if existing.name == instance.name:
                    family[index] = instance
                    if self._defaults.get(plugin_type) is existing:
                        self._defaults[plugin_type] = instance
                    break
            else:
                family.append(instance)

            if default:
                self._defaults[plugin_type] = instance
        return instance

    def set_default(self, plugin_type: Type, instance: Instance) -> Instance:
        return self.add(plugin_type, instance, default=True)

    def set_lifecycle(self, plugin_type: Type, lifecycle: Optional[ILifecycle]) -> None:
        """Set the lifecycle used by instances of a plugin type that declare none."""
        with self._lock:
            if lifecycle is None:
                self._lifecycles.pop(plugin_type, None)
            else:
                self._lifecycles[plugin_type] = lifecycle

    def lifecycle_for(self, plugin_type: Type) -> Optional[ILifecycle]:
        with self._lock:
            return self._lifecycles.get(plugin_type)

    def get_default(self, plugin_type: Type) -> Optional[Instance]:
        """Return the explicit default, else the only registered instance, else None.

        An unregistered concrete class is registered as its own default first.
        """
        with self._lock:
            if plugin_type in self._defaults:
                return self._defaults[plugin_type]
            family = self._families.get(plugin_type, [])
            if len(family) == 1:
                return family[0]
            if not family and self.can_auto_wire(plugin_type):
                return self.add(plugin_type, ConfiguredInstance(plugin_type), default=True)
            return None

    @staticmethod
    def can_auto_wire(plugin_type: Type) -> bool:
        """Check whether a type is a concrete, non-simple class that can build itself."""
        return (
            inspect.isclass(plugin_type)
            and not inspect.isabstract(plugin_type)
            and not is_simple(plugin_type)
            and plugin_type.__module__ != "builtins"
            and not getattr(plugin_type, "_is_protocol", False)
        )

    def has_default_for_plugin_type(self, plugin_type: Type) -> bool:
        with self._lock:
            family = self._families.get(plugin_type, [])
            if plugin_type in self._defaults or len(family) == 1:
                return True
            return not family and self.can_auto_wire(plugin_type)

    def has_instance(self, plugin_type: Type, name: str) -> bool:
        return self.find_instance(plugin_type, name) is not None

    def find_instance(self, plugin_type: Type, name: str) -> Optional[Instance]:
        with self._lock:
            for instance in self._families.get(plugin_type, []):
                if instance.name == name:
                    return instance
            return None

    def get_all_instances(self, plugin_type: Optional[Type] = None) -> List[Instance]:
        with self._lock:
            if plugin_type is not None:
                return list(self._families.get(plugin_type, []))
            return [instance for family in self._families.values() for instance in family]

    def each_instance(self, action: Callable[[Type, Instance], None]) -> None:
        with self._lock:
            pairs = [(t, i) for t, family in self._families.items() for i in family]
        for plugin_type, instance in pairs:
            action(plugin_type, instance)

    def plugin_types(self) -> List[Type]:
        with self._lock:
            return list(self._families)

    def clear(self) -> None:
        with self._lock:
            self._families.clear()
            self._defaults.clear()
            self._lifecycles.clear()

    def remove(self, plugin_type: Type) -> None:
        """Forget every instance, default and lifecycle of a plugin type."""
        with self._lock:
            self._families.pop(plugin_type, None)
            self._defaults.pop(plugin_type, None)
            self._lifecycles.pop(plugin_type, None)

    def copy(self) -> "InstanceGraph":
        """Shallow copy sharing the same instances and singleton lifecycle."""
        graph = InstanceGraph()
        graph.singletons = self.singletons
        with self._lock:
            graph._families = {t: list(family) for t, family in self._families.items()}
            graph._defaults = dict(self._defaults)
            graph._lifecycles = dict(self._lifecycles)
        return graph
