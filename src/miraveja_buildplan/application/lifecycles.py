import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Type

from miraveja_buildplan.domain import IBuildSession, ILifecycle, Lifetime

if TYPE_CHECKING:
    from miraveja_buildplan.application.instances import Instance

logger = logging.getLogger(__name__)


class LifecycleObjectCache:
    """Process-wide object cache keyed by instance.

    Construction is compute-once per instance even under concurrent first
    access: a table lock guards the maps and a re-entrant lock per instance
    serializes construction, so racing callers all receive the same object.
    A failed construction caches nothing.

    Attributes:
        _objects: Built objects keyed by instance.
        _locks: Construction locks keyed by instance.
        _lock: Guards both maps.
    """

    def __init__(self) -> None:
        self._objects: Dict["Instance", Any] = {}
        self._locks: Dict["Instance", threading.RLock] = {}
        self._lock = threading.Lock()

    def get_or_create(self, instance: "Instance", factory: Callable[[], Any]) -> Any:
        """Return the cached object for ``instance`` or build it exactly once.

        Args:
            instance: The cache key.
            factory: Builds the object when it is not cached yet.

        Returns:
            The cached or freshly built object.
        """
        with self._lock:
            if instance in self._objects:
                return self._objects[instance]
            instance_lock = self._locks.setdefault(instance, threading.RLock())

        with instance_lock:
            with self._lock:
                if instance in self._objects:
                    return self._objects[instance]

            value = factory()

            with self._lock:
                self._objects[instance] = value
            return value

    def has(self, instance: "Instance") -> bool:
        with self._lock:
            return instance in self._objects

    def eject(self, instance: "Instance") -> None:
        with self._lock:
            self._objects.pop(instance, None)
            self._locks.pop(instance, None)

    def eject_all(self) -> None:
        with self._lock:
            self._objects.clear()
            self._locks.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._objects)


class TransientLifecycle(ILifecycle):
    """Builds a new object per resolve; the session cache memoizes it per session."""

    @property
    def lifetime(self) -> Lifetime:
        return Lifetime.TRANSIENT

    def resolve(self, session: IBuildSession, plugin_type: Type, instance: "Instance") -> Any:
        return session.build_new_in_session(plugin_type, instance)

    def eject_all(self) -> None:
        """Nothing is cached outside of sessions."""


class SingletonLifecycle(ILifecycle):
    """Builds at most once per instance and shares the object across all sessions.

    Singletons are built in a fresh root session, so explicit arguments of the
    requesting session never leak into a shared object.

    Attributes:
        _cache: The process-wide object cache.
    """

    def __init__(self) -> None:
        self._cache = LifecycleObjectCache()

    @property
    def lifetime(self) -> Lifetime:
        return Lifetime.SINGLETON

    @property
    def cache(self) -> LifecycleObjectCache:
        return self._cache

    def resolve(self, session: IBuildSession, plugin_type: Type, instance: "Instance") -> Any:
        def build() -> Any:
            logger.debug("Building singleton %s", instance.describe(plugin_type))
            return session.build_new_in_original_context(plugin_type, instance)

        return self._cache.get_or_create(instance, build)

    def eject(self, instance: "Instance") -> None:
        self._cache.eject(instance)

    def eject_all(self) -> None:
        self._cache.eject_all()


class UniquePerRequestLifecycle(ILifecycle):
    """Never memoized; every request builds a fresh object."""

    @property
    def lifetime(self) -> Lifetime:
        return Lifetime.UNIQUE

    def resolve(self, session: IBuildSession, plugin_type: Type, instance: "Instance") -> Any:
        return session.build_unique(plugin_type, instance)

    def eject_all(self) -> None:
        """Nothing is ever cached."""


class Lifecycles:
    """Shared lifecycle objects.

    Attributes:
        TRANSIENT: Per-session memoization (the default).
        SINGLETON: Process-wide, once per instance.
        UNIQUE: Never memoized.
    """

    TRANSIENT: ILifecycle = TransientLifecycle()
    SINGLETON: SingletonLifecycle = SingletonLifecycle()
    UNIQUE: ILifecycle = UniquePerRequestLifecycle()

    @staticmethod
    def singleton() -> SingletonLifecycle:
        """Create a singleton lifecycle with its own object cache."""
        return SingletonLifecycle()

    @classmethod
    def for_lifetime(cls, lifetime: Lifetime, singleton: Optional[SingletonLifecycle] = None) -> ILifecycle:
        """Return the lifecycle object for a ``Lifetime`` value.

        Args:
            lifetime: The requested lifetime.
            singleton: Singleton lifecycle to use instead of the shared one.
        """
        if lifetime == Lifetime.SINGLETON:
            return singleton or cls.SINGLETON
        if lifetime == Lifetime.UNIQUE:
            return cls.UNIQUE
        return cls.TRANSIENT
