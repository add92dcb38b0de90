from enum import Enum


class Lifetime(str, Enum):
    """Defines where a built object is cached.

    Attributes:
        TRANSIENT: Built once per build session and memoized by the session cache.
        SINGLETON: Built once per instance and shared across all sessions.
        UNIQUE: Never memoized, every request builds a fresh object.
    """

    TRANSIENT = "transient"
    SINGLETON = "singleton"
    UNIQUE = "unique"

    def __str__(self) -> str:
        return self.value


class InterceptorRole(str, Enum):
    """The closed set of interceptor variants.

    Attributes:
        ACTIVATES: Side-effecting interceptor that never replaces the object.
        DECORATES: Transforming interceptor that replaces the object flowing through the chain.
    """

    ACTIVATES = "activates"
    DECORATES = "decorates"

    def __str__(self) -> str:
        return self.value
