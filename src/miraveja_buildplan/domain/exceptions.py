from typing import Any, List, Optional, Sequence, Tuple, Type


class BuildException(Exception):
    """Base exception for build-plan related errors.

    Every error carries a short ``title``, an optional longer ``context`` and a
    trail of frames describing what was being built while the failure unwound.

    Attributes:
        title: Short summary of the failure.
        context: Optional detail about what was missing or incompatible.
        trail: Frames pushed while the error propagated, innermost first.
    """

    def __init__(self, title: str, context: Optional[str] = None) -> None:
        self.title = title
        self.context = context
        self._trail: List[str] = []
        super().__init__(title)

    @property
    def trail(self) -> List[str]:
        return list(self._trail)

    def push(self, frame: str) -> None:
        """Record what was being built when the error passed through.

        Args:
            frame: Human-readable description of the current build step.
        """
        self._trail.append(frame)

    @property
    def message(self) -> str:
        lines = [self.title]
        if self.context:
            lines.append(self.context)
        for index, frame in enumerate(self._trail, start=1):
            lines.append(f"{index}.) {frame}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.message


class ConfigurationError(BuildException):
    """Raised for configuration mistakes detected before anything is built.

    This occurs when:
    - An interceptor is attached to an instance whose returned type it cannot accept.
    - A decorator's accepted type does not match the requested plugin type.
    - No default instance exists for a requested type.
    - A constructor parameter cannot be satisfied.
    """


class BuildPlanError(BuildException):
    """Raised when compiling a build plan fails for an unexpected reason.

    The originating error is always chained as ``__cause__``.
    """


class InterceptorError(BuildException):
    """Raised when an activator or decorator fails while an object is built.

    Attributes:
        description: Rendered description of the failing interceptor.
    """

    def __init__(self, title: str, description: str) -> None:
        self.description = description
        super().__init__(title, description)


class BuildError(BuildException):
    """Raised when a constructor or factory function fails during construction."""


class BidirectionalDependencyError(BuildException):
    """Raised when an instance depends on itself while it is being built.

    Attributes:
        dependency_chain: ``(plugin_type, instance_description)`` pairs forming the cycle.
    """

    def __init__(self, dependency_chain: Sequence[Tuple[Type[Any], str]]) -> None:
        self.dependency_chain = list(dependency_chain)
        rendered = " -> ".join(f"{plugin_type.__name__} ({description})" for plugin_type, description in dependency_chain)
        super().__init__("Bidirectional dependency relationship detected!", rendered)
