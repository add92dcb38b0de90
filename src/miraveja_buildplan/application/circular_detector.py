"""Application layer - Bidirectional dependency detection."""

import threading
from typing import TYPE_CHECKING, List, Tuple, Type

from miraveja_buildplan.domain import BidirectionalDependencyError

if TYPE_CHECKING:
    from miraveja_buildplan.application.instances import Instance

BuildFrame = Tuple[Type, "Instance"]


class CircularDependencyDetector:
    """Detects instances that depend on themselves while being built.

    Uses thread-local storage to track the ``(plugin_type, instance)`` pairs
    currently being built. When a pair appears twice in the stack, a
    bidirectional dependency is detected. One detector is shared by a session
    and every root session it opens for singletons.

    Attributes:
        _local: Thread-local storage for build stacks.
    """

    def __init__(self) -> None:
        """Initialize the detector with thread-local storage."""
        self._local = threading.local()

    def _get_stack(self) -> List[BuildFrame]:
        """Get the current thread's build stack.

        Returns:
            The build stack for the current thread.
        """
        if not hasattr(self._local, "stack"):
            self._local.stack = []
        return self._local.stack

    def push(self, plugin_type: Type, instance: "Instance") -> None:
        """Add a build frame to the stack.

        Args:
            plugin_type: The requested type.
            instance: The instance being built.

        Raises:
            BidirectionalDependencyError: If the frame is already in the stack.

        Example:
            >>> detector = CircularDependencyDetector()
            >>> detector.push(IService, service_instance)
            >>> detector.push(IRepository, repository_instance)
            >>> detector.push(IService, service_instance)  # Raises BidirectionalDependencyError
        """
        stack = self._get_stack()
        frame = (plugin_type, instance)

        if frame in stack:
            cycle = stack[stack.index(frame) :] + [frame]
            raise BidirectionalDependencyError([(t, i.describe(t)) for t, i in cycle])

        stack.append(frame)

    def pop(self) -> None:
        """Remove the most recent frame, called once its build finishes."""
        stack = self._get_stack()
        if stack:
            stack.pop()

    def depth(self) -> int:
        return len(self._get_stack())

    def clear(self) -> None:
        """Clear the current thread's build stack."""
        if hasattr(self._local, "stack"):
            self._local.stack.clear()
