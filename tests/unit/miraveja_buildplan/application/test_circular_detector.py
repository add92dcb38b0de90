"""Unit tests for CircularDependencyDetector."""

import threading

import pytest

from miraveja_buildplan.application.circular_detector import CircularDependencyDetector
from miraveja_buildplan.application.instances import ConfiguredInstance
from miraveja_buildplan.domain import BidirectionalDependencyError


class ServiceA:
    pass


class ServiceB:
    pass


class TestCircularDependencyDetector:
    """Test cases for bidirectional dependency detection."""

    def test_push_and_pop(self):
        """Test that frames are tracked and released."""
        detector = CircularDependencyDetector()
        instance = ConfiguredInstance(ServiceA)

        detector.push(ServiceA, instance)
        assert detector.depth() == 1

        detector.pop()
        assert detector.depth() == 0

    def test_detects_repeated_frame(self):
        """Test that pushing the same frame twice raises with the chain."""
        detector = CircularDependencyDetector()
        a = ConfiguredInstance(ServiceA)
        b = ConfiguredInstance(ServiceB)

        detector.push(ServiceA, a)
        detector.push(ServiceB, b)

        with pytest.raises(BidirectionalDependencyError) as exc_info:
            detector.push(ServiceA, a)

        chain = [plugin_type for plugin_type, _ in exc_info.value.dependency_chain]
        assert chain == [ServiceA, ServiceB, ServiceA]

    def test_same_instance_for_different_plugin_types_is_allowed(self):
        """Test that frames are keyed by plugin type and instance together."""
        detector = CircularDependencyDetector()
        instance = ConfiguredInstance(ServiceA)

        detector.push(ServiceA, instance)
        detector.push(object, instance)

        assert detector.depth() == 2

    def test_failed_push_leaves_stack_unchanged(self):
        """Test that a rejected frame is not added."""
        detector = CircularDependencyDetector()
        instance = ConfiguredInstance(ServiceA)
        detector.push(ServiceA, instance)

        with pytest.raises(BidirectionalDependencyError):
            detector.push(ServiceA, instance)

        assert detector.depth() == 1

    def test_pop_on_empty_stack_is_noop(self):
        """Test that popping an empty stack does not raise."""
        CircularDependencyDetector().pop()

    def test_clear(self):
        """Test that clear empties the current thread's stack."""
        detector = CircularDependencyDetector()
        detector.push(ServiceA, ConfiguredInstance(ServiceA))

        detector.clear()

        assert detector.depth() == 0

    def test_stacks_are_thread_local(self):
        """Test that frames pushed on one thread are invisible on another."""
        detector = CircularDependencyDetector()
        instance = ConfiguredInstance(ServiceA)
        detector.push(ServiceA, instance)
        depths = []

        def worker():
            depths.append(detector.depth())
            detector.push(ServiceA, instance)
            depths.append(detector.depth())

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert depths == [0, 1]
        assert detector.depth() == 1
