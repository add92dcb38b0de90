"""Unit tests for BuildSession."""

from abc import ABC, abstractmethod
from typing import List, Optional

import pytest

from miraveja_buildplan.application.build_session import BuildSession
from miraveja_buildplan.application.instance_graph import InstanceGraph
from miraveja_buildplan.application.instances import (
    ConfiguredInstance,
    DefaultInstance,
    LambdaInstance,
    ObjectInstance,
)
from miraveja_buildplan.application.lifecycles import Lifecycles
from miraveja_buildplan.domain import (
    BidirectionalDependencyError,
    ConfigurationError,
    ExplicitArguments,
    IBuildSession,
)


class IClock(ABC):
    @abstractmethod
    def now(self) -> int:
        pass


class Clock(IClock):
    def now(self) -> int:
        return 1


class FrozenClock(IClock):
    def now(self) -> int:
        return 0


class Scheduler:
    def __init__(self, clock: IClock, session: IBuildSession):
        self.clock = clock
        self.session = session


class Pipeline:
    def __init__(self, scheduler: Scheduler, clock: IClock):
        self.scheduler = scheduler
        self.clock = clock


class Registry:
    def __init__(self, clocks: List[IClock], backup: Optional[FrozenClock]):
        self.clocks = clocks
        self.backup = backup


class Chicken:
    def __init__(self, egg: "Egg"):
        self.egg = egg


class Egg:
    def __init__(self, chicken: Chicken):
        self.chicken = chicken


def graph_with_clock(lifecycle=None):
    graph = InstanceGraph()
    graph.add(IClock, ConfiguredInstance(Clock).set_lifecycle_to(lifecycle))
    return graph


class TestResolution:
    """Test cases for resolving objects through a session."""

    def test_auto_wires_constructor_dependencies(self):
        """Test that constructor dependencies are built from defaults."""
        session = BuildSession(graph_with_clock())

        scheduler = session.get_instance(Scheduler)

        assert isinstance(scheduler.clock, Clock)
        assert scheduler.session is session

    def test_transient_is_shared_within_session(self):
        """Test that a transient object is built once per session."""
        session = BuildSession(graph_with_clock())

        pipeline = session.get_instance(Pipeline)

        assert pipeline.clock is pipeline.scheduler.clock
        assert session.get_instance(IClock) is pipeline.clock

    def test_transient_differs_between_sessions(self):
        """Test that each session builds its own transient objects."""
        graph = graph_with_clock()

        assert BuildSession(graph).get_instance(IClock) is not BuildSession(graph).get_instance(IClock)

    def test_unique_is_never_shared(self):
        """Test that a unique object is rebuilt on every request in the same session."""
        session = BuildSession(graph_with_clock(Lifecycles.UNIQUE))

        pipeline = session.get_instance(Pipeline)

        assert pipeline.clock is not pipeline.scheduler.clock

    def test_singleton_is_shared_between_sessions(self):
        """Test that a singleton object is built once per graph."""
        graph = InstanceGraph()
        graph.add(IClock, ConfiguredInstance(Clock).set_lifecycle_to(graph.singletons))

        assert BuildSession(graph).get_instance(IClock) is BuildSession(graph).get_instance(IClock)

    def test_explicit_arguments_take_precedence(self):
        """Test that explicit arguments replace configured defaults."""
        frozen = FrozenClock()
        session = BuildSession(graph_with_clock(), arguments=ExplicitArguments().set(IClock, frozen))

        assert session.get_instance(Pipeline).clock is frozen

    def test_singletons_ignore_explicit_arguments(self):
        """Test that singletons are built without the requesting session's arguments."""
        graph = graph_with_clock()
        graph.add(Scheduler, ConfiguredInstance(Scheduler).set_lifecycle_to(graph.singletons))
        session = BuildSession(graph, arguments=ExplicitArguments().set(IClock, FrozenClock()))

        scheduler = session.get_instance(Scheduler)

        assert isinstance(scheduler.clock, Clock)
        assert scheduler.session is not session

    def test_named_instances(self):
        """Test that named instances are resolved by name."""
        graph = graph_with_clock()
        frozen = FrozenClock()
        graph.add(IClock, ObjectInstance(frozen).named("frozen"))
        session = BuildSession(graph)

        assert session.get_instance(IClock, "frozen") is frozen
        assert session.try_get_instance(IClock, "missing") is None
        with pytest.raises(ConfigurationError, match="Could not find an Instance named 'missing'"):
            session.get_instance(IClock, "missing")

    def test_get_all_instances(self):
        """Test that every configured object is built in order."""
        graph = InstanceGraph()
        graph.add(IClock, ConfiguredInstance(Clock))
        graph.add(IClock, ConfiguredInstance(FrozenClock))

        clocks = BuildSession(graph).get_all_instances(IClock)

        assert [type(c) for c in clocks] == [Clock, FrozenClock]

    def test_list_and_optional_parameters(self):
        """Test that list parameters get all objects and optional ones may be auto-wired."""
        graph = InstanceGraph()
        graph.add(IClock, ConfiguredInstance(Clock))
        graph.add(IClock, ConfiguredInstance(FrozenClock))

        registry = BuildSession(graph).get_instance(Registry)

        assert len(registry.clocks) == 2
        assert isinstance(registry.backup, FrozenClock)

    def test_lambda_instance_receives_session(self):
        """Test that lambda instances can resolve other objects."""
        graph = graph_with_clock()
        graph.add(int, LambdaInstance(lambda s: s.get_instance(IClock).now(), int))

        assert BuildSession(graph).get_instance(int) == 1


class TestFailures:
    """Test cases for resolution failures."""

    def test_missing_default(self):
        """Test that an unconfigured abstract type raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="No default Instance is registered"):
            BuildSession(InstanceGraph()).get_instance(IClock)

    def test_try_get_instance_returns_none(self):
        """Test that try_get_instance does not raise for unconfigured types."""
        assert BuildSession(InstanceGraph()).try_get_instance(IClock) is None

    def test_missing_dependency_records_trail(self):
        """Test that the trail names the constructor, parameter and plan."""
        with pytest.raises(ConfigurationError) as exc_info:
            BuildSession(InstanceGraph()).get_instance(Scheduler)

        trail = exc_info.value.trail
        assert trail[0] == "new Scheduler(IClock, IBuildSession) -- while resolving parameter 'clock'"
        assert trail[1].startswith("While building Instance of")

    def test_bidirectional_dependency(self):
        """Test that a dependency cycle raises instead of recursing forever."""
        with pytest.raises(BidirectionalDependencyError) as exc_info:
            BuildSession(InstanceGraph()).get_instance(Chicken)

        chain = [plugin_type for plugin_type, _ in exc_info.value.dependency_chain]
        assert chain == [Chicken, Egg, Chicken]

    def test_default_instance_pointing_at_itself(self):
        """Test that a default instance for its own plugin type is a cycle."""
        graph = InstanceGraph()
        graph.add(IClock, DefaultInstance())

        with pytest.raises(BidirectionalDependencyError):
            BuildSession(graph).get_instance(IClock)

    def test_detector_is_clean_after_failure(self):
        """Test that a failed build leaves no frames behind."""
        session = BuildSession(InstanceGraph())

        with pytest.raises(ConfigurationError):
            session.get_instance(Scheduler)

        assert session._detector.depth() == 0
