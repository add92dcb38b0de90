"""Unit tests for dependency sources."""

from typing import List

import pytest

from miraveja_buildplan.application.dependency_sources import (
    AllPossibleValuesSource,
    ConcreteBuild,
    Constant,
    DefaultDependencySource,
    LambdaSource,
    LifecycleDependencySource,
    OptionalDependencySource,
    ReferencedDependencySource,
    SessionSource,
)
from miraveja_buildplan.application.instances import ObjectInstance
from miraveja_buildplan.domain import (
    BuildError,
    ConfigurationError,
    ConstructorDescriptor,
    ConstructorParameter,
)
from miraveja_buildplan.infrastructure.testing import StubBuildSession


class Clock:
    pass


class Report:
    def __init__(self, clock: Clock, title: str):
        self.clock = clock
        self.title = title


class Exploding:
    def __init__(self):
        raise ValueError("boom")


def report_constructor() -> ConstructorDescriptor:
    return ConstructorDescriptor(
        owner=Report,
        factory=Report,
        parameters=[
            ConstructorParameter(name="clock", parameter_type=Clock),
            ConstructorParameter(name="title", parameter_type=str),
        ],
    )


class TestSimpleSources:
    """Test cases for constant and session-backed sources."""

    def test_constant(self):
        """Test that a constant always evaluates to its value."""
        source = Constant(42)

        assert source.evaluate(StubBuildSession()) == 42
        assert source.return_type is int

    def test_session_source(self):
        """Test that the session source evaluates to the session."""
        session = StubBuildSession()

        assert SessionSource().evaluate(session) is session

    def test_default_source(self):
        """Test that the default source asks the session for the type."""
        clock = Clock()
        session = StubBuildSession({Clock: clock})

        assert DefaultDependencySource(Clock).evaluate(session) is clock
        assert session.requested == [(Clock, None)]

    def test_optional_source_missing(self):
        """Test that an optional source evaluates to None when nothing is configured."""
        assert OptionalDependencySource(Clock).evaluate(StubBuildSession()) is None

    def test_referenced_source(self):
        """Test that a referenced source asks for the named object."""
        clock = Clock()
        session = StubBuildSession(named={(Clock, "utc"): clock})

        assert ReferencedDependencySource(Clock, "utc").evaluate(session) is clock

    def test_all_possible_values(self):
        """Test that every configured object is returned as a list."""
        first, second = Clock(), Clock()
        session = StubBuildSession({Clock: first}, named={(Clock, "other"): second})

        source = AllPossibleValuesSource(Clock)

        assert source.evaluate(session) == [first, second]
        assert source.return_type is list

    def test_lifecycle_source_builds_instance(self):
        """Test that an inline instance is resolved through the session."""
        clock = Clock()
        source = LifecycleDependencySource(Clock, ObjectInstance(clock))

        assert source.evaluate(StubBuildSession()) is clock


class TestLambdaSource:
    """Test cases for LambdaSource."""

    def test_factory_with_session(self):
        """Test that a one-argument factory receives the session."""
        session = StubBuildSession({Clock: Clock()})

        result = LambdaSource(lambda s: s.get_instance(Clock)).evaluate(session)

        assert result is session.objects[Clock]

    def test_factory_without_arguments(self):
        """Test that a zero-argument factory is called without the session."""
        assert LambdaSource(lambda: "built").evaluate(StubBuildSession()) == "built"

    def test_factory_failure_is_wrapped(self):
        """Test that a failing factory raises BuildError with the cause chained."""

        def explode():
            raise ValueError("boom")

        with pytest.raises(BuildError, match="Failure at") as exc_info:
            LambdaSource(explode).evaluate(StubBuildSession())

        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_build_exceptions_pass_through(self):
        """Test that build exceptions raised by the factory are not re-wrapped."""
        with pytest.raises(ConfigurationError):
            LambdaSource(lambda s: s.get_instance(Clock)).evaluate(StubBuildSession())


class TestConcreteBuild:
    """Test cases for ConcreteBuild."""

    def test_invokes_constructor_with_arguments(self):
        """Test that each argument source is evaluated and passed by name."""
        clock = Clock()
        build = ConcreteBuild(
            report_constructor(),
            [("clock", DefaultDependencySource(Clock)), ("title", Constant("daily"))],
        )

        report = build.evaluate(StubBuildSession({Clock: clock}))

        assert report.clock is clock
        assert report.title == "daily"
        assert build.description == "new Report(Clock, str)"
        assert build.return_type is Report

    def test_argument_failure_pushes_parameter_frame(self):
        """Test that a failing argument records the constructor and parameter."""
        build = ConcreteBuild(
            report_constructor(),
            [("clock", DefaultDependencySource(Clock)), ("title", Constant("daily"))],
        )

        with pytest.raises(ConfigurationError) as exc_info:
            build.evaluate(StubBuildSession())

        assert exc_info.value.trail == ["new Report(Clock, str) -- while resolving parameter 'clock'"]

    def test_constructor_failure_is_wrapped(self):
        """Test that a failing constructor raises BuildError with the cause chained."""
        build = ConcreteBuild(ConstructorDescriptor(owner=Exploding, factory=Exploding))

        with pytest.raises(BuildError) as exc_info:
            build.evaluate(StubBuildSession())

        assert "Failure while building 'new Exploding()'" in exc_info.value.title
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_arguments_are_copied(self):
        """Test that the argument list is exposed as a copy."""
        build = ConcreteBuild(report_constructor(), [("title", Constant("x"))])
        arguments: List = build.arguments
        arguments.clear()

        assert len(build.arguments) == 1
