"""Unit tests for domain models."""

import inspect

import pytest
from pydantic import ValidationError

from miraveja_buildplan.domain import (
    ConstructorDescriptor,
    ConstructorParameter,
    DependencyBinding,
    ExplicitArguments,
    InstanceToken,
)


class Repository:
    pass


class Service:
    def __init__(self, repository: Repository, timeout: int = 5):
        self.repository = repository
        self.timeout = timeout

    @classmethod
    def create(cls, repository: Repository) -> "Service":
        return cls(repository)


class TestConstructorParameter:
    """Test cases for ConstructorParameter."""

    def test_required_parameter(self):
        """Test that a parameter without default reports no default."""
        parameter = ConstructorParameter(name="repository", parameter_type=Repository)

        assert parameter.default is inspect.Parameter.empty
        assert parameter.has_default is False

    def test_parameter_with_default(self):
        """Test that a default value is reported."""
        parameter = ConstructorParameter(name="timeout", parameter_type=int, default=5)

        assert parameter.has_default is True

    def test_parameter_with_none_default(self):
        """Test that None counts as a default value."""
        parameter = ConstructorParameter(name="cache", parameter_type=None, default=None)

        assert parameter.has_default is True

    def test_parameter_is_frozen(self):
        """Test that parameters are immutable."""
        parameter = ConstructorParameter(name="timeout", parameter_type=int)

        with pytest.raises(ValidationError):
            parameter.name = "other"


class TestConstructorDescriptor:
    """Test cases for ConstructorDescriptor."""

    def test_describe_init(self):
        """Test that __init__ renders as new Owner(Types)."""
        descriptor = ConstructorDescriptor(
            owner=Service,
            factory=Service,
            parameters=[
                ConstructorParameter(name="repository", parameter_type=Repository),
                ConstructorParameter(name="timeout", parameter_type=int, default=5),
            ],
        )

        assert descriptor.is_init is True
        assert descriptor.describe() == "new Service(Repository, int)"

    def test_describe_alternate_constructor(self):
        """Test that alternate constructors render as Owner.name(Types)."""
        descriptor = ConstructorDescriptor(
            owner=Service,
            name="create",
            factory=Service.create,
            parameters=[ConstructorParameter(name="repository", parameter_type=Repository)],
        )

        assert descriptor.is_init is False
        assert descriptor.describe() == "Service.create(Repository)"

    def test_descriptor_defaults(self):
        """Test that descriptors default to an unselected __init__ without parameters."""
        descriptor = ConstructorDescriptor(owner=Repository, factory=Repository)

        assert descriptor.name == "__init__"
        assert descriptor.parameters == []
        assert descriptor.selected is False


class TestDependencyBinding:
    """Test cases for DependencyBinding."""

    def test_binding_by_name(self):
        """Test that a binding can target a parameter name."""
        binding = DependencyBinding(name="timeout", value=30)

        assert binding.name == "timeout"
        assert binding.dependency_type is None
        assert binding.value == 30

    def test_binding_by_type(self):
        """Test that a binding can target a parameter type."""
        repository = Repository()
        binding = DependencyBinding(dependency_type=Repository, value=repository)

        assert binding.value is repository


class TestInstanceToken:
    """Test cases for InstanceToken."""

    def test_tokens_compare_by_value(self):
        """Test that equal tokens compare equal."""
        assert InstanceToken(name="a", description="x") == InstanceToken(name="a", description="x")


class TestExplicitArguments:
    """Test cases for ExplicitArguments."""

    def test_set_and_get(self):
        """Test that values are stored per plugin type."""
        repository = Repository()
        arguments = ExplicitArguments().set(Repository, repository)

        assert arguments.has(Repository)
        assert Repository in arguments
        assert arguments.get(Repository) is repository
        assert len(arguments) == 1

    def test_get_missing_returns_none(self):
        """Test that a missing value is None."""
        assert ExplicitArguments().get(Repository) is None

    def test_snapshot_is_read_only(self):
        """Test that the snapshot cannot be mutated."""
        arguments = ExplicitArguments({Repository: Repository()})
        snapshot = arguments.snapshot()

        with pytest.raises(TypeError):
            snapshot[Service] = None

    def test_snapshot_is_isolated_from_later_changes(self):
        """Test that values set after the snapshot are not visible in it."""
        arguments = ExplicitArguments()
        snapshot = arguments.snapshot()
        arguments.set(Repository, Repository())

        assert Repository not in snapshot
