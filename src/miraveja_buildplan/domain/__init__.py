"""
Domain layer - Core rules and models of build-plan resolution.

This layer contains the interfaces, value objects, error taxonomy and type
rules shared by the whole engine. It has no dependencies on other layers.
"""

from .enums import InterceptorRole, Lifetime
from .exceptions import (
    BidirectionalDependencyError,
    BuildError,
    BuildException,
    BuildPlanError,
    ConfigurationError,
    InterceptorError,
)
from .interfaces import (
    IBuildPlan,
    IBuildPlanVisitor,
    IBuildSession,
    IConstructorSelector,
    IDependencySource,
    IInstanceGraph,
    IInstancePolicy,
    IInterceptor,
    ILifecycle,
)
from .models import (
    ConstructorDescriptor,
    ConstructorParameter,
    DependencyBinding,
    ExplicitArguments,
    InstanceToken,
)

__all__ = [
    # Enums
    "Lifetime",
    "InterceptorRole",
    # Exceptions
    "BuildException",
    "ConfigurationError",
    "BuildPlanError",
    "InterceptorError",
    "BuildError",
    "BidirectionalDependencyError",
    # Interfaces
    "IBuildSession",
    "IInstanceGraph",
    "IDependencySource",
    "IBuildPlan",
    "IInterceptor",
    "IBuildPlanVisitor",
    "IInstancePolicy",
    "IConstructorSelector",
    "ILifecycle",
    # Models
    "ConstructorParameter",
    "ConstructorDescriptor",
    "DependencyBinding",
    "InstanceToken",
    "ExplicitArguments",
]
