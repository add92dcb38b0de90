"""
miraveja-buildplan: Build-plan based object construction with lifecycles and interception.

Public API exports for the miraveja-buildplan package.
"""

# Application exports
from miraveja_buildplan.application import (
    ActivatorInterceptor,
    BuildSession,
    ConfiguredInstance,
    Container,
    DecoratorInterceptor,
    DefaultInstance,
    FuncInterceptor,
    Instance,
    InstanceGraph,
    InterceptorPolicy,
    LambdaInstance,
    LifecyclePolicy,
    Lifecycles,
    NullInstance,
    ObjectInstance,
    Policies,
    ReferencedInstance,
    SessionCache,
    alternate_constructor,
    default_constructor,
)

# Domain exports
from miraveja_buildplan.domain import (
    BidirectionalDependencyError,
    BuildError,
    BuildException,
    BuildPlanError,
    ConfigurationError,
    ExplicitArguments,
    IBuildSession,
    InterceptorError,
    InterceptorRole,
    Lifetime,
)

__version__ = "0.1.0"

__all__ = [
    # Container
    "Container",
    "InstanceGraph",
    "BuildSession",
    "SessionCache",
    "Policies",
    "ExplicitArguments",
    "IBuildSession",
    # Instances
    "Instance",
    "ConfiguredInstance",
    "ObjectInstance",
    "LambdaInstance",
    "NullInstance",
    "DefaultInstance",
    "ReferencedInstance",
    # Interception
    "ActivatorInterceptor",
    "FuncInterceptor",
    "DecoratorInterceptor",
    "InterceptorPolicy",
    # Lifecycles
    "Lifetime",
    "Lifecycles",
    "LifecyclePolicy",
    # Constructor markers
    "alternate_constructor",
    "default_constructor",
    # Enums
    "InterceptorRole",
    # Exceptions
    "BuildException",
    "ConfigurationError",
    "BuildPlanError",
    "InterceptorError",
    "BuildError",
    "BidirectionalDependencyError",
]
