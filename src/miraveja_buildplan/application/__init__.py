"""
Application layer - Instances, policies, plan compilation and build sessions.

This layer compiles instances into build plans and runs them inside build
sessions. It depends only on the Domain layer.
"""

from .build_plan import BuildPlan
from .build_session import BuildSession
from .circular_detector import CircularDependencyDetector
from .constructor_selection import (
    AttributeConstructorSelector,
    FirstConstructor,
    GreediestConstructorSelector,
    select_constructor,
)
from .container import Container
from .dependency_collection import DependencyCollection
from .dependency_sources import (
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
from .instance_graph import InstanceGraph
from .instances import (
    ConfiguredInstance,
    DefaultInstance,
    Instance,
    LambdaInstance,
    NullInstance,
    ObjectInstance,
    ReferencedInstance,
)
from .interception import (
    ActivatorInterceptor,
    DecoratorInterceptor,
    FuncInterceptor,
    InterceptionPlan,
)
from .introspection import TypeIntrospector, alternate_constructor, default_constructor
from .lifecycles import (
    LifecycleObjectCache,
    Lifecycles,
    SingletonLifecycle,
    TransientLifecycle,
    UniquePerRequestLifecycle,
)
from .policies import (
    ConfiguredInstancePolicy,
    ConstructorSelector,
    InterceptorPolicy,
    LifecyclePolicy,
    Policies,
)
from .session_cache import SessionCache

__all__ = [
    "Container",
    "InstanceGraph",
    "BuildSession",
    "SessionCache",
    "CircularDependencyDetector",
    "BuildPlan",
    "InterceptionPlan",
    # Instances
    "Instance",
    "ConfiguredInstance",
    "ObjectInstance",
    "LambdaInstance",
    "NullInstance",
    "DefaultInstance",
    "ReferencedInstance",
    "DependencyCollection",
    # Dependency sources
    "Constant",
    "LambdaSource",
    "ConcreteBuild",
    "SessionSource",
    "DefaultDependencySource",
    "OptionalDependencySource",
    "AllPossibleValuesSource",
    "ReferencedDependencySource",
    "LifecycleDependencySource",
    # Interceptors
    "ActivatorInterceptor",
    "FuncInterceptor",
    "DecoratorInterceptor",
    # Lifecycles
    "Lifecycles",
    "LifecycleObjectCache",
    "TransientLifecycle",
    "SingletonLifecycle",
    "UniquePerRequestLifecycle",
    # Policies
    "Policies",
    "ConfiguredInstancePolicy",
    "ConstructorSelector",
    "InterceptorPolicy",
    "LifecyclePolicy",
    # Constructor selection
    "TypeIntrospector",
    "AttributeConstructorSelector",
    "GreediestConstructorSelector",
    "FirstConstructor",
    "select_constructor",
    "alternate_constructor",
    "default_constructor",
]
