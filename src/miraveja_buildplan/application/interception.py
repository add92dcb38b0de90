"""Application layer - Activators, decorators and the interception plan."""

import inspect
import logging
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence, Type

from miraveja_buildplan.application.constructor_selection import select_constructor
from miraveja_buildplan.application.introspection import (
    describe_callable,
    positional_arity,
    required_positional,
    safe_type_hints,
)
from miraveja_buildplan.domain import (
    ConfigurationError,
    ConstructorDescriptor,
    IBuildPlanVisitor,
    IBuildSession,
    IDependencySource,
    IInterceptor,
    InterceptorError,
    InterceptorRole,
)
from miraveja_buildplan.domain.type_rules import can_be_cast_to, full_name, short_name

if TYPE_CHECKING:
    from miraveja_buildplan.application.policies import Policies

logger = logging.getLogger(__name__)

ACTIVATOR_FAILURE = "Activator interceptor failed during object creation.  See the inner exception for details."
DECORATOR_FAILURE = "Decorator Interceptor failed during object construction.  See the inner exception for details."
DECORATOR_MISMATCH = (
    "Decorator Interceptor failed during object construction.  "
    "Specified interceptor type does not match the plugin type"
)


def _infer_accepts(func: Callable[..., Any]) -> Type:
    """Use the annotation of the last positional parameter, falling back to ``object``."""
    if inspect.isclass(func):
        hints = safe_type_hints(func.__init__)
    else:
        hints = safe_type_hints(func)
    parameters = required_positional(func)
    if parameters and parameters[-1].name in hints:
        return hints[parameters[-1].name]
    return object


def _fallbacks(arity: int, accepts: Type) -> List[str]:
    if arity >= 2:
        return ["IBuildSession", short_name(accepts)]
    return [short_name(accepts)]


class ActivatorInterceptor(IInterceptor):
    """Runs a side effect against the built object without replacing it.

    The action takes ``(target)`` or ``(session, target)``.

    Example:
        >>> ActivatorInterceptor(Connection.open, accepts=Connection)
        >>> ActivatorInterceptor(lambda session, c: c.attach(session), accepts=Connection)
    """

    def __init__(
        self,
        action: Callable[..., Any],
        accepts: Optional[Type] = None,
        description: Optional[str] = None,
    ) -> None:
        self._action = action
        self._accepts = accepts if accepts is not None else _infer_accepts(action)
        arity = positional_arity(action)
        self._with_session = arity >= 2
        self._description = description or (
            f"ActivatorInterceptor of {short_name(self._accepts)}: "
            f"{describe_callable(action, _fallbacks(arity, self._accepts))}"
        )

    @property
    def role(self) -> InterceptorRole:
        return InterceptorRole.ACTIVATES

    @property
    def accepts(self) -> Type:
        return self._accepts

    @property
    def description(self) -> str:
        return self._description

    def intercept(self, session: IBuildSession, target: Any) -> Any:
        if self._with_session:
            self._action(session, target)
        else:
            self._action(target)
        return target

    def __repr__(self) -> str:
        return self._description


class FuncInterceptor(IInterceptor):
    """Replaces the built object with the result of a function.

    The function takes ``(target)`` or ``(session, target)``. Passing a class
    decorates by construction and renders as ``new Decorated(ArgTypes)``.

    Example:
        >>> FuncInterceptor(CachingRepository, accepts=IRepository)
        >>> FuncInterceptor(lambda session, r: AuditedRepository(r, session.get_instance(Audit)))
    """

    def __init__(
        self,
        func: Callable[..., Any],
        accepts: Optional[Type] = None,
        description: Optional[str] = None,
    ) -> None:
        self._func = func
        self._accepts = accepts if accepts is not None else _infer_accepts(func)
        arity = positional_arity(func)
        self._with_session = arity >= 2
        self._description = description or (
            f"FuncInterceptor of {short_name(self._accepts)}: "
            f"{describe_callable(func, _fallbacks(arity, self._accepts))}"
        )

    @property
    def role(self) -> InterceptorRole:
        return InterceptorRole.DECORATES

    @property
    def accepts(self) -> Type:
        return self._accepts

    @property
    def description(self) -> str:
        return self._description

    def intercept(self, session: IBuildSession, target: Any) -> Any:
        if self._with_session:
            return self._func(session, target)
        return self._func(target)

    def __repr__(self) -> str:
        return self._description


class DecoratorInterceptor(IInterceptor):
    """Wraps the built object in a new instance of a decorating type.

    The first constructor parameter that can hold the accepted type receives
    the inner object, a parameter annotated with ``IBuildSession`` receives the
    session, and every other required parameter is resolved from the session.

    It is immutable and may be shared by any number of interception plans.

    Example:
        >>> DecoratorInterceptor(IRepository, CachingRepository)

    Raises:
        ConfigurationError: If a required constructor parameter has no type hint.
    """

    def __init__(self, accepts: Type, decorated_type: Type) -> None:
        self._accepts = accepts
        self._decorated_type = decorated_type
        self._constructor = self._validated(select_constructor(decorated_type))

    @property
    def role(self) -> InterceptorRole:
        return InterceptorRole.DECORATES

    @property
    def accepts(self) -> Type:
        return self._accepts

    @property
    def decorated_type(self) -> Type:
        return self._decorated_type

    @property
    def constructor(self) -> ConstructorDescriptor:
        return self._constructor

    @property
    def description(self) -> str:
        return f"DecoratorInterceptor of {short_name(self._accepts)}: {self._constructor.describe()}"

    def constructor_for(self, policies: "Policies") -> ConstructorDescriptor:
        """Select the decorating constructor with the configured selectors."""
        return self._validated(policies.select_constructor(self._decorated_type))

    def intercept(self, session: IBuildSession, target: Any) -> Any:
        return self.intercept_with(self._constructor, session, target)

    def intercept_with(self, constructor: ConstructorDescriptor, session: IBuildSession, target: Any) -> Any:
        """Build the decorating object through ``constructor``."""
        kwargs = {}
        inner_assigned = False
        for parameter in constructor.parameters:
            parameter_type = parameter.parameter_type
            if parameter_type is IBuildSession:
                kwargs[parameter.name] = session
            elif not inner_assigned and parameter_type is not None and can_be_cast_to(self._accepts, parameter_type):
                kwargs[parameter.name] = target
                inner_assigned = True
            elif parameter.has_default:
                continue
            else:
                kwargs[parameter.name] = session.get_instance(parameter_type)
        return constructor.factory(**kwargs)

    def _validated(self, constructor: ConstructorDescriptor) -> ConstructorDescriptor:
        for parameter in constructor.parameters:
            if parameter.parameter_type is None and not parameter.has_default:
                raise ConfigurationError(
                    f"Unable to create a decorator of type {full_name(self._decorated_type)}",
                    f"Parameter '{parameter.name}' of {constructor.describe()} lacks type hint "
                    "and has no default value.",
                )
        return constructor

    def __repr__(self) -> str:
        return self.description


class InterceptionPlan(IDependencySource):
    """Composes an inner dependency source with activators and decorators.

    Activators always run first, in declared order, against the raw object
    built by the inner source. Decorators then run in declared order, each
    wrapping the previous result. Relative order between the two kinds in the
    declaration is irrelevant.

    Decorators are validated against the plugin type when the plan is
    created, before anything is built.

    Attributes:
        _plugin_type: The requested type.
        _inner: Source building the raw object.
        _interceptors: All interceptors in declared order.
        _activators: Activators in declared order.
        _decorators: Decorators in declared order.
        _decorator_steps: Per decorator, the call wrapping the previous result.

    Raises:
        ConfigurationError: If a decorator cannot accept the plugin type.
    """

    def __init__(
        self,
        plugin_type: Type,
        inner: IDependencySource,
        policies: "Policies",
        interceptors: Sequence[IInterceptor],
    ) -> None:
        self._plugin_type = plugin_type
        self._inner = inner
        self._interceptors = list(interceptors)
        self._activators = [i for i in self._interceptors if i.role == InterceptorRole.ACTIVATES]
        self._decorators = [i for i in self._interceptors if i.role == InterceptorRole.DECORATES]
        self._decorator_steps: List[Callable[[IBuildSession, Any], Any]] = []

        for decorator in self._decorators:
            if not can_be_cast_to(plugin_type, decorator.accepts):
                raise ConfigurationError(
                    DECORATOR_MISMATCH,
                    f"{decorator.description} cannot be applied to plugin type {full_name(plugin_type)}",
                )
            if isinstance(decorator, DecoratorInterceptor):
                self._decorator_steps.append(partial(decorator.intercept_with, decorator.constructor_for(policies)))
            else:
                self._decorator_steps.append(decorator.intercept)

    @property
    def inner(self) -> IDependencySource:
        return self._inner

    @property
    def interceptors(self) -> List[IInterceptor]:
        return list(self._interceptors)

    @property
    def description(self) -> str:
        return f"Interception of {full_name(self._plugin_type)}: {self._inner.description}"

    @property
    def return_type(self) -> Optional[Type]:
        return self._plugin_type

    def evaluate(self, session: IBuildSession) -> Any:
        target = self._inner.evaluate(session)

        for activator in self._activators:
            try:
                activator.intercept(session, target)
            except Exception as e:
                logger.debug("Activator failed: %s", activator.description)
                raise InterceptorError(ACTIVATOR_FAILURE, activator.description) from e

        for decorator, step in zip(self._decorators, self._decorator_steps):
            try:
                target = step(session, target)
            except Exception as e:
                logger.debug("Decorator failed: %s", decorator.description)
                raise InterceptorError(DECORATOR_FAILURE, decorator.description) from e

        return target

    def to_builder(self) -> Callable[[IBuildSession], Any]:
        return self.evaluate

    def accept_visitor(self, visitor: IBuildPlanVisitor) -> None:
        """Dispatch each interceptor to the visitor in declared order without building anything."""
        for interceptor in self._interceptors:
            if interceptor.role == InterceptorRole.ACTIVATES:
                visitor.activator(interceptor)
            else:
                visitor.decorator(interceptor)
