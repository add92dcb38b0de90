"""Application layer - Dependency sources, the leaf construction steps."""

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence, Tuple, Type

from miraveja_buildplan.application.introspection import describe_callable, positional_arity
from miraveja_buildplan.domain import (
    BuildError,
    BuildException,
    ConstructorDescriptor,
    IBuildSession,
    IDependencySource,
)
from miraveja_buildplan.domain.type_rules import full_name, short_name

if TYPE_CHECKING:
    from miraveja_buildplan.application.instances import Instance

logger = logging.getLogger(__name__)


class Constant(IDependencySource):
    """A pre-built value."""

    def __init__(self, value: Any, return_type: Optional[Type] = None) -> None:
        self._value = value
        self._return_type = return_type if return_type is not None else (type(value) if value is not None else None)

    @property
    def value(self) -> Any:
        return self._value

    @property
    def description(self) -> str:
        return f"Constant: {self._value!r}"

    @property
    def return_type(self) -> Optional[Type]:
        return self._return_type

    def evaluate(self, session: IBuildSession) -> Any:
        return self._value


class LambdaSource(IDependencySource):
    """Invokes a factory function with the session, or with no arguments."""

    def __init__(self, factory: Callable[..., Any], return_type: Optional[Type] = None) -> None:
        self._factory = factory
        self._return_type = return_type
        self._with_session = positional_arity(factory) >= 1

    @property
    def description(self) -> str:
        return f"Lambda: {describe_callable(self._factory, ['IBuildSession'])}"

    @property
    def return_type(self) -> Optional[Type]:
        return self._return_type

    def evaluate(self, session: IBuildSession) -> Any:
        try:
            if self._with_session:
                return self._factory(session)
            return self._factory()
        except BuildException:
            raise
        except Exception as e:
            logger.debug("Factory %s failed: %s", self.description, e)
            raise BuildError(
                f"Failure at: \"{self.description}\"",
                f"{type(e).__name__}: {e}",
            ) from e


class SessionSource(IDependencySource):
    """The build session itself."""

    @property
    def description(self) -> str:
        return "The current build session"

    @property
    def return_type(self) -> Optional[Type]:
        return IBuildSession

    def evaluate(self, session: IBuildSession) -> Any:
        return session


class DefaultDependencySource(IDependencySource):
    """The session's default object for a plugin type."""

    def __init__(self, dependency_type: Type) -> None:
        self._dependency_type = dependency_type

    @property
    def description(self) -> str:
        return f"Default of {full_name(self._dependency_type)}"

    @property
    def return_type(self) -> Optional[Type]:
        return self._dependency_type

    def evaluate(self, session: IBuildSession) -> Any:
        return session.get_instance(self._dependency_type)


class OptionalDependencySource(IDependencySource):
    """The session's default object for a plugin type, or None when none is configured."""

    def __init__(self, dependency_type: Type) -> None:
        self._dependency_type = dependency_type

    @property
    def description(self) -> str:
        return f"Default of {full_name(self._dependency_type)} or None"

    @property
    def return_type(self) -> Optional[Type]:
        return self._dependency_type

    def evaluate(self, session: IBuildSession) -> Any:
        return session.try_get_instance(self._dependency_type)


class AllPossibleValuesSource(IDependencySource):
    """Every configured object of an element type, as a list."""

    def __init__(self, element_type: Type) -> None:
        self._element_type = element_type

    @property
    def description(self) -> str:
        return f"All registered instances of {full_name(self._element_type)}"

    @property
    def return_type(self) -> Optional[Type]:
        return list

    def evaluate(self, session: IBuildSession) -> List[Any]:
        return session.get_all_instances(self._element_type)


class ReferencedDependencySource(IDependencySource):
    """The session's object for a named instance of a plugin type."""

    def __init__(self, dependency_type: Type, name: str) -> None:
        self._dependency_type = dependency_type
        self._name = name

    @property
    def description(self) -> str:
        return f"Instance '{self._name}' of {full_name(self._dependency_type)}"

    @property
    def return_type(self) -> Optional[Type]:
        return self._dependency_type

    def evaluate(self, session: IBuildSession) -> Any:
        return session.get_instance(self._dependency_type, self._name)


class LifecycleDependencySource(IDependencySource):
    """An inline instance dependency, resolved through the session cache and its lifecycle."""

    def __init__(self, dependency_type: Type, instance: "Instance") -> None:
        self._dependency_type = dependency_type
        self._instance = instance

    @property
    def instance(self) -> "Instance":
        return self._instance

    @property
    def description(self) -> str:
        return self._instance.describe(self._dependency_type)

    @property
    def return_type(self) -> Optional[Type]:
        return self._instance.returned_type or self._dependency_type

    def evaluate(self, session: IBuildSession) -> Any:
        return session.get_object(self._dependency_type, self._instance)


class ConcreteBuild(IDependencySource):
    """Invokes a selected constructor with one dependency source per argument.

    Failures raised while resolving an argument get a frame naming the
    constructor and parameter. Failures raised by the constructor itself are
    wrapped in a ``BuildError``.

    Attributes:
        _constructor: The selected constructor descriptor.
        _arguments: ``(parameter_name, source)`` pairs in declaration order.
    """

    def __init__(
        self,
        constructor: ConstructorDescriptor,
        arguments: Sequence[Tuple[str, IDependencySource]] = (),
    ) -> None:
        self._constructor = constructor
        self._arguments = list(arguments)

    @property
    def constructor(self) -> ConstructorDescriptor:
        return self._constructor

    @property
    def arguments(self) -> List[Tuple[str, IDependencySource]]:
        return list(self._arguments)

    @property
    def description(self) -> str:
        return self._constructor.describe()

    @property
    def return_type(self) -> Optional[Type]:
        return self._constructor.owner

    def evaluate(self, session: IBuildSession) -> Any:
        kwargs = {}
        for name, source in self._arguments:
            try:
                kwargs[name] = source.evaluate(session)
            except BuildException as e:
                e.push(f"{self.description} -- while resolving parameter '{name}'")
                raise

        try:
            return self._constructor.factory(**kwargs)
        except BuildException:
            raise
        except Exception as e:
            logger.debug("Constructor %s failed: %s", self.description, e)
            raise BuildError(
                f"Failure while building '{self.description}', check the inner exception for details",
                f"{short_name(type(e))}: {e}",
            ) from e
