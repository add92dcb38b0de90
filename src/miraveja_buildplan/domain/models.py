import inspect
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from miraveja_buildplan.domain.type_rules import callable_name, short_name

T = TypeVar("T")


class ConstructorParameter(BaseModel):
    """Value object describing one parameter of a constructor.

    Attributes:
        name: The parameter name.
        parameter_type: The annotated type, or None when unannotated.
        default: The default value, or ``inspect.Parameter.empty`` when required.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="The parameter name.")
    parameter_type: Optional[Any] = Field(default=None, description="The annotated parameter type.")
    default: Any = Field(default=inspect.Parameter.empty, description="The default value, if any.")

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


class ConstructorDescriptor(BaseModel):
    """Value object describing a constructor-like factory of a concrete type.

    Attributes:
        owner: The type the factory builds.
        name: ``__init__`` or the name of an alternate classmethod constructor.
        factory: Callable invoked with keyword arguments to build the object.
        parameters: Ordered parameter descriptors.
        selected: True when explicitly marked for selection.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    owner: Type = Field(..., description="The type built by this constructor.")
    name: str = Field(default="__init__", description="The constructor name.")
    factory: Callable[..., Any] = Field(..., description="The callable that builds the object.")
    parameters: List[ConstructorParameter] = Field(default_factory=list, description="Ordered parameters.")
    selected: bool = Field(default=False, description="Whether the constructor is explicitly marked.")

    @property
    def is_init(self) -> bool:
        return self.name == "__init__"

    def describe(self) -> str:
        """Render the construction signature, e.g. ``new Service(IRepo, str)``."""
        arguments = ", ".join(short_name(p.parameter_type) for p in self.parameters)
        if self.is_init:
            return f"new {short_name(self.owner)}({arguments})"
        return f"{short_name(self.owner)}.{self.name}({arguments})"


class DependencyBinding(BaseModel):
    """Value object binding a constructor parameter to a value.

    Bindings match a parameter by name, or by type when no name is given.

    Attributes:
        name: Parameter name the binding applies to.
        dependency_type: Parameter type the binding applies to.
        value: A raw value, an ``Instance`` or an ``IDependencySource``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: Optional[str] = Field(default=None, description="The parameter name the binding applies to.")
    dependency_type: Optional[Any] = Field(default=None, description="The parameter type the binding applies to.")
    value: Any = Field(default=None, description="The bound value, instance or dependency source.")


class InstanceToken(BaseModel):
    """Lightweight, comparable handle describing an instance."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str


class ExplicitArguments:
    """Values supplied up front for a build session, keyed by plugin type.

    Explicit arguments take precedence over any configured default instance.

    Example:
        >>> args = ExplicitArguments().set(Clock, FrozenClock())
        >>> container.get_instance(ReportService, arguments=args)
    """

    def __init__(self, defaults: Optional[Dict[Type, Any]] = None) -> None:
        self._defaults: Dict[Type, Any] = dict(defaults or {})

    def set(self, plugin_type: Type[T], value: T) -> "ExplicitArguments":
        self._defaults[plugin_type] = value
        return self

    def has(self, plugin_type: Type) -> bool:
        return plugin_type in self._defaults

    def get(self, plugin_type: Type[T]) -> Optional[T]:
        return self._defaults.get(plugin_type)

    def snapshot(self) -> Mapping[Type, Any]:
        """Read-only copy of the current values."""
        return MappingProxyType(dict(self._defaults))

    def __contains__(self, plugin_type: object) -> bool:
        return plugin_type in self._defaults

    def __len__(self) -> int:
        return len(self._defaults)

    def __repr__(self) -> str:
        return f"ExplicitArguments({', '.join(callable_name(t) for t in self._defaults)})"
