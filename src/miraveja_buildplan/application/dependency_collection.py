from typing import Any, Iterator, List, Optional, Type, Union

from miraveja_buildplan.domain import ConstructorParameter, DependencyBinding
from miraveja_buildplan.domain.type_rules import can_be_cast_to


class DependencyCollection:
    """Ordered set of explicit constructor bindings for a configured instance.

    Parameters are matched by name first, then by type.

    Example:
        >>> dependencies = DependencyCollection()
        >>> dependencies.add("timeout", 30)
        >>> dependencies.add(IRepository, ConfiguredInstance(SqlRepository))
    """

    def __init__(self) -> None:
        self._bindings: List[DependencyBinding] = []

    def add(self, key: Union[str, Type], value: Any) -> "DependencyCollection":
        """Bind a value by parameter name (``str`` key) or by parameter type.

        Later bindings for the same key replace earlier ones.

        Args:
            key: Parameter name or parameter type.
            value: Raw value, ``Instance`` or ``IDependencySource``.

        Returns:
            The collection, for chaining.
        """
        if isinstance(key, str):
            binding = DependencyBinding(name=key, value=value)
        else:
            binding = DependencyBinding(dependency_type=key, value=value)

        self._bindings = [
            existing
            for existing in self._bindings
            if not (existing.name == binding.name and existing.dependency_type is binding.dependency_type)
        ]
        self._bindings.append(binding)
        return self

    def find_for(self, parameter: ConstructorParameter) -> Optional[DependencyBinding]:
        """Return the binding satisfying ``parameter``, or None."""
        for binding in self._bindings:
            if binding.name is not None and binding.name == parameter.name:
                return binding

        if parameter.parameter_type is None:
            return None

        for binding in self._bindings:
            if binding.name is None and binding.dependency_type is parameter.parameter_type:
                return binding

        for binding in self._bindings:
            if binding.name is None and can_be_cast_to(binding.dependency_type, parameter.parameter_type):
                return binding
        return None

    def has(self, parameter: ConstructorParameter) -> bool:
        return self.find_for(parameter) is not None

    def __iter__(self) -> Iterator[DependencyBinding]:
        return iter(list(self._bindings))

    def __len__(self) -> int:
        return len(self._bindings)
