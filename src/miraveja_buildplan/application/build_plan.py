from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Type

from miraveja_buildplan.application.interception import InterceptionPlan
from miraveja_buildplan.domain import (
    BuildException,
    IBuildPlan,
    IBuildPlanVisitor,
    IBuildSession,
    IDependencySource,
    IInterceptor,
)

if TYPE_CHECKING:
    from miraveja_buildplan.application.instances import Instance
    from miraveja_buildplan.application.policies import Policies


class BuildPlan(IBuildPlan):
    """Compiled procedure building one instance for one plugin type.

    Wraps the instance's dependency source in an ``InterceptionPlan`` when the
    instance has interceptors. Immutable once created.

    Attributes:
        _plugin_type: The requested type the plan was compiled for.
        _instance: The owning instance, used for diagnostics.
        _inner: The instance's own dependency source.
        _interception: The interception plan, or None without interceptors.
    """

    def __init__(
        self,
        plugin_type: Type,
        instance: "Instance",
        inner: IDependencySource,
        policies: "Policies",
        interceptors: Sequence[IInterceptor] = (),
    ) -> None:
        self._plugin_type = plugin_type
        self._instance = instance
        self._inner = inner
        self._interception: Optional[InterceptionPlan] = None
        if interceptors:
            self._interception = InterceptionPlan(plugin_type, inner, policies, interceptors)

    @property
    def plugin_type(self) -> Type:
        return self._plugin_type

    @property
    def instance(self) -> "Instance":
        return self._instance

    @property
    def inner(self) -> IDependencySource:
        return self._inner

    @property
    def interception(self) -> Optional[InterceptionPlan]:
        return self._interception

    @property
    def description(self) -> str:
        return self._instance.describe(self._plugin_type)

    def build(self, session: IBuildSession) -> Any:
        """Build the object within ``session``.

        Args:
            session: The current build session.

        Returns:
            The built, activated and decorated object.

        Raises:
            BuildException: With a frame naming this plan appended to its trail.
        """
        source = self._interception or self._inner
        try:
            return source.evaluate(session)
        except BuildException as e:
            e.push(f"While building {self.description}")
            raise

    def to_builder(self) -> Callable[[IBuildSession], Any]:
        return self.build

    def accept_visitor(self, visitor: IBuildPlanVisitor) -> None:
        if self._interception is not None:
            self._interception.accept_visitor(visitor)

    def __repr__(self) -> str:
        return f"BuildPlan({self.description})"
