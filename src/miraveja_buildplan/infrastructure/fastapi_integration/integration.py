from typing import Any, Awaitable, Callable, Mapping, Optional, Type, TypeVar

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from miraveja_buildplan.application import BuildSession, Container
from miraveja_buildplan.domain import ExplicitArguments

T = TypeVar("T")

ArgumentsFactory = Callable[[Request], Mapping[Type, Any]]


def create_fastapi_dependency(container: Container, plugin_type: Type[T]) -> Callable[[], T]:
    """Create a FastAPI Depends() callable that resolves from the container.

    Every call opens its own build session. The resolved object's lifetime
    follows its registration (singleton, transient or unique).

    Args:
        container: The container to resolve objects from.
        plugin_type: The type to resolve when the dependency is called.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> container = Container()
        >>> container.register_singletons({
        ...     UserRepository: lambda s: UserRepository(s.get_instance(DatabaseConnection)),
        ... })
        >>>
        >>> get_user_repo = create_fastapi_dependency(container, UserRepository)
        >>>
        >>> @app.get("/users")
        >>> async def list_users(repo: UserRepository = Depends(get_user_repo)):
        ...     return await repo.get_all()
    """

    def dependency() -> T:
        """Resolve the object from the container."""
        return container.get_instance(plugin_type)

    return dependency


def create_session_dependency(plugin_type: Type[T]) -> Callable[[Request], T]:
    """Create a FastAPI dependency that resolves from the request's build session.

    All dependencies of one request share the request's session, so transient
    objects are built once per request.

    Requires the BuildSessionMiddleware to be installed.

    Args:
        plugin_type: The type to resolve from the request's session.

    Returns:
        A callable that resolves from the request's build session.

    Raises:
        RuntimeError: If the request has no build session.

    Example:
        >>> app.add_middleware(BuildSessionMiddleware, container=container)
        >>>
        >>> get_request_context = create_session_dependency(RequestContext)
        >>>
        >>> @app.get("/process")
        >>> async def process_request(ctx: RequestContext = Depends(get_request_context)):
        ...     return {"request_id": ctx.request_id}
    """

    def session_dependency(request: Request) -> T:
        """Resolve from the request's build session."""
        session: Optional[BuildSession] = getattr(request.state, "build_session", None)
        if session is None:
            raise RuntimeError(
                "Request does not have a build session. Did you forget to add BuildSessionMiddleware?"
            )
        return session.get_instance(plugin_type)

    return session_dependency


class BuildSessionMiddleware(BaseHTTPMiddleware):
    """Middleware that opens a build session for each request.

    The session is seeded with the request itself as an explicit argument, plus
    whatever ``arguments_factory`` returns for the request. It is accessible
    via `request.state.build_session`.

    Attributes:
        container: The container to open sessions from.
        arguments_factory: Optional callable producing explicit arguments per request.

    Example:
        >>> container = Container()
        >>> container.register(RequestContext)
        >>>
        >>> app = FastAPI()
        >>> app.add_middleware(BuildSessionMiddleware, container=container)
        >>>
        >>> @app.get("/")
        >>> async def root(request: Request):
        ...     context = request.state.build_session.get_instance(RequestContext)
        ...     return {"message": "Hello"}
    """

    def __init__(
        self,
        app: FastAPI,
        container: Container,
        arguments_factory: Optional[ArgumentsFactory] = None,
    ):
        """Initialize the middleware.

        Args:
            app: The FastAPI/Starlette application.
            container: The container to open sessions from.
            arguments_factory: Optional callable producing explicit arguments per request.
        """
        super().__init__(app)
        self.container = container
        self.arguments_factory = arguments_factory

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Open a build session for the request and execute the endpoint.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            The response from the endpoint.
        """
        arguments = ExplicitArguments({Request: request})
        if self.arguments_factory is not None:
            for plugin_type, value in self.arguments_factory(request).items():
                arguments.set(plugin_type, value)

        request.state.build_session = self.container.start_session(arguments)
        return await call_next(request)
