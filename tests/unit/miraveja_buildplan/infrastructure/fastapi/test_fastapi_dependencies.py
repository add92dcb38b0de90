"""Unit tests for FastAPI integration."""

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI, Request
from starlette.responses import Response

from miraveja_buildplan.application.build_session import BuildSession
from miraveja_buildplan.application.container import Container
from miraveja_buildplan.domain import ConfigurationError, Lifetime
from miraveja_buildplan.infrastructure.fastapi_integration.integration import (
    BuildSessionMiddleware,
    create_fastapi_dependency,
    create_session_dependency,
)


class DatabaseConnection:
    def __init__(self):
        self.connected = True


class UserRepository:
    def __init__(self, db: DatabaseConnection):
        self.db = db


class RequestContext:
    def __init__(self, request: Request):
        self.request = request


class TenantId:
    def __init__(self, value: str):
        self.value = value


class TenantScopedService:
    def __init__(self, tenant: TenantId):
        self.tenant = tenant


class TestCreateFastAPIDependency:
    """Test cases for create_fastapi_dependency function."""

    def test_creates_dependency_function(self):
        """Test that create_fastapi_dependency returns a callable."""
        container = Container()

        dependency_func = create_fastapi_dependency(container, DatabaseConnection)

        assert callable(dependency_func)

    def test_dependency_function_returns_singleton_instance(self):
        """Test that singleton dependencies return the same object."""
        container = Container()
        container.register_singletons({DatabaseConnection: lambda s: DatabaseConnection()})

        dependency_func = create_fastapi_dependency(container, DatabaseConnection)

        assert dependency_func() is dependency_func()

    def test_dependency_function_returns_new_transient_instances(self):
        """Test that each call opens its own session, so transients differ."""
        container = Container()
        container.register_transients({DatabaseConnection: lambda s: DatabaseConnection()})

        dependency_func = create_fastapi_dependency(container, DatabaseConnection)

        assert dependency_func() is not dependency_func()

    def test_dependency_function_auto_wires_nested_dependencies(self):
        """Test that unregistered concrete types and their dependencies are built."""
        container = Container()

        dependency_func = create_fastapi_dependency(container, UserRepository)
        repository = dependency_func()

        assert isinstance(repository, UserRepository)
        assert repository.db.connected

    def test_dependency_function_propagates_configuration_errors(self):
        """Test that missing simple arguments surface as configuration errors."""
        container = Container()

        dependency_func = create_fastapi_dependency(container, TenantId)

        with pytest.raises(ConfigurationError):
            dependency_func()


class TestCreateSessionDependency:
    """Test cases for create_session_dependency function."""

    def test_resolves_from_request_session(self):
        """Test that the dependency resolves from request.state.build_session."""
        container = Container()
        container.register(DatabaseConnection, lifetime=Lifetime.TRANSIENT)
        request = Mock(spec=Request)
        request.state = Mock()
        request.state.build_session = container.start_session()

        dependency_func = create_session_dependency(DatabaseConnection)

        assert dependency_func(request) is dependency_func(request)

    def test_raises_without_session(self):
        """Test that a missing build session raises a helpful error."""
        request = Mock(spec=Request)
        request.state = Mock(spec=[])

        dependency_func = create_session_dependency(DatabaseConnection)

        with pytest.raises(RuntimeError, match="BuildSessionMiddleware"):
            dependency_func(request)


class TestBuildSessionMiddleware:
    """Test cases for BuildSessionMiddleware."""

    def test_middleware_initialization(self):
        """Test that the middleware keeps the container and arguments factory."""
        app = FastAPI()
        container = Container()
        factory = Mock(return_value={})

        middleware = BuildSessionMiddleware(app, container, factory)

        assert middleware.container is container
        assert middleware.arguments_factory is factory

    @pytest.mark.asyncio
    async def test_dispatch_attaches_session(self):
        """Test that dispatch attaches a build session to the request."""
        container = Container()
        middleware = BuildSessionMiddleware(FastAPI(), container)
        request = Mock(spec=Request)
        request.state = Mock()
        response = Response("ok")
        call_next = AsyncMock(return_value=response)

        result = await middleware.dispatch(request, call_next)

        assert result is response
        call_next.assert_awaited_once_with(request)
        assert isinstance(request.state.build_session, BuildSession)

    @pytest.mark.asyncio
    async def test_dispatch_seeds_request_argument(self):
        """Test that the request itself is an explicit argument of the session."""
        container = Container()
        middleware = BuildSessionMiddleware(FastAPI(), container)
        request = Mock(spec=Request)
        request.state = Mock()

        await middleware.dispatch(request, AsyncMock(return_value=Response("ok")))

        context = request.state.build_session.get_instance(RequestContext)
        assert context.request is request

    @pytest.mark.asyncio
    async def test_dispatch_uses_arguments_factory(self):
        """Test that the arguments factory contributes explicit arguments per request."""
        container = Container()
        request = Mock(spec=Request)
        request.state = Mock()
        middleware = BuildSessionMiddleware(
            FastAPI(), container, arguments_factory=lambda r: {TenantId: TenantId("acme")}
        )

        await middleware.dispatch(request, AsyncMock(return_value=Response("ok")))

        service = request.state.build_session.get_instance(TenantScopedService)
        assert service.tenant.value == "acme"

    @pytest.mark.asyncio
    async def test_each_request_gets_its_own_session(self):
        """Test that transient objects are not shared across requests."""
        container = Container()
        middleware = BuildSessionMiddleware(FastAPI(), container)
        first, second = Mock(spec=Request), Mock(spec=Request)
        first.state, second.state = Mock(), Mock()

        await middleware.dispatch(first, AsyncMock(return_value=Response("ok")))
        await middleware.dispatch(second, AsyncMock(return_value=Response("ok")))

        assert first.state.build_session is not second.state.build_session
        assert first.state.build_session.get_instance(DatabaseConnection) is not (
            second.state.build_session.get_instance(DatabaseConnection)
        )
