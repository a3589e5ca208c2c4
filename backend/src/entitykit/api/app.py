"""FastAPI application factory."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from entitykit import __version__
from entitykit.api.errors import register_exception_handlers
from entitykit.api.routes import create_entity_router
from entitykit.auth.endpoints import create_auth_router
from entitykit.auth.login import Login, LoginService
from entitykit.auth.middleware import AuthMiddleware
from entitykit.auth.password import PasswordService
from entitykit.errors import ConfigurationError
from entitykit.service.bootstrap import build_service_state
from entitykit.service.config import ServiceConfig
from entitykit.service.state import ServiceState

logger = logging.getLogger(__name__)


def create_app(
    state: ServiceState,
    password_service: PasswordService | None = None,
    close_state: bool = True,
) -> FastAPI:
    """Create the HTTP surface for a wired service.

    Args:
        state: Service state with a frozen registry
        password_service: Password hashing for the login endpoints
        close_state: Close the state's HTTP client and engine on shutdown
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Service %s serving %s",
            state.name,
            ", ".join(t.NAME for t in state.registry.list_registered()) or "no entities",
        )
        yield
        if close_state:
            await state.aclose()

    app = FastAPI(title=f"entitykit: {state.name}", version=__version__, lifespan=lifespan)
    app.state.service = state

    app.add_middleware(AuthMiddleware, jwt_service=state.jwt_service)
    register_exception_handlers(app)

    for entity_type in state.registry.list_registered():
        app.include_router(create_entity_router(entity_type))

    if state.jwt_service is not None and state.registry.is_registered(Login):
        login_service = LoginService(state.jwt_service, password_service or PasswordService())
        app.include_router(create_auth_router(login_service))

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": state.name}

    return app


def app_from_env() -> FastAPI:
    """App factory for uvicorn: ``uvicorn --factory entitykit.api.app:app_from_env``.

    Reads the service file named by ENTITYKIT_CONFIG.
    """
    config_path = os.environ.get("ENTITYKIT_CONFIG")
    if not config_path:
        raise ConfigurationError("ENTITYKIT_CONFIG is not set")
    return create_app(build_service_state(ServiceConfig.from_yaml(config_path)))
