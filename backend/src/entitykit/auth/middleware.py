"""Authentication middleware for FastAPI."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from entitykit.auth.jwt_service import JWTError, JWTService
from entitykit.auth.types import AuthContext

logger = logging.getLogger(__name__)


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that extracts the bearer token and sets the auth context.

    The middleware:
    1. Reads the Authorization header
    2. Decodes and validates the JWT (when a JWT service is configured)
    3. Sets request.state.auth with the resolved AuthContext
    4. Sets request.state.token with the raw token for forwarding

    A request without an Authorization header is anonymous. A header that is
    not a bearer token, or a token that fails validation, is rejected with 401.
    """

    def __init__(self, app, jwt_service: JWTService | None = None):
        """Initialize middleware with JWT service.

        Args:
            app: The ASGI application
            jwt_service: JWT service for token validation; when None, tokens
                are forwarded untouched and every caller is anonymous
        """
        super().__init__(app)
        self._jwt_service = jwt_service

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.auth = None
        request.state.token = None

        auth_header = request.headers.get("Authorization")
        if auth_header is None:
            return await call_next(request)

        scheme, _, token = auth_header.partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            return _unauthorized("Malformed Authorization header")

        request.state.token = token
        if self._jwt_service is not None:
            try:
                claims = self._jwt_service.decode_token(token)
            except JWTError as e:
                logger.info("Rejected bearer token on %s: %s", request.url.path, e)
                return _unauthorized(str(e))
            request.state.auth = AuthContext.from_claims(claims)

        return await call_next(request)


def _unauthorized(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"error": "unauthorized", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_context(request: Request) -> AuthContext | None:
    """Get the auth context from the request state.

    Returns:
        AuthContext if authenticated, None otherwise
    """
    return getattr(request.state, "auth", None)


def get_bearer_token(request: Request) -> str | None:
    return getattr(request.state, "token", None)
