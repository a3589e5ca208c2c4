"""Authentication: bearer tokens, password hashing and logins."""

from entitykit.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
)
from entitykit.auth.login import Login, LoginService
from entitykit.auth.middleware import AuthMiddleware, get_auth_context, get_bearer_token
from entitykit.auth.password import PasswordService
from entitykit.auth.types import AuthContext, TokenClaims

__all__ = [
    "AuthContext",
    "AuthMiddleware",
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "Login",
    "LoginService",
    "PasswordService",
    "TokenClaims",
    "TokenExpiredError",
    "get_auth_context",
    "get_bearer_token",
]
