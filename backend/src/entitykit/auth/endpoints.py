"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from entitykit.api.dependencies import get_context
from entitykit.auth.jwt_service import JWTService
from entitykit.auth.login import LoginService
from entitykit.context import Context


class LoginRequest(BaseModel):
    """Request body for login."""

    login: str
    password: str


class LoginResponse(BaseModel):
    """Response body for login."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int


class RegisterRequest(BaseModel):
    """Request body for login registration."""

    login: str
    password: str


class RegisterResponse(BaseModel):
    """Response body for registration. ``aborted`` mirrors the insert endpoint."""

    aborted: bool
    reason: str | None = None


def create_auth_router(login_service: LoginService) -> APIRouter:
    """Create the auth router with injected dependencies.

    Args:
        login_service: Credential workflow over the Login repository

    Returns:
        Configured APIRouter
    """
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.post("/register", response_model=RegisterResponse)
    async def register(
        request: RegisterRequest, context: Context = Depends(get_context)
    ) -> RegisterResponse:
        result = await login_service.register(request.login, request.password, context)
        return RegisterResponse(aborted=result.aborted, reason=result.reason)

    @router.post("/login", response_model=LoginResponse)
    async def login(
        request: LoginRequest, context: Context = Depends(get_context)
    ) -> LoginResponse:
        """Authenticate a login and return an access token.

        Raises:
            HTTPException 401 if credentials invalid
        """
        token = await login_service.authenticate(request.login, request.password, context)
        if token is None:
            raise HTTPException(
                status_code=401,
                detail="Invalid login or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return LoginResponse(
            access_token=token, expires_in=JWTService.ACCESS_TOKEN_TTL
        )

    return router
