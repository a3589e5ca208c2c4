"""FastAPI dependencies for building the request context."""

from fastapi import Request

from entitykit.auth.middleware import get_auth_context, get_bearer_token
from entitykit.context import Context


def get_context(request: Request) -> Context:
    """Dependency returning the per-request Context.

    The shared ServiceState lives on ``app.state.service``; the auth fields
    were set by AuthMiddleware.
    """
    return Context(
        state=request.app.state.service,
        auth=get_auth_context(request),
        token=get_bearer_token(request),
    )
