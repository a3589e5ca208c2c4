"""Process-wide service state shared by every request."""

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.engine import Engine

from entitykit.auth.jwt_service import JWTService
from entitykit.repository.registry import RepositoryRegistry

logger = logging.getLogger(__name__)


@dataclass
class ServiceState:
    """Immutable-after-startup state of one service.

    Attributes:
        name: Service name
        registry: Frozen repository registry
        client: Shared outbound HTTP client used by remote repositories
        jwt_service: Token validation/issuing; None disables authentication
        service_token: Bearer token sent on outbound calls instead of the caller's
        engine: Document store engine, when any repository is local
    """

    name: str
    registry: RepositoryRegistry
    client: httpx.AsyncClient
    jwt_service: JWTService | None = None
    service_token: str | None = None
    engine: Engine | None = None

    async def aclose(self) -> None:
        """Release the HTTP client and database connections."""
        await self.client.aclose()
        if self.engine is not None:
            self.engine.dispose()
        logger.debug("Service state for %s closed", self.name)
