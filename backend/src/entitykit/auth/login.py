"""Login records and the credential workflow built on them."""

import logging
from dataclasses import dataclass

from entitykit.auth.jwt_service import JWTService
from entitykit.auth.password import PasswordService
from entitykit.context import Context
from entitykit.entity.contract import Record
from entitykit.entity.ids import EntityId
from entitykit.entity.principal import AuthInfo
from entitykit.entity.wrappers import Private, Unique
from entitykit.repository.base import InsertResult

logger = logging.getLogger(__name__)


@dataclass
class Login(Record):
    """Stored credentials. The password hash never leaves the service.

    Attributes:
        id: Login ID, used as the token subject
        login: The login name, unique across logins
        password: bcrypt hash of the password
    """

    NAME = "login"

    id: EntityId
    login: Unique[str]
    password: Private[str]


class LoginService:
    """Registers logins and exchanges credentials for access tokens.

    Both operations go through the Login repository resolved from the
    request context, so they work the same over a local collection or a
    remote auth service.
    """

    def __init__(self, jwt_service: JWTService, password_service: PasswordService):
        self._jwt_service = jwt_service
        self._password_service = password_service

    async def register(self, login: str, password: str, context: Context) -> InsertResult:
        """Create a login. Rejected when the login name is taken."""
        record = Login(
            id=EntityId.generate(),
            login=Unique(login),
            password=Private(self._password_service.hash(password)),
        )
        result = await context.repository(Login).insert(record, context)
        if result.aborted:
            logger.info("Registration of login '%s' rejected: %s", login, result.reason)
        return result

    async def authenticate(self, login: str, password: str, context: Context) -> str | None:
        """Verify credentials and issue an access token.

        Returns:
            The encoded access token, or None if the credentials don't match
        """
        record = await context.repository(Login).find_by_query({"login": login}, context)
        if record is None or not self._password_service.verify(
            password, record.password.value
        ):
            return None

        subject = record.id.to_hex()
        roles = await self._roles_for(subject, context)
        return self._jwt_service.issue_token(subject, roles=roles)

    async def _roles_for(self, subject: str, context: Context) -> list[str]:
        if not context.state.registry.is_registered(AuthInfo):
            return []
        principal = await context.repository(AuthInfo).find_by_query(
            {"subject": subject}, context
        )
        return list(principal.roles) if principal else []
