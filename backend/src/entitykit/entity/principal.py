"""Authorization principal records referenced by AuthGated fields."""

from dataclasses import dataclass, field

from entitykit.entity.contract import Record
from entitykit.entity.ids import EntityId


@dataclass
class AuthInfo(Record):
    """A principal that may be granted access to gated values.

    Attributes:
        id: Principal ID
        subject: The user ID carried in access tokens
        roles: Role names held by the principal
    """

    NAME = "auth_info"

    id: EntityId
    subject: str
    roles: list[str] = field(default_factory=list)
