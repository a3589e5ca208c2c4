"""Type definitions for authentication."""

from dataclasses import dataclass, field


@dataclass
class TokenClaims:
    """Claims embedded in a JWT token.

    Attributes:
        subject: The authenticated principal's user ID
        roles: Roles granted to the principal
        exp: Token expiration timestamp
        iat: Token issued-at timestamp
        type: Token type ("access" or "service")
    """

    subject: str
    roles: list[str] = field(default_factory=list)
    exp: int = 0
    iat: int = 0
    type: str = "access"


@dataclass
class AuthContext:
    """The caller's resolved authorization, consumed by AuthGated hooks.

    Attributes:
        subject: The caller's user ID (matches AuthInfo.subject)
        roles: Role names from the token
        is_service: True when the caller is another service
    """

    subject: str
    roles: list[str] = field(default_factory=list)
    is_service: bool = False

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "AuthContext":
        return cls(
            subject=claims.subject,
            roles=list(claims.roles),
            is_service=claims.type == "service",
        )

    def has_role(self, role: str) -> bool:
        return role in self.roles
