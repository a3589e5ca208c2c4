"""JWT token generation and validation service."""

import time

import jwt

from entitykit.auth.types import TokenClaims

ACCEPTED_TOKEN_TYPES = ("access", "service")


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid or malformed."""

    pass


class JWTService:
    """Service for issuing and validating bearer tokens.

    Uses HS256 algorithm with a shared secret key. Services that talk to
    each other share the key, so a service token issued by one is accepted
    by the others.
    """

    ACCESS_TOKEN_TTL = 15 * 60  # 15 minutes
    SERVICE_TOKEN_TTL = 24 * 60 * 60  # 1 day

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        """Initialize the JWT service.

        Args:
            secret_key: Secret key for signing tokens (should be at least 32 chars)
            algorithm: JWT algorithm (default HS256)
        """
        self._secret_key = secret_key
        self._algorithm = algorithm

    def issue_token(
        self,
        subject: str,
        roles: list[str] | None = None,
        token_type: str = "access",
        ttl: int | None = None,
    ) -> str:
        """Issue a signed token.

        Args:
            subject: The principal's user ID (or service name)
            roles: Roles to embed in the token
            token_type: "access" for users, "service" for service-to-service calls
            ttl: Lifetime in seconds (defaults per token type)

        Returns:
            Encoded JWT
        """
        if token_type not in ACCEPTED_TOKEN_TYPES:
            raise ValueError(f"Unknown token type: {token_type}")
        if ttl is None:
            ttl = self.SERVICE_TOKEN_TTL if token_type == "service" else self.ACCESS_TOKEN_TTL

        now = int(time.time())
        claims = {
            "sub": subject,
            "iat": now,
            "exp": now + ttl,
            "type": token_type,
        }
        if roles:
            claims["roles"] = list(roles)

        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenClaims:
        """Decode and validate a JWT token.

        Args:
            token: The JWT token string

        Returns:
            TokenClaims with the decoded claims

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid, malformed or of an unknown type
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        token_type = payload.get("type", "access")
        if token_type not in ACCEPTED_TOKEN_TYPES:
            raise InvalidTokenError(f"Unsupported token type: {token_type}")

        subject = payload.get("sub")
        if not subject:
            raise InvalidTokenError("Token has no subject")

        roles = payload.get("roles") or []
        if not isinstance(roles, list):
            raise InvalidTokenError("Token roles must be a list")

        return TokenClaims(
            subject=subject,
            roles=[str(role) for role in roles],
            exp=payload.get("exp", 0),
            iat=payload.get("iat", 0),
            type=token_type,
        )
