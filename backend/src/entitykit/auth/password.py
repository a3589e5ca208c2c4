"""Password hashing for stored logins."""

from passlib.context import CryptContext


class PasswordService:
    """Hashes and verifies login passwords with bcrypt via passlib."""

    def __init__(self, rounds: int = 12):
        """Initialize the password service.

        Args:
            rounds: bcrypt work factor (default 12, higher = slower + more secure)
        """
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        """Check a password against a stored hash. Malformed hashes never match."""
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            return False
