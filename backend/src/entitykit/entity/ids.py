"""Opaque 12-byte entity identifiers.

Layout: 4-byte big-endian creation timestamp, 5 random bytes fixed per
process, 3-byte counter. The canonical text form is 24 lowercase hex
characters, used in URL path segments, stored documents and public views.
"""

import itertools
import os
import re
import threading
import time
from datetime import UTC, datetime
from typing import Any

from entitykit.context import MutationContext
from entitykit.entity.contract import Entity
from entitykit.entity.types import Method
from entitykit.errors import MalformedInputError

_HEX_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


class InvalidIdError(MalformedInputError):
    """Raised when a string is not a valid 24-character hex identifier."""

    code = "invalid_id"


class EntityId(Entity):
    """A 12-byte identifier with a 24-character hex encoding.

    EntityId is itself an Entity: it projects to its hex string, never
    aborts a pre-execution hook and always keeps the result.
    """

    __slots__ = ("_raw",)

    _process_bytes = os.urandom(5)
    _counter = itertools.count(int.from_bytes(os.urandom(3), "big"))
    _lock = threading.Lock()

    def __init__(self, raw: bytes):
        if not isinstance(raw, bytes) or len(raw) != 12:
            raise InvalidIdError("EntityId requires exactly 12 bytes")
        self._raw = raw

    @classmethod
    def generate(cls) -> "EntityId":
        """Create a new identifier."""
        with cls._lock:
            count = next(cls._counter) & 0xFFFFFF
        timestamp = int(time.time()) & 0xFFFFFFFF
        return cls(
            timestamp.to_bytes(4, "big") + cls._process_bytes + count.to_bytes(3, "big")
        )

    @classmethod
    def from_hex(cls, value: str) -> "EntityId":
        """Parse the 24-character hex form.

        Raises:
            InvalidIdError: If value is not 24 hex characters
        """
        if not isinstance(value, str) or not _HEX_PATTERN.match(value):
            raise InvalidIdError(f"Invalid identifier: {value!r}")
        return cls(bytes.fromhex(value))

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        return isinstance(value, str) and bool(_HEX_PATTERN.match(value))

    @property
    def binary(self) -> bytes:
        return self._raw

    @property
    def generation_time(self) -> datetime:
        return datetime.fromtimestamp(int.from_bytes(self._raw[:4], "big"), UTC)

    def to_hex(self) -> str:
        return self._raw.hex()

    # Entity contract

    def to_public(self, ctx: MutationContext) -> str:
        return self.to_hex()

    async def before_execution(self, ctx: MutationContext, method: Method) -> bool:
        return False

    async def after_execution(self, ctx: MutationContext, method: Method) -> bool:
        return True

    def to_document(self) -> str:
        return self.to_hex()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, EntityId):
            return self._raw == other._raw
        return NotImplemented

    def __lt__(self, other: "EntityId") -> bool:
        return self._raw < other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __str__(self) -> str:
        return self.to_hex()

    def __repr__(self) -> str:
        return f"EntityId('{self.to_hex()}')"
