"""Repository Protocol: the interface every backend implements."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

from entitykit.entity.ids import EntityId

if TYPE_CHECKING:
    from entitykit.context import Context

T = TypeVar("T")


class InsertStatus(Enum):
    INSERTED = "inserted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class InsertResult:
    """Outcome of an insert.

    A hook veto is REJECTED (nothing was written); storage and transport
    failures are raised, never reported here.

    Attributes:
        status: INSERTED or REJECTED
        reason: Why a hook rejected the insert
    """

    status: InsertStatus
    reason: str | None = None

    @classmethod
    def inserted(cls) -> InsertResult:
        return cls(InsertStatus.INSERTED)

    @classmethod
    def rejected(cls, reason: str | None = None) -> InsertResult:
        return cls(InsertStatus.REJECTED, reason or "Rejected by an execution hook")

    @property
    def aborted(self) -> bool:
        """True when a hook vetoed the insert. This is the HTTP wire value."""
        return self.status is InsertStatus.REJECTED


@runtime_checkable
class Repository(Protocol[T]):
    """Typed CRUD for one entity type, independent of the backend.

    Implementations: DocumentRepository (local collection) and
    RemoteRepository (another service's HTTP surface).
    """

    entity_type: type[T]

    async def find(self, id: EntityId, context: Context) -> T | None: ...

    async def find_by_query(
        self, query: dict[str, Any], context: Context
    ) -> T | None: ...

    async def insert(self, entity: T, context: Context) -> InsertResult: ...

    async def delete(self, id: EntityId, context: Context) -> T | None: ...
