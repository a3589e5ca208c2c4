"""Document-store repository backend.

Executes the physical operation against a DocumentCollection and drives
the execution hook pipeline around it, with a fresh MutationContext per
call:

- insert: before_execution (abort => nothing written), write, after_execution
- find / find_by_query: read, after_execution (refusal => not found)
- delete: delete, after_execution (refusal => reported as not found)

Collection calls are blocking and run in a worker thread.
"""

import asyncio
import logging
from typing import Any, Generic, TypeVar

from entitykit.context import Context, MutationContext
from entitykit.entity.codec import decode_record, encode
from entitykit.entity.contract import Record
from entitykit.entity.ids import EntityId
from entitykit.entity.types import Method
from entitykit.errors import DecodeError, StorageError
from entitykit.persistence.collection import DocumentCollection
from entitykit.repository.base import InsertResult

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Record)


class DocumentRepository(Generic[T]):
    """Repository backed by a local document collection."""

    def __init__(self, entity_type: type[T], collection: DocumentCollection):
        self.entity_type = entity_type
        self.collection = collection

    def __repr__(self) -> str:
        return f"DocumentRepository({self.entity_type.__name__}, {self.collection.name!r})"

    def _load(self, document: dict[str, Any]) -> T:
        try:
            return decode_record(self.entity_type, document)
        except DecodeError as exc:
            raise StorageError(
                f"Stored document in '{self.collection.name}' does not match "
                f"{self.entity_type.__name__}: {exc}"
            ) from exc

    async def _surface(
        self, document: dict[str, Any] | None, context: Context, method: Method
    ) -> T | None:
        if document is None:
            return None
        entity = self._load(document)
        ctx = MutationContext(context, self.entity_type)
        if not await entity.after_execution(ctx, method):
            logger.info(
                "%s %s suppressed by after_execution",
                self.entity_type.__name__,
                document.get("_id"),
            )
            return None
        return entity

    async def find(self, id: EntityId, context: Context) -> T | None:
        document = await asyncio.to_thread(
            self.collection.find_one, {"_id": id.to_hex()}
        )
        return await self._surface(document, context, Method.FIND)

    async def find_by_query(self, query: dict[str, Any], context: Context) -> T | None:
        document = await asyncio.to_thread(self.collection.find_one, query)
        return await self._surface(document, context, Method.FIND_BY_DOC)

    async def insert(self, entity: T, context: Context) -> InsertResult:
        ctx = MutationContext(context, self.entity_type)
        if await entity.before_execution(ctx, Method.INSERT):
            logger.info(
                "Insert of %s rejected: %s",
                self.entity_type.__name__,
                ctx.abort_reason,
            )
            return InsertResult.rejected(ctx.abort_reason)

        await asyncio.to_thread(self.collection.insert_one, encode(entity))
        # Already written; the post-hook outcome cannot undo the insert.
        await entity.after_execution(ctx, Method.INSERT)
        return InsertResult.inserted()

    async def delete(self, id: EntityId, context: Context) -> T | None:
        document = await asyncio.to_thread(
            self.collection.find_one_and_delete, {"_id": id.to_hex()}
        )
        return await self._surface(document, context, Method.DELETE)
