"""Per-entity HTTP routes.

For an entity with NAME ``name`` the router serves:

- GET    /api/{name}/find/{id}      stored document of the record, or null
- POST   /api/{name}/find_by_doc    same, for the first record matching a query
- POST   /api/{name}/insert         boolean: true when a hook aborted the insert
- DELETE /api/{name}/delete/{id}    the deleted record, or null
- GET    /api/{name}/public/{id}    public projection of the record, or null

find, find_by_doc, insert and delete are the surface RemoteRepository
talks to, so their bodies use the storage encoding, not the projection.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from entitykit.context import Context
from entitykit.entity.codec import decode_record, encode
from entitykit.entity.contract import Record, public_view
from entitykit.entity.ids import EntityId
from entitykit.api.dependencies import get_context

logger = logging.getLogger(__name__)


def _document(entity: Record | None) -> JSONResponse:
    return JSONResponse(content=None if entity is None else encode(entity))


def create_entity_router(entity_type: type[Record]) -> APIRouter:
    """Create the router exposing one entity type's repository."""
    name = entity_type.NAME
    router = APIRouter(prefix=f"/api/{name}", tags=[name])

    @router.get("/find/{id}")
    async def find(id: str, context: Context = Depends(get_context)) -> JSONResponse:
        repository = context.repository(entity_type)
        return _document(await repository.find(EntityId.from_hex(id), context))

    @router.post("/find_by_doc")
    async def find_by_doc(
        query: dict[str, Any] = Body(...), context: Context = Depends(get_context)
    ) -> JSONResponse:
        repository = context.repository(entity_type)
        return _document(await repository.find_by_query(query, context))

    @router.post("/insert")
    async def insert(
        document: dict[str, Any] = Body(...), context: Context = Depends(get_context)
    ) -> JSONResponse:
        entity = decode_record(entity_type, document)
        result = await context.repository(entity_type).insert(entity, context)
        if result.aborted:
            logger.debug("Insert into %s aborted: %s", name, result.reason)
        return JSONResponse(content=result.aborted)

    @router.delete("/delete/{id}")
    async def delete(id: str, context: Context = Depends(get_context)) -> JSONResponse:
        repository = context.repository(entity_type)
        return _document(await repository.delete(EntityId.from_hex(id), context))

    @router.get("/public/{id}")
    async def public(id: str, context: Context = Depends(get_context)) -> JSONResponse:
        entity = await context.repository(entity_type).find(EntityId.from_hex(id), context)
        if entity is None:
            return JSONResponse(content=None)
        return JSONResponse(content=jsonable_encoder(public_view(entity, context)))

    return router
