"""Remote-proxy repository backend.

Forwards the four repository operations to another service exposing the
same HTTP surface (see entitykit.api.routes). Hooks are not run locally:
the owning service already ran them.
"""

import logging
from typing import Any, Generic, TypeVar

import httpx

from entitykit.context import Context
from entitykit.entity.codec import decode_record, encode
from entitykit.entity.contract import Record
from entitykit.entity.ids import EntityId
from entitykit.errors import DecodeError, TransportError
from entitykit.repository.base import InsertResult

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Record)


class RemoteRepository(Generic[T]):
    """Repository that proxies to a remote service over HTTP.

    Args:
        entity_type: The record type served by the remote service
        origin: Base URL of the remote service, e.g. "http://auth:8080"
        lenient_reads: Report undecodable read responses as "not found"
            instead of raising TransportError
    """

    def __init__(self, entity_type: type[T], origin: str, *, lenient_reads: bool = False):
        self.entity_type = entity_type
        self.origin = origin.rstrip("/")
        self.lenient_reads = lenient_reads

    def __repr__(self) -> str:
        return f"RemoteRepository({self.entity_type.__name__}, {self.origin!r})"

    def _url(self, *parts: str) -> str:
        return "/".join((self.origin, "api", self.entity_type.NAME, *parts))

    async def _send(
        self, context: Context, method: str, url: str, json: Any = None
    ) -> httpx.Response:
        headers = {}
        token = context.state.service_token or context.token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("%s %s", method, url)
        try:
            response = await context.state.client.request(
                method, url, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if response.is_error:
            raise TransportError(
                f"{method} {url} returned {response.status_code}: {response.text}"
            )
        return response

    def _read(self, response: httpx.Response) -> T | None:
        try:
            payload = response.json()
            if payload is None:
                return None
            return decode_record(self.entity_type, payload)
        except (ValueError, DecodeError) as exc:
            if self.lenient_reads:
                logger.warning(
                    "Undecodable %s response from %s treated as not found: %s",
                    self.entity_type.__name__,
                    response.url,
                    exc,
                )
                return None
            raise TransportError(
                f"Cannot decode {self.entity_type.__name__} from {response.url}: {exc}"
            ) from exc

    async def find(self, id: EntityId, context: Context) -> T | None:
        response = await self._send(context, "GET", self._url("find", id.to_hex()))
        return self._read(response)

    async def find_by_query(self, query: dict[str, Any], context: Context) -> T | None:
        response = await self._send(context, "POST", self._url("find_by_doc"), json=query)
        return self._read(response)

    async def insert(self, entity: T, context: Context) -> InsertResult:
        response = await self._send(
            context, "POST", self._url("insert"), json=encode(entity)
        )
        try:
            aborted = response.json()
        except ValueError as exc:
            raise TransportError(f"Invalid insert response from {response.url}") from exc
        if not isinstance(aborted, bool):
            raise TransportError(
                f"Insert response from {response.url} is not a boolean: {aborted!r}"
            )
        if aborted:
            return InsertResult.rejected(f"Rejected by remote service at {self.origin}")
        return InsertResult.inserted()

    async def delete(self, id: EntityId, context: Context) -> T | None:
        response = await self._send(context, "DELETE", self._url("delete", id.to_hex()))
        return self._read(response)
