"""Document collections over SQLAlchemy Core.

Each collection is a table with one row per document: the ``id`` primary
key mirrors the document's ``_id`` and the ``document`` column holds the
full JSON body. Dialect-neutral (SQLite and PostgreSQL).

Queries are equality documents keyed by dotted field path, e.g.
``{"login": "ada"}`` or ``{"options.publish": True}``. ``_id`` matches the
primary key. A path that crosses an array of objects matches through each
element, and a scalar condition matches an array that contains it. String
conditions narrow the candidates in SQL with a text search over the stored
body; every condition is then checked against the loaded document, so
numbers, booleans, nulls and nested values compare exactly.
"""

import json
import logging
import re
from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    MetaData,
    String,
    Table,
    Text,
    cast,
    delete,
    insert,
    select,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from entitykit.errors import ConfigurationError, MalformedInputError, StorageError

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_MISSING = object()


def _lookup(document: Any, path: tuple[str, ...]) -> list[Any]:
    """Every value reachable along a path; arrays of objects are walked through."""
    current = [document]
    for part in path:
        reached = []
        for node in current:
            if isinstance(node, dict):
                if part in node:
                    reached.append(node[part])
            elif isinstance(node, list):
                reached.extend(
                    item[part] for item in node if isinstance(item, dict) and part in item
                )
        current = reached
    return current


def _equal(actual: Any, expected: Any) -> bool:
    # JSON distinguishes true from 1
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return actual == expected


def _same(candidates: list[Any], expected: Any) -> bool:
    if expected is None:
        return not candidates or any(actual is None for actual in candidates)
    for actual in candidates:
        if _equal(actual, expected):
            return True
        # A scalar condition matches an array holding it
        if isinstance(actual, list) and not isinstance(expected, list):
            if any(_equal(item, expected) for item in actual):
                return True
    return False


class DocumentCollection:
    """A named collection of JSON documents."""

    def __init__(self, engine: Engine, name: str):
        if not _NAME_PATTERN.match(name):
            raise ConfigurationError(f"Invalid collection name: {name!r}")
        self.name = name
        self._engine = engine
        self._table = Table(
            name,
            MetaData(),
            Column("id", String(64), primary_key=True),
            Column("document", JSON, nullable=False),
        )

    def ensure_table(self) -> None:
        """Create the backing table if it doesn't exist."""
        try:
            self._table.create(self._engine, checkfirst=True)
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot create collection '{self.name}': {exc}") from exc

    # ------------------------------------------------------------------
    # Query compilation
    # ------------------------------------------------------------------

    def _conditions(self, query: dict[str, Any]) -> list[tuple[tuple[str, ...], Any]]:
        if not isinstance(query, dict):
            raise MalformedInputError("Query document must be an object")

        conditions = []
        for key, expected in query.items():
            if not isinstance(key, str) or not key or key.startswith("$"):
                raise MalformedInputError(f"Unsupported query key: {key!r}")
            if key == "_id" and not isinstance(expected, str):
                raise MalformedInputError("'_id' must be matched against a hex string")
            conditions.append((tuple(key.split(".")), expected))
        return conditions

    def _select(self, conditions: list[tuple[tuple[str, ...], Any]]):
        stmt = select(self._table.c.document).order_by(self._table.c.id)
        for path, expected in conditions:
            if path == ("_id",):
                stmt = stmt.where(self._table.c.id == expected)
            elif isinstance(expected, str) and expected.isascii():
                # Coarse filter on the serialized body; _matching checks exactly
                body = cast(self._table.c.document, Text)
                stmt = stmt.where(body.contains(json.dumps(expected), autoescape=True))
        return stmt

    def _matching(
        self, conn: Connection, query: dict[str, Any], limit: int | None = None
    ) -> list[dict[str, Any]]:
        conditions = self._conditions(query)
        matches: list[dict[str, Any]] = []
        result = conn.execute(self._select(conditions))
        try:
            for row in result:
                document = row.document
                if all(
                    _same(_lookup(document, path), expected)
                    for path, expected in conditions
                ):
                    matches.append(document)
                    if limit is not None and len(matches) >= limit:
                        break
        finally:
            result.close()
        return matches

    def _first(self, conn: Connection, query: dict[str, Any]) -> dict[str, Any] | None:
        matches = self._matching(conn, query, limit=1)
        return matches[0] if matches else None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        """Return the first document matching the query, or None."""
        try:
            with self._engine.connect() as conn:
                return self._first(conn, query)
        except SQLAlchemyError as exc:
            raise StorageError(f"find_one on '{self.name}' failed: {exc}") from exc

    def count(self, query: dict[str, Any] | None = None) -> int:
        """Count documents matching the query (all documents when omitted)."""
        try:
            with self._engine.connect() as conn:
                return len(self._matching(conn, query or {}))
        except SQLAlchemyError as exc:
            raise StorageError(f"count on '{self.name}' failed: {exc}") from exc

    def insert_one(self, document: dict[str, Any]) -> None:
        """Insert a document. The document must carry a string ``_id``."""
        doc_id = document.get("_id")
        if not isinstance(doc_id, str):
            raise MalformedInputError("Document must have a string '_id'")

        try:
            with self._engine.begin() as conn:
                conn.execute(insert(self._table).values(id=doc_id, document=document))
        except IntegrityError as exc:
            raise StorageError(
                f"Document with _id '{doc_id}' already exists in '{self.name}'"
            ) from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"insert_one on '{self.name}' failed: {exc}") from exc

        logger.debug("Inserted %s into %s", doc_id, self.name)

    def find_one_and_delete(self, query: dict[str, Any]) -> dict[str, Any] | None:
        """Delete the first document matching the query and return it."""
        try:
            with self._engine.begin() as conn:
                document = self._first(conn, query)
                if document is None:
                    return None
                result = conn.execute(
                    delete(self._table).where(self._table.c.id == document["_id"])
                )
                if result.rowcount == 0:
                    # Removed concurrently between the read and the delete
                    return None
        except SQLAlchemyError as exc:
            raise StorageError(
                f"find_one_and_delete on '{self.name}' failed: {exc}"
            ) from exc

        logger.debug("Deleted %s from %s", document["_id"], self.name)
        return document
