"""Entity contract, field wrappers and document encoding.

Usage:
    from dataclasses import dataclass
    from entitykit.entity import EntityId, Private, Record, Unique

    @dataclass
    class Account(Record):
        id: EntityId
        email: Unique[str]
        ssn: Private[str]
"""

from entitykit.entity.types import HIDDEN, Method
from entitykit.entity.contract import (
    Entity,
    Record,
    project,
    public_view,
    run_after,
    run_before,
    storage_name,
)
from entitykit.entity.ids import EntityId, InvalidIdError
from entitykit.entity.principal import AuthInfo
from entitykit.entity.wrappers import AuthGated, OptionallyPrivate, Private, Unique
from entitykit.entity.codec import decode, decode_record, encode

__all__ = [
    "HIDDEN",
    "AuthGated",
    "AuthInfo",
    "Entity",
    "EntityId",
    "InvalidIdError",
    "Method",
    "OptionallyPrivate",
    "Private",
    "Record",
    "Unique",
    "decode",
    "decode_record",
    "encode",
    "project",
    "public_view",
    "run_after",
    "run_before",
    "storage_name",
]
