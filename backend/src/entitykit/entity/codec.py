"""Document encoding for records and field wrappers.

encode() turns a record into a JSON-compatible document by way of each
value's to_document(); decode() rebuilds typed values from a document using
the record's type annotations.

Stored shapes:
    EntityId              -> "24-char hex"
    Unique[V], Private[V] -> encoding of V
    OptionallyPrivate[V]  -> {"value": V, "visible": bool}
    AuthGated[V]          -> {"value": V, "principals": ["hex", ...]}
    Record                -> {storage_name: value, ...}
"""

import dataclasses
import functools
import types
import typing
from enum import Enum
from typing import Any, TypeVar, Union, get_args, get_origin

from entitykit.entity.contract import Record, encode, storage_name
from entitykit.entity.ids import EntityId, InvalidIdError
from entitykit.entity.wrappers import AuthGated, OptionallyPrivate, Private, Unique
from entitykit.errors import DecodeError

T = TypeVar("T")

_TRANSPARENT = (Unique, Private)


@functools.cache
def _type_hints(cls: type) -> dict[str, Any]:
    return typing.get_type_hints(cls)


def decode_record(cls: type[T], raw: Any) -> T:
    """Build a record of type cls from a stored document."""
    if not isinstance(raw, dict):
        raise DecodeError(
            f"Expected an object for {cls.__name__}, got {type(raw).__name__}"
        )

    hints = _type_hints(cls)
    kwargs: dict[str, Any] = {}
    for field in dataclasses.fields(cls):
        if not field.init:
            continue
        key = storage_name(field)
        hint = hints.get(field.name, Any)
        if key in raw:
            kwargs[field.name] = decode(hint, raw[key], path=f"{cls.__name__}.{key}")
        elif key == "_id" and hint is EntityId:
            # Documents without an id get one, as the store would on insert.
            kwargs[field.name] = EntityId.generate()
        elif (
            field.default is dataclasses.MISSING
            and field.default_factory is dataclasses.MISSING
        ):
            raise DecodeError(f"Missing field '{key}' for {cls.__name__}")

    return cls(**kwargs)


def decode(tp: Any, raw: Any, path: str = "") -> Any:
    """Decode a stored value according to the annotation tp."""
    where = f" at '{path}'" if path else ""

    if tp is Any or isinstance(tp, TypeVar):
        return raw

    origin = get_origin(tp)
    args = get_args(tp)

    if origin is Union or origin is types.UnionType:
        if raw is None:
            return None
        options = [arg for arg in args if arg is not type(None)]
        if len(options) != 1:
            raise TypeError(f"Unsupported union annotation {tp!r}")
        return decode(options[0], raw, path)

    wrapper = origin if origin is not None else tp
    inner = args[0] if args else Any

    if wrapper in _TRANSPARENT:
        return wrapper(decode(inner, raw, path))

    if wrapper is OptionallyPrivate:
        if not isinstance(raw, dict) or "value" not in raw:
            raise DecodeError(f"Expected {{'value', 'visible'}} object{where}")
        return OptionallyPrivate(
            decode(inner, raw["value"], path), visible=bool(raw.get("visible", False))
        )

    if wrapper is AuthGated:
        if not isinstance(raw, dict) or "value" not in raw:
            raise DecodeError(f"Expected {{'value', 'principals'}} object{where}")
        return AuthGated(
            decode(inner, raw["value"], path),
            principals=[
                decode(EntityId, item, path) for item in raw.get("principals") or []
            ],
        )

    if origin in (list, tuple):
        if not isinstance(raw, list):
            raise DecodeError(f"Expected a list{where}, got {type(raw).__name__}")
        return [decode(inner, item, path) for item in raw]

    if origin is dict:
        if not isinstance(raw, dict):
            raise DecodeError(f"Expected an object{where}, got {type(raw).__name__}")
        value_type = args[1] if len(args) == 2 else Any
        return {
            key: decode(value_type, item, f"{path}.{key}" if path else key)
            for key, item in raw.items()
        }

    if tp is EntityId:
        if isinstance(raw, EntityId):
            return raw
        try:
            return EntityId.from_hex(raw)
        except InvalidIdError as exc:
            raise DecodeError(f"{exc}{where}") from exc

    if isinstance(tp, type) and issubclass(tp, Record):
        return decode_record(tp, raw)

    if isinstance(tp, type) and issubclass(tp, Enum):
        try:
            return tp(raw)
        except ValueError as exc:
            raise DecodeError(f"{exc}{where}") from exc

    if tp is float:
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return float(raw)
        raise DecodeError(f"Expected a number{where}, got {type(raw).__name__}")

    if tp in (str, int, bool):
        if isinstance(raw, tp) and not (tp is int and isinstance(raw, bool)):
            return raw
        raise DecodeError(f"Expected {tp.__name__}{where}, got {type(raw).__name__}")

    return raw
