"""The Entity contract and the Record base class.

Every persisted record and every field wrapper implements three operations:

- to_public(ctx): the projection that is safe to expose externally
- before_execution(ctx, method): runs before the storage effect; True aborts
- after_execution(ctx, method): runs after the storage effect; False hides
  the result from the caller

to_document() gives the stored form used by the document codec.

Values that are not entities (strings, numbers, lists, dicts) take part in
the same protocol through project(), run_before(), run_after() and encode():
leaves never abort, always keep and project and store as themselves;
containers recurse into their items in order.
"""

from __future__ import annotations

import abc
import dataclasses
import re
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from entitykit.context import MutationContext
from entitykit.entity.types import HIDDEN, Method

if TYPE_CHECKING:
    from entitykit.context import Context


class Entity(abc.ABC):
    """Interface shared by records, field wrappers and identifiers."""

    @abc.abstractmethod
    def to_public(self, ctx: MutationContext) -> Any:
        """Return the public projection of this value."""

    @abc.abstractmethod
    async def before_execution(self, ctx: MutationContext, method: Method) -> bool:
        """Return True to abort the operation before anything is written."""

    @abc.abstractmethod
    async def after_execution(self, ctx: MutationContext, method: Method) -> bool:
        """Return False to suppress the result of the operation."""

    def to_document(self) -> Any:
        """Return the stored (JSON-compatible) form of this value."""
        raise TypeError(f"{type(self).__name__} has no stored form")


def project(value: Any, ctx: MutationContext) -> Any:
    """Project any field value, dropping hidden items from containers."""
    if isinstance(value, Entity):
        return value.to_public(ctx)
    if isinstance(value, (list, tuple)):
        items = (project(item, ctx) for item in value)
        return [item for item in items if item is not HIDDEN]
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            projected = project(item, ctx)
            if projected is not HIDDEN:
                result[key] = projected
        return result
    return value


def encode(value: Any) -> Any:
    """Encode any field value into its stored document form."""
    if isinstance(value, Entity):
        return value.to_document()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [encode(item) for item in value]
    if isinstance(value, dict):
        return {str(key): encode(item) for key, item in value.items()}
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    raise TypeError(f"Cannot encode value of type {type(value).__name__}")


async def run_before(value: Any, ctx: MutationContext, method: Method) -> bool:
    """Run the pre-execution hook of any field value. Stops at the first abort."""
    if isinstance(value, Entity):
        return await value.before_execution(ctx, method)
    if isinstance(value, (list, tuple)):
        for item in value:
            if await run_before(item, ctx, method):
                return True
        return False
    if isinstance(value, dict):
        for key, item in value.items():
            with ctx.field(str(key)):
                if await run_before(item, ctx, method):
                    return True
        return False
    return False


async def run_after(value: Any, ctx: MutationContext, method: Method) -> bool:
    """Run the post-execution hook of any field value. Stops at the first refusal."""
    if isinstance(value, Entity):
        return await value.after_execution(ctx, method)
    if isinstance(value, (list, tuple)):
        for item in value:
            if not await run_after(item, ctx, method):
                return False
        return True
    if isinstance(value, dict):
        for key, item in value.items():
            with ctx.field(str(key)):
                if not await run_after(item, ctx, method):
                    return False
        return True
    return True


def storage_name(field: dataclasses.Field) -> str:
    """Key under which a record field is stored.

    ``id`` is stored as ``_id``; ``field(metadata={"name": ...})`` overrides.
    """
    if "name" in field.metadata:
        return field.metadata["name"]
    if field.name == "id":
        return "_id"
    return field.name


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclasses.dataclass
class Record(Entity):
    """Base class for persisted records and nested sub-documents.

    Subclasses are dataclasses. Hooks visit fields in declaration order with
    ``ctx.current_field`` set to the field's dotted storage path, so wrappers
    nested at any depth know which field they guard.

    Example:
        @dataclass
        class Widget(Record):
            NAME = "widget"

            id: EntityId
            sku: Unique[str]
    """

    NAME: ClassVar[str]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "NAME" not in cls.__dict__:
            cls.NAME = _snake_case(cls.__name__)

    def to_public(self, ctx: MutationContext) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for field in dataclasses.fields(self):
            projected = project(getattr(self, field.name), ctx)
            if projected is not HIDDEN:
                result[field.name] = projected
        return result

    async def before_execution(self, ctx: MutationContext, method: Method) -> bool:
        for field in dataclasses.fields(self):
            with ctx.field(storage_name(field)):
                if await run_before(getattr(self, field.name), ctx, method):
                    return True
        return False

    async def after_execution(self, ctx: MutationContext, method: Method) -> bool:
        for field in dataclasses.fields(self):
            with ctx.field(storage_name(field)):
                if not await run_after(getattr(self, field.name), ctx, method):
                    return False
        return True

    def to_document(self) -> dict[str, Any]:
        return {
            storage_name(field): encode(getattr(self, field.name))
            for field in dataclasses.fields(self)
        }


def public_view(entity: Record, context: Context) -> Any:
    """Project a record for external consumption."""
    view = entity.to_public(MutationContext(context, type(entity)))
    return None if view is HIDDEN else view
