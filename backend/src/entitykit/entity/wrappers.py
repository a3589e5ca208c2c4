"""Field wrappers that add cross-cutting policy to a field value.

Each wrapper holds an inner value and delegates every operation to it,
overriding only the behaviour that defines its purpose:

- Unique: rejects an insert whose value already exists for the same field
- Private: never appears in a public projection
- OptionallyPrivate: appears in a projection only when marked visible
- AuthGated: checks its principals against the authorization repository

Wrappers compose, e.g. ``Unique[Private[str]]`` enforces uniqueness of a
value that is still hidden from public views. Wrappers stored as an object
(OptionallyPrivate, AuthGated) run their inner value's hooks under the
``value`` sub-field, so ``ctx.current_field`` always names the stored path.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from entitykit.context import MutationContext
from entitykit.entity.contract import Entity, encode, project, run_after, run_before
from entitykit.entity.ids import EntityId
from entitykit.entity.principal import AuthInfo
from entitykit.entity.types import HIDDEN, Method

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class Unique(Entity, Generic[V]):
    """A value that must be distinct across all stored records of the owning type."""

    value: V

    def to_public(self, ctx: MutationContext) -> Any:
        return project(self.value, ctx)

    async def before_execution(self, ctx: MutationContext, method: Method) -> bool:
        if await run_before(self.value, ctx, method):
            return True
        if method is not Method.INSERT:
            return False

        # The owning record type, not the wrapper, decides which store to query.
        repository = ctx.repository()
        field_path, stored = _match_key(self.value, ctx.require_field())

        existing = await repository.find_by_query({field_path: stored}, ctx.context)
        if existing is None:
            return False

        logger.debug(
            "Duplicate value for unique field '%s' on %s",
            field_path,
            ctx.entity_type.__name__,
        )
        ctx.reject(f"Value for unique field '{field_path}' already exists")
        return True

    async def after_execution(self, ctx: MutationContext, method: Method) -> bool:
        return await run_after(self.value, ctx, method)

    def to_document(self) -> Any:
        return encode(self.value)


@dataclass
class Private(Entity, Generic[V]):
    """A value that never appears in any public projection."""

    value: V

    def to_public(self, ctx: MutationContext) -> Any:
        return HIDDEN

    async def before_execution(self, ctx: MutationContext, method: Method) -> bool:
        return await run_before(self.value, ctx, method)

    async def after_execution(self, ctx: MutationContext, method: Method) -> bool:
        return await run_after(self.value, ctx, method)

    def to_document(self) -> Any:
        return encode(self.value)


@dataclass
class OptionallyPrivate(Entity, Generic[V]):
    """A value whose owner chooses whether it is publicly visible.

    Projects to the inner value's projection when visible, else None.
    """

    value: V
    visible: bool = False

    def to_public(self, ctx: MutationContext) -> Any:
        if not self.visible:
            return None
        return project(self.value, ctx)

    async def before_execution(self, ctx: MutationContext, method: Method) -> bool:
        with ctx.field("value"):
            return await run_before(self.value, ctx, method)

    async def after_execution(self, ctx: MutationContext, method: Method) -> bool:
        with ctx.field("value"):
            return await run_after(self.value, ctx, method)

    def to_document(self) -> dict[str, Any]:
        return {"value": encode(self.value), "visible": self.visible}


@dataclass
class AuthGated(Entity, Generic[V]):
    """A value granted to a set of authorization principals.

    Attributes:
        value: The wrapped value
        principals: IDs of AuthInfo records the value is granted to
    """

    value: V
    principals: list[EntityId] = field(default_factory=list)

    def to_public(self, ctx: MutationContext) -> Any:
        return project(self.value, ctx)

    async def before_execution(self, ctx: MutationContext, method: Method) -> bool:
        # Fail on missing wiring before anything is written.
        ctx.repository(AuthInfo)
        with ctx.field("value"):
            return await run_before(self.value, ctx, method)

    async def after_execution(self, ctx: MutationContext, method: Method) -> bool:
        # A missing AuthInfo repository is a wiring error, not a per-request outcome.
        auth_repository = ctx.repository(AuthInfo)

        if method in (Method.FIND, Method.FIND_BY_DOC):
            for principal_id in self.principals:
                principal = await auth_repository.find(principal_id, ctx.context)
                if principal is None:
                    logger.info(
                        "Suppressing %s: principal %s no longer exists",
                        ctx.entity_type.__name__,
                        principal_id,
                    )
                    return False

        with ctx.field("value"):
            return await run_after(self.value, ctx, method)

    def to_document(self) -> dict[str, Any]:
        return {
            "value": encode(self.value),
            "principals": [principal.to_hex() for principal in self.principals],
        }


def _match_key(value: Any, path: str) -> tuple[str, Any]:
    """Stored path and stored value identifying a (possibly wrapped) value."""
    while True:
        if isinstance(value, (Unique, Private)):
            value = value.value
        elif isinstance(value, (OptionallyPrivate, AuthGated)):
            value, path = value.value, f"{path}.value"
        else:
            return path, encode(value)
