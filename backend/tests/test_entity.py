"""Tests for the entity contract: projection, hook ordering and field context."""

from dataclasses import dataclass, field
from typing import Any

import pytest

from entitykit.context import MutationContext
from entitykit.entity import (
    HIDDEN,
    AuthGated,
    Entity,
    EntityId,
    Method,
    OptionallyPrivate,
    Private,
    Record,
    Unique,
    project,
    public_view,
    storage_name,
)
from entitykit.errors import MissingFieldContextError, RepositoryNotConfiguredError

from sample_entities import Account, ContactOptions, Tier, Widget, make_account


# =============================================================================
# Recorder entities
# =============================================================================


class Recorder(Entity):
    """Records the field path each hook ran under."""

    def __init__(self, calls: list, abort: bool = False, keep: bool = True):
        self.calls = calls
        self.abort = abort
        self.keep = keep

    def to_public(self, ctx):
        return "recorded"

    async def before_execution(self, ctx, method):
        self.calls.append(("before", ctx.current_field))
        return self.abort

    async def after_execution(self, ctx, method):
        self.calls.append(("after", ctx.current_field))
        return self.keep


@dataclass
class Inner(Record):
    x: Any


@dataclass
class Recorded(Record):
    a: Any
    b: Any
    inner: Any
    c: Any = None


@dataclass
class RenamedField(Record):
    id: EntityId
    display: str = field(default="", metadata={"name": "displayName"})


class SampleThing(Record):
    pass


class Named(Record):
    NAME = "custom"


def recorded(calls, **overrides):
    recorders = {name: Recorder(calls) for name in ("a", "b", "x", "c")}
    recorders.update({name: Recorder(calls, **opts) for name, opts in overrides.items()})
    return Recorded(
        a=recorders["a"], b=recorders["b"], inner=Inner(x=recorders["x"]), c=recorders["c"]
    )


# =============================================================================
# Projection
# =============================================================================


class TestProjection:
    def test_private_field_is_absent(self, context):
        view = public_view(make_account(ssn="secret"), context)
        assert "ssn" not in view
        assert "secret" not in repr(view)

    def test_unique_private_composition_stays_hidden(self, context):
        ctx = MutationContext(context, Account)
        assert Unique(Private("secret")).to_public(ctx) is HIDDEN

    def test_private_inside_containers_is_dropped(self, context):
        ctx = MutationContext(context, Account)
        value = {"open": "yes", "closed": Private("no"), "list": ["a", Private("b")]}
        assert project(value, ctx) == {"open": "yes", "list": ["a"]}

    def test_optionally_private_follows_visibility(self, context):
        ctx = MutationContext(context, Account)
        assert OptionallyPrivate("ada", visible=True).to_public(ctx) == "ada"
        assert OptionallyPrivate("ada", visible=False).to_public(ctx) is None

    def test_optionally_private_wrapping_private_stays_hidden(self, context):
        ctx = MutationContext(context, Account)
        assert OptionallyPrivate(Private("x"), visible=True).to_public(ctx) is HIDDEN

    def test_full_account_view(self, context):
        account = make_account(
            email="ada@example.com",
            nickname=OptionallyPrivate("countess", visible=False),
            contacts={
                "phone": OptionallyPrivate("555", visible=True),
                "fax": OptionallyPrivate("556", visible=False),
            },
            options=ContactOptions(publish=True, tags=["math"]),
            tier=Tier.PRO,
        )

        view = public_view(account, context)

        assert view == {
            "id": account.id.to_hex(),
            "email": "ada@example.com",
            "nickname": None,
            "contacts": {"phone": "555", "fax": None},
            "options": {"publish": True, "tags": ["math"]},
            "tier": Tier.PRO,
            "referrer": None,
        }

    def test_auth_gated_projects_value_only(self, context):
        ctx = MutationContext(context, Account)
        gated = AuthGated("body", principals=[EntityId.generate()])
        assert gated.to_public(ctx) == "body"


# =============================================================================
# Hook pipeline ordering
# =============================================================================


class TestHookOrdering:
    @pytest.mark.asyncio
    async def test_before_visits_fields_in_declaration_order(self, context):
        calls = []
        ctx = MutationContext(context, Recorded)

        assert await recorded(calls).before_execution(ctx, Method.INSERT) is False
        assert calls == [
            ("before", "a"),
            ("before", "b"),
            ("before", "inner.x"),
            ("before", "c"),
        ]

    @pytest.mark.asyncio
    async def test_after_visits_fields_in_declaration_order(self, context):
        calls = []
        ctx = MutationContext(context, Recorded)

        assert await recorded(calls).after_execution(ctx, Method.FIND) is True
        assert [path for _, path in calls] == ["a", "b", "inner.x", "c"]

    @pytest.mark.asyncio
    async def test_abort_short_circuits_later_fields(self, context):
        calls = []
        ctx = MutationContext(context, Recorded)

        aborted = await recorded(calls, b={"abort": True}).before_execution(ctx, Method.INSERT)

        assert aborted is True
        assert calls == [("before", "a"), ("before", "b")]

    @pytest.mark.asyncio
    async def test_nested_abort_stops_outer_record(self, context):
        calls = []
        ctx = MutationContext(context, Recorded)

        aborted = await recorded(calls, x={"abort": True}).before_execution(ctx, Method.INSERT)

        assert aborted is True
        assert ("before", "c") not in calls

    @pytest.mark.asyncio
    async def test_refusal_short_circuits_later_fields(self, context):
        calls = []
        ctx = MutationContext(context, Recorded)

        kept = await recorded(calls, a={"keep": False}).after_execution(ctx, Method.FIND)

        assert kept is False
        assert calls == [("after", "a")]

    @pytest.mark.asyncio
    async def test_field_context_restored_after_hooks(self, context):
        ctx = MutationContext(context, Recorded)
        await recorded([]).before_execution(ctx, Method.INSERT)
        assert ctx.current_field is None

    @pytest.mark.asyncio
    async def test_each_field_visited_once_through_wrappers(self, context):
        calls = []
        ctx = MutationContext(context, Recorded)
        record = Recorded(
            a=Private(Recorder(calls)),
            b=OptionallyPrivate(Recorder(calls)),
            inner=Inner(x=[Recorder(calls), {"k": Recorder(calls)}]),
        )

        await record.before_execution(ctx, Method.DELETE)

        assert calls == [
            ("before", "a"),
            ("before", "b.value"),
            ("before", "inner.x"),
            ("before", "inner.x.k"),
        ]

    @pytest.mark.asyncio
    async def test_leaves_never_abort(self, context):
        ctx = MutationContext(context, Account)
        account = make_account()
        assert await account.before_execution(ctx, Method.FIND) is False
        assert await account.after_execution(ctx, Method.FIND) is True


# =============================================================================
# Mutation context
# =============================================================================


class TestMutationContext:
    def test_field_nesting(self, context):
        ctx = MutationContext(context, Account)
        with ctx.field("options") as outer:
            assert outer == "options"
            with ctx.field("publish") as inner:
                assert inner == "options.publish"
            assert ctx.current_field == "options"
        assert ctx.current_field is None

    def test_require_field_without_context(self, context):
        ctx = MutationContext(context, Account)
        with pytest.raises(MissingFieldContextError):
            ctx.require_field()

    def test_reject_keeps_first_reason(self, context):
        ctx = MutationContext(context, Account)
        ctx.reject("first")
        ctx.reject("second")
        assert ctx.abort_reason == "first"

    def test_repository_defaults_to_root_type(self, context, state):
        ctx = MutationContext(context, Widget)
        assert ctx.repository() is state.registry.get(Widget)


class TestUniqueWiring:
    @pytest.mark.asyncio
    async def test_unique_without_field_context_is_a_configuration_error(self, context):
        ctx = MutationContext(context, Widget)
        with pytest.raises(MissingFieldContextError):
            await Unique("A-1").before_execution(ctx, Method.INSERT)

    @pytest.mark.asyncio
    async def test_unique_without_repository_is_a_configuration_error(self, context):
        ctx = MutationContext(context, Recorded)
        with ctx.field("a"):
            with pytest.raises(RepositoryNotConfiguredError):
                await Unique("A-1").before_execution(ctx, Method.INSERT)

    @pytest.mark.asyncio
    async def test_unique_only_checks_on_insert(self, context):
        ctx = MutationContext(context, Recorded)
        with ctx.field("a"):
            assert await Unique("A-1").before_execution(ctx, Method.DELETE) is False


# =============================================================================
# Record naming
# =============================================================================


class TestRecordNaming:
    def test_name_defaults_to_snake_case(self):
        assert SampleThing.NAME == "sample_thing"
        assert Widget.NAME == "widget"

    def test_explicit_name_wins(self):
        assert Named.NAME == "custom"

    def test_storage_names(self):
        fields = {f.name: storage_name(f) for f in RenamedField.__dataclass_fields__.values()}
        assert fields == {"id": "_id", "display": "displayName"}
