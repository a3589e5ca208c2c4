"""Request and mutation contexts.

Context is built once per inbound request and wraps the shared, read-only
ServiceState together with the caller's authorization. MutationContext is
built fresh for every repository call and carries the scratch state that
field wrappers need while hooks run.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from entitykit.errors import MissingFieldContextError

if TYPE_CHECKING:
    from entitykit.auth.types import AuthContext
    from entitykit.repository.base import Repository
    from entitykit.service.state import ServiceState


@dataclass
class Context:
    """Per-request view of the service.

    Attributes:
        state: Process-wide service state (registry, HTTP client)
        auth: The caller's authorization, None for anonymous requests
        token: The caller's raw bearer token, forwarded to remote services
    """

    state: ServiceState
    auth: AuthContext | None = None
    token: str | None = None

    def repository(self, entity_type: type) -> Repository:
        """Resolve the repository registered for an entity type.

        Raises:
            RepositoryNotConfiguredError: If the type was never registered
        """
        return self.state.registry.get(entity_type)


@dataclass
class MutationContext:
    """Scratch state for one repository call.

    Attributes:
        context: The request context (path back to the registry)
        entity_type: The root record type the call operates on
        current_field: Dotted storage path of the field being processed
        abort_reason: Reason recorded by the first wrapper that aborted
    """

    context: Context
    entity_type: type
    current_field: str | None = None
    abort_reason: str | None = None

    @contextmanager
    def field(self, name: str) -> Iterator[str]:
        """Descend into a named field for the duration of the block."""
        previous = self.current_field
        self.current_field = f"{previous}.{name}" if previous else name
        try:
            yield self.current_field
        finally:
            self.current_field = previous

    def require_field(self) -> str:
        if not self.current_field:
            raise MissingFieldContextError(
                f"No current field set while processing '{self.entity_type.__name__}'"
            )
        return self.current_field

    def repository(self, entity_type: type | None = None) -> Any:
        """Resolve a repository; defaults to the root entity type's own."""
        return self.context.repository(entity_type or self.entity_type)

    def reject(self, reason: str) -> None:
        if self.abort_reason is None:
            self.abort_reason = reason
