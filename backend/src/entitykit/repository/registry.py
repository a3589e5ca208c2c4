"""Repository registry: entity type -> configured repository.

Populated once at startup, then frozen and shared read-only by every
request.
"""

import logging
from types import MappingProxyType
from typing import Any, TypeVar

from entitykit.entity.contract import Record
from entitykit.errors import ConfigurationError, RepositoryNotConfiguredError
from entitykit.repository.base import Repository

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Record)


class RepositoryRegistry:
    """Type-indexed map of repositories.

    Example:
        registry = RepositoryRegistry()
        registry.register(Login, DocumentRepository(Login, collection))
        registry.freeze()

        repository = registry.get(Login)
    """

    def __init__(self) -> None:
        self._by_type: dict[type, Any] = {}
        self._by_name: dict[str, type] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, entity_type: type[T], repository: Repository[T]) -> "RepositoryRegistry":
        """Register the repository serving an entity type.

        Raises:
            ConfigurationError: If the registry is frozen, the type is not a
                Record, or the type or its NAME is already registered
        """
        if self._frozen:
            raise ConfigurationError("Repository registry is frozen")
        if not (isinstance(entity_type, type) and issubclass(entity_type, Record)):
            raise ConfigurationError(f"{entity_type!r} is not a Record type")
        if not isinstance(repository, Repository):
            raise ConfigurationError(f"{repository!r} does not implement Repository")
        if entity_type in self._by_type:
            raise ConfigurationError(
                f"A repository is already registered for '{entity_type.__name__}'"
            )
        if entity_type.NAME in self._by_name:
            raise ConfigurationError(
                f"Entity name '{entity_type.NAME}' is already registered"
            )

        self._by_type[entity_type] = repository
        self._by_name[entity_type.NAME] = entity_type
        logger.debug("Registered %r for %s", repository, entity_type.NAME)
        return self

    def freeze(self) -> None:
        """Make the registry read-only. Idempotent."""
        if self._frozen:
            return
        self._by_type = MappingProxyType(dict(self._by_type))  # type: ignore[assignment]
        self._by_name = MappingProxyType(dict(self._by_name))  # type: ignore[assignment]
        self._frozen = True

    def get(self, entity_type: type[T]) -> Repository[T]:
        """Get the repository for an entity type.

        Raises:
            RepositoryNotConfiguredError: If the type is not registered
        """
        try:
            return self._by_type[entity_type]
        except KeyError:
            name = getattr(entity_type, "NAME", getattr(entity_type, "__name__", repr(entity_type)))
            raise RepositoryNotConfiguredError(name) from None

    def get_by_name(self, name: str) -> Repository:
        """Get a repository by entity NAME."""
        entity_type = self._by_name.get(name)
        if entity_type is None:
            raise RepositoryNotConfiguredError(name)
        return self._by_type[entity_type]

    def is_registered(self, entity_type: type) -> bool:
        return entity_type in self._by_type

    def list_registered(self) -> list[type]:
        """Registered entity types in registration order."""
        return list(self._by_type)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._by_type

    def __len__(self) -> int:
        return len(self._by_type)
