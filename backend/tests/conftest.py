"""Shared fixtures: an in-memory document store and a wired service state."""

import httpx
import pytest

from entitykit.context import Context
from entitykit.entity import AuthInfo
from entitykit.persistence import DatabaseConfig, DocumentCollection, create_database_engine
from entitykit.repository import DocumentRepository, RepositoryRegistry
from entitykit.service.state import ServiceState

from sample_entities import Account, Note, Widget


@pytest.fixture
def engine():
    """A fresh in-memory SQLite engine per test."""
    engine = create_database_engine(DatabaseConfig(url="sqlite://"))
    yield engine
    engine.dispose()


@pytest.fixture
def make_registry(engine):
    """Factory: a frozen registry with a document repository per entity type."""

    def factory(*entity_types, freeze=True):
        registry = RepositoryRegistry()
        for entity_type in entity_types:
            collection = DocumentCollection(engine, entity_type.NAME)
            collection.ensure_table()
            registry.register(entity_type, DocumentRepository(entity_type, collection))
        if freeze:
            registry.freeze()
        return registry

    return factory


@pytest.fixture
def make_state():
    """Factory: a ServiceState around a registry."""

    def factory(registry, client=None, **kwargs):
        return ServiceState(
            name="test",
            registry=registry,
            client=client or httpx.AsyncClient(),
            **kwargs,
        )

    return factory


@pytest.fixture
def state(make_registry, make_state):
    return make_state(make_registry(Widget, Account, Note, AuthInfo))


@pytest.fixture
def context(state):
    return Context(state)


@pytest.fixture
def repo(state):
    """Shortcut: the repository of an entity type in the default state."""
    return state.registry.get
