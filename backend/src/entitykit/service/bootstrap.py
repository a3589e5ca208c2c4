"""Build a ServiceState from a ServiceConfig."""

import importlib
import logging

import httpx
from sqlalchemy.engine import Engine

from entitykit.auth.jwt_service import JWTService
from entitykit.entity.contract import Record
from entitykit.errors import ConfigurationError
from entitykit.persistence.collection import DocumentCollection
from entitykit.persistence.config import create_database_engine
from entitykit.repository.document import DocumentRepository
from entitykit.repository.registry import RepositoryRegistry
from entitykit.repository.remote import RemoteRepository
from entitykit.service.config import ServiceConfig
from entitykit.service.state import ServiceState

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def resolve_entity_type(path: str) -> type[Record]:
    """Import a record class from a 'package.module:Class' path.

    Raises:
        ConfigurationError: If the module or class cannot be found, or the
            class is not a Record
    """
    module_name, _, class_name = path.partition(":")
    if not module_name or not class_name:
        raise ConfigurationError(f"Entity path must look like 'module:Class', got {path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import module '{module_name}': {e}") from e

    entity_type = getattr(module, class_name, None)
    if entity_type is None:
        raise ConfigurationError(f"Module '{module_name}' has no attribute '{class_name}'")
    if not (isinstance(entity_type, type) and issubclass(entity_type, Record)):
        raise ConfigurationError(f"{path} is not a Record subclass")
    return entity_type


def build_registry(config: ServiceConfig, engine: Engine | None = None) -> RepositoryRegistry:
    """Create every configured repository and return the frozen registry.

    Local collections get their tables created here.
    """
    registry = RepositoryRegistry()

    for entry in config.repositories:
        entity_type = resolve_entity_type(entry.entity)

        if entry.is_remote:
            origin = config.origin_for(entry, entity_type.NAME)
            repository = RemoteRepository(
                entity_type, origin, lenient_reads=entry.lenient_reads
            )
        else:
            if engine is None:
                raise ConfigurationError(
                    f"No database engine for document repository of '{entity_type.NAME}'"
                )
            collection = DocumentCollection(engine, entry.collection or entity_type.NAME)
            collection.ensure_table()
            repository = DocumentRepository(entity_type, collection)

        registry.register(entity_type, repository)
        logger.info("%s: %s served by %r", config.service, entity_type.NAME, repository)

    registry.freeze()
    return registry


def build_service_state(
    config: ServiceConfig, client: httpx.AsyncClient | None = None
) -> ServiceState:
    """Wire up the whole service: engine, registry, HTTP client and JWT.

    Args:
        config: Validated service configuration
        client: Outbound HTTP client; a default one is created when omitted
    """
    engine = None
    if any(not entry.is_remote for entry in config.repositories):
        try:
            engine = create_database_engine(config.database)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    registry = build_registry(config, engine)

    if config.secret_key is None:
        logger.warning("ENTITYKIT_SECRET_KEY is not set; authentication is disabled")
    jwt_service = JWTService(config.secret_key) if config.secret_key else None

    return ServiceState(
        name=config.service,
        registry=registry,
        client=client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT),
        jwt_service=jwt_service,
        service_token=config.service_token,
        engine=engine,
    )
