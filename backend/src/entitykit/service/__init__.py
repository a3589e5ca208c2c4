"""Service wiring: configuration, shared state and bootstrap."""

from entitykit.service.bootstrap import build_registry, build_service_state, resolve_entity_type
from entitykit.service.config import RepositoryConfig, ServiceConfig, validate_config_data
from entitykit.service.state import ServiceState

__all__ = [
    "RepositoryConfig",
    "ServiceConfig",
    "ServiceState",
    "build_registry",
    "build_service_state",
    "resolve_entity_type",
    "validate_config_data",
]
