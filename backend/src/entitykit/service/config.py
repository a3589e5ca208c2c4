"""Service configuration: a YAML file validated against a JSON Schema,
overlaid with environment variables.

Example service.yaml:

    service: auth
    repositories:
      - entity: entitykit.auth.login:Login
        backend: document
        collection: auth
      - entity: entitykit.entity.principal:AuthInfo
        backend: remote
        origin: http://users:8080

Environment:
    DATABASE_URL / ENTITYKIT_DB_PATH  document store (see DatabaseConfig)
    ENTITYKIT_SECRET_KEY              JWT secret; authentication is off when unset
    ENTITYKIT_SERVICE_TOKEN           bearer token for outbound remote calls
    ENTITYKIT_ORIGIN_<NAME>           origin override for the remote entity NAME
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from entitykit.errors import ConfigurationError
from entitykit.persistence.config import DatabaseConfig

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).parent / "schemas" / "service.schema.json"
ORIGIN_ENV_PREFIX = "ENTITYKIT_ORIGIN_"

_validator: Draft202012Validator | None = None


def _get_validator() -> Draft202012Validator:
    global _validator
    if _validator is None:
        with _SCHEMA_PATH.open() as fh:
            schema = json.load(fh)
        Draft202012Validator.check_schema(schema)
        _validator = Draft202012Validator(schema)
    return _validator


def validate_config_data(data: Any) -> list[str]:
    """Validate a loaded config document.

    Returns:
        Human-readable error messages, empty when the document is valid
    """
    errors = sorted(_get_validator().iter_errors(data), key=lambda e: list(e.path))
    messages = []
    for error in errors:
        location = "/".join(str(p) for p in error.path)
        messages.append(f"{location}: {error.message}" if location else error.message)
    return messages


def load_config_file(path: Path) -> Any:
    """Read a YAML config file. Raises ConfigurationError if unreadable."""
    try:
        with Path(path).open() as fh:
            return yaml.safe_load(fh)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e


@dataclass
class RepositoryConfig:
    """One repository entry of the service file."""

    entity: str
    backend: str
    collection: str | None = None
    origin: str | None = None
    lenient_reads: bool = False

    @property
    def is_remote(self) -> bool:
        return self.backend == "remote"


@dataclass
class ServiceConfig:
    """Validated service configuration."""

    service: str
    repositories: list[RepositoryConfig] = field(default_factory=list)
    database: DatabaseConfig = field(default_factory=lambda: DatabaseConfig("sqlite://"))
    secret_key: str | None = None
    service_token: str | None = None
    origin_overrides: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: Path | str, env: Mapping[str, str] | None = None) -> ServiceConfig:
        """Load, validate and env-overlay a service file.

        Raises:
            ConfigurationError: If the file is unreadable or fails validation
        """
        path = Path(path)
        data = load_config_file(path)
        return cls.from_dict(data, env=env, base_path=path.parent, source=str(path))

    @classmethod
    def from_dict(
        cls,
        data: Any,
        env: Mapping[str, str] | None = None,
        base_path: Path | None = None,
        source: str = "<config>",
    ) -> ServiceConfig:
        errors = validate_config_data(data)
        if errors:
            raise ConfigurationError(
                f"Invalid service config {source}:\n  " + "\n  ".join(errors)
            )

        env = os.environ if env is None else env
        repositories = [RepositoryConfig(**entry) for entry in data["repositories"]]

        if env.get("DATABASE_URL") or env.get("ENTITYKIT_DB_PATH") or "database_url" not in data:
            database = DatabaseConfig.from_env(base_path, env=env)
        else:
            database = DatabaseConfig(url=data["database_url"])

        overrides = {
            key[len(ORIGIN_ENV_PREFIX):].lower(): value
            for key, value in env.items()
            if key.startswith(ORIGIN_ENV_PREFIX) and value
        }

        config = cls(
            service=data["service"],
            repositories=repositories,
            database=database,
            secret_key=env.get("ENTITYKIT_SECRET_KEY") or None,
            service_token=env.get("ENTITYKIT_SERVICE_TOKEN") or None,
            origin_overrides=overrides,
        )
        logger.debug(
            "Loaded config for %s from %s (%d repositories)",
            config.service,
            source,
            len(repositories),
        )
        return config

    def origin_for(self, entry: RepositoryConfig, entity_name: str) -> str | None:
        """Origin of a remote entry, honouring ENTITYKIT_ORIGIN_<NAME>."""
        return self.origin_overrides.get(entity_name.lower(), entry.origin)

