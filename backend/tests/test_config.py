"""Tests for service configuration and bootstrap."""

import textwrap

import pytest

from entitykit.auth import Login
from entitykit.entity import AuthInfo
from entitykit.errors import ConfigurationError
from entitykit.persistence import DatabaseConfig
from entitykit.repository import DocumentRepository, RemoteRepository
from entitykit.service import (
    ServiceConfig,
    build_service_state,
    resolve_entity_type,
    validate_config_data,
)

LOGIN = "entitykit.auth.login:Login"
AUTH_INFO = "entitykit.entity.principal:AuthInfo"


def config_data(**overrides):
    data = {
        "service": "auth",
        "database_url": "sqlite://",
        "repositories": [
            {"entity": LOGIN, "backend": "document", "collection": "logins"},
            {"entity": AUTH_INFO, "backend": "remote", "origin": "http://users:8080"},
        ],
    }
    data.update(overrides)
    return data


# =============================================================================
# Schema validation
# =============================================================================


class TestValidation:
    def test_valid(self):
        assert validate_config_data(config_data()) == []

    def test_missing_service(self):
        data = config_data()
        del data["service"]
        errors = validate_config_data(data)
        assert any("service" in error for error in errors)

    def test_unknown_backend(self):
        data = config_data(repositories=[{"entity": LOGIN, "backend": "mongo"}])
        assert validate_config_data(data)

    def test_remote_requires_origin(self):
        data = config_data(repositories=[{"entity": AUTH_INFO, "backend": "remote"}])
        assert validate_config_data(data)

    def test_document_rejects_origin(self):
        data = config_data(
            repositories=[{"entity": LOGIN, "backend": "document", "origin": "http://x"}]
        )
        assert validate_config_data(data)

    def test_entity_path_format(self):
        data = config_data(repositories=[{"entity": "Login", "backend": "document"}])
        assert validate_config_data(data)

    def test_unknown_keys_rejected(self):
        assert validate_config_data(config_data(port=8000))

    def test_invalid_config_raises(self):
        with pytest.raises(ConfigurationError, match="Invalid service config"):
            ServiceConfig.from_dict({"service": "auth"}, env={})


# =============================================================================
# Environment overlay
# =============================================================================


class TestEnvironment:
    def test_defaults_from_file(self):
        config = ServiceConfig.from_dict(config_data(), env={})
        assert config.service == "auth"
        assert config.database == DatabaseConfig("sqlite://")
        assert config.secret_key is None
        assert config.service_token is None
        assert [entry.backend for entry in config.repositories] == ["document", "remote"]

    def test_database_url_env_wins(self):
        config = ServiceConfig.from_dict(
            config_data(), env={"DATABASE_URL": "postgresql://db/auth"}
        )
        assert config.database.sqlalchemy_url == "postgresql+psycopg://db/auth"

    def test_db_path_env(self, tmp_path):
        config = ServiceConfig.from_dict(
            config_data(), env={"ENTITYKIT_DB_PATH": str(tmp_path / "auth.db")}
        )
        assert config.database.url == f"sqlite:///{tmp_path / 'auth.db'}"

    def test_default_database_beside_config(self, tmp_path):
        data = config_data()
        del data["database_url"]
        config = ServiceConfig.from_dict(data, env={}, base_path=tmp_path)
        assert config.database.url == f"sqlite:///{tmp_path / 'data' / 'entitykit.db'}"

    def test_secrets(self):
        config = ServiceConfig.from_dict(
            config_data(),
            env={"ENTITYKIT_SECRET_KEY": "s" * 32, "ENTITYKIT_SERVICE_TOKEN": "tok"},
        )
        assert config.secret_key == "s" * 32
        assert config.service_token == "tok"

    def test_origin_override(self):
        config = ServiceConfig.from_dict(
            config_data(), env={"ENTITYKIT_ORIGIN_AUTH_INFO": "http://localhost:9000"}
        )
        remote = config.repositories[1]
        assert config.origin_for(remote, "auth_info") == "http://localhost:9000"
        assert config.origin_for(remote, "other") == "http://users:8080"


class TestFromYaml:
    def test_loads_file(self, tmp_path):
        path = tmp_path / "service.yaml"
        path.write_text(
            textwrap.dedent(
                f"""\
                service: auth
                database_url: "sqlite://"
                repositories:
                  - entity: {LOGIN}
                    backend: document
                """
            )
        )
        config = ServiceConfig.from_yaml(path, env={})
        assert config.repositories[0].entity == LOGIN
        assert config.repositories[0].collection is None

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "service.yaml"
        path.write_text("service: [unclosed")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ServiceConfig.from_yaml(path, env={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            ServiceConfig.from_yaml(tmp_path / "absent.yaml", env={})


# =============================================================================
# Bootstrap
# =============================================================================


class TestResolveEntityType:
    def test_resolves_record(self):
        assert resolve_entity_type(LOGIN) is Login

    def test_missing_module(self):
        with pytest.raises(ConfigurationError, match="Cannot import"):
            resolve_entity_type("entitykit.nope:Login")

    def test_missing_class(self):
        with pytest.raises(ConfigurationError, match="no attribute"):
            resolve_entity_type("entitykit.auth.login:Nope")

    def test_not_a_record(self):
        with pytest.raises(ConfigurationError, match="not a Record"):
            resolve_entity_type("entitykit.auth.login:LoginService")

    def test_bad_format(self):
        with pytest.raises(ConfigurationError):
            resolve_entity_type("entitykit.auth.login")


class TestBuildServiceState:
    @pytest.mark.asyncio
    async def test_wires_registry(self):
        config = ServiceConfig.from_dict(
            config_data(), env={"ENTITYKIT_SECRET_KEY": "s" * 32}
        )
        state = build_service_state(config)
        try:
            assert state.registry.frozen
            logins = state.registry.get(Login)
            assert isinstance(logins, DocumentRepository)
            assert logins.collection.name == "logins"
            auth_info = state.registry.get(AuthInfo)
            assert isinstance(auth_info, RemoteRepository)
            assert auth_info.origin == "http://users:8080"
            assert state.jwt_service is not None
        finally:
            await state.aclose()

    @pytest.mark.asyncio
    async def test_remote_only_service_has_no_engine(self):
        data = config_data(
            repositories=[{"entity": AUTH_INFO, "backend": "remote", "origin": "http://u"}]
        )
        state = build_service_state(ServiceConfig.from_dict(data, env={}))
        try:
            assert state.engine is None
            assert state.jwt_service is None
        finally:
            await state.aclose()

    def test_collection_defaults_to_entity_name(self):
        data = config_data(repositories=[{"entity": LOGIN, "backend": "document"}])
        state = build_service_state(ServiceConfig.from_dict(data, env={}))
        assert state.registry.get(Login).collection.name == "login"

    def test_unsupported_database(self):
        data = config_data(database_url="mysql://db/auth")
        with pytest.raises(ConfigurationError, match="Unsupported"):
            build_service_state(ServiceConfig.from_dict(data, env={}))

    def test_duplicate_entity(self):
        data = config_data(
            repositories=[
                {"entity": LOGIN, "backend": "document"},
                {"entity": LOGIN, "backend": "remote", "origin": "http://x"},
            ]
        )
        with pytest.raises(ConfigurationError, match="already registered"):
            build_service_state(ServiceConfig.from_dict(data, env={}))
