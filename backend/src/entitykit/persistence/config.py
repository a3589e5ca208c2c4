"""Database configuration and engine factory for the document store."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool


@dataclass
class DatabaseConfig:
    """Document store connection configuration.

    Supports sqlite:// and postgresql:// URL schemes.
    """

    url: str

    @classmethod
    def from_env(
        cls, base_path: Path | None = None, env: Mapping[str, str] | None = None
    ) -> DatabaseConfig:
        """Create config from environment variables (os.environ unless given).

        Resolution order:
        1. DATABASE_URL env var (standard)
        2. ENTITYKIT_DB_PATH env var (converted to sqlite:/// URL)
        3. Default: sqlite:///{base_path}/data/entitykit.db
        """
        env = os.environ if env is None else env
        url = env.get("DATABASE_URL")
        if url:
            return cls(url=url)

        db_path = env.get("ENTITYKIT_DB_PATH")
        if db_path:
            return cls(url=f"sqlite:///{db_path}")

        if base_path:
            return cls(url=f"sqlite:///{base_path / 'data' / 'entitykit.db'}")

        return cls(url="sqlite:///entitykit.db")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @property
    def is_memory(self) -> bool:
        return self.url in ("sqlite://", "sqlite:///:memory:")

    @property
    def sqlalchemy_url(self) -> str:
        """URL suitable for SQLAlchemy engine creation.

        Ensures postgresql:// URLs use the psycopg (v3) driver since
        the project depends on psycopg[binary], not psycopg2.
        """
        if self.url.startswith("postgresql://"):
            return self.url.replace("postgresql://", "postgresql+psycopg://", 1)
        return self.url


def create_database_engine(config: DatabaseConfig) -> Engine:
    """Create a SQLAlchemy engine for the configured store.

    In-memory SQLite shares a single connection so every thread sees the
    same database.

    Raises:
        ValueError: For unsupported URL schemes.
    """
    if config.is_memory:
        return create_engine(
            "sqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    if config.is_sqlite:
        # Ensure parent directory exists for SQLite databases
        sqlite_path = config.url.replace("sqlite:///", "")
        if sqlite_path:
            Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(
            config.sqlalchemy_url, connect_args={"check_same_thread": False}
        )

    if config.is_postgresql:
        return create_engine(config.sqlalchemy_url)

    raise ValueError(f"Unsupported database URL scheme: {config.url}")
