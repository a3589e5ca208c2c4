"""Persistence layer - document collections and database configuration."""

from entitykit.persistence.collection import DocumentCollection
from entitykit.persistence.config import DatabaseConfig, create_database_engine

__all__ = ["DocumentCollection", "DatabaseConfig", "create_database_engine"]
