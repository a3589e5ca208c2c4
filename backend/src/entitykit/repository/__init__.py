"""Repositories - typed CRUD over interchangeable backends."""

from entitykit.repository.base import InsertResult, InsertStatus, Repository
from entitykit.repository.document import DocumentRepository
from entitykit.repository.registry import RepositoryRegistry
from entitykit.repository.remote import RemoteRepository

__all__ = [
    "DocumentRepository",
    "InsertResult",
    "InsertStatus",
    "RemoteRepository",
    "Repository",
    "RepositoryRegistry",
]
