"""Core types for the entity hook pipeline."""

from enum import Enum


class Method(Enum):
    """The repository operation a hook is running for."""

    INSERT = "insert"
    FIND = "find"
    FIND_BY_DOC = "find_by_doc"
    DELETE = "delete"


class _Hidden:
    """Marker produced by private values in a public projection.

    Containers (records, lists, dicts) drop it, so it never reaches a
    serialized view.
    """

    _instance: "_Hidden | None" = None

    def __new__(cls) -> "_Hidden":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "HIDDEN"

    def __bool__(self) -> bool:
        return False


HIDDEN = _Hidden()
