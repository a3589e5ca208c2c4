"""Error taxonomy shared by the entity, repository and HTTP layers.

- ConfigurationError: wiring problems (missing repository, missing field
  context). Always fatal to the operation.
- StorageError / TransportError: the backend could not complete the
  physical operation.
- MalformedInputError: the caller sent something that cannot be parsed.

Hook vetoes are not errors; they travel as the abort/keep booleans.
"""


class EntityKitError(Exception):
    """Base class for all entitykit errors."""

    code = "error"


class ConfigurationError(EntityKitError):
    """Raised when the service is wired incorrectly."""

    code = "configuration_error"


class RepositoryNotConfiguredError(ConfigurationError):
    """Raised when no repository is registered for an entity type."""

    code = "repository_not_configured"

    def __init__(self, entity_name: str):
        super().__init__(f"No repository configured for entity '{entity_name}'")
        self.entity_name = entity_name


class MissingFieldContextError(ConfigurationError):
    """Raised when a field wrapper needs the current field name but none is set."""

    code = "missing_field_context"


class StorageError(EntityKitError):
    """Raised when the document store fails."""

    code = "storage_error"


class TransportError(EntityKitError):
    """Raised when a remote service call fails or returns an unusable body."""

    code = "transport_error"


class MalformedInputError(EntityKitError):
    """Raised when caller input cannot be parsed."""

    code = "malformed_input"


class DecodeError(MalformedInputError):
    """Raised when a document does not match the shape of its entity type."""

    code = "decode_error"
