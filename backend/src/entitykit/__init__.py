"""entitykit: entities with field-level policy over interchangeable repositories."""

__version__ = "0.1.0"
