"""Error types raised by the directory generator."""
from __future__ import annotations


class DirectoryError(RuntimeError):
    """Base class for generator failures."""


class DataAccessError(DirectoryError):
    """Raised when the data store is unreachable or rejects a query."""


class BuildError(DirectoryError):
    """Raised when a row has a shape the view-model builder cannot use."""


class WriteError(DirectoryError):
    """Raised when a generated artifact cannot be written to disk."""
