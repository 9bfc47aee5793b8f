"""
Core subpackage for dokosa.

Contains configuration types, exceptions, and logging utilities.
"""

from .types import (
    DokosaConfig,
    EmbedderConfig,
)
from .exceptions import (
    DokosaError,
    IndexLogError,
    IndexFormatError,
    IndexCorruptionError,
    EmbeddingProviderError,
    VcsError,
    PreconditionError,
    RepositoryAlreadyIndexedError,
    RepositoryNotIndexedError,
    ConfigError,
)

__all__ = [
    # Types
    "DokosaConfig",
    "EmbedderConfig",
    # Exceptions
    "DokosaError",
    "IndexLogError",
    "IndexFormatError",
    "IndexCorruptionError",
    "EmbeddingProviderError",
    "VcsError",
    "PreconditionError",
    "RepositoryAlreadyIndexedError",
    "RepositoryNotIndexedError",
    "ConfigError",
]
