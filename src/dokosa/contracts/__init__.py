"""
Data contracts for the dokosa index log and search results.
"""

from .index_contracts import (
    CHUNK_TYPE,
    REPOSITORY_TYPE,
    ChunkEntry,
    Entry,
    MatchedChunk,
    RepositoryEntry,
    parse_entry,
    serialize_entry,
)

__all__ = [
    "CHUNK_TYPE",
    "REPOSITORY_TYPE",
    "ChunkEntry",
    "Entry",
    "MatchedChunk",
    "RepositoryEntry",
    "parse_entry",
    "serialize_entry",
]
