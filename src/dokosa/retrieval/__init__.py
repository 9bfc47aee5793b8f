"""
Retrieval module for dokosa.

This module provides:
- Chunking: Split files into overlapping line windows
- Filtering: Include/exclude glob patterns over paths
- Search: Rank indexed chunks by cosine similarity
"""

from .chunker import Chunker, ChunkingPolicy, chunk_lines
from .glob_filter import GlobPathFilter, GlobPathPattern
from .search import TopKCandidates, cosine_similarity, search_index

__all__ = [
    "Chunker",
    "ChunkingPolicy",
    "chunk_lines",
    "GlobPathFilter",
    "GlobPathPattern",
    "TopKCandidates",
    "cosine_similarity",
    "search_index",
]
