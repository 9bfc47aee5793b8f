"""
dokosa - Semantic search over git repositories.

Files tracked by git are split into overlapping line windows, embedded, and
recorded in a single append-only index log. Queries are embedded the same way
and ranked by cosine similarity. ``dokosa sync`` re-embeds only the files
changed since each repository's recorded commit.

Key components:
- contracts/: Index log records and search results
- core/: Configuration types, exceptions, and logging utilities
- storage/: The index log (appends and crash-safe rewrites)
- retrieval/: Chunking, glob path filtering, and similarity search
- providers/: Embedding provider clients (OpenAI, Ollama)
- vcs/: Git adapter
- operations/: Add, remove, list, and sync
- config/: Configuration file and environment loading
"""

__version__ = "0.1.0"
