"""
Index-changing operations for dokosa.

This module provides:
- Add / Remove / List: manage the repositories recorded in an index log
- Sync: re-embed files changed since each repository's recorded commit
- Reports: results of the above, printable or serializable
"""

from .indexer import FILE_ERRORS, FileIndexer
from .reports import AddReport, FileSkip, RemoveReport, RepositorySummary, SyncReport
from .repository_ops import (
    add_repository,
    list_repositories,
    remove_repository,
    resolve_indexed_path,
)
from .sync_engine import SyncEngine

__all__ = [
    "FILE_ERRORS",
    "FileIndexer",
    "AddReport",
    "FileSkip",
    "RemoveReport",
    "RepositorySummary",
    "SyncReport",
    "add_repository",
    "list_repositories",
    "remove_repository",
    "resolve_indexed_path",
    "SyncEngine",
]
