"""
Sync engine for bringing indexed repositories up to their current commit.

Each repository section of the index log is reconciled against git:
- repositories that are no longer valid git checkouts are dropped
- unchanged repositories are copied as they are
- changed repositories get a new commit, fresh chunks for updated files,
  and lose the chunks of updated and removed files

The result is written through ``IndexLog.rewrite`` so the log on disk only
changes when the whole pass succeeds.
"""

import dataclasses
import logging
from contextlib import nullcontext
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Set

from ..contracts.index_contracts import ChunkEntry, RepositoryEntry
from ..core.exceptions import IndexCorruptionError, VcsError
from ..providers.base import Embedder
from ..retrieval.chunker import ChunkingPolicy
from ..retrieval.glob_filter import GlobPathFilter
from ..storage.index_log import IndexLog, StagingIndexLog
from ..vcs.git import GitRepository
from .indexer import FILE_ERRORS, FileIndexer
from .repository_ops import VcsFactory
from .reports import FileSkip, SyncReport


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class _SectionState:
    """What to do with the chunks of the repository section being copied."""
    drop_all: bool = False
    stale_paths: Set[str] = dataclasses.field(default_factory=set)


class SyncEngine:
    """
    Incremental re-indexing of every repository in an index log.

    Supports:
    - Dropping sections of repositories that no longer exist
    - Re-embedding only files changed since the recorded commit
    - Dry-run mode (no writes, no embedding calls)
    """

    def __init__(
        self,
        index_log: IndexLog,
        embedder: Optional[Embedder] = None,
        vcs_factory: VcsFactory = GitRepository,
    ):
        """
        Initialize the sync engine.

        Args:
            index_log: Index log to reconcile
            embedder: Embedding provider (not needed for dry runs)
            vcs_factory: Builds the git adapter for a repository path
        """
        self.index_log = index_log
        self.embedder = embedder
        self.vcs_factory = vcs_factory

    def sync(self, dry_run: bool = False) -> SyncReport:
        """
        Reconcile every repository section with its working tree.

        Args:
            dry_run: If True, report what would change without writing or embedding

        Returns:
            SyncReport with results

        Raises:
            IndexFormatError: If the log contains a malformed line
            IndexCorruptionError: If a chunk appears before any repository
            VcsError: If git fails on a valid repository
            IndexLogError: If the rewritten log cannot be written
        """
        if not dry_run and self.embedder is None:
            raise ValueError("An embedder is required unless dry_run is set")

        report = SyncReport(dry_run=dry_run, started_at=datetime.now(timezone.utc))
        indexer = FileIndexer(self.embedder) if self.embedder is not None else None

        rewrite = nullcontext(None) if dry_run else self.index_log.rewrite()
        with rewrite as staged:
            state: Optional[_SectionState] = None

            for entry, text in self.index_log.raw_entries():
                if isinstance(entry, RepositoryEntry):
                    state = self._sync_repository(entry, text, staged, indexer, report)
                    continue

                if state is None:
                    raise IndexCorruptionError(
                        f"{self.index_log.path}: chunk entry for {entry.path!r} "
                        f"appears before any repository entry",
                        path=str(self.index_log.path),
                    )
                self._copy_chunk(entry, text, state, staged, report)

        report.completed_at = datetime.now(timezone.utc)
        logger.info(
            f"Sync complete: {len(report.repositories_updated)} updated, "
            f"{len(report.repositories_unchanged)} unchanged, "
            f"{len(report.repositories_removed)} removed"
        )
        return report

    def _sync_repository(
        self,
        repository: RepositoryEntry,
        text: str,
        staged: Optional[StagingIndexLog],
        indexer: Optional[FileIndexer],
        report: SyncReport,
    ) -> _SectionState:
        """Write the (possibly updated) repository record and its fresh chunks."""
        root = repository.path
        log_extra = {"repository": root}

        try:
            git = self.vcs_factory(root)
        except VcsError as e:
            logger.warning(f"Not a git repository any more, dropping it: {e}", extra=log_extra)
            report.repositories_removed.append(root)
            return _SectionState(drop_all=True)

        if str(git.root_dir) != root:
            logger.warning(
                f"Repository root moved to {git.root_dir}, dropping it",
                extra=log_extra,
            )
            report.repositories_removed.append(root)
            return _SectionState(drop_all=True)

        commit = git.commit_hash()
        if commit == repository.commit:
            if staged is not None:
                staged.append_raw(text)
            report.repositories_unchanged.append(root)
            return _SectionState()

        updated, removed = git.diff_files(repository.commit)
        logger.info(
            f"New commit {commit}: {len(updated)} updated, {len(removed)} removed",
            extra=log_extra,
        )
        report.repositories_updated.append(root)
        report.files_removed.extend(str(Path(root) / p) for p in sorted(removed))

        if staged is not None:
            staged.append_repository(dataclasses.replace(repository, commit=commit))

        policy = ChunkingPolicy(
            window_size=repository.chunk_window_size,
            step_size=repository.chunk_step_size,
        )
        path_filter = GlobPathFilter.from_strings(
            repository.include_files,
            repository.exclude_files,
        )

        for relative_path in sorted(updated):
            if not path_filter.should_include(relative_path):
                continue

            absolute_path = str(Path(root) / relative_path)
            if staged is None:
                report.files_updated.append(absolute_path)
                continue

            try:
                chunks = indexer.index_file(root, relative_path, policy)
            except FILE_ERRORS as e:
                logger.warning(
                    f"Skipping file: {e}",
                    extra={"repository": root, "file": relative_path},
                )
                report.skipped.append(FileSkip(path=absolute_path, reason=str(e)))
                continue

            staged.append_chunks(chunks)
            report.files_updated.append(absolute_path)
            report.chunks_embedded += len(chunks)
            logger.info(
                f"Re-embedded {len(chunks)} chunks",
                extra={"repository": root, "file": relative_path},
            )

        return _SectionState(stale_paths=updated | removed)

    @staticmethod
    def _copy_chunk(
        chunk: ChunkEntry,
        text: str,
        state: _SectionState,
        staged: Optional[StagingIndexLog],
        report: SyncReport,
    ) -> None:
        if state.drop_all or chunk.path in state.stale_paths:
            report.chunks_dropped += 1
            return
        if staged is not None:
            staged.append_raw(text)
        report.chunks_kept += 1
