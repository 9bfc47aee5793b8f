"""
Repository operations: add, remove and list indexed repositories.
"""

import logging
from pathlib import Path
from typing import Callable, List, Sequence, Set, Tuple, Union

from ..contracts.index_contracts import RepositoryEntry
from ..core.exceptions import RepositoryAlreadyIndexedError, RepositoryNotIndexedError
from ..providers.base import Embedder
from ..retrieval.chunker import ChunkingPolicy
from ..retrieval.glob_filter import GlobPathFilter
from ..storage.index_log import IndexLog
from ..vcs.git import GitRepository
from .indexer import FILE_ERRORS, FileIndexer
from .reports import AddReport, FileSkip, RemoveReport, RepositorySummary


logger = logging.getLogger(__name__)

VcsFactory = Callable[[Union[str, Path]], GitRepository]


def add_repository(
    index_log: IndexLog,
    repository_path: Union[str, Path],
    embedder: Embedder,
    window_size: int = 50,
    step_size: int = 25,
    include_files: Sequence[str] = (),
    exclude_files: Sequence[str] = (),
    vcs_factory: VcsFactory = GitRepository,
) -> AddReport:
    """
    Index every tracked file of a repository.

    The repository record is appended first, then the chunks of each file
    passing the filter, one embedding batch per file. Files that cannot be
    read or embedded are logged and skipped.

    Args:
        index_log: Index log to append to
        repository_path: Any path inside the repository
        embedder: Embedding provider
        window_size: Lines per chunk
        step_size: Lines between chunk starts
        include_files: Include glob patterns, matched on repository-relative paths
        exclude_files: Exclude glob patterns, matched on repository-relative paths
        vcs_factory: Builds the git adapter for a path

    Returns:
        AddReport with per-file counts

    Raises:
        ValueError: If window or step size is not positive
        VcsError: If the path is not in a git repository or git fails
        RepositoryAlreadyIndexedError: If the repository root is already indexed
    """
    policy = ChunkingPolicy(window_size=window_size, step_size=step_size)
    path_filter = GlobPathFilter.from_strings(include_files, exclude_files)

    git = vcs_factory(repository_path)
    root = str(git.root_dir)
    if index_log.find_repository(root) is not None:
        raise RepositoryAlreadyIndexedError(root)

    commit = git.commit_hash()
    files = git.files()

    index_log.append_repository(RepositoryEntry(
        path=root,
        commit=commit,
        chunk_window_size=policy.window_size,
        chunk_step_size=policy.step_size,
        include_files=list(include_files),
        exclude_files=list(exclude_files),
    ))
    logger.info(f"Adding repository at {commit}", extra={"repository": root})

    report = AddReport(repository_path=root, commit=commit)
    indexer = FileIndexer(embedder)

    for relative_path in files:
        if not path_filter.should_include(relative_path):
            report.files_filtered += 1
            continue

        try:
            chunks = indexer.index_file(root, relative_path, policy)
        except FILE_ERRORS as e:
            logger.warning(
                f"Skipping file: {e}",
                extra={"repository": root, "file": relative_path},
            )
            report.skipped.append(FileSkip(path=relative_path, reason=str(e)))
            continue

        if not chunks:
            report.files_empty += 1
            continue

        report.chunks_added += index_log.append_chunks(chunks)
        report.files_indexed += 1
        logger.info(
            f"Added {len(chunks)} chunks",
            extra={"repository": root, "file": relative_path},
        )

    return report


def resolve_indexed_path(
    index_log: IndexLog,
    repository_path: Union[str, Path],
    vcs_factory: VcsFactory = GitRepository,
) -> str:
    """
    Find the recorded repository path a user-supplied path refers to.

    A path equal to a recorded root is used as is, so a repository deleted
    from disk can still be removed. Anything else is resolved to its git
    root.

    Raises:
        VcsError: If the path has to be resolved and is not in a git repository
        RepositoryNotIndexedError: If no section exists for the repository
    """
    candidate = str(Path(repository_path).expanduser().resolve())
    if index_log.find_repository(candidate) is not None:
        return candidate

    root = str(vcs_factory(repository_path).root_dir)
    if index_log.find_repository(root) is None:
        raise RepositoryNotIndexedError(root)
    return root


def remove_repository(
    index_log: IndexLog,
    repository_path: Union[str, Path],
    dry_run: bool = False,
    vcs_factory: VcsFactory = GitRepository,
) -> RemoveReport:
    """
    Delete a repository's section from the index log.

    Every other entry keeps its order and exact serialized form.

    Args:
        index_log: Index log to rewrite
        repository_path: Recorded root, or any path inside the repository
        dry_run: Count what would be removed without writing
        vcs_factory: Builds the git adapter for a path

    Returns:
        RemoveReport with the number of chunk entries removed

    Raises:
        RepositoryNotIndexedError: If the repository is not indexed
        IndexFormatError, IndexCorruptionError: If the log is malformed
    """
    target = resolve_indexed_path(index_log, repository_path, vcs_factory)
    report = RemoveReport(repository_path=target, dry_run=dry_run)

    if dry_run:
        for repository, chunk in index_log.sections():
            if repository.path == target and chunk is not None:
                report.chunks_removed += 1
        logger.info(
            f"Dry run: would remove {report.chunks_removed} chunks",
            extra={"repository": target},
        )
        return report

    with index_log.rewrite() as staged:
        for repository, chunk, text in index_log.raw_sections():
            if repository.path == target:
                if chunk is not None:
                    report.chunks_removed += 1
                continue
            staged.append_raw(text)

    logger.info(
        f"Removed repository ({report.chunks_removed} chunks)",
        extra={"repository": target},
    )
    return report


def list_repositories(index_log: IndexLog) -> List[RepositorySummary]:
    """
    Summarize every repository section in log order.

    Raises:
        IndexFormatError, IndexCorruptionError: If the log is malformed
    """
    sections: List[Tuple[RepositorySummary, Set[str]]] = []

    for repository, chunk in index_log.sections():
        if chunk is None:
            summary = RepositorySummary(
                path=repository.path,
                commit=repository.commit,
                chunk_window_size=repository.chunk_window_size,
                chunk_step_size=repository.chunk_step_size,
                include_files=list(repository.include_files),
                exclude_files=list(repository.exclude_files),
            )
            sections.append((summary, set()))
            continue

        summary, paths = sections[-1]
        summary.chunk_count += 1
        paths.add(chunk.path)

    for summary, paths in sections:
        summary.file_count = len(paths)
    return [summary for summary, _ in sections]
