"""
Index Log - Append-only, line-delimited store of repositories and chunks.

Layout: one JSON object per line (see contracts.index_contracts). A chunk
belongs to the nearest repository record above it.

Mutation happens in two ways only:
- appends to the end of the file (add)
- a full rewrite into ``<path>.temp`` followed by one atomic rename onto
  ``<path>`` (remove, sync), after which the directory is fsynced. The
  rename is the only commit point: if the process dies earlier, the
  original log is intact and the temp file is truncated by the next
  rewrite. Records that pass through a rewrite unchanged are copied as
  their stored text.

There is no locking. Running two mutating commands against the same log at
the same time is unsupported.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple, Union

from ..contracts.index_contracts import (
    ChunkEntry,
    Entry,
    RepositoryEntry,
    parse_entry,
    serialize_entry,
)
from ..core.exceptions import IndexCorruptionError, IndexFormatError, IndexLogError


logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".temp"


class IndexLog:
    """
    Handle on an index log file.

    The handle holds no open file; every operation opens and closes the file
    itself.

    Example:
        >>> created, log = IndexLog.load_or_create("~/.dokosa")
        >>> for repository in log.repositories():
        ...     print(repository.path, repository.commit)
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"

    @classmethod
    def create_new(cls, path: Union[str, Path]) -> "IndexLog":
        """
        Create an empty index log.

        Raises:
            IndexLogError: If a file already exists at ``path`` or cannot be created
        """
        path = Path(path)
        try:
            with open(path, "x", encoding="utf-8"):
                pass
        except FileExistsError as e:
            raise IndexLogError(f"Index file already exists: {path}", path=str(path)) from e
        except OSError as e:
            raise IndexLogError(f"Failed to create index file {path}: {e}", path=str(path)) from e

        logger.info(f"Created index file: {path}")
        return cls(path)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "IndexLog":
        """
        Open an existing index log.

        Raises:
            IndexLogError: If no file exists at ``path``
        """
        path = Path(path)
        if not path.is_file():
            raise IndexLogError(f"Index file not found: {path}", path=str(path))
        return cls(path)

    @classmethod
    def load_or_create(cls, path: Union[str, Path]) -> Tuple[bool, "IndexLog"]:
        """
        Open the index log, creating it when missing.

        Returns:
            ``(created, log)`` where ``created`` tells which branch was taken
        """
        if Path(path).is_file():
            return False, cls.load(path)
        return True, cls.create_new(path)

    # ------------------------------------------------------------------
    # Appends
    # ------------------------------------------------------------------

    def append_repository(self, entry: RepositoryEntry) -> None:
        """Append a repository record."""
        if not isinstance(entry, RepositoryEntry):
            raise TypeError(f"Expected RepositoryEntry, got {type(entry).__name__}")
        self._write_lines([serialize_entry(entry)])

    def append_chunk(self, entry: ChunkEntry) -> None:
        """Append a chunk record."""
        if not isinstance(entry, ChunkEntry):
            raise TypeError(f"Expected ChunkEntry, got {type(entry).__name__}")
        self._write_lines([serialize_entry(entry)])

    def append_chunks(self, entries: Iterable[ChunkEntry]) -> int:
        """
        Append several chunk records with a single open of the file.

        Returns:
            Number of records written
        """
        lines = []
        for entry in entries:
            if not isinstance(entry, ChunkEntry):
                raise TypeError(f"Expected ChunkEntry, got {type(entry).__name__}")
            lines.append(serialize_entry(entry))
        if lines:
            self._write_lines(lines)
        return len(lines)

    def append_entry(self, entry: Entry) -> None:
        """Append a record of either kind."""
        if isinstance(entry, RepositoryEntry):
            self.append_repository(entry)
        else:
            self.append_chunk(entry)

    def append_raw(self, text: str) -> None:
        """Append a record line exactly as read by ``raw_entries``."""
        self._write_lines([text])

    def _write_lines(self, lines) -> None:
        try:
            with open(self.path, "a", encoding="utf-8", newline="\n") as f:
                for line in lines:
                    f.write(line + "\n")
                f.flush()
        except OSError as e:
            raise IndexLogError(f"Failed to append to {self.path}: {e}", path=str(self.path)) from e

    # ------------------------------------------------------------------
    # Scans
    # ------------------------------------------------------------------

    def entries(self) -> Iterator[Entry]:
        """
        Lazily decode every record in file order.

        Each call reopens the file. Blank lines are skipped.

        Yields:
            RepositoryEntry or ChunkEntry

        Raises:
            IndexLogError: If the file cannot be opened or read
            IndexFormatError: At the first malformed line, after every
                earlier entry has been yielded
        """
        for entry, _ in self.raw_entries():
            yield entry

    def raw_entries(self) -> Iterator[Tuple[Entry, str]]:
        """
        Like ``entries`` but also yield each record's line as stored.

        The text has surrounding whitespace and the newline removed. Writing
        it back with ``append_raw`` keeps the record byte-for-byte.
        """
        try:
            f = open(self.path, "r", encoding="utf-8", newline="")
        except OSError as e:
            raise IndexLogError(f"Failed to open {self.path}: {e}", path=str(self.path)) from e

        with f:
            line_number = 0
            try:
                for line_number, line in enumerate(f, 1):
                    text = line.strip()
                    if not text:
                        continue
                    try:
                        entry = parse_entry(text)
                    except IndexFormatError as e:
                        raise IndexFormatError(
                            f"{self.path}:{line_number}: {e}",
                            path=str(self.path),
                            line_number=line_number,
                        ) from e
                    yield entry, text
            except UnicodeDecodeError as e:
                raise IndexFormatError(
                    f"{self.path}:{line_number + 1}: not valid UTF-8: {e}",
                    path=str(self.path),
                    line_number=line_number + 1,
                ) from e

    def repositories(self) -> Iterator[RepositoryEntry]:
        """Lazily yield only the repository records."""
        for entry in self.entries():
            if isinstance(entry, RepositoryEntry):
                yield entry

    def sections(self) -> Iterator[Tuple[RepositoryEntry, Optional[ChunkEntry]]]:
        """
        Walk the log attaching each chunk to its repository.

        Yields ``(repository, None)`` for a repository record and
        ``(repository, chunk)`` for each chunk record that follows it.

        Raises:
            IndexCorruptionError: If a chunk appears before any repository
        """
        for repository, chunk, _ in self.raw_sections():
            yield repository, chunk

    def raw_sections(self) -> Iterator[Tuple[RepositoryEntry, Optional[ChunkEntry], str]]:
        """Like ``sections`` with the stored line of the current record appended."""
        current: Optional[RepositoryEntry] = None
        for entry, text in self.raw_entries():
            if isinstance(entry, RepositoryEntry):
                current = entry
                yield current, None, text
            else:
                if current is None:
                    raise IndexCorruptionError(
                        f"{self.path}: chunk entry for {entry.path!r} "
                        f"appears before any repository entry",
                        path=str(self.path),
                    )
                yield current, entry, text

    def find_repository(self, repository_path: Union[str, Path]) -> Optional[RepositoryEntry]:
        """Return the repository record with the given root path, if any."""
        target = str(repository_path)
        for repository in self.repositories():
            if repository.path == target:
                return repository
        return None

    # ------------------------------------------------------------------
    # Rewrite
    # ------------------------------------------------------------------

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + TEMP_SUFFIX)

    @contextmanager
    def rewrite(self) -> Iterator["StagingIndexLog"]:
        """
        Stage a replacement log and atomically swap it in.

        Append the surviving entries to the yielded log; when the ``with``
        block exits normally the staged file is flushed, fsynced and renamed
        onto this log's path. If the block raises, the staged file is removed
        and this log is left untouched.

        Example:
            >>> with log.rewrite() as staged:
            ...     for entry in log.entries():
            ...         staged.append_entry(entry)
        """
        temp_path = self.temp_path
        try:
            # "w" truncates an orphan left by an aborted run
            handle = open(temp_path, "w", encoding="utf-8", newline="\n")
        except OSError as e:
            raise IndexLogError(f"Failed to create {temp_path}: {e}", path=str(temp_path)) from e

        staged = StagingIndexLog(temp_path, handle)
        try:
            yield staged
            staged.close(sync=True)
        except BaseException:
            staged.close(sync=False)
            try:
                temp_path.unlink()
            except OSError:
                logger.warning(f"Failed to remove staging file {temp_path}")
            raise

        try:
            os.replace(temp_path, self.path)
        except OSError as e:
            raise IndexLogError(
                f"Failed to replace {self.path} with {temp_path}: {e}",
                path=str(self.path),
            ) from e
        _fsync_directory(self.path.parent)
        logger.debug(f"Replaced {self.path} with rewritten log")


class StagingIndexLog(IndexLog):
    """
    Replacement log being written by ``IndexLog.rewrite``.

    Keeps one handle open for the whole rewrite instead of reopening the
    file per record.
    """

    def __init__(self, path: Union[str, Path], handle):
        super().__init__(path)
        self._handle = handle
        self.entries_written = 0

    def _write_lines(self, lines) -> None:
        if self._handle is None:
            raise IndexLogError(f"Staging log {self.path} is closed", path=str(self.path))
        try:
            for line in lines:
                self._handle.write(line + "\n")
                self.entries_written += 1
        except OSError as e:
            raise IndexLogError(f"Failed to write {self.path}: {e}", path=str(self.path)) from e

    def close(self, sync: bool = True) -> None:
        """Flush and close the staging file, fsyncing it when ``sync`` is set."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            handle.flush()
            if sync:
                os.fsync(handle.fileno())
        except OSError as e:
            handle.close()
            raise IndexLogError(f"Failed to flush {self.path}: {e}", path=str(self.path)) from e
        handle.close()


def _fsync_directory(directory: Path) -> None:
    """Make a rename inside ``directory`` durable (not possible on Windows)."""
    if os.name == "nt":
        return
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError as e:
        logger.warning(f"Failed to open {directory} to sync the rename: {e}")
        return
    try:
        os.fsync(fd)
    except OSError as e:
        logger.warning(f"Failed to sync directory {directory}: {e}")
    finally:
        os.close(fd)
