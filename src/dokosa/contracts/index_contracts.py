"""
Index Contracts - Records stored in the index log and search results.

The index log is a sequence of two record kinds, told apart by a ``type``
field on each JSON line:

    {"type": "repository", "path": ..., "commit": ..., "chunk_window_size": ...,
     "chunk_step_size": ..., "include_files": [...], "exclude_files": [...]}
    {"type": "chunk", "path": ..., "line": ..., "embedding": [...]}

Decoding is strict: the field set must match the declared type exactly and
every value must have the expected JSON type.
"""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from ..core.exceptions import IndexFormatError, IndexLogError
from ..core.text import read_text_file, split_lines


REPOSITORY_TYPE = "repository"
CHUNK_TYPE = "chunk"


@dataclass
class RepositoryEntry:
    """
    Header record for one repository's section of the index log.

    Attributes:
        path: Absolute repository root
        commit: Commit id the section's chunks were computed at
        chunk_window_size: Lines per chunk (frozen at add time)
        chunk_step_size: Lines between chunk starts (frozen at add time)
        include_files: Include glob patterns (frozen at add time)
        exclude_files: Exclude glob patterns (frozen at add time)
    """
    path: str
    commit: str
    chunk_window_size: int
    chunk_step_size: int
    include_files: List[str] = field(default_factory=list)
    exclude_files: List[str] = field(default_factory=list)

    FIELDS = (
        "path",
        "commit",
        "chunk_window_size",
        "chunk_step_size",
        "include_files",
        "exclude_files",
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "type": REPOSITORY_TYPE,
            "path": self.path,
            "commit": self.commit,
            "chunk_window_size": self.chunk_window_size,
            "chunk_step_size": self.chunk_step_size,
            "include_files": list(self.include_files),
            "exclude_files": list(self.exclude_files),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryEntry":
        """Create from a decoded JSON object (``type`` already checked)."""
        _check_fields(data, cls.FIELDS, REPOSITORY_TYPE)
        return cls(
            path=_require_str(data, "path"),
            commit=_require_str(data, "commit"),
            chunk_window_size=_require_int(data, "chunk_window_size", minimum=1),
            chunk_step_size=_require_int(data, "chunk_step_size", minimum=1),
            include_files=_require_str_list(data, "include_files"),
            exclude_files=_require_str_list(data, "exclude_files"),
        )


@dataclass
class ChunkEntry:
    """
    One embedded line-window of a file.

    Attributes:
        path: File path relative to the owning repository root
        line: Zero-based first line of the window
        embedding: Embedding vector
    """
    path: str
    line: int
    embedding: List[float]

    FIELDS = ("path", "line", "embedding")

    def __post_init__(self):
        # Keep the serialized form canonical whatever number types the provider returned
        self.embedding = [float(v) for v in self.embedding]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "type": CHUNK_TYPE,
            "path": self.path,
            "line": self.line,
            "embedding": self.embedding,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkEntry":
        """Create from a decoded JSON object (``type`` already checked)."""
        _check_fields(data, cls.FIELDS, CHUNK_TYPE)
        return cls(
            path=_require_str(data, "path"),
            line=_require_int(data, "line", minimum=0),
            embedding=_require_vector(data, "embedding"),
        )


Entry = Union[RepositoryEntry, ChunkEntry]

_ENTRY_TYPES = {
    REPOSITORY_TYPE: RepositoryEntry,
    CHUNK_TYPE: ChunkEntry,
}


def serialize_entry(entry: Entry) -> str:
    """
    Serialize an entry to a single JSON line (without the newline).

    Args:
        entry: RepositoryEntry or ChunkEntry

    Returns:
        JSON text with the ``type`` discriminator first
    """
    return json.dumps(entry.to_dict(), ensure_ascii=False, allow_nan=False)


def parse_entry(text: str) -> Entry:
    """
    Decode one line of the index log.

    Args:
        text: A single JSON line

    Returns:
        The decoded RepositoryEntry or ChunkEntry

    Raises:
        IndexFormatError: If the line is not a well-formed entry
    """
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except (json.JSONDecodeError, ValueError) as e:
        raise IndexFormatError(f"Invalid JSON: {e}") from e
    except RecursionError as e:
        raise IndexFormatError("Invalid JSON: nested too deeply") from e

    if not isinstance(data, dict):
        raise IndexFormatError(f"Expected a JSON object, got {type(data).__name__}")

    entry_type = data.get("type")
    entry_cls = _ENTRY_TYPES.get(entry_type) if isinstance(entry_type, str) else None
    if entry_cls is None:
        raise IndexFormatError(f"Unknown entry type: {entry_type!r}")

    return entry_cls.from_dict(data)


@dataclass
class MatchedChunk:
    """
    A chunk returned by search, with enough context to show its text.

    Attributes:
        repository_path: Absolute root of the owning repository
        chunk_window_size: Window size of the owning repository
        path: File path relative to the repository root
        line: Zero-based first line of the window
        similarity: Cosine similarity to the query
    """
    repository_path: str
    chunk_window_size: int
    path: str
    line: int
    similarity: float

    def repository_file_path(self) -> Path:
        """Absolute path of the chunk's file."""
        return Path(self.repository_path) / self.path

    def chunk_text(self) -> str:
        """
        Re-read the chunk's lines from the working tree.

        Returns:
            Lines ``[line, line + chunk_window_size)`` with their line endings

        Raises:
            IndexLogError: If the file cannot be read
        """
        file_path = self.repository_file_path()
        try:
            content = read_text_file(file_path)
        except (OSError, UnicodeDecodeError) as e:
            raise IndexLogError(f"Failed to read {file_path}: {e}", path=str(file_path)) from e

        lines = split_lines(content)
        return "".join(lines[self.line:self.line + self.chunk_window_size])

    def to_dict(self, include_text: bool = True) -> Dict[str, Any]:
        """Convert to the JSON shape printed by ``dokosa search``."""
        return {
            "similarity": self.similarity,
            "path": str(self.repository_file_path()),
            "line": self.line,
            "text": self.chunk_text() if include_text else "",
        }


def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} is not allowed")


def _check_fields(data: Dict[str, Any], expected: tuple, entry_type: str) -> None:
    actual = set(data) - {"type"}
    missing = [name for name in expected if name not in actual]
    extra = sorted(actual - set(expected))
    if missing:
        raise IndexFormatError(f"{entry_type} entry is missing fields: {', '.join(missing)}")
    if extra:
        raise IndexFormatError(f"{entry_type} entry has unexpected fields: {', '.join(extra)}")


def _require_str(data: Dict[str, Any], name: str) -> str:
    value = data[name]
    if not isinstance(value, str):
        raise IndexFormatError(f"Field '{name}' must be a string")
    return value


def _require_int(data: Dict[str, Any], name: str, minimum: int) -> int:
    value = data[name]
    # bool is an int subclass
    if not isinstance(value, int) or isinstance(value, bool):
        raise IndexFormatError(f"Field '{name}' must be an integer")
    if value < minimum:
        raise IndexFormatError(f"Field '{name}' must be >= {minimum}, got {value}")
    return value


def _require_str_list(data: Dict[str, Any], name: str) -> List[str]:
    value = data[name]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise IndexFormatError(f"Field '{name}' must be a list of strings")
    return value


def _require_vector(data: Dict[str, Any], name: str) -> List[float]:
    value = data[name]
    if not isinstance(value, list):
        raise IndexFormatError(f"Field '{name}' must be a list of numbers")
    vector = []
    for v in value:
        if not isinstance(v, (int, float)) or isinstance(v, bool):
            raise IndexFormatError(f"Field '{name}' must contain only finite numbers")
        try:
            number = float(v)
        except OverflowError as e:
            raise IndexFormatError(f"Field '{name}' has a number too large for a float") from e
        if not math.isfinite(number):
            raise IndexFormatError(f"Field '{name}' must contain only finite numbers")
        vector.append(number)
    return vector
