"""
Reports returned by index-changing operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class FileSkip:
    """A file that could not be read or embedded."""
    path: str
    reason: str


@dataclass
class AddReport:
    """Report of an add operation."""
    repository_path: str
    commit: str
    files_indexed: int = 0
    files_filtered: int = 0
    files_empty: int = 0
    chunks_added: int = 0
    skipped: List[FileSkip] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "repository_path": self.repository_path,
            "commit": self.commit,
            "files_indexed": self.files_indexed,
            "files_filtered": self.files_filtered,
            "files_empty": self.files_empty,
            "chunks_added": self.chunks_added,
            "skipped": [{"path": s.path, "reason": s.reason} for s in self.skipped],
        }

    def summary(self) -> str:
        """Get a human-readable summary."""
        lines = [
            f"Added {self.repository_path} at {self.commit}",
            f"  Files indexed: {self.files_indexed}",
            f"  Files filtered out: {self.files_filtered}",
            f"  Empty files: {self.files_empty}",
            f"  Chunks: {self.chunks_added}",
        ]
        if self.skipped:
            lines.append(f"  Skipped files: {len(self.skipped)}")
            for skip in self.skipped:
                lines.append(f"    - {skip.path}: {skip.reason}")
        return "\n".join(lines)


@dataclass
class RemoveReport:
    """Report of a remove operation."""
    repository_path: str
    dry_run: bool
    chunks_removed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "repository_path": self.repository_path,
            "dry_run": self.dry_run,
            "chunks_removed": self.chunks_removed,
        }

    def summary(self) -> str:
        verb = "Would remove" if self.dry_run else "Removed"
        return f"{verb} {self.repository_path} ({self.chunks_removed} chunks)"


@dataclass
class RepositorySummary:
    """One repository section as reported by ``dokosa list``."""
    path: str
    commit: str
    chunk_window_size: int
    chunk_step_size: int
    include_files: List[str]
    exclude_files: List[str]
    chunk_count: int = 0
    file_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "path": self.path,
            "commit": self.commit,
            "chunk_window_size": self.chunk_window_size,
            "chunk_step_size": self.chunk_step_size,
            "include_files": self.include_files,
            "exclude_files": self.exclude_files,
            "chunk_count": self.chunk_count,
            "file_count": self.file_count,
        }


@dataclass
class SyncReport:
    """Report of a sync operation."""
    dry_run: bool
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    # Repository counts
    repositories_unchanged: List[str] = field(default_factory=list)
    repositories_updated: List[str] = field(default_factory=list)
    repositories_removed: List[str] = field(default_factory=list)

    # File counts (absolute paths)
    files_updated: List[str] = field(default_factory=list)
    files_removed: List[str] = field(default_factory=list)
    skipped: List[FileSkip] = field(default_factory=list)

    # Chunk counts
    chunks_kept: int = 0
    chunks_dropped: int = 0
    chunks_embedded: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "dry_run": self.dry_run,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "repositories": {
                "unchanged": self.repositories_unchanged,
                "updated": self.repositories_updated,
                "removed": self.repositories_removed,
            },
            "files": {
                "updated": self.files_updated,
                "removed": self.files_removed,
                "skipped": [{"path": s.path, "reason": s.reason} for s in self.skipped],
            },
            "chunks": {
                "kept": self.chunks_kept,
                "dropped": self.chunks_dropped,
                "embedded": self.chunks_embedded,
            },
        }

    def summary(self) -> str:
        """Get a human-readable summary."""
        lines = [
            "Sync Report",
            f"  Dry run: {self.dry_run}",
        ]
        if self.completed_at:
            lines.append(
                f"  Duration: {(self.completed_at - self.started_at).total_seconds():.1f}s"
            )
        lines.extend([
            "",
            "  Repositories:",
            f"    Unchanged: {len(self.repositories_unchanged)}",
            f"    Updated: {len(self.repositories_updated)}",
            f"    Removed: {len(self.repositories_removed)}",
            "",
            "  Files:",
            f"    Updated: {len(self.files_updated)}",
            f"    Removed: {len(self.files_removed)}",
            f"    Skipped: {len(self.skipped)}",
            "",
            "  Chunks:",
            f"    Kept: {self.chunks_kept}",
            f"    Dropped: {self.chunks_dropped}",
            f"    Embedded: {self.chunks_embedded}",
        ])
        for skip in self.skipped:
            lines.append(f"  ! {skip.path}: {skip.reason}")
        return "\n".join(lines)
