"""
Chunker - Split file contents into overlapping line windows.

A window is ``window_size`` consecutive lines starting every ``step_size``
lines. Chunking stops after the first window that reaches the last line, so
the final window may be shorter than ``window_size``; a text with fewer
lines than the window yields exactly one chunk. Empty text yields nothing.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from ..core.text import split_lines


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkingPolicy:
    """
    Policy for chunking files into line windows.

    Attributes:
        window_size: Lines per chunk
        step_size: Lines between the starts of consecutive chunks
    """
    window_size: int = 50
    step_size: int = 25

    def __post_init__(self):
        if self.window_size <= 0:
            raise ValueError("window_size must be positive")
        if self.step_size <= 0:
            raise ValueError("step_size must be positive")

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "window_size": self.window_size,
            "step_size": self.step_size,
        }


class Chunker:
    """
    Chunks text into line windows.

    Example:
        >>> chunker = Chunker(ChunkingPolicy(window_size=2, step_size=1))
        >>> chunker.apply("a\\nb\\nc\\n")
        [(0, 'a\\nb\\n'), (1, 'b\\nc\\n')]
    """

    def __init__(self, policy: ChunkingPolicy = None):
        """
        Initialize the chunker.

        Args:
            policy: Chunking policy (uses default if not provided)
        """
        self.policy = policy or ChunkingPolicy()

    def apply(self, text: str) -> List[Tuple[int, str]]:
        """Split text into ``(line, window_text)`` pairs."""
        return chunk_lines(
            text,
            window_size=self.policy.window_size,
            step_size=self.policy.step_size,
        )


def chunk_lines(
    text: str,
    window_size: int = 50,
    step_size: int = 25,
) -> List[Tuple[int, str]]:
    """
    Split text into overlapping line windows.

    Line endings are kept, so joining a window reproduces the original text
    of those lines.

    Args:
        text: Text content to chunk
        window_size: Lines per window
        step_size: Lines between window starts

    Returns:
        List of tuples: (zero_based_start_line, window_text)
    """
    if window_size <= 0:
        raise ValueError("window_size must be positive")

    if step_size <= 0:
        raise ValueError("step_size must be positive")

    if not text:
        return []

    lines = split_lines(text)
    chunks = []

    start = 0
    while start < len(lines):
        end = min(start + window_size, len(lines))
        chunks.append((start, "".join(lines[start:end])))

        if end >= len(lines):
            break
        start += step_size

    return chunks
