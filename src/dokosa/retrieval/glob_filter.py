"""
Glob Path Filter - Decide which files take part in indexing and search.

Only the ``*`` wildcard is supported. It matches any run of characters,
including ``/`` and the empty string.
"""

from dataclasses import dataclass, field
from typing import Iterable, List


@dataclass(frozen=True)
class GlobPathPattern:
    """
    A compiled ``*`` pattern.

    Attributes:
        pattern: The original pattern string
        matches_start: False iff the pattern begins with ``*``
        matches_end: False iff the pattern ends with ``*``
        tokens: The pattern split on ``*`` (empty tokens mark adjacent wildcards)

    Example:
        >>> GlobPathPattern.compile("*.py").matches("src/app.py")
        True
    """
    pattern: str
    matches_start: bool
    matches_end: bool
    tokens: tuple

    @classmethod
    def compile(cls, pattern: str) -> "GlobPathPattern":
        """Compile a pattern string."""
        return cls(
            pattern=pattern,
            matches_start=not pattern.startswith("*"),
            matches_end=not pattern.endswith("*"),
            tokens=tuple(pattern.split("*")),
        )

    def matches(self, path) -> bool:
        """
        Check whether a path matches this pattern.

        Args:
            path: Path as a string or os.PathLike

        Returns:
            True if the whole path matches
        """
        text = str(path)

        if len(self.tokens) == 1:
            return text == self.tokens[0]

        head, *middle, tail = self.tokens

        # head is "" when the pattern starts with "*"
        if not text.startswith(head):
            return False
        cursor = len(head)

        for token in middle:
            index = text.find(token, cursor)
            if index < 0:
                return False
            cursor = index + len(token)

        if not self.matches_end:
            return True

        return len(text) - len(tail) >= cursor and text.endswith(tail)


@dataclass
class GlobPathFilter:
    """
    Include/exclude filter over paths.

    Exclude patterns win over include patterns. An empty include list
    includes everything that is not excluded.
    """
    include: List[GlobPathPattern] = field(default_factory=list)
    exclude: List[GlobPathPattern] = field(default_factory=list)

    @classmethod
    def from_strings(
        cls,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
    ) -> "GlobPathFilter":
        """Build a filter from raw pattern strings."""
        return cls(
            include=[GlobPathPattern.compile(p) for p in include],
            exclude=[GlobPathPattern.compile(p) for p in exclude],
        )

    def should_include(self, path) -> bool:
        """
        Decide whether a path passes the filter.

        Args:
            path: Path as a string or os.PathLike

        Returns:
            False if any exclude pattern matches; otherwise True when there
            are no include patterns or at least one of them matches
        """
        if any(p.matches(path) for p in self.exclude):
            return False
        if not self.include:
            return True
        return any(p.matches(path) for p in self.include)
