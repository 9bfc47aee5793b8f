"""
Line handling shared by the chunker, the indexer and search results.

Only ``\\n`` ends a line, matching the line numbers git and editors show.
``str.splitlines`` and universal-newline reads are not used because they
also break on ``\\r``, form feeds, vertical tabs and Unicode separators.
"""

import re
from pathlib import Path
from typing import List, Union


_LINE_END = re.compile(r"(?<=\n)")


def split_lines(text: str) -> List[str]:
    """
    Split text into lines, keeping each line's ``\\n``.

    Example:
        >>> split_lines("a\\x0cb\\nc")
        ['a\\x0cb\\n', 'c']
    """
    lines = _LINE_END.split(text)
    if lines and not lines[-1]:
        lines.pop()
    return lines


def read_text_file(path: Union[str, Path]) -> str:
    """
    Read a UTF-8 file without translating line endings.

    Raises:
        OSError, UnicodeDecodeError: If the file cannot be read as UTF-8
    """
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()
