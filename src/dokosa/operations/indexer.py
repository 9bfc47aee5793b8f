"""
File Indexer - Turn one repository file into chunk entries.

Reads the file from the working tree, splits it into line windows and embeds
all windows with a single provider call.
"""

import logging
from pathlib import Path
from typing import List, Union

from ..contracts.index_contracts import ChunkEntry
from ..core.exceptions import EmbeddingProviderError
from ..core.text import read_text_file
from ..providers.base import Embedder
from ..retrieval.chunker import ChunkingPolicy, chunk_lines


logger = logging.getLogger(__name__)

# Failures that skip one file instead of aborting the command
FILE_ERRORS = (OSError, UnicodeDecodeError, EmbeddingProviderError)


class FileIndexer:
    """
    Chunks and embeds files of a repository.

    Example:
        >>> indexer = FileIndexer(embedder)
        >>> entries = indexer.index_file("/src/project", "README.md", ChunkingPolicy(50, 25))
    """

    def __init__(self, embedder: Embedder):
        self.embedder = embedder

    def index_file(
        self,
        root_dir: Union[str, Path],
        relative_path: str,
        policy: ChunkingPolicy,
    ) -> List[ChunkEntry]:
        """
        Build the chunk entries for one file.

        Args:
            root_dir: Repository root
            relative_path: File path relative to ``root_dir``
            policy: Window and step sizes

        Returns:
            One ChunkEntry per window; empty for an empty file

        Raises:
            OSError, UnicodeDecodeError: If the file cannot be read as UTF-8
            EmbeddingProviderError: If the embedding call fails
        """
        content = read_text_file(Path(root_dir) / relative_path)
        if not content:
            return []

        chunks = chunk_lines(content, policy.window_size, policy.step_size)
        vectors = self.embedder.embed([text for _, text in chunks])

        entries = [
            ChunkEntry(path=relative_path, line=line, embedding=vector)
            for (line, _), vector in zip(chunks, vectors)
        ]
        logger.debug(
            f"Embedded {len(entries)} chunks",
            extra={"repository": str(root_dir), "file": relative_path},
        )
        return entries
