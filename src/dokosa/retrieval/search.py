"""
Retrieval Search - Rank indexed chunks against a query embedding.

Implements:
- Cosine similarity scoring
- Bounded top-K selection during a single forward scan of the index log
- Stable tie-breaks (the chunk seen first wins)
"""

import bisect
import logging
import math
import time
from pathlib import Path
from typing import List, Optional, Sequence

from ..contracts.index_contracts import MatchedChunk
from ..storage.index_log import IndexLog
from .glob_filter import GlobPathFilter


logger = logging.getLogger(__name__)


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Compute cosine similarity between two vectors.

    Never raises and never returns NaN: vectors of different dimension, empty
    vectors and zero vectors all score exactly 0.0.

    Args:
        vec_a: First vector
        vec_b: Second vector

    Returns:
        Cosine similarity score between -1 and 1
    """
    if len(vec_a) != len(vec_b) or not vec_a:
        return 0.0

    dot_product = sum(a * b for a, b in zip(vec_a, vec_b))
    norm_a = sum(a * a for a in vec_a)
    norm_b = sum(b * b for b in vec_b)

    if norm_a == 0 or norm_b == 0:
        return 0.0

    # sqrt of the product keeps cosine(a, a) exactly 1.0
    return dot_product / math.sqrt(norm_a * norm_b)


class TopKCandidates:
    """
    Keeps the ``count`` best-scoring candidates seen so far.

    A candidate is accepted only if its score is strictly greater than the
    current floor. The floor starts at the similarity threshold and rises to
    the lowest kept score whenever the list overflows, so later candidates
    that only tie the worst kept one are rejected.
    """

    def __init__(self, count: int, threshold: float):
        self.count = count
        self.floor = threshold
        self._keys: List[float] = []
        self._items: List[MatchedChunk] = []

    def offer(self, similarity: float, build) -> bool:
        """
        Consider a candidate.

        Args:
            similarity: Candidate score
            build: Zero-argument callable producing the MatchedChunk, only
                called when the candidate is kept

        Returns:
            True if the candidate was kept
        """
        if self.count <= 0 or not similarity > self.floor:
            return False

        # keys are negated scores in ascending order; bisect_right places a
        # tie after the earlier candidates
        position = bisect.bisect_right(self._keys, -similarity)
        self._keys.insert(position, -similarity)
        self._items.insert(position, build())

        if len(self._items) > self.count:
            self._keys.pop()
            self._items.pop()
            self.floor = -self._keys[-1]

        return True

    def results(self) -> List[MatchedChunk]:
        return list(self._items)


def search_index(
    index_log: IndexLog,
    query_embedding: Sequence[float],
    count: int = 10,
    similarity_threshold: float = 0.3,
    path_filter: Optional[GlobPathFilter] = None,
) -> List[MatchedChunk]:
    """
    Find the chunks most similar to a query.

    Args:
        index_log: Index log to scan
        query_embedding: Embedding vector of the query
        count: Maximum number of results
        similarity_threshold: Results must score strictly above this
        path_filter: Filter applied to each chunk's absolute file path

    Returns:
        At most ``count`` matches, highest similarity first

    Raises:
        IndexFormatError: If the log contains a malformed line
        IndexCorruptionError: If a chunk appears before any repository
    """
    start_time = time.time()
    path_filter = path_filter or GlobPathFilter()
    candidates = TopKCandidates(count, similarity_threshold)

    scanned = 0
    for repository, chunk in index_log.sections():
        if chunk is None:
            continue
        scanned += 1

        absolute_path = str(Path(repository.path) / chunk.path)
        if not path_filter.should_include(absolute_path):
            continue

        similarity = cosine_similarity(query_embedding, chunk.embedding)
        candidates.offer(
            similarity,
            lambda: MatchedChunk(
                repository_path=repository.path,
                chunk_window_size=repository.chunk_window_size,
                path=chunk.path,
                line=chunk.line,
                similarity=similarity,
            ),
        )

    results = candidates.results()
    execution_ms = int((time.time() - start_time) * 1000)
    logger.info(f"Matched {len(results)} of {scanned} chunks in {execution_ms}ms")
    return results
