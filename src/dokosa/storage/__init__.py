"""
Storage module for the dokosa index log.
"""

from .index_log import IndexLog, StagingIndexLog

__all__ = [
    "IndexLog",
    "StagingIndexLog",
]
