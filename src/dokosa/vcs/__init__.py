"""
Version control adapters.
"""

from .git import GitRepository, parse_name_status

__all__ = [
    "GitRepository",
    "parse_name_status",
]
