"""
Contents API access: low-level client, readers and committer.
"""

from .contents_client import ContentsClient, RateLimitInfo
from .reader import PublicReader, AuthenticatedReader
from .committer import Committer

__all__ = [
    "ContentsClient",
    "RateLimitInfo",
    "PublicReader",
    "AuthenticatedReader",
    "Committer"
]
