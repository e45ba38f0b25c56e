"""
NavStore

Versioned content store client that keeps a navigation tree and site settings
as JSON blobs in a GitHub repository, with optimistic-concurrency commits.
"""

__version__ = "0.1.0"
__author__ = "NavStore Team"
__description__ = "Versioned JSON content store backed by the GitHub contents API"
