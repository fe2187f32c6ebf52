"""
Infrastructure layer for gitportfolio.

Contains abstractions for external systems:
- GitClient: read-only git query execution
- FakeGitClient: canned git output for tests
- FileCacheStore / MemoryCacheStore: report cache backing stores

These provide clean interfaces that can be swapped out for testing.
"""

from .git_client import GitClient
from .fake_git_client import FakeGitClient
from .cache_store import CacheStore, FileCacheStore, MemoryCacheStore

__all__ = [
    'GitClient',
    'FakeGitClient',
    'CacheStore',
    'FileCacheStore',
    'MemoryCacheStore',
]
