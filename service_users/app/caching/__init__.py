"""
User caching package.

Holds recently seen user snapshots so repeated lookups skip the network.
Entries are short-lived and bounded; the cache is only written after the user
service acknowledges a change.
"""

from .user_cache import UserCache

__all__ = ["UserCache"]
