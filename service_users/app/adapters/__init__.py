"""
Adapters package for the user service.

Contains the HTTP client wrapper for the remote user service. The adapter
encapsulates:

- Base URL and request shapes
- The liveness-gated call policy
- Error handling that maps failures to tagged results

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .user_client import UserServiceClient

__all__ = ["UserServiceClient"]
