"""
LessonSync Remote - Contract with the LMS backend.

This module provides:
- RemoteAuthority: abstract interface consumed by the engine
- HttpRemoteAuthority: REST/JSON implementation over httpx
"""

from .base import RemoteAuthority
from .client import HttpRemoteAuthority, seconds_to_minutes

__all__ = [
    "RemoteAuthority",
    "HttpRemoteAuthority",
    "seconds_to_minutes",
]
