"""Session stores receiving finished sessions."""

from .base import SessionStore
from .json_store import JsonDirectoryStore
from .rest_store import RestSessionStore

__all__ = ["SessionStore", "JsonDirectoryStore", "RestSessionStore"]
