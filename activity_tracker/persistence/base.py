"""Persistence collaborator protocol."""

from __future__ import annotations

from typing import Protocol

from ..models import SessionRecord

__all__ = ["SessionStore"]


class SessionStore(Protocol):
    def save(self, record: SessionRecord) -> str:
        """Persist ``record`` and return its id; raise ``SaveFailedError``."""
        ...
