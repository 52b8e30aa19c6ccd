"""Store finished sessions as JSON files on disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path
import threading
from typing import Any, Dict

from ..config import SESSION_STORE_DIR
from ..errors import SaveFailedError
from ..models import SessionRecord

_LOGGER = logging.getLogger(__name__)

__all__ = ["JsonDirectoryStore"]


class JsonDirectoryStore:
    """Write one ``<session_id>.json`` file per finished session."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        base = Path(base_dir if base_dir is not None else SESSION_STORE_DIR)
        self._base_dir = base if base.is_absolute() else Path.cwd() / base
        self._lock = threading.Lock()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _file_path(self, session_id: str) -> Path:
        return self._base_dir / f"{session_id}.json"

    def save(self, record: SessionRecord) -> str:
        path = self._file_path(record.session_id)
        payload = record.to_dict()
        try:
            with self._lock:
                self._write_file(path, payload)
        except OSError as exc:
            _LOGGER.error("Failed writing session file %s: %s", path, exc)
            raise SaveFailedError(
                f"Could not write session {record.session_id}: {exc}", record
            ) from exc
        _LOGGER.info(
            "Saved session %s (%d points, %.2fm) to %s",
            record.session_id,
            len(record.points),
            record.distance_m,
            path,
        )
        return record.session_id

    def _write_file(self, path: Path, payload: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        with temp_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=True, indent=2)
        temp_path.replace(path)
