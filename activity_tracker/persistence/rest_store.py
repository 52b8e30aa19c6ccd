"""Store finished sessions in a REST table (PostgREST / Supabase style)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ..config import (
    REQUEST_TIMEOUT,
    SESSION_REST_API_KEY,
    SESSION_REST_TABLE,
    SESSION_REST_URL,
)
from ..errors import SaveFailedError
from ..models import SessionRecord
from .http import create_default_session

_LOGGER = logging.getLogger(__name__)

__all__ = ["RestSessionStore", "extract_error"]


class RestSessionStore:
    """Insert one row per finished session into ``<base_url>/rest/v1/<table>``."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        table: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        url = (base_url if base_url is not None else SESSION_REST_URL).rstrip("/")
        if not url:
            raise ValueError("A REST base URL is required (SESSION_REST_URL)")
        self._endpoint = f"{url}/rest/v1/{table or SESSION_REST_TABLE}"
        self._api_key = api_key if api_key is not None else SESSION_REST_API_KEY
        self._session = session or create_default_session()
        self._timeout = timeout

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _headers(self) -> Dict[str, str]:
        headers = {"Prefer": "return=representation"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def save(self, record: SessionRecord) -> str:
        context = f"Saving session {record.session_id}"
        try:
            response = self._session.post(
                self._endpoint,
                json=record.to_dict(),
                headers=self._headers(),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            _LOGGER.warning("%s failed: %s", context, exc)
            raise SaveFailedError(f"{context} failed: {exc}", record) from exc

        if response.status_code == 409 and _is_duplicate(response):
            _LOGGER.info(
                "%s: row already exists (status 409), treating as saved", context
            )
            return record.session_id

        if not 200 <= response.status_code < 300:
            detail = extract_error(response)
            message = f"{context} failed (status {response.status_code})"
            if detail:
                message = f"{message} | {detail}"
            _LOGGER.warning(message)
            raise SaveFailedError(message, record)

        saved_id = _returned_id(response) or record.session_id
        _LOGGER.info("%s succeeded (id=%s)", context, saved_id)
        return saved_id


def _safe_json(resp: requests.Response) -> Optional[Any]:
    try:
        return resp.json()
    except ValueError as exc:
        _LOGGER.debug(
            "Failed to decode JSON from %s: %s", getattr(resp, "url", "?"), exc
        )
        return None


def _is_duplicate(resp: requests.Response) -> bool:
    # 23505 is the Postgres unique_violation code; other 409s (e.g. foreign
    # keys) are real failures.
    data = _safe_json(resp)
    if not isinstance(data, dict):
        return True
    return data.get("code") in (None, "23505")


def _returned_id(resp: requests.Response) -> Optional[str]:
    data = _safe_json(resp)
    if isinstance(data, list) and data:
        data = data[0]
    if isinstance(data, dict) and data.get("id") is not None:
        return str(data["id"])
    return None


def extract_error(resp: Optional[requests.Response]) -> Optional[str]:
    """Return compact error info (message, code, hint) from a failed response."""

    if resp is None:
        return None
    data = _safe_json(resp)
    if data is None:
        text = getattr(resp, "text", "")
        if not isinstance(text, str) or not text.strip():
            return None
        trimmed = text.strip()
        return (trimmed[:297] + "...") if len(trimmed) > 300 else trimmed
    if not isinstance(data, dict):
        return None
    parts: List[str] = []
    for key in ("message", "code", "details", "hint"):
        value = data.get(key)
        if value:
            parts.append(str(value))
    return " | ".join(parts) if parts else None
