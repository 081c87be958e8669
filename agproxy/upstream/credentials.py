"""Static credential provider backed by configuration or a token file."""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Optional

from ..settings import CredentialSettings
from .base import Credential

logger = logging.getLogger("agproxy")


def _get_str(raw: dict[str, Any], *names: str) -> Optional[str]:
    for name in names:
        value = raw.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _load_token_entries(path: Path) -> list[dict[str, Any]]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning(f"Token file not found: {path}")
        return []
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(f"Failed to read token file {path}: {exc}")
        return []

    if isinstance(raw, dict):
        return [raw]
    if isinstance(raw, list):
        return [entry for entry in raw if isinstance(entry, dict)]
    logger.warning(f"Token file {path} must hold an object or a list of objects")
    return []


class StaticCredentialProvider:
    """Hands out an already-issued upstream token.

    Inline settings take priority; otherwise the first enabled entry of the
    token file with an ``access_token`` is used. The file is re-read on every
    call so an external tool may rotate it. Tokens are never refreshed here.
    """

    def __init__(self, settings: Optional[CredentialSettings] = None) -> None:
        self.settings = settings or CredentialSettings()
        self._session_id = self.settings.session_id or str(uuid.uuid4())

    async def get_credential(self) -> Optional[Credential]:
        if self.settings.access_token:
            return Credential(
                access_token=self.settings.access_token,
                project_id=self.settings.project_id,
                session_id=self._session_id,
            )

        if not self.settings.token_file:
            return None

        for entry in _load_token_entries(Path(self.settings.token_file).expanduser()):
            if entry.get("enable") is False:
                continue
            token = _get_str(entry, "access_token", "accessToken")
            if not token:
                continue
            return Credential(
                access_token=token,
                project_id=_get_str(entry, "project_id", "projectId") or self.settings.project_id,
                session_id=_get_str(entry, "session_id", "sessionId") or self._session_id,
            )

        logger.warning(f"No usable token in {self.settings.token_file}")
        return None
