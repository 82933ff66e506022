"""
JSON file verification store - Implements VerificationStore protocol.

Persists verified-email markers in a single JSON document keyed by email:

    {"user@example.com": {"email": "user@example.com",
                          "verifiedAt": "2026-01-01T12:00:00+00:00"}}

Writes go to a temporary file that replaces the original, so a crash
mid-write never leaves a truncated document behind.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from scanclient.domain.ports import VerifiedEmailRecord

logger = logging.getLogger(__name__)


class JsonFileVerificationStore:
    """
    Implements VerificationStore protocol via a JSON file.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, path: str | Path) -> None:
        """
        Initialize store.

        Args:
            path: Location of the JSON document; parent directories are
                created on first write
        """
        self._path = Path(path)

    def save(self, record: VerifiedEmailRecord) -> None:
        data = self._read()
        data[record.email] = {
            "email": record.email,
            "verifiedAt": record.verified_at.isoformat(),
        }
        self._write(data)

    def load(self, email: str) -> VerifiedEmailRecord | None:
        entry = self._read().get(email)
        if not isinstance(entry, dict):
            return None
        try:
            return VerifiedEmailRecord(
                email=entry["email"],
                verified_at=datetime.fromisoformat(entry["verifiedAt"]),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed verification record for %s", email)
            return None

    def delete(self, email: str) -> None:
        data = self._read()
        if data.pop(email, None) is not None:
            self._write(data)

    def _read(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Verification store %s is corrupt, starting empty", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)
