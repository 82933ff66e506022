"""
Verification bookkeeping - degraded fallback for the email-verified check.

The backend is authoritative for whether an email has been verified. The
device keeps a short-lived marker written when the backend confirmed a
code; it is consulted only when the backend check is unreachable and is
valid for 30 minutes from when it was written.

Verification codes are never generated or compared on the device.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .errors import ApiError
from .ports import AuthBackend, VerificationStore, VerifiedEmailRecord

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VerificationBookkeeping:
    """Backend-first verified-email check with a local fallback."""

    backend: AuthBackend
    store: VerificationStore
    ttl: timedelta = DEFAULT_TTL
    clock: Callable[[], datetime] = field(default=_utcnow)

    def mark_verified(self, email: str) -> VerifiedEmailRecord:
        """Record that the backend confirmed a code for this email."""
        record = VerifiedEmailRecord(email=email, verified_at=self.clock())
        self.store.save(record)
        return record

    def clear(self, email: str) -> None:
        """
        Drop the local marker.

        Best-effort: a storage failure is logged and never aborts the caller.
        """
        try:
            self.store.delete(email)
        except Exception:
            logger.warning("Could not clear verification marker for %s", email, exc_info=True)

    def has_fresh_record(self, email: str) -> bool:
        try:
            record = self.store.load(email)
        except Exception:
            logger.warning("Could not read verification marker for %s", email, exc_info=True)
            return False
        return record is not None and record.is_fresh(self.clock(), self.ttl)

    async def is_email_verified(self, email: str) -> bool:
        """
        Check whether the email has been verified.

        Prefers the backend; falls back to the local marker only when the
        backend call fails. The fallback is weaker than the authoritative
        check and must not be used as a security boundary.
        """
        try:
            return await self.backend.check_email_verified(email)
        except ApiError as exc:
            logger.warning(
                "Backend verification check failed for %s (%s), using local marker",
                email,
                exc.message,
            )
            return self.has_fresh_record(email)
