"""In-memory verification store - Implements VerificationStore protocol."""

from scanclient.domain.ports import VerifiedEmailRecord


class InMemoryVerificationStore:
    """
    Implements VerificationStore protocol with a dict.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Records do not survive process restarts.
    """

    def __init__(self) -> None:
        self._records: dict[str, VerifiedEmailRecord] = {}

    def save(self, record: VerifiedEmailRecord) -> None:
        self._records[record.email] = record

    def load(self, email: str) -> VerifiedEmailRecord | None:
        return self._records.get(email)

    def delete(self, email: str) -> None:
        self._records.pop(email, None)
