"""Process-local store for pending approval codes.

Records are keyed by ``(assignment_id, approver_id)`` and expire lazily: the
expiry is only checked when a record is read. The store is not shared between
processes, so the API must run as a single worker for approvals to verify.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from app.core.settings import settings

OtpKey = tuple[int, int]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PendingApproval:
    code: str
    expires_at: datetime
    remarks: Optional[str] = None
    signature: Optional[str] = None
    failed_attempts: int = 0


class OtpStore:
    def __init__(
        self,
        ttl: timedelta,
        clock: Callable[[], datetime] = _utcnow,
        max_attempts: int = 5,
    ) -> None:
        self.ttl = ttl
        self.clock = clock
        self.max_attempts = max_attempts
        self._records: dict[OtpKey, PendingApproval] = {}
        self._lock = threading.RLock()

    def issue(
        self,
        key: OtpKey,
        code: str,
        *,
        remarks: Optional[str] = None,
        signature: Optional[str] = None,
    ) -> PendingApproval:
        """Store a new code for ``key``, replacing any earlier one."""
        record = PendingApproval(
            code=code,
            expires_at=self.clock() + self.ttl,
            remarks=remarks or None,
            signature=signature or None,
        )
        with self._lock:
            self._records[key] = record
        return record

    def get(self, key: OtpKey) -> Optional[PendingApproval]:
        with self._lock:
            return self._records.get(key)

    def is_expired(self, record: PendingApproval) -> bool:
        return self.clock() > record.expires_at

    def consume(self, key: OtpKey, code: str, matcher: Callable[[str, str], bool]) -> Optional[PendingApproval]:
        """Remove and return the record when ``matcher(record.code, code)`` holds.

        The check and the removal happen under one lock so a code verifies at
        most once even with concurrent requests. A miss counts against the
        record, which is dropped once ``max_attempts`` misses accumulate.
        """
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return None
            if not matcher(record.code, code):
                missed = replace(record, failed_attempts=record.failed_attempts + 1)
                if missed.failed_attempts >= self.max_attempts:
                    del self._records[key]
                else:
                    self._records[key] = missed
                return None
            del self._records[key]
            return record

    def discard(self, key: OtpKey) -> Optional[PendingApproval]:
        with self._lock:
            return self._records.pop(key, None)

    def purge_expired(self) -> int:
        now = self.clock()
        with self._lock:
            stale = [key for key, record in self._records.items() if now > record.expires_at]
            for key in stale:
                del self._records[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._records


otp_store = OtpStore(
    ttl=timedelta(minutes=settings.otp_ttl_minutes),
    max_attempts=settings.otp_max_attempts,
)


def get_otp_store() -> OtpStore:
    return otp_store
