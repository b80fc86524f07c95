"""One-time-code gate in front of assignment approval.

A reviewer first requests a code, which is emailed to them and held in the
process-local :class:`~app.core.otp_store.OtpStore`. Approval only happens
when the same reviewer presents the code before it expires. Codes are single
use: a successful verification removes the record, as does an expired read.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import InternalError, InvalidOtp, OtpExpired, ValidationError
from app.core.observability import record_otp_event
from app.core.otp_store import OtpStore
from app.core.security import codes_match, generate_numeric_code
from app.models.assignment import Assignment
from app.models.user import User
from app.services import workflow
from app.services.email import send_otp_email

logger = logging.getLogger("workflow")


def _log(event: str, assignment_id: int, approver: User) -> None:
    record_otp_event(event)
    logger.info(
        f"approval_otp_{event}",
        extra={"assignment_id": assignment_id, "actor_id": approver.id, "action": "approve"},
    )


def request_approval_otp(
    db: Session,
    assignment_id: int,
    *,
    approver: User,
    store: OtpStore,
    remarks: Optional[str] = None,
    signature: Optional[str] = None,
) -> None:
    workflow.get_assignment_under_review(db, assignment_id, approver)

    key = (assignment_id, approver.id)
    code = generate_numeric_code()
    store.issue(
        key,
        code,
        remarks=(remarks or "").strip() or None,
        signature=(signature or "").strip() or None,
    )
    if not send_otp_email(approver.email, code):
        store.discard(key)
        _log("send_failed", assignment_id, approver)
        raise InternalError("Failed to send OTP to your email. Please try again.")
    _log("issued", assignment_id, approver)


def verify_approval_otp(
    db: Session,
    assignment_id: int,
    *,
    approver: User,
    code: Optional[str],
    store: OtpStore,
    remarks: Optional[str] = None,
    signature: Optional[str] = None,
) -> Assignment:
    supplied = (code or "").strip()
    if not supplied:
        raise ValidationError("OTP is required")

    key = (assignment_id, approver.id)
    record = store.get(key)
    if record is None:
        _log("missing", assignment_id, approver)
        raise InvalidOtp("No OTP found. Please request a new one.")
    if store.is_expired(record):
        store.discard(key)
        _log("expired", assignment_id, approver)
        raise OtpExpired()

    consumed = store.consume(key, supplied, codes_match)
    if consumed is None:
        if key not in store:
            _log("locked", assignment_id, approver)
            raise InvalidOtp("Too many incorrect attempts. Please request a new one.")
        _log("mismatch", assignment_id, approver)
        raise InvalidOtp()

    _log("verified", assignment_id, approver)
    return workflow.approve(
        db,
        assignment_id,
        approver=approver,
        remarks=(remarks or "").strip() or consumed.remarks,
        signature=(signature or "").strip() or consumed.signature,
    )
