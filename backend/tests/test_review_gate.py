"""Approval code issue / verify behaviour."""
from __future__ import annotations

import pytest

from app.core.errors import InternalError, InvalidOtp, NotFound, OtpExpired, ValidationError
from app.models.assignment import Assignment
from app.models.enums import AssignmentStatus, HistoryAction
from app.services import review_gate, workflow


@pytest.fixture()
def submitted(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    db.commit()
    return db.get(Assignment, 7)


def _issued_code(otp_store, assignment_id=7, approver_id=9) -> str:
    return otp_store.get((assignment_id, approver_id)).code


def test_request_stores_six_digit_code(db, people, submitted, otp_store):
    review_gate.request_approval_otp(db, 7, approver=people["professor"], store=otp_store, remarks="Good work")

    record = otp_store.get((7, 9))
    assert record is not None
    assert len(record.code) == 6 and record.code.isdigit()
    assert record.remarks == "Good work"


def test_request_for_unassigned_reviewer_is_not_found(db, people, submitted, otp_store):
    with pytest.raises(NotFound):
        review_gate.request_approval_otp(db, 7, approver=people["second_professor"], store=otp_store)
    assert len(otp_store) == 0


def test_request_email_failure_discards_code(db, people, submitted, otp_store, monkeypatch):
    monkeypatch.setattr(review_gate, "send_otp_email", lambda to, code: False)
    with pytest.raises(InternalError):
        review_gate.request_approval_otp(db, 7, approver=people["professor"], store=otp_store)
    assert (7, 9) not in otp_store


def test_wrong_code_keeps_status_and_record(db, people, submitted, otp_store):
    review_gate.request_approval_otp(db, 7, approver=people["professor"], store=otp_store)
    code = _issued_code(otp_store)
    wrong = "000000" if code != "000000" else "111111"

    with pytest.raises(InvalidOtp):
        review_gate.verify_approval_otp(db, 7, approver=people["professor"], code=wrong, store=otp_store)

    assert db.get(Assignment, 7).status == AssignmentStatus.SUBMITTED
    assert (7, 9) in otp_store


def test_expired_code_is_removed(db, people, submitted, otp_store, clock):
    review_gate.request_approval_otp(db, 7, approver=people["professor"], store=otp_store)
    code = _issued_code(otp_store)
    clock.advance(minutes=11)

    with pytest.raises(OtpExpired):
        review_gate.verify_approval_otp(db, 7, approver=people["professor"], code=code, store=otp_store)

    assert (7, 9) not in otp_store
    assert db.get(Assignment, 7).status == AssignmentStatus.SUBMITTED


def test_code_verifies_exactly_once(db, people, submitted, otp_store):
    review_gate.request_approval_otp(
        db, 7, approver=people["professor"], store=otp_store, remarks="Pending remark", signature="Prof Nine"
    )
    code = _issued_code(otp_store)

    assignment = review_gate.verify_approval_otp(
        db, 7, approver=people["professor"], code=f" {code} ", store=otp_store
    )
    db.commit()
    assert assignment.status == AssignmentStatus.APPROVED
    approved = assignment.history[-1]
    assert approved.action == HistoryAction.APPROVED
    assert approved.remark == "Pending remark"

    with pytest.raises(InvalidOtp):
        review_gate.verify_approval_otp(db, 7, approver=people["professor"], code=code, store=otp_store)


def test_verify_without_request(db, people, submitted, otp_store):
    with pytest.raises(InvalidOtp) as excinfo:
        review_gate.verify_approval_otp(db, 7, approver=people["professor"], code="123456", store=otp_store)
    assert "No OTP found" in excinfo.value.message


def test_verify_requires_code(db, people, submitted, otp_store):
    with pytest.raises(ValidationError):
        review_gate.verify_approval_otp(db, 7, approver=people["professor"], code="  ", store=otp_store)


def test_code_is_scoped_to_approver(db, people, submitted, otp_store):
    review_gate.request_approval_otp(db, 7, approver=people["professor"], store=otp_store)
    code = _issued_code(otp_store)
    with pytest.raises(InvalidOtp):
        review_gate.verify_approval_otp(db, 7, approver=people["hod"], code=code, store=otp_store)


def test_verify_after_assignment_forwarded_away(db, people, submitted, otp_store):
    review_gate.request_approval_otp(db, 7, approver=people["professor"], store=otp_store)
    code = _issued_code(otp_store)
    workflow.forward(db, 7, from_reviewer=people["professor"], to_reviewer_id=12)
    db.commit()

    with pytest.raises(NotFound):
        review_gate.verify_approval_otp(db, 7, approver=people["professor"], code=code, store=otp_store)
    assert (7, 9) not in otp_store


def test_repeated_wrong_codes_discard_the_code(db, people, submitted, otp_store):
    review_gate.request_approval_otp(db, 7, approver=people["professor"], store=otp_store)
    code = _issued_code(otp_store)
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(otp_store.max_attempts - 1):
        with pytest.raises(InvalidOtp, match="Invalid OTP"):
            review_gate.verify_approval_otp(db, 7, approver=people["professor"], code=wrong, store=otp_store)
    with pytest.raises(InvalidOtp, match="Too many incorrect attempts"):
        review_gate.verify_approval_otp(db, 7, approver=people["professor"], code=wrong, store=otp_store)

    assert (7, 9) not in otp_store
    with pytest.raises(InvalidOtp, match="No OTP found"):
        review_gate.verify_approval_otp(db, 7, approver=people["professor"], code=code, store=otp_store)
    assert db.get(Assignment, 7).status == AssignmentStatus.SUBMITTED
