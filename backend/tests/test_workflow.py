"""Service-level tests for assignment status transitions."""
from __future__ import annotations

import pytest

from app.core.errors import InvalidReviewer, InvalidState, NotFound, ValidationError
from app.db.base import as_utc
from app.models.assignment import AssignmentHistory
from app.models.enums import AssignmentStatus, HistoryAction, NotificationType
from app.models.notification import Notification
from app.services import workflow

from conftest import make_assignment


def _history(db, assignment_id):
    return (
        db.query(AssignmentHistory)
        .filter(AssignmentHistory.assignment_id == assignment_id)
        .order_by(AssignmentHistory.id)
        .all()
    )


def _notifications(db, user_id):
    return db.query(Notification).filter(Notification.user_id == user_id).order_by(Notification.id).all()


def test_submit_draft_to_department_professor(db, people, draft):
    assignment = workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    db.commit()

    assert assignment.status == AssignmentStatus.SUBMITTED
    assert assignment.reviewer_id == 9
    assert assignment.submitted_at is not None

    history = _history(db, 7)
    assert [entry.action for entry in history] == [HistoryAction.SUBMITTED]
    assert history[0].remark == "Assignment submitted for review to Prof Nine"

    notes = _notifications(db, 9)
    assert len(notes) == 1
    assert notes[0].type == NotificationType.ASSIGNMENT_SUBMITTED
    assert notes[0].assignment_id == 7


def test_submit_requires_draft(db, people):
    make_assignment(
        db,
        student=people["student"],
        status=AssignmentStatus.SUBMITTED,
        reviewer=people["professor"],
        assignment_id=8,
    )
    db.commit()

    with pytest.raises(InvalidState):
        workflow.submit(db, 8, student=people["student"], reviewer_id=9)


def test_submit_rejects_reviewer_from_other_department(db, people, draft):
    with pytest.raises(InvalidReviewer):
        workflow.submit(db, 7, student=people["student"], reviewer_id=20)
    db.rollback()
    assert db.get(type(draft), 7).status == AssignmentStatus.DRAFT


def test_submit_rejects_hod_as_initial_reviewer(db, people, draft):
    with pytest.raises(InvalidReviewer):
        workflow.submit(db, 7, student=people["student"], reviewer_id=12)


def test_submit_foreign_assignment_is_not_found(db, people, draft):
    with pytest.raises(NotFound):
        workflow.submit(db, 7, student=people["professor"], reviewer_id=10)


def test_reject_short_remark_mutates_nothing(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    db.commit()

    with pytest.raises(ValidationError):
        workflow.reject(db, 7, reviewer=people["professor"], remark="  too short ")
    db.rollback()

    assignment = db.get(type(draft), 7)
    assert assignment.status == AssignmentStatus.SUBMITTED
    assert assignment.reviewer_id == 9
    assert len(_history(db, 7)) == 1


def test_reject_clears_reviewer_and_notifies_student(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    feedback = "Please expand the related work section " * 4
    assignment = workflow.reject(db, 7, reviewer=people["professor"], remark=feedback)
    db.commit()

    assert assignment.status == AssignmentStatus.REJECTED
    assert assignment.reviewer_id is None
    rejected = _history(db, 7)[-1]
    assert rejected.action == HistoryAction.REJECTED
    assert rejected.signature == "Prof Nine"

    note = _notifications(db, 3)[-1]
    assert note.type == NotificationType.ASSIGNMENT_REJECTED
    assert note.message.endswith("...")


def test_reject_by_other_reviewer_is_not_found(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    db.commit()
    with pytest.raises(NotFound):
        workflow.reject(db, 7, reviewer=people["second_professor"], remark="Not assigned to you at all")


def test_resubmit_restores_original_reviewer(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    workflow.reject(db, 7, reviewer=people["professor"], remark="Needs more references please")
    db.commit()
    rejected_at = as_utc(_history(db, 7)[-1].created_at)

    result = workflow.resubmit(db, 7, student=people["student"], description="Added references")
    db.commit()

    assignment = result.assignment
    assert assignment.status == AssignmentStatus.SUBMITTED
    assert assignment.reviewer_id == 9
    assert assignment.description == "Added references"
    assert as_utc(assignment.submitted_at) >= rejected_at
    assert result.replaced_file_path is None

    last = _history(db, 7)[-1]
    assert last.action == HistoryAction.SUBMITTED
    assert last.signature == "Student Resubmission"
    assert _notifications(db, 9)[-1].type == NotificationType.ASSIGNMENT_RESUBMITTED


def test_resubmit_returns_replaced_file(db, people, draft):
    draft.file_path = "/tmp/old.pdf"
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    workflow.reject(db, 7, reviewer=people["professor"], remark="Wrong file uploaded here")
    result = workflow.resubmit(db, 7, student=people["student"], file_path="/tmp/new.pdf")

    assert result.replaced_file_path == "/tmp/old.pdf"
    assert result.assignment.file_path == "/tmp/new.pdf"


@pytest.mark.parametrize(
    "status",
    [AssignmentStatus.DRAFT, AssignmentStatus.SUBMITTED, AssignmentStatus.APPROVED, AssignmentStatus.FORWARDED],
)
def test_resubmit_only_from_rejected(db, people, status):
    make_assignment(
        db,
        student=people["student"],
        status=status,
        reviewer=people["professor"] if status != AssignmentStatus.DRAFT else None,
        assignment_id=30,
    )
    db.commit()
    with pytest.raises(InvalidState):
        workflow.resubmit(db, 30, student=people["student"])


def test_resubmit_without_resolvable_reviewer(db, people):
    make_assignment(db, student=people["student"], status=AssignmentStatus.REJECTED, assignment_id=31)
    db.commit()
    with pytest.raises(InvalidState):
        workflow.resubmit(db, 31, student=people["student"])


def test_forward_to_hod_in_same_department(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    assignment = workflow.forward(
        db,
        7,
        from_reviewer=people["professor"],
        to_reviewer_id=12,
        note="please check citations",
    )
    db.commit()

    assert assignment.status == AssignmentStatus.FORWARDED
    assert assignment.reviewer_id == 12
    forwarded = _history(db, 7)[-1]
    assert forwarded.action == HistoryAction.FORWARDED
    assert forwarded.remark == "please check citations"
    assert forwarded.reviewer_id == 9
    note = _notifications(db, 12)[-1]
    assert note.type == NotificationType.ASSIGNMENT_FORWARDED
    assert "please check citations" in note.message


def test_forward_across_departments_fails(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    db.commit()
    with pytest.raises(InvalidReviewer):
        workflow.forward(db, 7, from_reviewer=people["professor"], to_reviewer_id=20)


def test_forward_to_self_fails(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    db.commit()
    with pytest.raises(ValidationError):
        workflow.forward(db, 7, from_reviewer=people["professor"], to_reviewer_id=9)


def test_forwarded_assignment_can_be_forwarded_again_and_rejected(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    workflow.forward(db, 7, from_reviewer=people["professor"], to_reviewer_id=12)
    workflow.forward(db, 7, from_reviewer=people["hod"], to_reviewer_id=10)
    assignment = workflow.reject(db, 7, reviewer=people["second_professor"], remark="Structure is unclear overall")
    db.commit()

    assert assignment.status == AssignmentStatus.REJECTED
    assert [entry.action for entry in _history(db, 7)] == [
        HistoryAction.SUBMITTED,
        HistoryAction.FORWARDED,
        HistoryAction.FORWARDED,
        HistoryAction.REJECTED,
    ]
    # The most recent rejecter becomes the reviewer on resubmission.
    result = workflow.resubmit(db, 7, student=people["student"])
    assert result.assignment.reviewer_id == 10


def test_approve_hashes_signature(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    assignment = workflow.approve(db, 7, approver=people["professor"], remarks="Well done", signature="P. Nine")
    db.commit()

    assert assignment.status == AssignmentStatus.APPROVED
    approved = _history(db, 7)[-1]
    assert approved.action == HistoryAction.APPROVED
    assert approved.remark == "Well done"
    assert approved.signature != "P. Nine"
    assert len(approved.signature) == 64
    assert _notifications(db, 3)[-1].type == NotificationType.ASSIGNMENT_APPROVED


def test_approved_assignment_cannot_be_approved_again(db, people, draft):
    workflow.submit(db, 7, student=people["student"], reviewer_id=9)
    workflow.approve(db, 7, approver=people["professor"])
    db.commit()
    with pytest.raises(NotFound):
        workflow.approve(db, 7, approver=people["professor"])


def test_create_assignment_normalizes_category(db, people):
    assignment = workflow.create_assignment(
        db,
        student=people["student"],
        title="  Thesis draft ",
        category="thesis",
        file_path="/tmp/t.pdf",
    )
    assert assignment.title == "Thesis draft"
    assert assignment.category.value == "THESIS"
    assert assignment.status == AssignmentStatus.DRAFT


def test_create_assignment_rejects_unknown_category(db, people):
    with pytest.raises(ValidationError):
        workflow.create_assignment(
            db,
            student=people["student"],
            title="Lab",
            category="poster",
            file_path="/tmp/t.pdf",
        )
