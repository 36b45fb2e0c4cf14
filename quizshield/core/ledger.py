"""
Violation ledger.

Append-only store of violation events per quiz attempt, plus the
reviewer-side reads and attempt state changes built on top of it.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..config.settings import AUTO_SUBMIT_VIOLATION_LIMIT
from .errors import AttemptNotFound, NotAuthorized
from .logger import log_event
from .models import (
    AttemptStatus,
    CheatingViolation,
    Quiz,
    QuizAttempt,
    Severity,
    ViolationType,
    utcnow,
)
from .report import build_summary


def _get_attempt(db: Session, attempt_id: str) -> QuizAttempt:
    attempt = db.get(QuizAttempt, attempt_id)
    if attempt is None:
        raise AttemptNotFound(attempt_id)
    return attempt


def report_violation(
    db: Session,
    attempt_id: str,
    violation_type: str,
    detection_method: Optional[str] = None,
    severity: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    timestamp: Optional[datetime] = None,
    limit: int = AUTO_SUBMIT_VIOLATION_LIMIT,
) -> Dict[str, Any]:
    """
    Persist one violation and refresh the attempt's cached count.

    The cached ``violation_count`` is rewritten from a COUNT over the
    ledger in the same statement. SQLite serializes writers, so on SQLite
    concurrent reports for one attempt never leave it below the number of
    stored rows. Under READ COMMITTED on other backends a blocked UPDATE
    may still count from its own snapshot and come out one short; the
    ledger rows stay exact either way.

    Returns:
        {"violationId", "violationCount", "autoSubmitted"}
    """
    attempt = _get_attempt(db, attempt_id)

    violation = CheatingViolation(
        quiz_attempt_id=attempt.id,
        student_id=attempt.user_id,
        quiz_id=attempt.quiz_id,
        violation_type=ViolationType(violation_type).value,
        detection_method=detection_method or "browser_event",
        severity=Severity(severity).value if severity else Severity.LOW.value,
        details=details or {},
        timestamp=timestamp or utcnow(),
    )
    db.add(violation)
    db.flush()

    ledger_count = (
        select(func.count(CheatingViolation.id))
        .where(CheatingViolation.quiz_attempt_id == attempt_id)
        .scalar_subquery()
    )
    db.execute(
        update(QuizAttempt)
        .where(QuizAttempt.id == attempt_id)
        .values(violation_count=ledger_count)
        .execution_options(synchronize_session=False)
    )
    count = db.execute(
        select(QuizAttempt.violation_count).where(QuizAttempt.id == attempt_id)
    ).scalar_one()

    if count > limit:
        result = db.execute(
            update(QuizAttempt)
            .where(
                QuizAttempt.id == attempt_id,
                QuizAttempt.status == AttemptStatus.IN_PROGRESS.value,
            )
            .values(
                status=AttemptStatus.COMPLETED.value,
                completed_at=utcnow(),
                auto_submitted=True,
                submission_reason="excessive_violations",
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            log_event(attempt_id, "auto_submit", {"reason": "excessive_violations", "count": count}, level="warning")

    # only attempts this ledger closed, not ones already invalidated or submitted
    auto_submitted = db.execute(
        select(QuizAttempt.auto_submitted).where(QuizAttempt.id == attempt_id)
    ).scalar_one()

    db.commit()

    log_event(attempt_id, "violation_recorded", {
        "type": violation.violation_type,
        "method": violation.detection_method,
        "count": count,
    })

    return {
        "violationId": violation.id,
        "violationCount": count,
        "autoSubmitted": bool(auto_submitted),
    }


def list_for_attempt(db: Session, attempt_id: str, requester_id: str, requester_role: str) -> Dict[str, Any]:
    attempt = _get_attempt(db, attempt_id)

    # students only see their own attempts; every other role is a reviewer
    if requester_role == "student" and attempt.user_id != requester_id:
        log_event(attempt_id, "unauthorized_list", {"requester": requester_id}, level="warning")
        raise NotAuthorized()

    violations = (
        db.query(CheatingViolation)
        .filter(CheatingViolation.quiz_attempt_id == attempt_id)
        .order_by(CheatingViolation.timestamp.asc(), CheatingViolation.id.asc())
        .all()
    )

    return {
        "attemptId": attempt.id,
        "subjectName": attempt.user.name if attempt.user else None,
        "quizName": attempt.quiz.title if attempt.quiz else None,
        "totalViolations": len(violations),
        "violations": [v.to_dict() for v in violations],
    }


def summary(db: Session, reviewer_id: str, quiz_id: Optional[str] = None) -> Dict[str, Any]:
    query = (
        db.query(CheatingViolation, QuizAttempt)
        .join(QuizAttempt, QuizAttempt.id == CheatingViolation.quiz_attempt_id)
        .join(Quiz, Quiz.id == QuizAttempt.quiz_id)
        .filter(Quiz.teacher_id == reviewer_id)
    )
    if quiz_id:
        query = query.filter(QuizAttempt.quiz_id == quiz_id)

    rows = query.order_by(CheatingViolation.timestamp.desc(), CheatingViolation.id.desc()).all()
    return build_summary(rows)


def flag_attempt(db: Session, attempt_id: str) -> Dict[str, Any]:
    attempt = _get_attempt(db, attempt_id)
    if not attempt.is_flagged:
        attempt.is_flagged = True
        db.commit()
        log_event(attempt_id, "attempt_flagged", {})
    return attempt.to_dict()


def invalidate_attempt(db: Session, attempt_id: str) -> Dict[str, Any]:
    attempt = _get_attempt(db, attempt_id)
    if attempt.status != AttemptStatus.INVALIDATED.value or not attempt.is_flagged:
        attempt.status = AttemptStatus.INVALIDATED.value
        attempt.is_flagged = True
        db.commit()
        log_event(attempt_id, "attempt_invalidated", {}, level="warning")
    return attempt.to_dict()
