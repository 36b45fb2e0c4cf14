from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..core import ledger
from ..core.database import get_db
from .deps import get_requester, get_reviewer
from .schemas import ReportViolationRequest, Requester

router = APIRouter(prefix="/quizzes", tags=["integrity"])


def ok(data, **extra):
    return {"success": True, "data": data, **extra}


"""
The monitoring client posts one report per detected violation.
The response carries the ledger's running count and whether the
attempt has been auto-submitted server-side.
"""
@router.post("/attempts/{attempt_id}/report-violation")
def report_violation(
    attempt_id: str,
    body: ReportViolationRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    result = ledger.report_violation(
        db,
        attempt_id,
        violation_type=body.violation_type.value,
        detection_method=body.detection_method,
        severity=body.severity.value if body.severity else None,
        details=body.details(
            user_agent=request.headers.get("user-agent"),
            ip_address=request.client.host if request.client else None,
        ),
        timestamp=body.timestamp,
    )
    return ok(result)


@router.get("/attempts/{attempt_id}/violations")
def list_violations(
    attempt_id: str,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return ok(ledger.list_for_attempt(db, attempt_id, requester.id, requester.role))


@router.get("/violations/summary")
def violation_summary(
    quizId: Optional[str] = None,
    requester: Requester = Depends(get_requester),
    db: Session = Depends(get_db),
):
    return ok(ledger.summary(db, requester.id, quizId))


@router.post("/attempts/{attempt_id}/flag")
def flag_attempt(
    attempt_id: str,
    requester: Requester = Depends(get_reviewer),
    db: Session = Depends(get_db),
):
    return ok(ledger.flag_attempt(db, attempt_id), message="Attempt has been flagged")


@router.post("/attempts/{attempt_id}/invalidate")
def invalidate_attempt(
    attempt_id: str,
    requester: Requester = Depends(get_reviewer),
    db: Session = Depends(get_db),
):
    return ok(ledger.invalidate_attempt(db, attempt_id), message="Attempt has been invalidated")
