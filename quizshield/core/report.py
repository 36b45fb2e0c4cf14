from .models import ViolationType


def build_summary(rows):
    """
    Aggregate (violation, attempt) rows for the reviewer dashboard.

    Rows are expected newest first; that order is kept inside each
    attempt group, and groups appear in order of their latest violation.
    """
    by_type = {t.value: 0 for t in ViolationType}
    attempts = {}

    for violation, attempt in rows:
        by_type[violation.violation_type] = by_type.get(violation.violation_type, 0) + 1

        group = attempts.get(attempt.id)
        if group is None:
            group = attempts[attempt.id] = {
                "attemptId": attempt.id,
                "subjectId": attempt.user_id,
                "quizId": attempt.quiz_id,
                "status": attempt.status,
                "isFlagged": attempt.is_flagged,
                "totalCount": 0,
                "violations": [],
            }
        group["violations"].append(violation.to_dict())
        group["totalCount"] += 1

    return {
        "totalViolations": len(rows),
        "suspiciousAttemptCount": len(attempts),
        "byType": by_type,
        "attempts": list(attempts.values()),
    }
