import enum
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship

from .database import Base


def utcnow():
    return datetime.now(timezone.utc)


class ViolationType(str, enum.Enum):
    TAB_CHANGE = "tab_change"
    COPY_ATTEMPT = "copy_attempt"
    PASTE_ATTEMPT = "paste_attempt"
    RIGHT_CLICK = "right_click"
    KEYBOARD_SHORTCUT = "keyboard_shortcut"
    SCREENSHOT_ATTEMPT = "screenshot_attempt"
    FACE_AWAY = "face_away"
    NO_FACE = "no_face"


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AttemptStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    INVALIDATED = "invalidated"


# ---------------------------------------------------------------------
# Owned by the quiz / auth collaborators. Only the columns the ledger
# joins on are declared here.
# ---------------------------------------------------------------------

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="student")


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    teacher_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    teacher = relationship("User")


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"

    id = Column(String, primary_key=True, index=True)
    quiz_id = Column(String, ForeignKey("quizzes.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=AttemptStatus.IN_PROGRESS.value)
    violation_count = Column(Integer, nullable=False, default=0)
    is_flagged = Column(Boolean, nullable=False, default=False)
    auto_submitted = Column(Boolean, nullable=False, default=False)
    submission_reason = Column(String, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User")
    quiz = relationship("Quiz")
    violations = relationship("CheatingViolation", back_populates="attempt")

    def to_dict(self):
        return {
            "id": self.id,
            "quizId": self.quiz_id,
            "userId": self.user_id,
            "status": self.status,
            "violationCount": self.violation_count,
            "isFlagged": self.is_flagged,
            "autoSubmitted": self.auto_submitted,
            "submissionReason": self.submission_reason,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }


# ---------------------------------------------------------------------
# Violation ledger: append-only, one row per accepted report.
# ---------------------------------------------------------------------

class CheatingViolation(Base):
    __tablename__ = "cheating_violations"
    __table_args__ = (
        Index("idx_violations_attempt_ts", "quiz_attempt_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, index=True)
    quiz_attempt_id = Column(String, ForeignKey("quiz_attempts.id"), nullable=False, index=True)
    student_id = Column(String, ForeignKey("users.id"), nullable=False)
    quiz_id = Column(String, ForeignKey("quizzes.id"), nullable=False, index=True)
    violation_type = Column(String, nullable=False, index=True)
    detection_method = Column(String, nullable=False, default="browser_event")
    severity = Column(String, nullable=False, default=Severity.LOW.value)
    details = Column(JSON, nullable=False, default=dict)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    attempt = relationship("QuizAttempt", back_populates="violations")

    def to_dict(self):
        return {
            "id": self.id,
            "attemptId": self.quiz_attempt_id,
            "subjectId": self.student_id,
            "quizId": self.quiz_id,
            "type": self.violation_type,
            "detectionMethod": self.detection_method,
            "severity": self.severity,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "details": self.details or {},
        }

    def __repr__(self):
        return f"<CheatingViolation {self.violation_type} for attempt {self.quiz_attempt_id}>"
