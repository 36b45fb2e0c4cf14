from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.models import Severity, ViolationType


class ReportViolationRequest(BaseModel):
    """
    Body of POST /quizzes/attempts/{attemptId}/report-violation.

    Accepts both camelCase and snake_case field names, as sent by the
    different quiz pages.
    """

    model_config = ConfigDict(populate_by_name=True)

    violation_type: ViolationType = Field(..., alias="violationType")
    detection_method: str = Field("browser_event", alias="detectionMethod")
    severity: Optional[Severity] = None
    timestamp: Optional[datetime] = None
    event_timestamp: Optional[str] = Field(None, alias="eventTimestamp")
    alert_message: Optional[str] = Field(None, alias="alertMessage")
    duration_seconds: Optional[float] = Field(None, alias="durationSeconds")
    meta_data: Optional[Dict[str, Any]] = Field(None, alias="metaData")

    def details(self, user_agent: Optional[str], ip_address: Optional[str]) -> Dict[str, Any]:
        """Opaque metadata bag stored with the row; None values are dropped."""
        details = {
            "userAgent": user_agent,
            "ipAddress": ip_address,
            "eventTimestamp": self.event_timestamp,
            "alertMessage": self.alert_message,
            "durationSeconds": self.duration_seconds,
            "payloadMetaData": self.meta_data,
        }
        return {k: v for k, v in details.items() if v is not None}


class Requester(BaseModel):
    id: str
    role: str = "student"
