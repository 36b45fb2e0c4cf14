import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from ..config.settings import API_BASE_URL, REPORT_TIMEOUT_SECONDS
from ..core.logger import log_event, now_iso


@dataclass
class ReportResult:
    violation_id: Any
    violation_count: int
    auto_submitted: bool = False


class ViolationReporter:
    """
    Sends one report per violation to the ledger.

    Failures are logged and dropped: no retry, nothing raised, and the
    monitored user is never told. The ledger count is authoritative; any
    local tally is advisory only.
    """

    def __init__(
        self,
        attempt_id: str,
        base_url: str = API_BASE_URL,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = REPORT_TIMEOUT_SECONDS,
        http: Optional[requests.Session] = None,
    ):
        self.attempt_id = attempt_id
        self.url = f"{base_url.rstrip('/')}/quizzes/attempts/{attempt_id}/report-violation"
        self.headers = headers or {}
        self.timeout = timeout
        self.http = http or requests.Session()

    def report_sync(
        self,
        violation_type: str,
        detection_method: str = "browser_event",
        details: Optional[Dict[str, Any]] = None,
        duration_seconds: Optional[int] = None,
        alert_message: Optional[str] = None,
    ) -> Optional[ReportResult]:
        body = {
            "violationType": violation_type,
            "detectionMethod": detection_method,
            "event_timestamp": now_iso(),
        }
        if details:
            body["meta_data"] = details
        if duration_seconds is not None:
            body["duration_seconds"] = duration_seconds
        if alert_message:
            body["alert_message"] = alert_message

        try:
            res = self.http.post(self.url, json=body, headers=self.headers, timeout=self.timeout)
            res.raise_for_status()
            data = res.json()["data"]
            result = ReportResult(
                violation_id=data["violationId"],
                violation_count=int(data["violationCount"]),
                auto_submitted=bool(data.get("autoSubmitted", False)),
            )
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            log_event(self.attempt_id, "report_failed", {"type": violation_type, "error": e}, level="warning")
            return None

        log_event(self.attempt_id, "reported", {
            "type": violation_type,
            "count": result.violation_count,
            "auto_submitted": result.auto_submitted,
        }, level="debug")
        return result

    async def report(self, violation_type: str, detection_method: str = "browser_event", **kwargs) -> Optional[ReportResult]:
        return await asyncio.to_thread(self.report_sync, violation_type, detection_method, **kwargs)

    def close(self):
        self.http.close()
