import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..config.settings import LOG_LEVEL

logger = logging.getLogger("quizshield")


def now_iso():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def log_event(attempt_id: str, event_type: str, detail: Optional[Dict[str, Any]] = None, level: str = "info"):
    """
    Log one proctoring event for an attempt.

    Produces lines like:
        [PROCTOR] attempt=42 event=violation kind=face_away count=1
    """
    message = f"[PROCTOR] attempt={attempt_id} event={event_type}"
    if detail:
        message += " " + " ".join(f"{k}={v}" for k, v in detail.items())

    if level == "debug":
        logger.debug(message)
    elif level == "warning":
        logger.warning(message)
    elif level == "error":
        logger.error(message)
    else:
        logger.info(message)
