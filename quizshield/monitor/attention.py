"""
Attention state machine.

Consumes one boolean "is looking" sample per detection tick and turns the
noisy stream into at most one violation per continuous away episode:

    looking  ->  face present and facing the screen
    away     ->  face present but turned beyond the pose thresholds
    no_face  ->  no face in the recent samples at all

A majority vote over the last few samples damps blinks and detector
misses, and a grace period keeps brief glances from counting.
"""

import math
import time
from collections import deque
from typing import Callable, Optional

from ..config.settings import (
    SMOOTHING_WINDOW,
    SMOOTHING_MAJORITY,
    GRACE_PERIOD_MS,
    AWAY_LIMIT_SEC,
)
from ..core.logger import log_event


LOADING = "loading"
LOOKING = "looking"
AWAY = "away"
NO_FACE = "no_face"
ERROR = "error"
PERMISSION_DENIED = "permission_denied"

STATUSES = (LOADING, LOOKING, AWAY, NO_FACE, ERROR, PERMISSION_DENIED)

# status -> violation type reported for that away episode
VIOLATION_KIND = {AWAY: "face_away", NO_FACE: "no_face"}


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


class AttentionTracker:
    def __init__(
        self,
        on_violation: Optional[Callable[[str], None]] = None,
        on_auto_submit: Optional[Callable[[], None]] = None,
        window: int = SMOOTHING_WINDOW,
        majority: int = SMOOTHING_MAJORITY,
        grace_period_ms: int = GRACE_PERIOD_MS,
        away_limit_sec: int = AWAY_LIMIT_SEC,
        clock: Callable[[], float] = time.monotonic,
        attempt_id: str = "-",
    ):
        self.on_violation = on_violation
        self.on_auto_submit = on_auto_submit
        self.majority = majority
        self.grace_period_ms = grace_period_ms
        self.away_limit_sec = away_limit_sec
        self.clock = clock
        self.attempt_id = attempt_id

        self.status = LOADING
        # (is_looking, face_detected) pairs, oldest dropped
        self.buffer = deque(maxlen=window)
        self.away_started_at: Optional[float] = None
        self.away_seconds = 0
        self.violation_count = 0
        self._violation_fired = False

    def set_status(self, status: str):
        """Session-level transitions (loading / looking / error / permission_denied)."""
        if status not in STATUSES:
            raise ValueError(f"Unknown status: {status}")
        if status != self.status:
            log_event(self.attempt_id, "status", {"from": self.status, "to": status})
        self.status = status

    @property
    def smoothed_looking(self) -> bool:
        return sum(1 for looking, _ in self.buffer if looking) >= self.majority

    def update(self, is_looking: bool, face_detected: bool = True, now: Optional[float] = None) -> str:
        """
        Feed one tick's sample.

        Args:
            is_looking: raw classification for this tick
            face_detected: False when the detector found no face at all
            now: timestamp in seconds (defaults to clock())

        Returns:
            the status after this tick
        """
        now = self.clock() if now is None else now
        self.buffer.append((bool(is_looking), bool(face_detected)))

        if self.smoothed_looking:
            if self.away_started_at is not None and self._violation_fired:
                log_event(self.attempt_id, "face_returned", {"away_seconds": self.away_seconds})
            self.away_started_at = None
            self.away_seconds = 0
            self._violation_fired = False
            self.set_status(LOOKING)
            return self.status

        if self.away_started_at is None:
            self.away_started_at = now

        elapsed_ms = (now - self.away_started_at) * 1000
        if elapsed_ms < self.grace_period_ms:
            return self.status

        self.away_seconds = _round_half_up(elapsed_ms / 1000)
        turned = any(face and not looking for looking, face in self.buffer)
        self.set_status(AWAY if turned else NO_FACE)

        if not self._violation_fired:
            self._violation_fired = True
            self.violation_count += 1
            kind = VIOLATION_KIND[self.status]
            log_event(self.attempt_id, "violation", {"kind": kind, "count": self.violation_count}, level="warning")
            if self.on_violation:
                self.on_violation(kind)

        if self.away_seconds >= self.away_limit_sec:
            log_event(self.attempt_id, "away_limit", {"away_seconds": self.away_seconds}, level="warning")
            if self.on_auto_submit:
                self.on_auto_submit()

        return self.status
