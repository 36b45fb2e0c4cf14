"""
Input-event observers.

Each page interaction (visibility change, focus loss, clipboard, context
menu, key press) is classified on its own into a violation type. These are discrete
actions, so unlike the camera signal there is no smoothing or grace period:
every match is counted and reported immediately.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.logger import log_event, now_iso

TAB_CHANGE = "tab_change"
COPY_ATTEMPT = "copy_attempt"
PASTE_ATTEMPT = "paste_attempt"
RIGHT_CLICK = "right_click"
KEYBOARD_SHORTCUT = "keyboard_shortcut"
SCREENSHOT_ATTEMPT = "screenshot_attempt"

# Ctrl/Cmd + key
CTRL_SHORTCUTS = {"a", "s", "p", "u"}
# Ctrl/Cmd + Shift + key (devtools, console, inspector)
CTRL_SHIFT_SHORTCUTS = {"i", "j", "c"}
FUNCTION_KEYS = {"F12"}


@dataclass(frozen=True)
class InteractionEvent:
    type: str
    key: str = ""
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    hidden: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InteractionEvent":
        """Build from a browser-style payload, e.g. {"type": "keydown", "key": "c", "ctrlKey": true}."""
        return cls(
            type=str(data.get("type", "")),
            key=str(data.get("key", "")),
            ctrl=bool(data.get("ctrlKey", data.get("ctrl", False))),
            meta=bool(data.get("metaKey", data.get("meta", False))),
            shift=bool(data.get("shiftKey", data.get("shift", False))),
            hidden=bool(data.get("hidden", False)),
        )


def classify_key(event: InteractionEvent) -> Optional[str]:
    if event.key == "PrintScreen":
        return SCREENSHOT_ATTEMPT
    if event.key in FUNCTION_KEYS:
        return KEYBOARD_SHORTCUT

    if not (event.ctrl or event.meta):
        return None

    key = event.key.lower()
    if event.shift and key in CTRL_SHIFT_SHORTCUTS:
        return KEYBOARD_SHORTCUT
    if key == "c":
        return COPY_ATTEMPT
    if key == "v":
        return PASTE_ATTEMPT
    if key in CTRL_SHORTCUTS:
        return KEYBOARD_SHORTCUT
    return None


def classify(event: InteractionEvent) -> Optional[str]:
    """Map one interaction to a violation type, or None if it is harmless."""
    if event.type == "visibilitychange":
        return TAB_CHANGE if event.hidden else None
    if event.type == "blur":
        # quiz window lost focus
        return TAB_CHANGE
    if event.type == "copy":
        return COPY_ATTEMPT
    if event.type == "paste":
        return PASTE_ATTEMPT
    if event.type == "contextmenu":
        return RIGHT_CLICK
    if event.type == "keydown":
        return classify_key(event)
    return None


class InputEventObserver:
    """
    Counts classified interactions for one attempt and hands each one to
    `report` straight away. observe() returns the violation type so the
    host can suppress the default action (copy, context menu, ...).
    """

    def __init__(self, report: Optional[Callable[[str], Any]] = None, attempt_id: str = "-"):
        self.report = report
        self.attempt_id = attempt_id
        self.violations: List[Tuple[str, str]] = []
        self.last_violation_type: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.violations)

    def observe(self, event) -> Optional[str]:
        if isinstance(event, dict):
            event = InteractionEvent.from_dict(event)

        violation_type = classify(event)
        if violation_type is None:
            return None

        self.violations.append((violation_type, now_iso()))
        self.last_violation_type = violation_type
        log_event(self.attempt_id, "input_violation", {"type": violation_type, "count": self.count})

        if self.report:
            self.report(violation_type)
        return violation_type
