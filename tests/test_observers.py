"""
Tests for input-event classification
"""

import pytest

from quizshield.monitor.observers import InputEventObserver, InteractionEvent, classify


def keydown(key, **mods):
    return InteractionEvent(type="keydown", key=key, **mods)


class TestClassify:
    """Tests for the event -> violation type map"""

    @pytest.mark.parametrize("event,expected", [
        (InteractionEvent(type="visibilitychange", hidden=True), "tab_change"),
        (InteractionEvent(type="blur"), "tab_change"),
        (InteractionEvent(type="copy"), "copy_attempt"),
        (InteractionEvent(type="paste"), "paste_attempt"),
        (InteractionEvent(type="contextmenu"), "right_click"),
        (keydown("PrintScreen"), "screenshot_attempt"),
        (keydown("F12"), "keyboard_shortcut"),
        (keydown("c", ctrl=True), "copy_attempt"),
        (keydown("C", meta=True), "copy_attempt"),
        (keydown("v", ctrl=True), "paste_attempt"),
        (keydown("a", ctrl=True), "keyboard_shortcut"),
        (keydown("s", meta=True), "keyboard_shortcut"),
        (keydown("p", ctrl=True), "keyboard_shortcut"),
        (keydown("u", ctrl=True), "keyboard_shortcut"),
        (keydown("I", ctrl=True, shift=True), "keyboard_shortcut"),
        (keydown("j", ctrl=True, shift=True), "keyboard_shortcut"),
        (keydown("c", ctrl=True, shift=True), "keyboard_shortcut"),
    ])
    def test_violations(self, event, expected):
        assert classify(event) == expected

    @pytest.mark.parametrize("event", [
        InteractionEvent(type="visibilitychange", hidden=False),
        InteractionEvent(type="click"),
        keydown("c"),
        keydown("a"),
        keydown("x", ctrl=True),
        keydown("Enter"),
    ])
    def test_harmless(self, event):
        assert classify(event) is None

    def test_from_browser_payload(self):
        event = InteractionEvent.from_dict({"type": "keydown", "key": "v", "metaKey": True})
        assert event.meta and not event.ctrl
        assert classify(event) == "paste_attempt"


class TestInputEventObserver:
    """Tests for InputEventObserver"""

    def test_counts_and_reports_every_match(self):
        reported = []
        observer = InputEventObserver(report=reported.append, attempt_id="attempt-1")

        assert observer.observe({"type": "copy"}) == "copy_attempt"
        assert observer.observe({"type": "copy"}) == "copy_attempt"
        assert observer.observe({"type": "contextmenu"}) == "right_click"

        assert observer.count == 3
        assert reported == ["copy_attempt", "copy_attempt", "right_click"]
        assert observer.last_violation_type == "right_click"

    def test_window_blur_counts_as_tab_change(self):
        reported = []
        observer = InputEventObserver(report=reported.append)

        assert observer.observe({"type": "blur"}) == "tab_change"
        assert reported == ["tab_change"]

    def test_harmless_event_not_counted(self):
        reported = []
        observer = InputEventObserver(report=reported.append)

        assert observer.observe({"type": "keydown", "key": "b"}) is None
        assert observer.count == 0
        assert reported == []

    def test_violation_timestamped(self):
        observer = InputEventObserver()
        observer.observe(InteractionEvent(type="visibilitychange", hidden=True))

        violation_type, ts = observer.violations[0]
        assert violation_type == "tab_change"
        assert ts.endswith("Z")
