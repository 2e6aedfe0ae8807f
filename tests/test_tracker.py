import pytest

from image_crop_tool.models import INSTAGRAM_ENVELOPE, Rect
from image_crop_tool.tracker import (
    Verdict,
    compatibility_verdict,
    describe_envelope,
    effective_rect,
    format_aspect,
    format_size,
    rect_aspect,
    track,
)

FRAME = Rect(0, 0, 1000, 500)


def test_effective_rect_needs_a_frame():
    assert effective_rect(Rect(0, 0, 10, 10), None, None) is None
    assert effective_rect(Rect(0, 0, 10, 10), None, Rect(0, 0, 0, 10)) is None


def test_effective_rect_prefers_live():
    live = Rect(0, 0, 100, 100)
    completed = Rect(0, 0, 200, 100)
    assert effective_rect(live, completed, FRAME) == live


def test_effective_rect_falls_back_to_completed():
    completed = Rect(0, 0, 200, 100)
    assert effective_rect(None, completed, FRAME) == completed
    assert effective_rect(Rect(5, 5, 0, 0), completed, FRAME) == completed
    assert effective_rect(None, None, FRAME) is None


def test_effective_rect_is_clamped():
    assert effective_rect(Rect(900, 400, 300, 300), None, FRAME) == Rect(900, 400, 100, 100)


def test_rect_aspect():
    assert rect_aspect(Rect(0, 0, 160, 90)) == pytest.approx(16 / 9)
    assert rect_aspect(Rect(0, 0, 160, 0)) is None
    assert rect_aspect(None) is None


def test_verdict_inert_without_envelope():
    assert compatibility_verdict(1.0, None) is Verdict.NOT_APPLICABLE
    assert compatibility_verdict(None, None) is Verdict.NOT_APPLICABLE


def test_verdict_boundary_tolerance():
    assert compatibility_verdict(1.91 + 0.0005, INSTAGRAM_ENVELOPE) is Verdict.COMPATIBLE
    assert compatibility_verdict(1.91 + 0.01, INSTAGRAM_ENVELOPE) is Verdict.INCOMPATIBLE
    assert compatibility_verdict(None, INSTAGRAM_ENVELOPE) is Verdict.INCOMPATIBLE


def test_track_report():
    report = track(Rect(0, 0, 400, 500), None, FRAME, INSTAGRAM_ENVELOPE)
    assert report.rect == Rect(0, 0, 400, 500)
    assert report.aspect == pytest.approx(0.8)
    assert report.compatible

    inert = track(Rect(0, 0, 400, 500), None, FRAME)
    assert inert.verdict is Verdict.NOT_APPLICABLE
    assert not inert.compatible


def test_format_helpers():
    assert format_size(Rect(0, 0, 120.4, 59.6)) == "120 x 60"
    assert format_size(None) == "0 x 0"
    assert format_size(Rect(0, 0, 10, 0)) == "0 x 0"
    assert format_aspect(16 / 9) == "1.78:1"
    assert format_aspect(None) == "—"


def test_describe_envelope():
    assert describe_envelope(INSTAGRAM_ENVELOPE) == "4:5 .. 1.91:1"
