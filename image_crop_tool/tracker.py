"""
Aspect tracker: live aspect ratio and compatibility feedback.

The tracker looks at whichever rectangle is currently in effect (the
in-progress drag rectangle if there is one, otherwise the last completed
one), clamped to the frame, and reports its aspect ratio together with a
compatibility verdict for the configured envelope.  Also holds the small
formatting helpers the UI uses to display those values.
"""

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction

from image_crop_tool.models import CompatibilityEnvelope, Rect, clamp_rect


class Verdict(Enum):
    NOT_APPLICABLE = "not_applicable"
    COMPATIBLE = "compatible"
    INCOMPATIBLE = "incompatible"


@dataclass(frozen=True)
class AspectReport:
    """Snapshot of the effective rectangle and what it means for export."""
    rect: Rect | None = None
    aspect: float | None = None
    verdict: Verdict = Verdict.NOT_APPLICABLE

    @property
    def compatible(self) -> bool:
        return self.verdict is Verdict.COMPATIBLE


def effective_rect(live: Rect | None, completed: Rect | None, frame: Rect | None) -> Rect | None:
    """Live rectangle if it has area, else the completed one, clamped to *frame*."""
    if frame is None or frame.is_empty():
        return None
    for candidate in (live, completed):
        if candidate is not None and not candidate.is_empty():
            return clamp_rect(candidate, frame)
    return None


def rect_aspect(rect: Rect | None) -> float | None:
    """Width / height, or None when either side is zero."""
    if rect is None or rect.is_empty():
        return None
    return rect.w / rect.h


def compatibility_verdict(
    aspect: float | None,
    envelope: CompatibilityEnvelope | None,
) -> Verdict:
    """Judge *aspect* against *envelope*; without an envelope the tracker is inert."""
    if envelope is None:
        return Verdict.NOT_APPLICABLE
    return Verdict.COMPATIBLE if envelope.contains(aspect) else Verdict.INCOMPATIBLE


def track(
    live: Rect | None,
    completed: Rect | None,
    frame: Rect | None,
    envelope: CompatibilityEnvelope | None = None,
) -> AspectReport:
    rect = effective_rect(live, completed, frame)
    aspect = rect_aspect(rect)
    return AspectReport(rect=rect, aspect=aspect, verdict=compatibility_verdict(aspect, envelope))


# =============================================================================
# Display helpers
# =============================================================================
def format_size(rect: Rect | None) -> str:
    """'W x H' rounded to whole units. Empty or missing → '0 x 0'."""
    if rect is None or rect.is_empty():
        return "0 x 0"
    return f"{round(rect.w)} x {round(rect.h)}"


def format_aspect(aspect: float | None) -> str:
    """'1.78:1' style label, or an em dash when there is no aspect."""
    if not aspect:
        return "—"
    return f"{aspect:.2f}:1"


def _format_bound(value: float) -> str:
    # Small exact ratios read as n:d (0.8 → 4:5), everything else as x:1
    ratio = Fraction(value).limit_denominator(10)
    if abs(float(ratio) - value) < 1e-9 and ratio.denominator != 1:
        return f"{ratio.numerator}:{ratio.denominator}"
    return f"{value:g}:1"


def describe_envelope(envelope: CompatibilityEnvelope) -> str:
    """Human-readable range, e.g. '4:5 .. 1.91:1'."""
    return f"{_format_bound(envelope.min_aspect)} .. {_format_bound(envelope.max_aspect)}"
