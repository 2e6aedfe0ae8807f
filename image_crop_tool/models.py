"""
Data models and crop-geometry utilities.

Rect, Preset and CompatibilityEnvelope are the value types shared by the
reconciler, the aspect tracker and the export helpers.  All rectangles are
expressed in display coordinates (the on-screen bounds of the image).  The
three generator functions below are pure: they take values and return new
values, never mutating their inputs.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from image_crop_tool.config import (
    COMPATIBILITY_EPSILON,
    FREE_AREA_FRACTION,
    INSTAGRAM_COMPATIBILITY_KEY,
    INSTAGRAM_MAX_ASPECT,
    INSTAGRAM_MIN_ASPECT,
    SAFE_AREA_FRACTION,
)


# =============================================================================
# Data classes
# =============================================================================
@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in display coordinates."""
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0

    @classmethod
    def from_partial(cls, data) -> "Rect | None":
        """
        Normalize a possibly incomplete rectangle into a Rect.

        *data* may be a Rect, a mapping with ``x``, ``y``, ``width``/``w``
        and ``height``/``h`` keys, or an ``(x, y, w, h)`` sequence.  Missing
        or None fields become 0 and negative sizes are floored at 0.
        Returns None when *data* itself is None.
        """
        if data is None:
            return None
        if isinstance(data, Rect):
            return data
        if isinstance(data, Mapping):
            x = data.get("x")
            y = data.get("y")
            w = data.get("width", data.get("w"))
            h = data.get("height", data.get("h"))
        else:
            x, y, w, h = (list(data) + [None] * 4)[:4]
        return cls(
            x=float(x or 0),
            y=float(y or 0),
            w=max(0.0, float(w or 0)),
            h=max(0.0, float(h or 0)),
        )

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def is_empty(self) -> bool:
        """True when the rectangle has no area."""
        return self.w <= 0 or self.h <= 0

    def contains(self, other: "Rect") -> bool:
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def to_dict(self) -> dict:
        """Serialize for the rendering collaborator (``width``/``height`` keys)."""
        return {"x": self.x, "y": self.y, "width": self.w, "height": self.h}


@dataclass(frozen=True)
class Preset:
    """A named aspect ratio offered to the user; aspect None means free."""
    id: str
    label: str
    aspect: float | None = None

    @property
    def is_free(self) -> bool:
        return self.aspect is None


@dataclass(frozen=True)
class CompatibilityEnvelope:
    """Inclusive aspect-ratio range accepted by a target platform."""
    min_aspect: float
    max_aspect: float
    epsilon: float = COMPATIBILITY_EPSILON

    def contains(self, aspect: float | None) -> bool:
        """Tolerant inclusive range check; None is never contained."""
        if not aspect:
            return False
        return self.min_aspect - self.epsilon <= aspect <= self.max_aspect + self.epsilon


INSTAGRAM_ENVELOPE = CompatibilityEnvelope(INSTAGRAM_MIN_ASPECT, INSTAGRAM_MAX_ASPECT)

COMPATIBILITY_ENVELOPES = {
    INSTAGRAM_COMPATIBILITY_KEY: INSTAGRAM_ENVELOPE,
}


def envelope_for_mode(mode: str | None) -> CompatibilityEnvelope | None:
    """Map a compatibility mode name to its envelope (None when unrecognized)."""
    if not mode:
        return None
    return COMPATIBILITY_ENVELOPES.get(mode.lower())


# =============================================================================
# Crop math utilities
# =============================================================================
def clamp_rect(candidate, frame) -> Rect:
    """Intersect *candidate* with *frame*; a zero-size result means no overlap."""
    crop = Rect.from_partial(candidate) or Rect()
    bounds = Rect.from_partial(frame) or Rect()
    x1 = max(bounds.x, crop.x)
    y1 = max(bounds.y, crop.y)
    x2 = min(bounds.right, crop.right)
    y2 = min(bounds.bottom, crop.bottom)
    return Rect(x1, y1, max(0.0, x2 - x1), max(0.0, y2 - y1))


def center_in_frame(frame: Rect, crop_w: float, crop_h: float) -> Rect:
    """Return a crop_w × crop_h rectangle centered inside *frame*."""
    return Rect(
        frame.x + (frame.w - crop_w) / 2,
        frame.y + (frame.h - crop_h) / 2,
        crop_w,
        crop_h,
    )


def centered_crop(frame, aspect: float | None) -> Rect | None:
    """
    Default crop for a freshly loaded image or a newly selected preset.

    Free aspect covers 60% of each side.  A fixed aspect starts at 80% of
    the frame width and falls back to 80% of the height when that would
    overflow, so the crop always stays inside the 80% safe area.
    """
    frame = Rect.from_partial(frame)
    if frame is None or frame.is_empty():
        return None

    if not aspect:
        return center_in_frame(
            frame, frame.w * FREE_AREA_FRACTION, frame.h * FREE_AREA_FRACTION,
        )

    crop_w = frame.w * SAFE_AREA_FRACTION
    crop_h = crop_w / aspect
    if crop_h > frame.h * SAFE_AREA_FRACTION:
        crop_h = frame.h * SAFE_AREA_FRACTION
        crop_w = crop_h * aspect
    return center_in_frame(frame, crop_w, crop_h)


def compatible_crop(frame, envelope: CompatibilityEnvelope) -> Rect | None:
    """Largest centered rectangle inside *frame* whose aspect fits *envelope*."""
    frame = Rect.from_partial(frame)
    if frame is None or frame.is_empty():
        return None

    image_aspect = frame.w / frame.h
    if envelope.contains(image_aspect):
        return frame

    if image_aspect < envelope.min_aspect:
        # Too tall: keep the width, trim top and bottom
        crop_h = frame.w / envelope.min_aspect
        return Rect(frame.x, frame.y + (frame.h - crop_h) / 2, frame.w, crop_h)
    # Too wide: keep the height, trim the sides
    crop_w = frame.h * envelope.max_aspect
    return Rect(frame.x + (frame.w - crop_w) / 2, frame.y, crop_w, frame.h)
