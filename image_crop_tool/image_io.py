"""
Pillow helpers for the export side of the editor.

The crop engine works in display coordinates; the image on screen is usually
scaled.  These helpers map a display-space selection back to source pixels
and cut it out of an already decoded ``PIL.Image``.  Decoding the user's
file and encoding the result are left to the caller.
"""

import time

from PIL import Image

from image_crop_tool.config import EXPORT_FILENAME_PREFIX, EXPORT_FORMAT
from image_crop_tool.models import Rect


def image_frame(image: Image.Image) -> Rect:
    """Natural-size frame at the origin, used when no layout frame is known."""
    return Rect(0, 0, image.width, image.height)


def export_box(
    rect: Rect,
    natural_size: tuple[int, int],
    display_size: tuple[float, float],
    frame: Rect | None = None,
) -> tuple[int, int, int, int]:
    """
    Scale a display-space crop to a ``(left, top, right, bottom)`` pixel box.

    *rect* is relative to the display origin; when *frame* (the on-screen
    image bounds) is given, its origin is subtracted first.  Each axis is
    scaled by ``natural / display``.  The box is rounded to whole pixels
    and clamped to the natural image size.
    """
    nat_w, nat_h = natural_size
    disp_w, disp_h = display_size
    scale_x = nat_w / disp_w if disp_w else 1.0
    scale_y = nat_h / disp_h if disp_h else 1.0
    origin_x = frame.x if frame is not None else 0.0
    origin_y = frame.y if frame is not None else 0.0

    left = round((rect.x - origin_x) * scale_x)
    top = round((rect.y - origin_y) * scale_y)
    right = round((rect.x - origin_x + rect.w) * scale_x)
    bottom = round((rect.y - origin_y + rect.h) * scale_y)

    left = min(max(0, left), nat_w)
    top = min(max(0, top), nat_h)
    right = min(max(left, right), nat_w)
    bottom = min(max(top, bottom), nat_h)
    return left, top, right, bottom


def crop_to_selection(
    image: Image.Image,
    rect: Rect,
    display_size: tuple[float, float] | None = None,
    frame: Rect | None = None,
) -> Image.Image:
    """Cut the selected region out of *image* at full source resolution.

    *frame* is the on-screen image bounds the crop was drawn against.
    *display_size* defaults to the frame's size, or to the natural size
    when neither is given.
    """
    if display_size is None:
        display_size = (frame.w, frame.h) if frame is not None else image.size
    return image.crop(export_box(rect, image.size, display_size, frame))


def export_filename(now: float | None = None) -> str:
    """Download name for an exported crop: ``cropped-<epoch ms>.png``."""
    if now is None:
        now = time.time()
    return f"{EXPORT_FILENAME_PREFIX}-{int(now * 1000)}.{EXPORT_FORMAT.lower()}"
