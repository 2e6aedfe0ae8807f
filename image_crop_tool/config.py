"""
Application constants and configuration.

DEFAULT_PRESETS provides the built-in aspect-ratio catalog offered to the
user.  All other constants control crop-engine behaviour: the initial crop
coverage, the compatibility envelope bounds and the export threshold.

Compatibility mode is chosen by the embedding UI through a query parameter
(``?compatibility=instagram``); ``compatibility_mode_from_query()`` extracts
it and ``models.envelope_for_mode()`` turns it into an envelope.
"""

from urllib.parse import parse_qs

# =============================================================================
# DEFAULT PRESETS — order is the order shown in the UI, first entry is free
# =============================================================================
DEFAULT_PRESETS = [
    {"id": "free", "label": "Free", "ratio_w": None, "ratio_h": None},
    {"id": "square", "label": "Square", "ratio_w": 1, "ratio_h": 1},
    {"id": "16:9", "label": "16:9", "ratio_w": 16, "ratio_h": 9},
    {"id": "16:10", "label": "16:10", "ratio_w": 16, "ratio_h": 10},
    {"id": "4:3", "label": "4:3", "ratio_w": 4, "ratio_h": 3},
    {"id": "3:4", "label": "3:4", "ratio_w": 3, "ratio_h": 4},
]

# Initial crop coverage (fraction of the frame on each axis)
FREE_AREA_FRACTION = 0.6
SAFE_AREA_FRACTION = 0.8

# ---------------------------------------------------------------------------
# Compatibility envelopes
# ---------------------------------------------------------------------------
# Aspect values derived from pixel sizes rarely hit a bound exactly
COMPATIBILITY_EPSILON = 0.001

INSTAGRAM_MIN_ASPECT = 4 / 5
INSTAGRAM_MAX_ASPECT = 1.91
INSTAGRAM_COMPATIBILITY_KEY = "instagram"

COMPATIBILITY_QUERY_PARAM = "compatibility"

# Minimum completed crop size (display units) before export is allowed
MIN_EXPORT_SIZE = 2

# Export naming
EXPORT_FORMAT = "PNG"
EXPORT_FILENAME_PREFIX = "cropped"


def compatibility_mode_from_query(query: str | None) -> str | None:
    """Return the lowercased ``compatibility`` query value, or None.

    Accepts a raw query string with or without the leading ``?``.
    """
    if not query:
        return None
    values = parse_qs(query.lstrip("?")).get(COMPATIBILITY_QUERY_PARAM)
    if not values or not values[0].strip():
        return None
    return values[0].strip().lower()
