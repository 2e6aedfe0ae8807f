"""
Preset catalog: build and validate the aspect-ratio presets.

The catalog is a list of dicts, each with ``id``, ``label``, ``ratio_w`` and
``ratio_h`` keys; both ratio keys are None for the free (unconstrained)
preset.  ``load_presets()`` turns such a list into ``Preset`` values and
falls back to DEFAULT_PRESETS if the supplied catalog fails validation.
The catalog is supplied by the UI layer and is never written to disk.
"""

import logging
from math import gcd

from image_crop_tool.config import DEFAULT_PRESETS
from image_crop_tool.models import Preset

logger = logging.getLogger(__name__)

_PRESET_REQUIRED_KEYS = {"id", "label", "ratio_w", "ratio_h"}
_PRESET_RATIO_KEYS = ("ratio_w", "ratio_h")


# =============================================================================
# Aspect-ratio helpers
# =============================================================================
def normalize_ratio(w: int, h: int) -> tuple[int, int]:
    """Reduce ratio to simplest form via GCD. (16, 10) → (8, 5)"""
    g = gcd(w, h)
    return w // g, h // g


def aspect_key(w: int, h: int) -> str:
    """Normalized string key for a ratio. (16, 10) → '8:5'"""
    nw, nh = normalize_ratio(w, h)
    return f"{nw}:{nh}"


# =============================================================================
# Validation
# =============================================================================
def validate_presets(data: object) -> list[str]:
    """
    Validate a preset catalog.

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, list) or not data:
        errors.append("Presets data must be a non-empty list")
        return errors

    ids_seen: set[str] = set()
    aspect_keys_seen: dict[str, str] = {}  # aspect_key -> preset id
    free_count = 0

    for i, preset in enumerate(data):
        prefix = f"Preset #{i + 1}"

        if not isinstance(preset, dict):
            errors.append(f"{prefix}: must be a dict")
            continue

        missing = _PRESET_REQUIRED_KEYS - preset.keys()
        if missing:
            errors.append(f"{prefix}: missing keys: {', '.join(sorted(missing))}")
            continue

        preset_id = preset["id"]
        if not isinstance(preset_id, str) or not preset_id.strip():
            errors.append(f"{prefix}: id must be a non-empty string")
        elif preset_id in ids_seen:
            errors.append(f"{prefix}: duplicate id '{preset_id}'")
        else:
            ids_seen.add(preset_id)

        label = preset["label"]
        if not isinstance(label, str) or not label.strip():
            errors.append(f"{prefix}: label must be a non-empty string")

        ratio_w = preset["ratio_w"]
        ratio_h = preset["ratio_h"]
        if ratio_w is None and ratio_h is None:
            free_count += 1
            continue

        valid = True
        for key in _PRESET_RATIO_KEYS:
            val = preset[key]
            # bool is an int subclass; reject it explicitly
            if not isinstance(val, int) or isinstance(val, bool) or val <= 0:
                errors.append(f"{prefix}: {key} must be a positive integer or None, got {val!r}")
                valid = False

        if valid:
            akey = aspect_key(ratio_w, ratio_h)
            if akey in aspect_keys_seen:
                errors.append(
                    f"{prefix} ('{preset_id}'): normalized aspect ratio {akey} "
                    f"duplicates preset '{aspect_keys_seen[akey]}'"
                )
            else:
                aspect_keys_seen[akey] = preset_id

    if free_count > 1:
        errors.append("At most one free preset is allowed")

    return errors


# =============================================================================
# Load / Lookup
# =============================================================================
def _to_preset(data: dict) -> Preset:
    ratio_w = data["ratio_w"]
    ratio_h = data["ratio_h"]
    aspect = ratio_w / ratio_h if ratio_w is not None else None
    return Preset(id=data["id"], label=data["label"], aspect=aspect)


def load_presets(data: list[dict] | None = None) -> list[Preset]:
    """
    Build the preset catalog.

    With no *data* the built-in DEFAULT_PRESETS are used.  If *data* fails
    validation the problems are logged and the defaults are returned.
    """
    if data is None:
        return [_to_preset(p) for p in DEFAULT_PRESETS]

    errors = validate_presets(data)
    if errors:
        logger.warning(
            "Preset catalog validation failed:\n  %s\nUsing defaults.",
            "\n  ".join(errors),
        )
        return [_to_preset(p) for p in DEFAULT_PRESETS]

    return [_to_preset(p) for p in data]


def free_preset(presets: list[Preset]) -> Preset:
    """Return the free preset of a catalog, falling back to a bare one."""
    for preset in presets:
        if preset.is_free:
            return preset
    logger.debug("Catalog has no free preset — using built-in default")
    return _to_preset(DEFAULT_PRESETS[0])


def get_preset(presets: list[Preset], preset_id: str) -> Preset:
    """
    Look up a preset by id.

    Raises KeyError if no preset has that id.
    """
    for preset in presets:
        if preset.id == preset_id:
            return preset
    raise KeyError(f"Unknown preset id: {preset_id!r}")
