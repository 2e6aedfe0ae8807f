"""
Crop state reconciler.

Every UI event (image selected, image loaded, preset changed, drag update,
drag commit, frame resized, reset) is handled by one pure function that
takes the current ``CropState`` and returns a new one.  The handlers decide
which generator to run and how its result merges into the state; they never
mutate their input.

``CropSession`` wraps the handlers for the UI layer: it owns the single
current state, the preset catalog and the compatibility envelope, and
answers the queries the editor needs (current/completed rectangle, live
aspect, compatibility, export readiness).

States::

    EMPTY ──loaded──▶ INITIALIZED ──drag──▶ EDITING ──commit──▶ COMMITTED
      ▲                    ▲                                        │
      └──select / reset────┴───────────preset changed───────────────┘
"""

import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass, replace
from enum import Enum

from image_crop_tool.config import MIN_EXPORT_SIZE
from image_crop_tool.models import (
    CompatibilityEnvelope,
    Preset,
    Rect,
    centered_crop,
    clamp_rect,
    compatible_crop,
    envelope_for_mode,
)
from image_crop_tool.presets import free_preset, get_preset, load_presets
from image_crop_tool.tracker import AspectReport, Verdict, track

logger = logging.getLogger(__name__)

# Queried by the UI once per event that needs the displayed image bounds
FrameProvider = Callable[[], "Rect | dict | None"]


class CropPhase(Enum):
    EMPTY = "empty"
    INITIALIZED = "initialized"
    EDITING = "editing"
    COMMITTED = "committed"


@dataclass(frozen=True)
class CropState:
    """Everything the reconciler knows about the current editing session."""
    preset: Preset
    phase: CropPhase = CropPhase.EMPTY
    source: Hashable | None = None   # identity of the selected image
    frame: Rect | None = None
    crop: Rect | None = None         # working rectangle shown by the crop widget
    live: Rect | None = None         # in-progress (drag) rectangle
    completed: Rect | None = None    # rectangle used for export


def initial_state(preset: Preset) -> CropState:
    return CropState(preset=preset)


def _usable(frame: Rect | None) -> bool:
    return frame is not None and not frame.is_empty()


def _with_generated(state: CropState, crop: Rect | None, **changes) -> CropState:
    """Install a freshly generated rectangle, or just *changes* if there is none."""
    if crop is None:
        return replace(state, **changes)
    return replace(
        state,
        crop=crop,
        live=crop,
        completed=None,
        phase=CropPhase.INITIALIZED,
        **changes,
    )


# =============================================================================
# Event handlers
# =============================================================================
def on_image_selected(state: CropState, source: Hashable | None) -> CropState:
    """A new file was picked: forget the previous image until it has loaded."""
    if source is None:
        return state
    logger.info("Image selected: %s", source)
    return replace(
        state,
        phase=CropPhase.EMPTY,
        source=source,
        frame=None,
        crop=None,
        live=None,
        completed=None,
    )


def on_image_loaded(
    state: CropState,
    source: Hashable | None,
    frame,
    *,
    fallback_frame=None,
    envelope: CompatibilityEnvelope | None = None,
    free: Preset | None = None,
) -> CropState:
    """
    The image *source* has been decoded and laid out; *frame* is its bounds.

    Completions whose *source* is not the selected image (including a
    missing one) are stale and ignored.  With a compatibility *envelope*
    the initial crop is the largest compatible rectangle and the preset is
    forced to *free*; otherwise the active preset's aspect drives a
    centered crop.  When *frame* could not be measured, *fallback_frame*
    (natural size) is used.
    """
    if state.source is None:
        logger.debug("Image loaded with no image selected — ignoring")
        return state
    if source != state.source:
        logger.debug("Stale image load for %s (current %s) — ignoring", source, state.source)
        return state

    frame = Rect.from_partial(frame)
    if not _usable(frame) and fallback_frame is not None:
        frame = Rect.from_partial(fallback_frame)
    if envelope is not None:
        crop = compatible_crop(frame, envelope)
        new_state = _with_generated(state, crop, frame=frame, preset=free or state.preset)
    else:
        crop = centered_crop(frame, state.preset.aspect)
        new_state = _with_generated(state, crop, frame=frame)

    if crop is None:
        logger.debug("Degenerate frame %s — no initial crop", frame)
    else:
        logger.debug("Initial crop %s in frame %s", crop, frame)
    return new_state


def on_preset_changed(state: CropState, preset: Preset, fallback_frame=None) -> CropState:
    """
    Switch to *preset* and regenerate a centered crop for it.

    The current frame is used when known; otherwise *fallback_frame* (the
    image's natural size) is used and becomes the frame.
    """
    state = replace(state, preset=preset)

    if _usable(state.frame):
        crop = centered_crop(state.frame, preset.aspect)
        return _with_generated(state, crop)

    fallback = Rect.from_partial(fallback_frame)
    if not _usable(fallback):
        logger.debug("Preset %s selected with no frame — crop unchanged", preset.id)
        return state

    crop = centered_crop(fallback, preset.aspect)
    if crop is None:
        return state
    return _with_generated(state, crop, frame=fallback)


def _clamped(state: CropState, raw, frame) -> tuple[Rect, Rect | None]:
    active_frame = Rect.from_partial(frame) if frame is not None else state.frame
    rect = Rect.from_partial(raw) or Rect()
    if active_frame is not None:
        rect = clamp_rect(rect, active_frame)
    return rect, active_frame


def on_crop_dragged(state: CropState, raw, frame=None) -> CropState:
    """Drag update: the clamped rectangle becomes the live one."""
    rect, active_frame = _clamped(state, raw, frame)
    return replace(state, phase=CropPhase.EDITING, frame=active_frame, crop=rect, live=rect)


def on_crop_committed(state: CropState, raw, frame=None) -> CropState:
    """Drag released: the clamped rectangle is also the export rectangle."""
    rect, active_frame = _clamped(state, raw, frame)
    logger.debug("Crop committed: %s", rect)
    return replace(
        state,
        phase=CropPhase.COMMITTED,
        frame=active_frame,
        crop=rect,
        live=rect,
        completed=rect,
    )


def on_frame_changed(state: CropState, frame) -> CropState:
    """Layout changed: keep every rectangle, clamped to the new bounds."""
    frame = Rect.from_partial(frame)
    if frame is None:
        return state

    def reclamp(rect: Rect | None) -> Rect | None:
        return clamp_rect(rect, frame) if rect is not None else None

    return replace(
        state,
        frame=frame,
        crop=reclamp(state.crop),
        live=reclamp(state.live),
        completed=reclamp(state.completed),
    )


def on_reset(state: CropState, free: Preset) -> CropState:
    logger.info("Crop session reset")
    return initial_state(free)


# =============================================================================
# Session facade
# =============================================================================
@dataclass
class CropSession:
    """
    Stateful entry point for the editor UI.

    Build with ``CropSession.create(compatibility_mode)``.  A recognized
    mode (``"instagram"``) activates the compatibility crop on load and the
    compatibility verdict; anything else leaves only centered crops.
    """
    presets: list[Preset]
    envelope: CompatibilityEnvelope | None = None
    frame_provider: FrameProvider | None = None
    state: CropState | None = None

    def __post_init__(self):
        if self.state is None:
            self.state = initial_state(self.free_preset)

    @classmethod
    def create(
        cls,
        compatibility_mode: str | None = None,
        presets: list[dict] | None = None,
        frame_provider: FrameProvider | None = None,
    ) -> "CropSession":
        envelope = envelope_for_mode(compatibility_mode)
        if compatibility_mode and envelope is None:
            logger.debug("Unrecognized compatibility mode %r — ignoring", compatibility_mode)
        return cls(presets=load_presets(presets), envelope=envelope, frame_provider=frame_provider)

    def _measure(self, frame):
        """Explicit *frame* wins; otherwise ask the frame provider once."""
        if frame is None and self.frame_provider is not None:
            return self.frame_provider()
        return frame

    @property
    def free_preset(self) -> Preset:
        return free_preset(self.presets)

    @property
    def compatibility_enabled(self) -> bool:
        return self.envelope is not None

    # ---- events ----
    def image_selected(self, source: Hashable | None) -> None:
        self.state = on_image_selected(self.state, source)

    def image_loaded(self, source: Hashable | None, frame=None, fallback_frame=None) -> None:
        self.state = on_image_loaded(
            self.state,
            source,
            self._measure(frame),
            fallback_frame=fallback_frame,
            envelope=self.envelope,
            free=self.free_preset,
        )

    def preset_changed(self, preset: Preset | str, fallback_frame=None) -> None:
        """Select *preset* (a Preset or a catalog id); unknown ids are ignored."""
        if isinstance(preset, str):
            try:
                preset = get_preset(self.presets, preset)
            except KeyError:
                logger.warning("Unknown preset id %r — keeping %s", preset, self.state.preset.id)
                return
        self.state = on_preset_changed(self.state, preset, fallback_frame)

    def crop_dragged(self, raw, frame=None) -> None:
        self.state = on_crop_dragged(self.state, raw, self._measure(frame))

    def crop_committed(self, raw, frame=None) -> None:
        self.state = on_crop_committed(self.state, raw, self._measure(frame))

    def frame_changed(self, frame) -> None:
        self.state = on_frame_changed(self.state, frame)

    def reset(self) -> None:
        self.state = on_reset(self.state, self.free_preset)

    # ---- queries ----
    @property
    def phase(self) -> CropPhase:
        return self.state.phase

    @property
    def active_preset(self) -> Preset:
        return self.state.preset

    @property
    def frame(self) -> Rect | None:
        return self.state.frame

    def current_rectangle(self) -> Rect | None:
        return self.state.crop

    def completed_rectangle(self) -> Rect | None:
        return self.state.completed

    def report(self) -> AspectReport:
        report = track(self.state.live, self.state.completed, self.state.frame, self.envelope)
        if self.state.source is None and report.verdict is Verdict.COMPATIBLE:
            # Nothing to export without an image
            return replace(report, verdict=Verdict.INCOMPATIBLE)
        return report

    def effective_rect(self) -> Rect | None:
        return self.report().rect

    def effective_aspect(self) -> float | None:
        return self.report().aspect

    def compatibility_verdict(self) -> Verdict:
        return self.report().verdict

    def is_compatible(self) -> bool:
        return self.report().compatible

    def can_export(self) -> bool:
        """True once a completed rectangle of at least MIN_EXPORT_SIZE exists."""
        completed = self.state.completed
        if self.state.source is None or completed is None:
            return False
        return completed.w >= MIN_EXPORT_SIZE and completed.h >= MIN_EXPORT_SIZE
