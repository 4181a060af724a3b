"""Lightbox viewer: the modal that shows one enlarged image at a time.

The viewer is a plain state machine driven by input events (clicks, keys,
pointer/touch movement, focus). Everything it needs is injected at
construction, so a gallery page and a test can each own their own viewer.

    Closed --open()--> Open[details collapsed] <--toggle_details()--> Open[details expanded]
    Open --close() / click_backdrop() / Escape--> Closed
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Sequence

from darkroom.config import FADE_DELAY, SWIPE_THRESHOLD
from darkroom.metadata import ImageMetadata, MetadataRegistry, references_match

CONTROLS = ("close", "previous", "next", "details")


@dataclass
class LightboxSession:
    images: tuple[str, ...]
    index: int = 0

    @property
    def current(self) -> str:
        return self.images[self.index]

    def peek(self, step: int) -> str:
        return self.images[(self.index + step) % len(self.images)]

    def step(self, delta: int) -> int:
        self.index = (self.index + delta) % len(self.images)
        return self.index


@dataclass(frozen=True)
class LightboxView:
    """What the open viewer currently shows."""

    src: str
    alt: str
    title: str
    details: list[tuple[str, str]]
    details_open: bool
    controls_visible: bool
    focused: str | None
    index: int
    total: int


def locate(reference: str, images: Sequence[str]) -> int:
    """Position of reference in images: exact match, then suffix match, else 0."""
    if reference in images:
        return images.index(reference)
    for i, candidate in enumerate(images):
        if references_match(reference, candidate):
            return i
    return 0


class LightboxViewer:
    def __init__(
        self,
        registry: MetadataRegistry | None = None,
        default_images: Sequence[str] = (),
        clock: Callable[[], float] = time.monotonic,
        fade_delay: float = FADE_DELAY,
        swipe_threshold: float = SWIPE_THRESHOLD,
    ):
        self.registry = registry if registry is not None else MetadataRegistry()
        self.default_images = tuple(default_images)
        self.clock = clock
        self.fade_delay = fade_delay
        self.swipe_threshold = swipe_threshold

        self.session: LightboxSession | None = None
        self.details_expanded = False
        self.scroll_locked = False
        self.focused: str | None = None
        self.src = ""
        self._last_activity: float | None = None
        self._touch_start: tuple[float, float] | None = None
        self._touch_end: tuple[float, float] | None = None

    # -- state ---------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self.session is not None

    @property
    def current_index(self) -> int | None:
        return self.session.index if self.session else None

    @property
    def current(self) -> str | None:
        return self.session.current if self.session else None

    @property
    def metadata(self) -> ImageMetadata | None:
        return self.registry.lookup(self.session.current) if self.session else None

    # -- transitions ---------------------------------------------------------

    def open(self, reference: str, context: Sequence[str] | None = None) -> bool:
        """Open on reference within context; False (and stay closed) if nothing resolves."""
        images = tuple(ref for ref in (context or ()) if ref)
        if not images:
            images = self.default_images
        if not images and reference:
            images = (reference,)
        if not images:
            return False

        self.session = LightboxSession(images, locate(reference, images))
        self.details_expanded = False
        self.scroll_locked = True
        # focus lands on the dialog container, not on a control
        self.focused = None
        self._reset_touch()
        self._render()
        self.show_controls()
        return True

    def close(self):
        if not self.is_open:
            return
        self.session = None
        self.src = ""
        self.scroll_locked = False
        self.details_expanded = False
        self.focused = None
        self._last_activity = None
        self._reset_touch()

    def click_backdrop(self):
        self.close()

    def next(self):
        if self.session:
            self.session.step(1)
            self._render()

    def previous(self):
        if self.session:
            self.session.step(-1)
            self._render()

    def peek(self, step: int) -> str | None:
        """Reference step positions away from the current one, without moving."""
        return self.session.peek(step) if self.session else None

    def toggle_details(self):
        if not self.is_open:
            return
        self.details_expanded = not self.details_expanded
        if not self.details_expanded:
            self.show_controls()

    def _render(self):
        self.src = self.session.current

    # -- controls fade -------------------------------------------------------

    def show_controls(self):
        """Make arrows and details toggle visible and restart the idle timer."""
        self._last_activity = self.clock()

    def pointer_moved(self):
        if self.is_open:
            self.show_controls()

    def focus_control(self, name: str):
        if not self.is_open or name not in CONTROLS:
            return
        self.focused = name
        self.show_controls()

    @property
    def controls_visible(self) -> bool:
        if not self.is_open:
            return False
        if self.details_expanded:
            return True
        if self._last_activity is None:
            return False
        return self.clock() - self._last_activity < self.fade_delay

    # -- keyboard ------------------------------------------------------------

    def handle_key(self, key: str, shift: bool = False) -> bool:
        """Handle a keydown; returns True when the viewer consumed it."""
        if not self.is_open:
            return False
        if key == "Escape":
            self.close()
        elif key == "ArrowLeft":
            self.previous()
        elif key == "ArrowRight":
            self.next()
        elif key == "Tab":
            self._cycle_focus(-1 if shift else 1)
        else:
            return False
        return True

    def _cycle_focus(self, direction: int):
        if self.focused is None:
            target = CONTROLS[0] if direction > 0 else CONTROLS[-1]
        else:
            i = CONTROLS.index(self.focused)
            target = CONTROLS[(i + direction) % len(CONTROLS)]
        self.focus_control(target)

    # -- touch ---------------------------------------------------------------

    def touch_start(self, x: float, y: float):
        if self.is_open:
            self._touch_start = (x, y)
            self._touch_end = None

    def touch_move(self, x: float, y: float):
        if self.is_open:
            self._touch_end = (x, y)

    def touch_end(self) -> str | None:
        """Finish a gesture; returns "next"/"previous" if it navigated."""
        if not self.is_open or self._touch_start is None or self._touch_end is None:
            self._reset_touch()
            return None
        dx = self._touch_end[0] - self._touch_start[0]
        dy = self._touch_end[1] - self._touch_start[1]
        self._reset_touch()
        if abs(dx) > abs(dy) and abs(dx) > self.swipe_threshold:
            if dx < 0:
                self.next()
                return "next"
            self.previous()
            return "previous"
        return None

    def _reset_touch(self):
        self._touch_start = None
        self._touch_end = None

    # -- snapshot ------------------------------------------------------------

    def view(self) -> LightboxView | None:
        if not self.session:
            return None
        meta = self.metadata
        return LightboxView(
            src=self.src,
            alt=meta.title or "Large view",
            title=meta.title,
            details=meta.details(),
            details_open=self.details_expanded,
            controls_visible=self.controls_visible,
            focused=self.focused,
            index=self.session.index,
            total=len(self.session.images),
        )
