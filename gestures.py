"""
Pointer, touch and wheel interpretation for the map.

Turns raw input into viewport operations:
- A press that moves no further than the drag threshold is a click
- A press that moves further pans the map by incremental deltas
- The wheel zooms one level at a time around the cursor
- Two touch contacts pinch-zoom around their starting midpoint

Everything runs synchronously on the thread that dispatches input events.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from constants import PRIMARY_BUTTON
from viewport import Viewport, ViewportState

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class GestureState(Enum):
    """Pointer interaction state."""
    IDLE = "idle"
    BUTTON_DOWN = "button_down"
    DRAGGING = "dragging"
    CLICK_PENDING = "click_pending"
    PINCH_ACTIVE = "pinch_active"


class GestureOutcome(Enum):
    """How a finished press was interpreted."""
    NONE = "none"
    CLICK = "click"
    DRAG = "drag"


@dataclass
class GestureCallbacks:
    """Hooks fired by the controller.

    Attributes:
        on_change: Called with the new state after every viewport change
        on_click: Called with the screen position of a click
    """
    on_change: Optional[Callable[[ViewportState], None]] = None
    on_click: Optional[Callable[[float, float], None]] = None


@dataclass
class _PinchBaseline:
    distance: float
    midpoint: Point
    snapshot: ViewportState


def _distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def _midpoint(a: Point, b: Point) -> Point:
    return (a[0] + b[0]) / 2, (a[1] + b[1]) / 2


class GestureController:
    """Click/drag/wheel/pinch state machine driving a Viewport.

    Args:
        viewport: Viewport to mutate
        callbacks: Optional change and click hooks
    """

    def __init__(self, viewport: Viewport, callbacks: Optional[GestureCallbacks] = None):
        self.viewport = viewport
        self.callbacks = callbacks or GestureCallbacks()
        self.state = GestureState.IDLE

        self._press_origin: Optional[Point] = None
        self._reference: Optional[Point] = None
        self._pinch: Optional[_PinchBaseline] = None
        # Set once a touch sequence has panned or pinched; blocks the click on release
        self._touch_moved = False

    @property
    def drag_threshold(self) -> float:
        return self.viewport.config.drag_threshold_px

    @property
    def pinch_active(self) -> bool:
        return self.state == GestureState.PINCH_ACTIVE

    @property
    def interacting(self) -> bool:
        return self.state != GestureState.IDLE

    def _changed(self, state: ViewportState) -> ViewportState:
        if self.callbacks.on_change:
            self.callbacks.on_change(state)
        return state

    def _idle(self) -> None:
        self.state = GestureState.IDLE
        self._press_origin = None
        self._reference = None
        self._pinch = None

    # -------------------------------------------------------------------------
    # Mouse / single pointer
    # -------------------------------------------------------------------------

    def pointer_down(self, x: float, y: float, button: int = PRIMARY_BUTTON,
                     on_control: bool = False) -> bool:
        """Start a press.

        Args:
            x, y: Screen position
            button: Mouse button index (only the primary button pans)
            on_control: True when the press landed on a marker or control,
                which handles its own click and must not start a pan

        Returns:
            True if the press was taken by the controller
        """
        if button != PRIMARY_BUTTON or on_control:
            return False
        self.state = GestureState.BUTTON_DOWN
        self._press_origin = (x, y)
        self._reference = (x, y)
        return True

    def pointer_move(self, x: float, y: float) -> Optional[ViewportState]:
        """Track movement; pans once the drag threshold is crossed.

        Returns:
            The new ViewportState if the map moved, else None
        """
        if self.state not in (GestureState.BUTTON_DOWN, GestureState.DRAGGING):
            return None

        if self.state == GestureState.BUTTON_DOWN:
            if _distance(self._press_origin, (x, y)) <= self.drag_threshold:
                return None
            self.state = GestureState.DRAGGING
            logger.debug(f"Drag started at ({x:.0f}, {y:.0f})")

        dx = x - self._reference[0]
        dy = y - self._reference[1]
        self._reference = (x, y)
        if dx == 0 and dy == 0:
            return None
        return self._changed(self.viewport.pan_by(dx, dy))

    def pointer_up(self, x: Optional[float] = None, y: Optional[float] = None) -> GestureOutcome:
        """Finish a press.

        A drag never counts as a click. A press that stayed inside the
        threshold fires ``on_click`` at the release position.
        """
        if self.state == GestureState.DRAGGING:
            self._idle()
            return GestureOutcome.DRAG
        if self.state != GestureState.BUTTON_DOWN:
            self._idle()
            return GestureOutcome.NONE

        if x is None or y is None:
            x, y = self._reference
        self.state = GestureState.CLICK_PENDING
        if self.callbacks.on_click:
            self.callbacks.on_click(x, y)
        self._idle()
        return GestureOutcome.CLICK

    def pointer_leave(self) -> GestureOutcome:
        """Pointer left the tracking surface: end any press without a click."""
        outcome = GestureOutcome.DRAG if self.state == GestureState.DRAGGING else GestureOutcome.NONE
        self._idle()
        return outcome

    def context_menu(self) -> bool:
        """Whether the native context menu should be suppressed."""
        return self.viewport.config.suppress_context_menu or self.interacting

    # -------------------------------------------------------------------------
    # Wheel
    # -------------------------------------------------------------------------

    def wheel(self, x: float, y: float, delta_y: float) -> Optional[ViewportState]:
        """Zoom one step around the cursor.

        Scrolling down (positive ``delta_y``) zooms out unless the config
        inverts the wheel.
        """
        if delta_y == 0:
            return None
        step = self.viewport.config.wheel_zoom_step
        direction = -1 if delta_y > 0 else 1
        if self.viewport.config.invert_wheel:
            direction = -direction
        before = self.viewport.state
        state = self.viewport.zoom_by(direction * step, anchor=(x, y))
        if state == before:
            return None
        return self._changed(state)

    # -------------------------------------------------------------------------
    # Touch
    # -------------------------------------------------------------------------

    def touch_start(self, contacts: Sequence[Point], on_control: bool = False) -> None:
        """A contact was added; ``contacts`` lists every contact now down."""
        count = len(contacts)
        if count == 1:
            self._touch_moved = False
            self.pointer_down(contacts[0][0], contacts[0][1], on_control=on_control)
        elif count == 2:
            self._start_pinch(contacts[0], contacts[1])
        else:
            # Three or more fingers: not a gesture we interpret
            self._idle()
            self._touch_moved = True

    def touch_move(self, contacts: Sequence[Point]) -> Optional[ViewportState]:
        """Contacts moved; ``contacts`` lists every contact still down."""
        if len(contacts) == 2 and self._pinch is not None:
            return self._update_pinch(contacts[0], contacts[1])
        if len(contacts) == 1:
            state = self.pointer_move(contacts[0][0], contacts[0][1])
            if self.state == GestureState.DRAGGING:
                self._touch_moved = True
            return state
        return None

    def touch_end(self, contacts: Sequence[Point]) -> GestureOutcome:
        """A contact lifted; ``contacts`` lists the contacts still down."""
        count = len(contacts)
        if count == 0:
            if self._touch_moved and self.state == GestureState.BUTTON_DOWN:
                # Finger left over from a pinch: never a click
                self._idle()
                return GestureOutcome.DRAG
            if self.state == GestureState.PINCH_ACTIVE:
                self._idle()
                return GestureOutcome.DRAG
            return self.pointer_up()
        if count == 1:
            if self.state == GestureState.PINCH_ACTIVE or self._touch_moved:
                # Resume panning from the remaining finger without a jump
                x, y = contacts[0]
                self._pinch = None
                self._press_origin = (x, y)
                self._reference = (x, y)
                self.state = GestureState.DRAGGING
                self._touch_moved = True
            return GestureOutcome.NONE
        if count == 2 and self.state != GestureState.PINCH_ACTIVE:
            self._start_pinch(contacts[0], contacts[1])
        return GestureOutcome.NONE

    def touch_cancel(self) -> GestureOutcome:
        self._touch_moved = False
        return self.pointer_leave()

    def _start_pinch(self, a: Point, b: Point) -> None:
        self._pinch = _PinchBaseline(
            distance=_distance(a, b),
            midpoint=_midpoint(a, b),
            snapshot=self.viewport.state,
        )
        self.state = GestureState.PINCH_ACTIVE
        self._touch_moved = True
        self._reference = None
        logger.debug(f"Pinch started: distance {self._pinch.distance:.1f}px, "
                     f"zoom {self._pinch.snapshot.zoom}")

    def _update_pinch(self, a: Point, b: Point) -> Optional[ViewportState]:
        pinch = self._pinch
        current = _distance(a, b)
        if pinch.distance <= 0 or current <= 0:
            return None

        target = round(pinch.snapshot.zoom + math.log2(current / pinch.distance))
        before = self.viewport.state
        state = self.viewport.zoom_to(target, anchor=pinch.midpoint, base=pinch.snapshot)
        if state == before:
            return None
        return self._changed(state)
