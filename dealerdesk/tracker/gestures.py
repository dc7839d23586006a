"""Long-press gesture recognizer.

    IDLE --press--> PRESSING --tick(>= threshold)--> HELD --release/leave--> SELECTED
                       |                                                       |
                       +---release/leave (early)---> IDLE <-------reset--------+

on_long_press fires once, on entering HELD. Timestamps are passed in (seconds,
monotonic) so the machine runs on whatever clock the caller owns.
"""

import logging
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger('dealerdesk.tracker.gestures')

LONG_PRESS_THRESHOLD = 0.45
ARMING_POINTER_TYPES = ('mouse', 'touch')


class GestureState(Enum):
    IDLE = "idle"
    PRESSING = "pressing"
    HELD = "held"
    SELECTED = "selected"


class LongPressGesture:

    def __init__(self, on_long_press: Optional[Callable[[], None]] = None,
                 threshold: float = LONG_PRESS_THRESHOLD):
        self.on_long_press = on_long_press
        self.threshold = threshold
        self.state = GestureState.IDLE
        self._pressed_at: Optional[float] = None

    def press(self, now: float, pointer_type: str = 'mouse') -> bool:
        """Arm the gesture. Pens and other pointer types never arm it."""
        if pointer_type not in ARMING_POINTER_TYPES:
            return False
        if self.state is not GestureState.IDLE:
            return False
        self.state = GestureState.PRESSING
        self._pressed_at = now
        return True

    def tick(self, now: float) -> GestureState:
        if self.state is GestureState.PRESSING and now - self._pressed_at >= self.threshold:
            self.state = GestureState.HELD
            logger.debug('Long press threshold reached')
            if self.on_long_press is not None:
                self.on_long_press()
        return self.state

    def release(self, now: Optional[float] = None) -> bool:
        """Pointer up. Returns True when the press had become a long press."""
        if now is not None:
            self.tick(now)
        if self.state is GestureState.PRESSING:
            self.reset()
            return False
        if self.state is GestureState.HELD:
            self.state = GestureState.SELECTED
            self._pressed_at = None
            return True
        return False

    def leave(self, now: Optional[float] = None) -> bool:
        """Pointer left the card; same outcome as a release."""
        return self.release(now)

    def reset(self) -> None:
        self.state = GestureState.IDLE
        self._pressed_at = None
