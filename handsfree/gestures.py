"""
Gesture recognition that converts hand landmark frames into discrete gestures.
"""
from typing import Optional

from .types import Gesture, LandmarkFrame
from .config import ThresholdConfig


DEFAULT_THRESHOLDS = ThresholdConfig()


def classify(frame: LandmarkFrame, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> Gesture:
    """
    Classify one frame of hand landmarks.

    Directional checks run before submit/clear, so a pose that satisfies
    both is always reported as a direction.

    Args:
        frame: Landmarks of a single hand, normalized, y growing downward
        thresholds: Offsets from the wrist for each rule

    Returns:
        The gesture label, Gesture.NONE if no rule matches
    """
    wrist = frame.wrist
    index_tip = frame.index_tip

    if index_tip.y < wrist.y - thresholds.up:
        return Gesture.UP
    if index_tip.y > wrist.y + thresholds.down:
        return Gesture.DOWN
    if index_tip.x < wrist.x - thresholds.left:
        return Gesture.LEFT
    if index_tip.x > wrist.x + thresholds.right:
        return Gesture.RIGHT

    middle_tip = frame.middle_tip
    thumb_tip = frame.thumb_tip
    ring_tip = frame.ring_tip
    pinky_tip = frame.pinky_tip

    # Any finger not curled counts as a confirmation
    index_up = index_tip.y < wrist.y - thresholds.finger_up
    middle_up = middle_tip.y < wrist.y - thresholds.finger_up
    thumb_down = thumb_tip.y > wrist.y + thresholds.finger_down
    ring_down = ring_tip.y > wrist.y + thresholds.finger_down
    pinky_down = pinky_tip.y > wrist.y + thresholds.finger_down
    if index_up or middle_up or thumb_down or ring_down or pinky_down:
        return Gesture.SUBMIT

    if (abs(index_tip.x - pinky_tip.x) > thresholds.clear_outer_spread
            and abs(middle_tip.x - ring_tip.x) > thresholds.clear_inner_spread):
        return Gesture.CLEAR

    return Gesture.NONE


class GestureEdgeTrigger:
    """
    Turns a per-frame gesture stream into edge-triggered deliveries.

    A non-NONE gesture is delivered once; holding the pose delivers nothing
    more until a different label, NONE included, has been observed.
    """

    def __init__(self):
        self.last_emitted: Optional[Gesture] = None
        self.last_observed: Optional[Gesture] = None

    def update(self, gesture: Gesture) -> Optional[Gesture]:
        """Observe one gesture; return it if it should fire, else None."""
        changed = gesture != self.last_observed
        self.last_observed = gesture

        if gesture is Gesture.NONE or not changed:
            return None

        self.last_emitted = gesture
        return gesture

    def reset(self) -> None:
        """Forget history, e.g. when the pipeline restarts."""
        self.last_emitted = None
        self.last_observed = None


class GestureProcessor:
    """
    Main gesture processor that classifies frames and applies edge triggering.
    """

    def __init__(self, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS):
        """Initialize gesture processor with rule thresholds."""
        self.thresholds = thresholds
        self.trigger = GestureEdgeTrigger()

    def process_frame(self, frame: Optional[LandmarkFrame]) -> Optional[Gesture]:
        """
        Process a frame and return the gesture to act on, if any.

        Args:
            frame: Hand landmarks (None if no hand detected)

        Returns:
            Gesture to deliver, or None
        """
        if frame is None:
            return None
        return self.trigger.update(classify(frame, self.thresholds))

    def reset(self) -> None:
        self.trigger.reset()
