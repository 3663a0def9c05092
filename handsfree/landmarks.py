"""
Camera capture and hand landmark detection using OpenCV and MediaPipe.
"""
import logging
import cv2
import mediapipe as mp
import numpy as np
from typing import Optional

from .config import CameraConfig, MediaPipeConfig
from .types import AcquisitionError, LandmarkFrame, Point

logger = logging.getLogger(__name__)


class CameraStream:
    """Camera device handle backed by cv2.VideoCapture."""

    def __init__(self, cfg: CameraConfig):
        self.cfg = cfg
        self.cap: Optional[cv2.VideoCapture] = None

    @property
    def live_tracks(self) -> int:
        return 1 if self.cap is not None and self.cap.isOpened() else 0

    def open(self) -> None:
        """
        Acquire the camera device.

        Raises:
            AcquisitionError: if the device is denied or unavailable
        """
        cap = cv2.VideoCapture(self.cfg.index)
        if not cap.isOpened():
            cap.release()
            raise AcquisitionError(f"Failed to open camera {self.cfg.index}")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.cfg.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.cfg.height)
        cap.set(cv2.CAP_PROP_FPS, self.cfg.fps)
        self.cap = cap
        logger.info(f"📷 Camera {self.cfg.index} opened ({self.cfg.width}x{self.cfg.height} @ {self.cfg.fps}fps)")

    def read(self) -> Optional[np.ndarray]:
        """Read one BGR frame, None if the device stopped delivering."""
        if self.cap is None:
            return None
        ret, frame = self.cap.read()
        return frame if ret else None

    def release(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None
            logger.info("📷 Camera released")


class HandsTracker:
    """Hand landmark tracker using MediaPipe Hands."""

    def __init__(self, cfg: MediaPipeConfig):
        """
        Initialize the hands tracker.

        Args:
            cfg: Detection settings; only the first detected hand is reported
        """
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=cfg.max_num_hands,
            model_complexity=cfg.model_complexity,
            min_detection_confidence=cfg.min_detection_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence
        )

    def process(self, frame_bgr: np.ndarray) -> Optional[LandmarkFrame]:
        """
        Process a frame and return hand landmarks.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            LandmarkFrame of the first detected hand, or None if no hand detected
        """
        # Convert BGR to RGB for MediaPipe
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self.hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return None

        hand_landmarks = results.multi_hand_landmarks[0]
        return LandmarkFrame([Point(lm.x, lm.y, lm.z) for lm in hand_landmarks.landmark])

    def close(self) -> None:
        self.hands.close()


class PreviewWindow:
    """Optional debug window showing the camera feed with landmarks."""

    def __init__(self, window_name: str):
        self.window_name = window_name
        self.opened = False

    def show(self, frame: np.ndarray, landmarks: Optional[LandmarkFrame]) -> None:
        if landmarks is not None:
            frame = draw_landmarks(frame, landmarks)
        cv2.imshow(self.window_name, frame)
        cv2.waitKey(1)
        self.opened = True

    def close(self) -> None:
        if self.opened:
            cv2.destroyWindow(self.window_name)
            self.opened = False


def draw_landmarks(frame: np.ndarray, landmarks: LandmarkFrame) -> np.ndarray:
    """
    Draw hand landmarks on the frame.

    Args:
        frame: Input frame
        landmarks: Normalized hand landmarks

    Returns:
        Frame with landmarks drawn
    """
    height, width = frame.shape[:2]

    for i, point in enumerate(landmarks.points):
        px = int(point.x * width)
        py = int(point.y * height)
        cv2.circle(frame, (px, py), 3, (0, 255, 0), -1)
        cv2.putText(frame, str(i), (px + 5, py - 5), cv2.FONT_HERSHEY_SIMPLEX, 0.3, (255, 255, 255), 1)

    return frame
