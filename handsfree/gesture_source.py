"""
Landmark source adapter: camera + detector lifecycle and the per-frame capture loop.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

from .types import AcquisitionError, LandmarkFrame

logger = logging.getLogger(__name__)


class Camera(Protocol):
    live_tracks: int

    def open(self) -> None: ...

    def read(self) -> Any: ...

    def release(self) -> None: ...


class Detector(Protocol):
    def process(self, image: Any) -> Optional[LandmarkFrame]: ...

    def close(self) -> None: ...


class Preview(Protocol):
    def show(self, image: Any, landmarks: Optional[LandmarkFrame]) -> None: ...

    def close(self) -> None: ...


class SourceState(Enum):
    UNINITIALIZED = "uninitialized"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


FrameCallback = Callable[[Optional[LandmarkFrame]], Awaitable[None]]
ErrorCallback = Callable[[str], None]


class LandmarkSourceAdapter:
    """
    Owns the camera handle, the hand detector and the optional preview window.

    Frames are delivered to on_frame one at a time, in capture order, only
    while the adapter is RUNNING. Blocking device and inference calls run
    in the loop's executor.
    """

    def __init__(self, camera_factory: Callable[[], Camera], detector_factory: Callable[[], Detector],
                 on_frame: FrameCallback, on_error: Optional[ErrorCallback] = None,
                 preview_factory: Optional[Callable[[], Preview]] = None, stop_timeout: float = 1.0):
        self._camera_factory = camera_factory
        self._detector_factory = detector_factory
        self._preview_factory = preview_factory
        self._on_frame = on_frame
        self._on_error = on_error
        self.stop_timeout = stop_timeout

        self.state = SourceState.UNINITIALIZED
        self.camera: Optional[Camera] = None
        self.detector: Optional[Detector] = None
        self.preview: Optional[Preview] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.state is SourceState.RUNNING

    async def start(self) -> bool:
        """
        Acquire the camera and detector and start the capture loop.

        Returns:
            True if the adapter is running afterwards

        Raises:
            AcquisitionError: if the camera or detector cannot be acquired
        """
        if self.state is SourceState.RUNNING:
            return True
        if self.state is not SourceState.UNINITIALIZED:
            return False

        self.state = SourceState.STARTING
        loop = asyncio.get_running_loop()
        camera = None
        try:
            camera = self._camera_factory()
            await loop.run_in_executor(None, camera.open)
            detector = await loop.run_in_executor(None, self._detector_factory)
        except Exception as e:
            if camera is not None:
                try:
                    camera.release()
                except Exception:
                    logger.exception("Failed to release camera after start failure")
            self.state = SourceState.UNINITIALIZED
            if isinstance(e, AcquisitionError):
                raise
            raise AcquisitionError(f"Could not start gesture capture: {e}") from e

        self.camera = camera
        self.detector = detector
        self.preview = self._preview_factory() if self._preview_factory else None
        self.state = SourceState.RUNNING
        self._task = asyncio.create_task(self._capture_loop())
        logger.info("✋ Gesture capture started")
        return True

    async def stop(self) -> None:
        """Stop capture and release every handle; no-op unless RUNNING."""
        if self.state is not SourceState.RUNNING:
            return
        # Leaving RUNNING first stops delivery of any further frame
        self.state = SourceState.STOPPING
        task, self._task = self._task, None
        await self._teardown(task)
        self.state = SourceState.UNINITIALIZED
        logger.info("✋ Gesture capture stopped")

    async def _teardown(self, task: Optional[asyncio.Task]) -> None:
        # Each step runs even if an earlier one fails
        try:
            if task is not None and not task.done():
                done, _ = await asyncio.wait({task}, timeout=self.stop_timeout)
                if not done:
                    task.cancel()
        except Exception:
            logger.exception("Failed to stop capture loop")

        try:
            if self.detector is not None:
                self.detector.close()
        except Exception:
            logger.exception("Failed to stop hand detector")

        try:
            if self.camera is not None:
                self.camera.release()
        except Exception:
            logger.exception("Failed to release camera")

        try:
            if self.preview is not None:
                self.preview.close()
        except Exception:
            logger.exception("Failed to close preview window")

        self.detector = None
        self.camera = None
        self.preview = None

    async def _capture_loop(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            while self.state is SourceState.RUNNING:
                image = await loop.run_in_executor(None, self.camera.read)
                if self.state is not SourceState.RUNNING:
                    break
                if image is None:
                    raise AcquisitionError("Camera stopped delivering frames")

                landmarks = await loop.run_in_executor(None, self.detector.process, image)
                if self.state is not SourceState.RUNNING:
                    break

                if self.preview is not None:
                    self.preview.show(image, landmarks)

                try:
                    await self._on_frame(landmarks)
                except Exception:
                    logger.exception("Error handling gesture frame")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ Gesture capture failed: {e}")
            await self._fail(str(e))

    async def _fail(self, error: str) -> None:
        if self.state is not SourceState.RUNNING:
            return
        self.state = SourceState.STOPPING
        self._task = None
        await self._teardown(None)
        self.state = SourceState.UNINITIALIZED
        if self._on_error is not None:
            self._on_error(error)
