"""
Hands-free controller wiring the gesture and voice pipelines to the live page.
"""
import asyncio
import logging
from typing import Callable, Dict, Optional, Set

from .commands import parse_intents
from .config import Cfg
from .executor import ActionExecutor
from .gesture_source import ErrorCallback, FrameCallback, LandmarkSourceAdapter
from .gestures import GestureProcessor
from .navigator import SelectionNavigator
from .router import RoleRouter
from .session import NotificationLog, SessionState
from .speech import RecognitionEngine, SpeechSourceAdapter
from .types import AcquisitionError, LandmarkFrame, Notifier, SurfaceProvider, UnsupportedEnvironmentError

logger = logging.getLogger(__name__)

GestureSourceFactory = Callable[[FrameCallback, ErrorCallback], LandmarkSourceAdapter]
EngineFactory = Callable[[], RecognitionEngine]


def default_gesture_source(cfg: Cfg) -> GestureSourceFactory:
    """Camera + MediaPipe landmark source built from configuration."""
    def build(on_frame: FrameCallback, on_error: ErrorCallback) -> LandmarkSourceAdapter:
        try:
            from .landmarks import CameraStream, HandsTracker, PreviewWindow
        except ImportError as e:
            raise UnsupportedEnvironmentError(f"Gesture control needs OpenCV and MediaPipe: {e}") from e

        preview_factory = None
        if cfg.gestures.show_preview:
            preview_factory = lambda: PreviewWindow(cfg.gestures.window_name)
        return LandmarkSourceAdapter(
            camera_factory=lambda: CameraStream(cfg.camera),
            detector_factory=lambda: HandsTracker(cfg.mediapipe),
            on_frame=on_frame,
            on_error=on_error,
            preview_factory=preview_factory,
        )

    return build


def default_speech_engine(cfg: Cfg) -> EngineFactory:
    """ElevenLabs + Silero VAD recognition engine built from configuration."""
    def build() -> RecognitionEngine:
        try:
            from .transcriber import ElevenLabsRecognizer
        except ImportError as e:
            raise UnsupportedEnvironmentError(f"Voice commands need the audio stack: {e}") from e
        return ElevenLabsRecognizer(cfg.voice)

    return build


class HandsFreeController:
    """
    Owns one landmark source and one speech source and exposes idempotent
    enable/disable operations for each pipeline.
    """

    def __init__(self, cfg: Cfg, surface: SurfaceProvider,
                 session: Optional[SessionState] = None,
                 notifier: Optional[Notifier] = None,
                 gesture_source_factory: Optional[GestureSourceFactory] = None,
                 speech_engine_factory: Optional[EngineFactory] = None):
        """Initialize the controller with configuration and the live surface."""
        self.cfg = cfg
        self.surface = surface
        self.session = session or SessionState()
        self.notifier = notifier or NotificationLog()

        self.navigator = SelectionNavigator(surface, cfg.gestures)
        self.router = RoleRouter(cfg.routes)
        self.executor = ActionExecutor(surface, self.router, self.notifier, cfg.voice.clickable_selector)
        self.gesture_processor = GestureProcessor(cfg.gestures.thresholds)

        self._gesture_source_factory = gesture_source_factory or default_gesture_source(cfg)
        self._speech_engine_factory = speech_engine_factory or default_speech_engine(cfg)
        self.gesture_source: Optional[LandmarkSourceAdapter] = None
        self.speech_source: Optional[SpeechSourceAdapter] = None
        self.gestures_supported = True
        self.voice_supported = True

        self._gesture_lock = asyncio.Lock()
        self._voice_lock = asyncio.Lock()
        self._background: Set[asyncio.Task] = set()

        surface.on_route_change(self._on_route_change)

    @property
    def gestures_enabled(self) -> bool:
        return self.gesture_source is not None and self.gesture_source.running

    @property
    def voice_enabled(self) -> bool:
        return self.speech_source is not None and self.speech_source.listening

    async def enable_gestures(self) -> bool:
        """Start the gesture pipeline; True if it is running afterwards."""
        async with self._gesture_lock:
            if self.gestures_enabled:
                return True
            source = self._ensure_gesture_source()
            if source is None:
                return False

            self.gesture_processor.reset()
            await self._rebuild_elements()
            try:
                return await source.start()
            except AcquisitionError as e:
                logger.error(f"❌ {e}")
                self.session.report_error(str(e))
                await self.navigator.reset()
                return False

    async def disable_gestures(self) -> None:
        """Stop the gesture pipeline and release the camera."""
        async with self._gesture_lock:
            if self.gesture_source is not None:
                await self.gesture_source.stop()
            await self.navigator.reset()

    async def enable_voice(self) -> bool:
        """Start the voice pipeline; True if listening afterwards."""
        async with self._voice_lock:
            if self.voice_enabled:
                return True
            source = self._ensure_speech_source()
            if source is None:
                return False
            try:
                return await source.start()
            except UnsupportedEnvironmentError as e:
                self._mark_voice_unsupported(e)
                return False

    async def disable_voice(self) -> None:
        """Stop listening and release the microphone."""
        async with self._voice_lock:
            if self.speech_source is not None:
                await self.speech_source.stop()

    async def close(self) -> None:
        await self.disable_gestures()
        await self.disable_voice()
        for task in list(self._background):
            task.cancel()

    def status(self) -> Dict[str, object]:
        return {
            "session": self.session.to_dict(),
            "gestures": {
                "supported": self.gestures_supported,
                "enabled": self.gestures_enabled,
                "state": self.gesture_source.state.value if self.gesture_source else "uninitialized",
                "elements": len(self.navigator.elements),
                "selected": self.navigator.index if self.navigator.elements else None,
            },
            "voice": {
                "supported": self.voice_supported,
                "enabled": self.voice_enabled,
                "transcript": self.speech_source.transcript if self.speech_source else "",
            },
        }

    def _ensure_gesture_source(self) -> Optional[LandmarkSourceAdapter]:
        if not self.gestures_supported:
            return None
        if self.gesture_source is None:
            try:
                self.gesture_source = self._gesture_source_factory(self._on_frame, self._on_gesture_error)
            except UnsupportedEnvironmentError as e:
                logger.warning(f"⚠️  Gesture control unavailable: {e}")
                self.gestures_supported = False
                self.session.report_error(str(e))
                return None
        return self.gesture_source

    def _ensure_speech_source(self) -> Optional[SpeechSourceAdapter]:
        if not self.voice_supported:
            self.session.set_error("Speech recognition is not supported in this environment")
            return None
        if self.speech_source is None:
            try:
                engine = self._speech_engine_factory()
            except UnsupportedEnvironmentError as e:
                self._mark_voice_unsupported(e)
                return None
            self.speech_source = SpeechSourceAdapter(engine, self.session, self._on_transcript)
        return self.speech_source

    def _mark_voice_unsupported(self, error: Exception) -> None:
        logger.warning(f"⚠️  Voice commands unavailable: {error}")
        self.voice_supported = False
        self.session.set_error(str(error))

    async def _on_frame(self, frame: Optional[LandmarkFrame]) -> None:
        gesture = self.gesture_processor.process_frame(frame)
        if gesture is None:
            return
        logger.debug(f"Detected gesture: {gesture.value}")
        await self.navigator.handle_gesture(gesture)

    def _on_gesture_error(self, error: str) -> None:
        self.session.report_error(error)

    async def _on_transcript(self, transcript: str) -> bool:
        """Dispatch every intent in the transcript; True if there was any."""
        intents = parse_intents(transcript)
        if not intents:
            return False

        logger.info(f"Voice command received: {transcript}")
        for intent in intents:
            try:
                await self.executor.dispatch(intent)
            except Exception:
                logger.exception(f"Error handling command {intent!r}")
                self.notifier.error("Failed to execute voice command")
        return True

    def _on_route_change(self, url: str) -> None:
        if not self.gestures_enabled:
            return
        logger.debug(f"Route changed to {url}; rebuilding element list")
        task = asyncio.get_running_loop().create_task(self._rebuild_elements())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _rebuild_elements(self) -> None:
        try:
            await self.navigator.rebuild_elements()
        except Exception as e:
            logger.error(f"Failed to rebuild element list: {e}")
