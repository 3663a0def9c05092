"""
Speech source adapter: continuous recognition session and transcript buffer.
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Protocol

from .session import SessionState
from .types import UnsupportedEnvironmentError

logger = logging.getLogger(__name__)


ResultCallback = Callable[[str, bool], None]
EngineErrorCallback = Callable[[str], None]
TranscriptCallback = Callable[[str], Awaitable[Optional[bool]]]


class RecognitionEngine(Protocol):
    """
    Continuous speech recognizer.

    Callbacks may be invoked from any thread. on_result receives every
    interim or final result; on_error receives an engine error code.
    """

    def start(self, on_result: ResultCallback, on_error: EngineErrorCallback) -> None: ...

    def stop(self) -> None: ...


class ListenState(Enum):
    IDLE = "idle"
    LISTENING = "listening"


class SpeechSourceAdapter:
    """
    Owns one recognition session at a time and republishes the growing,
    lower-cased transcript after every result.

    When on_transcript reports that a snapshot was acted on, the results it
    covered are dropped from the transcript, so later utterances are parsed
    on their own instead of replaying commands already carried out.
    """

    def __init__(self, engine: RecognitionEngine, session: SessionState, on_transcript: TranscriptCallback):
        self.engine = engine
        self.session = session
        self._on_transcript = on_transcript
        self.state = ListenState.IDLE
        self._parts: List[str] = []
        self._start = 0
        self._generation = 0
        self._queue: Optional[asyncio.Queue] = None
        self._consumer: Optional[asyncio.Task] = None
        self._pending_stop: Optional[asyncio.Future] = None

    @property
    def transcript(self) -> str:
        return self._snapshot(len(self._parts))

    @property
    def listening(self) -> bool:
        return self.state is ListenState.LISTENING

    async def start(self) -> bool:
        """
        Clear the transcript and start a recognition session.

        Returns:
            True if listening afterwards

        Raises:
            UnsupportedEnvironmentError: if the engine cannot run here at all
        """
        if self.state is ListenState.LISTENING:
            return True

        # A stop issued after an engine error must finish before the engine restarts
        if self._pending_stop is not None:
            pending, self._pending_stop = self._pending_stop, None
            await pending

        loop = asyncio.get_running_loop()
        self._parts = []
        self._start = 0
        self._generation += 1
        generation = self._generation

        def on_result(text: str, is_final: bool) -> None:
            loop.call_soon_threadsafe(self._handle_result, generation, text, is_final)

        def on_error(code: str) -> None:
            loop.call_soon_threadsafe(self._handle_error, generation, code)

        self.state = ListenState.LISTENING
        self._queue = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume(self._queue))
        self.session.start_listening()

        try:
            await loop.run_in_executor(None, self.engine.start, on_result, on_error)
        except UnsupportedEnvironmentError as e:
            self._deactivate()
            self.session.set_error(str(e))
            raise
        except Exception as e:
            logger.error(f"❌ Error starting speech recognition: {e}")
            self._deactivate()
            self.session.set_error(str(e) or "Failed to start voice commands")
            return False

        logger.info("🎤 Listening for voice commands")
        return True

    async def stop(self) -> None:
        """Stop the recognition session; no-op when idle."""
        if self.state is ListenState.IDLE:
            return
        self._deactivate()
        try:
            await asyncio.get_running_loop().run_in_executor(None, self.engine.stop)
        except Exception as e:
            logger.error(f"Error stopping speech recognition: {e}")
        self.session.stop_listening()
        logger.info("🎤 Voice commands stopped")

    def _deactivate(self) -> None:
        # Callbacks and queued transcripts from the old session are ignored from here on
        self.state = ListenState.IDLE
        self._generation += 1
        if self._queue is not None:
            while not self._queue.empty():
                self._queue.get_nowait()
            self._queue.put_nowait(None)
        self._queue = None
        self._consumer = None

    def _snapshot(self, end: int) -> str:
        return "".join(self._parts[self._start:end]).strip()

    def _handle_result(self, generation: int, text: str, is_final: bool) -> None:
        if generation != self._generation or self.state is not ListenState.LISTENING:
            return
        text = text.lower()
        if self._parts and text and not text[0].isspace() and not self._parts[-1][-1:].isspace():
            text = " " + text
        self._parts.append(text)

        transcript = self.transcript
        logger.debug(f"Transcript ({'final' if is_final else 'interim'}): {transcript}")
        self.session.set_last_command(transcript)
        self._queue.put_nowait((generation, len(self._parts)))

    def _handle_error(self, generation: int, code: str) -> None:
        if generation != self._generation or self.state is not ListenState.LISTENING:
            return
        logger.error(f"❌ Speech recognition error: {code}")
        self._deactivate()
        self.session.set_error(code)
        self._pending_stop = asyncio.get_running_loop().run_in_executor(None, self._stop_engine_quietly)

    def _stop_engine_quietly(self) -> None:
        try:
            self.engine.stop()
        except Exception:
            logger.exception("Error stopping speech engine after failure")

    async def _consume(self, queue: asyncio.Queue) -> None:
        while True:
            item = await queue.get()
            if item is None:
                return
            generation, end = item
            if generation != self._generation or end <= self._start:
                continue

            try:
                consumed = await self._on_transcript(self._snapshot(end))
            except Exception:
                logger.exception("Error processing voice command")
                continue

            if consumed and generation == self._generation:
                self._start = max(self._start, end)
