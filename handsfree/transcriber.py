"""
Continuous speech recognition engine with Voice Activity Detection.

Captures microphone audio with PyAudio, uses Silero VAD to find speech
segments and transcribes each segment with the ElevenLabs Speech-to-Text API.
"""
import io
import logging
import os
import threading
import time
import wave
from typing import Iterator, List, Optional

import numpy as np
import pyaudio
import torch
from dotenv import load_dotenv
from elevenlabs.client import ElevenLabs

from .config import VoiceConfig
from .speech import EngineErrorCallback, ResultCallback
from .types import AcquisitionError, UnsupportedEnvironmentError

logger = logging.getLogger(__name__)

FORMAT = pyaudio.paInt16
CHANNELS = 1

# Error codes reported to the adapter
ERROR_AUDIO_CAPTURE = "audio-capture"
ERROR_NETWORK = "network"


class ElevenLabsRecognizer:
    """Recognition engine delivering one final result per detected utterance."""

    def __init__(self, cfg: VoiceConfig):
        load_dotenv()
        self.api_key = os.getenv("ELEVEN_LABS_API_KEY")
        if not self.api_key:
            raise UnsupportedEnvironmentError("ELEVEN_LABS_API_KEY not found in environment variables")

        self.cfg = cfg
        self.client = ElevenLabs(api_key=self.api_key)
        self.audio: Optional[pyaudio.PyAudio] = None
        self.vad_model = None
        self._running = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _load_vad(self) -> None:
        if self.vad_model is not None:
            return
        logger.info("🔧 Loading Silero VAD model...")
        self.vad_model, _ = torch.hub.load(
            repo_or_dir='snakers4/silero-vad',
            model='silero_vad',
            force_reload=False,
            onnx=False
        )
        logger.info("✅ Silero VAD model loaded successfully!")

    def start(self, on_result: ResultCallback, on_error: EngineErrorCallback) -> None:
        """Open the microphone and start the capture thread."""
        self._load_vad()
        self.audio = pyaudio.PyAudio()
        try:
            stream = self.audio.open(
                format=FORMAT,
                channels=CHANNELS,
                rate=self.cfg.sample_rate,
                input=True,
                frames_per_buffer=self.cfg.chunk
            )
        except OSError as e:
            self.audio.terminate()
            self.audio = None
            raise AcquisitionError(f"Microphone unavailable: {e}") from e

        self._running.set()
        self._thread = threading.Thread(
            target=self._run, args=(stream, on_result, on_error), daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the capture thread and release the microphone."""
        self._running.clear()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        if self.audio is not None:
            self.audio.terminate()
            self.audio = None

    def _run(self, stream, on_result: ResultCallback, on_error: EngineErrorCallback) -> None:
        try:
            for audio_data in self._segments(stream):
                text = self._transcribe(audio_data)
                if text is None:
                    on_error(ERROR_NETWORK)
                    return
                if text.strip():
                    logger.info(f"📝 Transcribed: {text}")
                    on_result(text.strip(), True)
        except Exception as e:
            logger.error(f"❌ Audio capture error: {e}")
            on_error(ERROR_AUDIO_CAPTURE)
        finally:
            stream.stop_stream()
            stream.close()

    def _is_speech(self, audio_frame: np.ndarray) -> bool:
        """Use Silero VAD to detect speech in audio frame"""
        window = self.cfg.vad_window
        # Silero VAD requires exactly vad_window samples
        if len(audio_frame) < window:
            padded = np.zeros(window, dtype=np.int16)
            padded[:len(audio_frame)] = audio_frame
            audio_frame = padded
        else:
            audio_frame = audio_frame[:window]

        audio_tensor = torch.from_numpy(audio_frame).float()
        if audio_tensor.abs().max() > 0:
            audio_tensor = audio_tensor / audio_tensor.abs().max()

        confidence = self.vad_model(audio_tensor, self.cfg.sample_rate).item()
        return confidence > self.cfg.speech_threshold

    def _segments(self, stream) -> Iterator[io.BytesIO]:
        """Yield a WAV buffer for every utterance bounded by silence."""
        accumulator: List[int] = []
        speech_frames: List[int] = []
        is_speech_active = False
        silence_start: Optional[float] = None
        window = self.cfg.vad_window

        while self._running.is_set():
            data = stream.read(self.cfg.chunk, exception_on_overflow=False)
            accumulator.extend(np.frombuffer(data, dtype=np.int16))

            if len(accumulator) < window * self.cfg.accumulate_chunks:
                continue

            is_speech = self._is_speech(np.array(accumulator[-window:], dtype=np.int16))
            now = time.time()

            if is_speech:
                if not is_speech_active:
                    logger.debug("🗣️  Speech detected - recording...")
                    is_speech_active = True
                    speech_frames = []
                speech_frames.extend(accumulator)
                silence_start = None
            elif is_speech_active:
                if silence_start is None:
                    silence_start = now
                speech_frames.extend(accumulator)

                if now - silence_start >= self.cfg.silence_duration_s:
                    duration = len(speech_frames) / self.cfg.sample_rate
                    if duration >= self.cfg.min_speech_duration_s:
                        yield self._wav_buffer(speech_frames)
                    else:
                        logger.debug(f"⏭️  Speech too short ({duration:.1f}s) - skipping")
                    is_speech_active = False
                    speech_frames = []
                    silence_start = None

            accumulator = []

    def _wav_buffer(self, frames: List[int]) -> io.BytesIO:
        """Create WAV audio buffer from frames"""
        wav_buffer = io.BytesIO()
        with wave.open(wav_buffer, 'wb') as wf:
            wf.setnchannels(CHANNELS)
            wf.setsampwidth(pyaudio.get_sample_size(FORMAT))
            wf.setframerate(self.cfg.sample_rate)
            wf.writeframes(np.array(frames, dtype=np.int16).tobytes())
        wav_buffer.seek(0)
        return wav_buffer

    def _transcribe(self, audio_data: io.BytesIO) -> Optional[str]:
        """Transcribe audio using Eleven Labs API; None on failure."""
        try:
            transcription = self.client.speech_to_text.convert(
                file=audio_data,
                model_id=self.cfg.model_id,
                tag_audio_events=False,
                language_code=self.cfg.language_code,
                diarize=False
            )
        except Exception as e:
            logger.error(f"❌ Error transcribing audio: {e}")
            return None
        return transcription.text
