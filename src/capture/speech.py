"""
Speech adapter

PromptListenAdapter backed by recorded prompts or pyttsx3 (playback) and
SpeechRecognition (microphone capture + Google recognizer). All engine work
happens on one background thread; callers only see futures.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

import pyttsx3
import speech_recognition as sr

from src.capture.adapter import (
    AdapterError,
    PromptListenAdapter,
    RecognitionFailure,
    RecognitionResult,
    SingleShot,
)
from src.core.settings import SettingsStore
from src.speech.phrases import AudioLibrary, PhraseCatalog, PhraseKey, speech_locale

logger = logging.getLogger(__name__)

PLAYBACK_BLOCK_FRAMES = 2048
MIN_START_TIMEOUT = 0.1


def alternatives_from_response(response: dict | list) -> list[str]:
    """Best-first transcripts from a recognize_google(show_all=True) response."""
    if not isinstance(response, dict):
        return []
    return [alt["transcript"] for alt in response.get("alternative", []) if alt.get("transcript")]


class SpeechAdapter(PromptListenAdapter):
    def __init__(
        self,
        catalog: PhraseCatalog,
        device_index: int | None = None,
        phrase_time_limit: float = 6.0,
        ambient_noise_sec: float = 0.5,
        speech_rate: int | None = None,
        audio: AudioLibrary | None = None,
        settings: SettingsStore | None = None,
    ):
        self.catalog = catalog
        self.device_index = device_index
        self.phrase_time_limit = phrase_time_limit
        self.ambient_noise_sec = ambient_noise_sec
        self.speech_rate = speech_rate
        self.audio = audio
        self.settings = settings

        self._recognizer = sr.Recognizer()
        self._engine = None
        self._speaking: SingleShot | None = None
        self._current: SingleShot | None = None
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="speech")

    def play(self, key: PhraseKey, language: str) -> "Future[None]":
        text = self.catalog.lookup(key, language)
        recording = self._recording(key, language)
        shot = self._begin()
        self._executor.submit(self._play, shot, text, recording)
        return shot.future

    def listen(self, language: str, timeout: float) -> "Future[RecognitionResult]":
        """Capture one answer; `timeout` bounds how long until speech starts."""
        shot = self._begin()
        self._executor.submit(self._recognize, shot, speech_locale(language), timeout)
        return shot.future

    def stop(self) -> None:
        # engines are left alone here; _on_word stops them on their own thread
        with self._lock:
            shot, self._current = self._current, None
        if shot is not None and shot.cancel():
            logger.debug("In-flight speech operation cancelled")

    def close(self) -> None:
        self.stop()
        self._executor.shutdown(wait=False)

    def _begin(self) -> SingleShot:
        shot: SingleShot = SingleShot()
        with self._lock:
            self._current = shot
        return shot

    def _recording(self, key: PhraseKey, language: str) -> Path | None:
        if self.audio is None:
            return None
        if self.settings is not None and self.settings.use_tts():
            return None
        path = self.audio.find(key, language)
        if path is None:
            logger.warning(f"Audio file not found for {key.value} ({language}), using TTS")
        return path

    def _tts(self):
        # pyttsx3 engines belong to the thread that created them
        if self._engine is None:
            self._engine = pyttsx3.init()
            if self.speech_rate:
                self._engine.setProperty("rate", self.speech_rate)
            self._engine.connect("started-word", self._on_word)
        return self._engine

    def _on_word(self, name, location, length) -> None:
        shot = self._speaking
        if shot is not None and shot.done and self._engine is not None:
            self._engine.stop()

    def _play(self, shot: SingleShot, text: str, recording: Path | None) -> None:
        if shot.done:
            return
        if recording is not None:
            try:
                self._play_recording(shot, recording)
            except Exception as e:
                logger.error(f"Error playing audio {recording}: {e}, falling back to TTS")
            else:
                shot.resolve(None)
                return
        self._speak(shot, text)

    def _play_recording(self, shot: SingleShot, path: Path) -> None:
        import sounddevice as sd
        import soundfile as sf

        data, sample_rate = sf.read(str(path), dtype="float32", always_2d=True)
        with sd.OutputStream(
            samplerate=sample_rate, channels=data.shape[1], dtype="float32"
        ) as stream:
            for start in range(0, len(data), PLAYBACK_BLOCK_FRAMES):
                if shot.done:
                    stream.abort()
                    return
                stream.write(data[start : start + PLAYBACK_BLOCK_FRAMES])

    def _speak(self, shot: SingleShot, text: str) -> None:
        try:
            engine = self._tts()
        except Exception as e:
            logger.error(f"TextToSpeech initialization failed: {e}")
            shot.fail(AdapterError(RecognitionFailure.SERVICE_UNAVAILABLE, str(e)))
            return

        self._speaking = shot
        try:
            engine.say(text)
            engine.runAndWait()
        except Exception as e:
            logger.error(f"Error speaking prompt: {e}")
            shot.fail(AdapterError(RecognitionFailure.AUDIO_ERROR, str(e)))
            return
        finally:
            self._speaking = None

        shot.resolve(None)

    def _recognize(self, shot: SingleShot, locale: str, timeout: float) -> None:
        if shot.done:
            return
        # noise calibration eats into the window the caller gave for speech to start
        start_timeout = max(MIN_START_TIMEOUT, timeout - self.ambient_noise_sec)
        try:
            with sr.Microphone(device_index=self.device_index) as source:
                if self.ambient_noise_sec > 0:
                    self._recognizer.adjust_for_ambient_noise(
                        source, duration=self.ambient_noise_sec
                    )
                logger.debug("Ready for speech")
                audio = self._recognizer.listen(
                    source, timeout=start_timeout, phrase_time_limit=self.phrase_time_limit
                )
            response = self._recognizer.recognize_google(audio, language=locale, show_all=True)
        except sr.WaitTimeoutError:
            shot.resolve(RecognitionResult.failed(RecognitionFailure.NO_SPEECH))
            return
        except sr.UnknownValueError:
            shot.resolve(RecognitionResult.failed(RecognitionFailure.NO_MATCH))
            return
        except sr.RequestError as e:
            logger.error(f"Speech recognition service error: {e}")
            shot.resolve(RecognitionResult.failed(RecognitionFailure.NETWORK_ERROR))
            return
        except AttributeError as e:
            # raised by sr.Microphone when PyAudio is not installed
            logger.error(f"Speech recognition not available: {e}")
            shot.resolve(RecognitionResult.failed(RecognitionFailure.SERVICE_UNAVAILABLE))
            return
        except OSError as e:
            logger.error(f"Audio recording error: {e}")
            shot.resolve(RecognitionResult.failed(RecognitionFailure.AUDIO_ERROR))
            return

        candidates = alternatives_from_response(response)
        if not candidates:
            shot.resolve(RecognitionResult.failed(RecognitionFailure.NO_MATCH))
            return
        shot.resolve(RecognitionResult.success(candidates))
