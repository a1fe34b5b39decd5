# selah/tts_engine.py
import hashlib
import sys
import threading
import time
import uuid
from pathlib import Path
from typing import List, Optional

import pygame
import requests
from colorama import Fore, Style
from mutagen import MutagenError
from mutagen.mp3 import MP3

from .constants import OpenAI
from .error_reporter import ErrorContext, ErrorLogger, ErrorReporter, report_error
from .models import LanguageMode
from .preferences import PreferencesStore
from .speech import SpeechEngine, SpeechError
from .utils import get_cache_dir, is_secret_configured

PROGRESS_INTERVAL = 0.1  # seconds between simulated word-progress updates


class OpenAISpeechEngine(SpeechEngine):
    """Speaks verses with OpenAI text-to-speech and plays them through pygame."""

    def __init__(self, preferences: PreferencesStore, api_key: Optional[str] = None,
                 session: Optional[requests.Session] = None, audio_dir: Optional[str] = None,
                 error_logger: Optional[ErrorLogger] = None, error_reporter: Optional[ErrorReporter] = None):
        super().__init__()
        self.preferences = preferences
        self.api_key = api_key if api_key is not None else OpenAI.API_KEY
        self.session = session if session is not None else requests.Session()
        self.error_logger = error_logger
        self.error_reporter = error_reporter

        try:
            self.audio_dir = Path(audio_dir) if audio_dir else Path(get_cache_dir('tts_cache'))
            self.audio_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e_path:
            print(f"{Fore.RED}Critical Error determining speech cache path: {e_path}{Style.RESET_ALL}", file=sys.stderr)
            self.audio_dir = None

        try:
            pygame.mixer.init()
        except pygame.error as e:
            print(f"{Fore.RED}Error initializing pygame mixer: {e}{Style.RESET_ALL}", file=sys.stderr)
            print(f"{Fore.YELLOW}Audio playback will be disabled.{Style.RESET_ALL}", file=sys.stderr)
            self.mixer_initialized = False
        else:
            self.mixer_initialized = True

        self._voice = preferences.get(preferences.TTS_VOICE) or OpenAI.TTS_VOICE
        self._speech_rate = float(preferences.get(preferences.TTS_SPEECH_RATE, 1.0))
        self._volume = float(preferences.get(preferences.TTS_VOLUME, 1.0))

        self.playback_progress = 0.0
        self._session_id = uuid.uuid4()
        self._state_lock = threading.RLock()
        self._started_at = 0.0
        self._elapsed_before_pause = 0.0
        self._duration = 0.0
        self.load_thread: Optional[threading.Thread] = None
        self.progress_thread: Optional[threading.Thread] = None

    # --- Settings ---

    @property
    def voice(self) -> str:
        return self._voice

    @voice.setter
    def voice(self, value: str):
        if value not in OpenAI.AVAILABLE_VOICES:
            raise ValueError(f"Unknown voice '{value}'")
        self._voice = value
        self.preferences.set(self.preferences.TTS_VOICE, value)

    @property
    def speech_rate(self) -> float:
        return self._speech_rate

    @speech_rate.setter
    def speech_rate(self, value: float):
        self._speech_rate = min(4.0, max(0.25, value))
        self.preferences.set(self.preferences.TTS_SPEECH_RATE, self._speech_rate)

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float):
        self._volume = min(1.0, max(0.0, value))
        if self.mixer_initialized:
            pygame.mixer.music.set_volume(self._volume)
        self.preferences.set(self.preferences.TTS_VOLUME, self._volume)

    def is_configured(self) -> bool:
        return is_secret_configured(self.api_key)

    # --- Synthesis ---

    def generate_speech(self, text: str) -> bytes:
        """MP3 bytes for one text, via the OpenAI speech endpoint."""
        if not self.is_configured():
            raise SpeechError("OpenAI API key is not configured")
        body = {
            "model": OpenAI.TTS_MODEL,
            "voice": self._voice,
            "input": text,
            "speed": self._speech_rate,
            "response_format": "mp3",
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            response = self.session.post(OpenAI.TTS_URL, json=body, headers=headers, timeout=OpenAI.TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise SpeechError(f"Network error: {e}")
        if response.status_code != 200:
            try:
                message = response.json()["error"]["message"]
            except (ValueError, KeyError, TypeError):
                message = f"HTTP {response.status_code}"
            raise SpeechError(f"API error: {message}")
        return response.content

    def _audio_path(self, text: str) -> Path:
        digest = hashlib.sha1(f"{self._voice}|{self._speech_rate}|{text}".encode("utf-8")).hexdigest()[:16]
        return self.audio_dir / f"verse_{digest}.mp3"

    def _audio_for(self, text: str) -> Path:
        """Cached MP3 for the text, synthesised on first use."""
        if self.audio_dir is None:
            raise SpeechError("Speech cache directory is not available")
        path = self._audio_path(text)
        if path.exists() and path.stat().st_size > 0:
            return path
        data = self.generate_speech(text)
        temp_file = path.with_suffix('.tmp')
        temp_file.write_bytes(data)
        temp_file.replace(path)
        return path

    # --- Playback ---

    def _is_current(self, session_id: uuid.UUID) -> bool:
        return session_id == self._session_id

    def _emit_if_current(self, session_id: uuid.UUID, emit, *args) -> bool:
        # Checked under the lock so stop() cannot land between the check and the callback
        with self._state_lock:
            if not self._is_current(session_id):
                return False
            emit(*args)
            return True

    def speak_from(self, index: int, texts: List[str], language: LanguageMode):
        if index >= len(texts):
            return
        self.stop()
        texts = list(texts)
        with self._state_lock:
            self.current_index = index
            self.is_loading = True
            self.error_message = None
            session_id = self._session_id
        self.load_thread = threading.Thread(target=self._load_and_play, args=(texts, index, session_id),
                                            name="tts-load", daemon=True)
        self.load_thread.start()

    def _load_and_play(self, texts: List[str], index: int, session_id: uuid.UUID):
        if not self._is_current(session_id):
            return
        try:
            path = self._audio_for(texts[index])
        except (SpeechError, OSError) as e:
            with self._state_lock:
                if not self._is_current(session_id):
                    return
                self.is_loading = False
                self.is_playing = False
            self._report(e, "generateSpeech", index)
            self._emit_if_current(session_id, self._emit_error, str(e))
            return

        with self._state_lock:
            # Audio that arrives after the user moved on is dropped
            if not self._is_current(session_id):
                return
            self.is_loading = False
            paused = self.is_paused
        if index + 1 < len(texts):
            threading.Thread(target=self._prefetch, args=(texts[index + 1], session_id),
                             name="tts-prefetch", daemon=True).start()
        if not paused:
            self._play(path, texts, index, session_id)

    def _prefetch(self, text: str, session_id: uuid.UUID):
        if not self._is_current(session_id):
            return
        try:
            self._audio_for(text)
        except (SpeechError, OSError):
            # The verse is synthesised again when its turn comes
            return

    def _play(self, path: Path, texts: List[str], index: int, session_id: uuid.UUID):
        if not self.mixer_initialized:
            self._emit_if_current(session_id, self._emit_error, "Audio system not initialized. Cannot play.")
            return
        try:
            duration = max(0.1, MP3(str(path)).info.length)
        except MutagenError:
            duration = max(0.1, len(texts[index]) * 0.05)

        error = None
        with self._state_lock:
            if not self._is_current(session_id):
                return
            try:
                pygame.mixer.music.load(str(path))
                pygame.mixer.music.set_volume(self._volume)
                pygame.mixer.music.play()
            except pygame.error as e:
                error = e
            else:
                self._duration = duration
                self.current_index = index
                self.is_playing = True
                self.is_paused = False
                self._started_at = time.time()
                self._elapsed_before_pause = 0.0
        if error is not None:
            self._report(error, "playAudio", index)
            self._emit_if_current(session_id, self._emit_error, f"Audio playback failed: {error}")
            return

        if not self._emit_if_current(session_id, self._emit_utterance_start, index):
            return
        self.progress_thread = threading.Thread(target=self._progress_loop, args=(texts, index, session_id),
                                                name="tts-progress", daemon=True)
        self.progress_thread.start()

    def _elapsed(self) -> float:
        if self.is_paused:
            return self._elapsed_before_pause
        return self._elapsed_before_pause + (time.time() - self._started_at)

    def _progress_loop(self, texts: List[str], index: int, session_id: uuid.UUID):
        """Estimate the spoken character range from elapsed time until the clip ends."""
        text_length = len(texts[index])
        while self._is_current(session_id):
            if self.is_paused:
                time.sleep(PROGRESS_INTERVAL)
                continue
            progress = min(1.0, self._elapsed() / self._duration)
            if not self._emit_if_current(session_id, self._emit_word_spoken, index, (0, int(text_length * progress))):
                return
            self.playback_progress = (index + progress) / max(1, len(texts))
            if not pygame.mixer.music.get_busy() and self._elapsed() > PROGRESS_INTERVAL:
                self._on_clip_finished(texts, index, session_id)
                return
            time.sleep(PROGRESS_INTERVAL)

    def _on_clip_finished(self, texts: List[str], index: int, session_id: uuid.UUID):
        if not self._emit_if_current(session_id, self._emit_utterance_finish, index):
            return
        next_index = index + 1
        if next_index < len(texts):
            self._load_and_play(texts, next_index, session_id)
            return
        with self._state_lock:
            if not self._is_current(session_id):
                return
            self.is_playing = False
            self.is_paused = False
            self.playback_progress = 1.0
        self._emit_if_current(session_id, self._emit_all_finished)

    def pause(self):
        if self.mixer_initialized:
            pygame.mixer.music.pause()
        with self._state_lock:
            self._elapsed_before_pause = self._elapsed()
            self.is_paused = True
            self.is_playing = False

    def resume(self):
        if self.mixer_initialized:
            pygame.mixer.music.unpause()
        with self._state_lock:
            self._started_at = time.time()
            self.is_paused = False
            self.is_playing = True

    def stop(self):
        with self._state_lock:
            # A new session id makes every in-flight load and timer give up
            self._session_id = uuid.uuid4()
            self.is_playing = False
            self.is_paused = False
            self.is_loading = False
            self.current_index = 0
            self.playback_progress = 0.0
            self._elapsed_before_pause = 0.0
        if self.mixer_initialized:
            pygame.mixer.music.stop()

    def _report(self, error: BaseException, action: str, index: int):
        if self.error_logger is None:
            print(f"{Fore.RED}Speech error ({action}): {error}{Style.RESET_ALL}", file=sys.stderr)
            return
        report_error(error, ErrorContext(service="OpenAISpeechEngine", action=action,
                                         additional_info={"verseIndex": str(index)}),
                     self.error_logger, self.error_reporter)
