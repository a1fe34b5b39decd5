# selah/listening.py
import threading
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .models import LanguageMode, Verse
from .speech import CharacterRange, SpeechEngine


class VerseProgressState(str, Enum):
    PENDING = "pending"
    PLAYING = "playing"
    COMPLETED = "completed"


@dataclass
class VerseProgressSegment:
    verse_index: int
    start_progress: float
    end_progress: float
    state: VerseProgressState

    @property
    def width(self) -> float:
        return self.end_progress - self.start_progress


class ListeningSession:
    """
    Reads a chapter aloud verse by verse and tracks how far each verse got.

    Playback starts in two phases: start()/start_from() request it and
    mark_view_ready() lets it begin. Whichever comes last starts speech.
    """

    def __init__(self, engine: SpeechEngine):
        self.engine = engine
        self.is_active = False
        self.current_verse_index = 0
        self.highlighted_range: Optional[CharacterRange] = None
        self.show_completion_buttons = False
        self.should_auto_scroll = False
        self.verse_read_positions: Dict[int, int] = {}
        self.session_id = uuid.uuid4()
        self.verses: List[Verse] = []
        self.language_mode = LanguageMode.KR

        self._is_view_ready = False
        self._pending_start_index: Optional[int] = None
        self._lock = threading.Lock()
        self._setup_callbacks()

    # --- Engine state ---

    @property
    def is_playing(self) -> bool:
        return self.engine.is_playing

    @property
    def is_paused(self) -> bool:
        return self.engine.is_paused

    @property
    def is_loading(self) -> bool:
        return self.engine.is_loading

    @property
    def total_verses(self) -> int:
        return len(self.verses)

    @property
    def current_verse_number(self) -> int:
        if self.current_verse_index >= len(self.verses):
            return 1
        return self.verses[self.current_verse_index].verse_number

    @property
    def verse_texts(self) -> List[str]:
        return [verse.text(self.language_mode) for verse in self.verses]

    # --- Callbacks ---

    def _setup_callbacks(self):
        # Each registration is tied to the session that made it
        session_id = self.session_id
        self.engine.on_utterance_start = lambda index: self._on_utterance_start(session_id, index)
        self.engine.on_word_spoken = lambda index, char_range: self._on_word_spoken(session_id, index, char_range)
        self.engine.on_utterance_finish = lambda index: self._on_utterance_finish(session_id, index)
        self.engine.on_all_finished = lambda: self._on_all_finished(session_id)

    def _on_utterance_start(self, session_id: uuid.UUID, index: int):
        with self._lock:
            if session_id != self.session_id:
                return
            self.current_verse_index = index
            self.show_completion_buttons = False
            self.highlighted_range = None
            if index > 0:
                self.should_auto_scroll = True

    def _on_word_spoken(self, session_id: uuid.UUID, index: int, char_range: CharacterRange):
        location, length = char_range
        with self._lock:
            if session_id != self.session_id:
                return
            self.highlighted_range = char_range
            # Only ever advance; late callbacks must not move the bar back
            new_position = location + length
            if new_position > self.verse_read_positions.get(index, 0):
                self.verse_read_positions[index] = new_position

    def _on_utterance_finish(self, session_id: uuid.UUID, index: int):
        with self._lock:
            if session_id != self.session_id:
                return
            if index < len(self.verses):
                self.verse_read_positions[index] = len(self.verses[index].text(self.language_mode))

    def _on_all_finished(self, session_id: uuid.UUID):
        with self._lock:
            if session_id != self.session_id:
                return
            self.show_completion_buttons = True
            self.highlighted_range = None

    # --- Session control ---

    def start(self, verses: List[Verse], language: LanguageMode):
        self.start_from(verses, language, 0)

    def start_from(self, verses: List[Verse], language: LanguageMode, verse_index: int):
        self.engine.stop()
        with self._lock:
            self.session_id = uuid.uuid4()
            self.current_verse_index = verse_index
            self.show_completion_buttons = False
            self.should_auto_scroll = verse_index > 0
            self.highlighted_range = None
            self.verses = list(verses)
            self.language_mode = language
            self.is_active = True
            self._pending_start_index = verse_index
            # Verses before the starting point count as already read
            self.verse_read_positions = {
                i: len(verses[i].text(language)) for i in range(min(verse_index, len(verses)))
            }
        self._setup_callbacks()
        self._begin_playback_if_needed()

    def mark_view_ready(self):
        self._is_view_ready = True
        self._begin_playback_if_needed()

    def _begin_playback_if_needed(self):
        with self._lock:
            if not (self.is_active and self._is_view_ready) or self._pending_start_index is None:
                return
            start_index = self._pending_start_index
            self._pending_start_index = None
        self.engine.speak_from(start_index, self.verse_texts, self.language_mode)

    def exit(self):
        self.engine.stop()
        with self._lock:
            self.session_id = uuid.uuid4()
            self.is_active = False
            self._is_view_ready = False
            self._pending_start_index = None
            self.verses = []
            self.current_verse_index = 0
            self.highlighted_range = None
            self.show_completion_buttons = False
            self.should_auto_scroll = False
            self.verse_read_positions = {}

    def toggle_play_pause(self):
        if self.is_playing:
            self.engine.pause()
        elif self.is_paused:
            self.engine.resume()
        elif self.verses:
            self.engine.speak_verses(self.verse_texts, self.language_mode)

    def previous_verse(self):
        self.engine.previous_verse(self.verse_texts, self.language_mode)

    def next_verse(self):
        with self._lock:
            if self.current_verse_index < len(self.verses):
                current = self.verses[self.current_verse_index]
                self.verse_read_positions[self.current_verse_index] = len(current.text(self.language_mode))
        self.engine.next_verse(self.verse_texts, self.language_mode)

    def jump_to_verse(self, index: int):
        if not 0 <= index < len(self.verses):
            return
        self.engine.jump_to_verse(index, self.verse_texts, self.language_mode)

    def pause_for_navigation(self):
        """Pause speech, or drop a request still loading so late audio never starts."""
        if self.is_playing:
            self.engine.pause()
        elif self.engine.is_loading:
            self.engine.stop()

    # --- Progress ---

    def read_position(self, verse_index: int) -> int:
        return self.verse_read_positions.get(verse_index, 0)

    def has_started_playing(self, verse_index: int) -> bool:
        return verse_index in self.verse_read_positions

    def progress_segments(self) -> List[VerseProgressSegment]:
        """One segment per verse, sized by its share of the chapter's characters."""
        texts = self.verse_texts
        total_chars = sum(len(text) for text in texts)
        if not texts or total_chars == 0:
            return []

        segments = []
        accumulated = 0
        for index, text in enumerate(texts):
            start = accumulated / total_chars
            accumulated += len(text)
            end = accumulated / total_chars

            fully_read = self.read_position(index) >= len(text)
            if self.show_completion_buttons or fully_read or index < self.current_verse_index:
                state = VerseProgressState.COMPLETED
            elif index == self.current_verse_index and (self.is_playing or self.is_paused):
                state = VerseProgressState.PLAYING
            else:
                state = VerseProgressState.PENDING
            segments.append(VerseProgressSegment(index, start, end, state))
        return segments
