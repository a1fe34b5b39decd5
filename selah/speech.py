# selah/speech.py
from typing import Callable, List, Optional, Tuple

from .models import LanguageMode

# (location, length) of the text spoken so far within the current verse
CharacterRange = Tuple[int, int]


class SpeechError(Exception):
    """Base exception for speech synthesis and playback errors"""


class SpeechEngine:
    """
    Plays a list of verse texts one after another.

    Subclasses implement speak_from, pause, resume and stop, and report
    progress through the on_* callbacks, which may fire on any thread.
    """

    def __init__(self):
        self.is_playing = False
        self.is_paused = False
        self.is_loading = False
        self.current_index = 0
        self.error_message: Optional[str] = None

        self.on_utterance_start: Optional[Callable[[int], None]] = None
        self.on_word_spoken: Optional[Callable[[int, CharacterRange], None]] = None
        self.on_utterance_finish: Optional[Callable[[int], None]] = None
        self.on_all_finished: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None

    # --- Callback helpers ---

    def _emit_utterance_start(self, index: int):
        if self.on_utterance_start:
            self.on_utterance_start(index)

    def _emit_word_spoken(self, index: int, char_range: CharacterRange):
        if self.on_word_spoken:
            self.on_word_spoken(index, char_range)

    def _emit_utterance_finish(self, index: int):
        if self.on_utterance_finish:
            self.on_utterance_finish(index)

    def _emit_all_finished(self):
        if self.on_all_finished:
            self.on_all_finished()

    def _emit_error(self, message: str):
        self.error_message = message
        if self.on_error:
            self.on_error(message)

    # --- Playback ---

    def speak_from(self, index: int, texts: List[str], language: LanguageMode):
        raise NotImplementedError

    def pause(self):
        raise NotImplementedError

    def resume(self):
        raise NotImplementedError

    def stop(self):
        raise NotImplementedError

    def speak_verses(self, texts: List[str], language: LanguageMode):
        self.speak_from(0, texts, language)

    def toggle_play_pause(self):
        if self.is_playing:
            self.pause()
        elif self.is_paused:
            self.resume()

    def previous_verse(self, texts: List[str], language: LanguageMode):
        self.speak_from(max(0, self.current_index - 1), texts, language)

    def next_verse(self, texts: List[str], language: LanguageMode):
        self.speak_from(min(len(texts) - 1, self.current_index + 1), texts, language)

    def jump_to_verse(self, index: int, texts: List[str], language: LanguageMode):
        self.speak_from(index, texts, language)
