# selah/preferences.py
import copy
import json
import os
import sys
import threading
from typing import Any, Optional

from colorama import Fore, Style

from .constants import PREFERENCES_FILENAME
from .utils import get_preferences_path


class PreferencesStore:
    """Key-value settings persisted as one JSON file.

    Every write re-serialises the whole snapshot, so the most recent write wins.
    """

    # Fixed keys shared by the services that persist through this store
    SAVED_BOOK_ID = "saved_book_id"
    SAVED_CHAPTER = "saved_chapter"
    SAVED_VERSE_INDEX = "saved_verse_index"
    SAVED_LANGUAGE_MODE = "saved_language_mode"
    SAVED_SORT_ORDER = "saved_sort_order"
    PRIMARY_TRANSLATION_ID = "primary_translation_id"
    SECONDARY_TRANSLATION_ID = "secondary_translation_id"
    PRIMARY_LANGUAGE_CODE = "primary_language_code"
    SECONDARY_LANGUAGE_CODE = "secondary_language_code"
    FAVORITE_VERSES = "favorite_verses"
    HAS_POPULATED_RECOMMENDED = "has_populated_recommended_verses"
    READ_CHAPTERS = "read_chapters"
    SEEN_CHAPTER_TOASTS = "seen_chapter_toasts"
    CACHED_TRANSLATIONS = "cached_bolls_translations"
    STORED_ERROR_LOGS = "stored_error_logs"
    ANONYMOUS_DEVICE_ID = "anonymous_device_id"
    TTS_VOICE = "tts_openai_voice"
    TTS_SPEECH_RATE = "tts_speech_rate"
    TTS_VOLUME = "tts_volume"

    def __init__(self, path: Optional[str] = None):
        if path is None:
            try:
                path = get_preferences_path(PREFERENCES_FILENAME)
            except OSError as e_path:
                print(f"{Fore.RED}Critical Error determining preferences path: {e_path}{Style.RESET_ALL}", file=sys.stderr)
                print(f"{Fore.YELLOW}Preferences may not save correctly.{Style.RESET_ALL}", file=sys.stderr)
        self.path = path
        self._lock = threading.Lock()
        self.data: dict = self._load()

    def _load(self) -> dict:
        """Load preferences from file, empty dict when missing or unreadable."""
        if not self.path:
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            print(f"{Fore.YELLOW}Preferences file '{self.path}' is corrupted, resetting.{Style.RESET_ALL}", file=sys.stderr)
            return {}
        except OSError as e:
            print(f"{Fore.RED}Error loading preferences from '{self.path}': {e}{Style.RESET_ALL}", file=sys.stderr)
            return {}
        if not isinstance(data, dict):
            print(f"{Fore.YELLOW}Preferences file '{self.path}' has an invalid format, resetting.{Style.RESET_ALL}", file=sys.stderr)
            return {}
        return data

    def save(self):
        """Write the full snapshot to disk."""
        if not self.path:
            print(f"{Fore.RED}Error: Preferences file path not determined. Cannot save.{Style.RESET_ALL}", file=sys.stderr)
            return
        with self._lock:
            json_data = json.dumps(self.data, ensure_ascii=False, indent=2)
            pref_dir = os.path.dirname(self.path)
            if pref_dir:
                os.makedirs(pref_dir, exist_ok=True)
            try:
                with open(self.path, 'w', encoding='utf-8') as f:
                    f.write(json_data)
            except OSError as e:
                print(f"{Fore.RED}Error saving preferences to '{self.path}': {e}{Style.RESET_ALL}", file=sys.stderr)

    def get(self, key: str, default: Any = None) -> Any:
        # Callers get a copy so in-place edits never bypass save()
        return copy.deepcopy(self.data.get(key, default))

    def set(self, key: str, value: Any):
        self.data[key] = value
        self.save()

    def update(self, values: dict):
        self.data.update(values)
        self.save()

    def remove(self, key: str):
        if key in self.data:
            del self.data[key]
            self.save()

    def contains(self, key: str) -> bool:
        return key in self.data

    def __contains__(self, key: str) -> bool:
        return self.contains(key)
