# selah/bible_api_client.py
import concurrent.futures
import json
import sys
import threading
import time
from typing import Dict, List, Optional, Tuple

import requests
from colorama import Fore, Style
from pydantic import ValidationError

from . import bible_data
from .constants import API, Translations
from .models import Book, OfflineVerse, Translation, Verse
from .offline_storage import OfflineStorage
from .preferences import PreferencesStore


class BibleAPIError(Exception):
    """Base exception for Bible API errors"""


class BibleAPIClient:
    """
    Chapter text for the current primary/secondary translation pair.

    Each translation is resolved from the offline store first and from the
    network otherwise; network results are written back to the offline store.
    """

    def __init__(self, preferences: PreferencesStore, storage: Optional[OfflineStorage] = None,
                 session: Optional[requests.Session] = None):
        self.preferences = preferences
        self.storage = storage if storage is not None else OfflineStorage()
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"User-Agent": API.USER_AGENT, "Accept": "application/json"})

        self._cache: Dict[str, List[Verse]] = {}
        self._cache_lock = threading.Lock()
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=2, thread_name_prefix="prefetch")

        self._translations: Optional[List[Translation]] = None
        self._translations_fetched_at: Optional[float] = None

        self.primary_translation_id = Translations.DEFAULT_PRIMARY
        self.secondary_translation_id = Translations.DEFAULT_SECONDARY
        self._load_saved_translations()

    def _load_saved_translations(self):
        prefs = self.preferences
        self.primary_translation_id = prefs.get(prefs.PRIMARY_TRANSLATION_ID) or Translations.DEFAULT_PRIMARY
        self.secondary_translation_id = prefs.get(prefs.SECONDARY_TRANSLATION_ID) or Translations.DEFAULT_SECONDARY

    def reload_translations(self):
        """Re-read the translation pair from preferences and drop cached chapters."""
        self._load_saved_translations()
        self.clear_cache()

    def _handle_response(self, response: requests.Response):
        """Handle API response and return JSON data"""
        try:
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise BibleAPIError(f"Request failed: {e}")
        except json.JSONDecodeError as e:
            raise BibleAPIError(f"Invalid JSON response: {e}")

    # --- Single translation ---

    def fetch_translation_chapter(self, translation_id: str, book: Book, chapter: int) -> List[OfflineVerse]:
        """Fetch one translation's chapter from the network (raw, uncleaned text)."""
        book_number = bible_data.BOOK_NUMBERS.get(book.api_name)
        if book_number is None:
            raise BibleAPIError(f"No book number mapping for '{book.api_name}'")

        url = API.CHAPTER_URL.format(translation=translation_id, book_number=book_number, chapter=chapter)
        try:
            response = self.session.get(url, timeout=API.TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise BibleAPIError(f"Network error: {e}")
        data = self._handle_response(response)

        if not isinstance(data, list):
            raise BibleAPIError(f"Unexpected response for {translation_id} {book.name_en} {chapter}")
        try:
            return [OfflineVerse.model_validate(item) for item in data]
        except ValidationError as e:
            raise BibleAPIError(f"Failed to parse data: {e}")

    def _resolve_translation(self, translation_id: str, book: Book, chapter: int) -> Tuple[Optional[List[OfflineVerse]], Optional[Exception]]:
        """Offline store first, then network. Returns (verses, error)."""
        stored = self.storage.load_chapter(translation_id, book.id, chapter)
        if stored is not None:
            return stored, None

        try:
            verses = self.fetch_translation_chapter(translation_id, book, chapter)
        except BibleAPIError as e:
            print(f"{Fore.RED}✗ {translation_id} failed for '{book.name_en}': {e}{Style.RESET_ALL}", file=sys.stderr)
            return None, e

        cleaned = [verse.cleaned() for verse in verses]
        try:
            self.storage.save_chapter(translation_id, book.id, chapter, cleaned)
        except OSError as e:
            print(f"{Fore.YELLOW}Warning: Could not store {translation_id} {book.id} {chapter} offline: {e}{Style.RESET_ALL}", file=sys.stderr)
        return cleaned, None

    # --- Merged chapter ---

    def _cache_key(self, book: Book, chapter: int) -> str:
        return f"{book.id}-{chapter}-{self.primary_translation_id}-{self.secondary_translation_id}"

    @staticmethod
    def _merge(book: Book, chapter: int, primary: List[OfflineVerse], secondary: List[OfflineVerse]) -> List[Verse]:
        primary_text = {v.verse: OfflineVerse.clean_text(v.text) for v in primary}
        secondary_text = {v.verse: OfflineVerse.clean_text(v.text) for v in secondary}
        # Verse 0 holds titles/superscriptions and would shift every index
        numbers = sorted(n for n in set(primary_text) | set(secondary_text) if n > 0)
        return [
            Verse(book_name=book.name_en, chapter=chapter, verse_number=n,
                  text_en=secondary_text.get(n, ""), text_kr=primary_text.get(n, ""))
            for n in numbers
        ]

    def fetch_chapter(self, book: Book, chapter: int) -> List[Verse]:
        """
        Verses of one chapter with the primary translation in the text_kr slot
        and the secondary one in text_en.

        Raises BibleAPIError when neither translation could be loaded.
        """
        self._load_saved_translations()
        primary_id, secondary_id = self.primary_translation_id, self.secondary_translation_id
        cache_key = self._cache_key(book, chapter)

        primary = self.storage.load_chapter(primary_id, book.id, chapter)
        secondary = self.storage.load_chapter(secondary_id, book.id, chapter)
        if primary is None or secondary is None:
            with self._cache_lock:
                cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

            errors = []
            if primary is None:
                primary, error = self._resolve_translation(primary_id, book, chapter)
                errors.append(error)
            if secondary is None:
                secondary, error = self._resolve_translation(secondary_id, book, chapter)
                errors.append(error)
            if primary is None and secondary is None:
                detail = next((str(e) for e in errors if e is not None), "No data received")
                raise BibleAPIError(f"Could not load {book.name_en} {chapter}: {detail}")

        verses = self._merge(book, chapter, primary or [], secondary or [])
        with self._cache_lock:
            self._cache[cache_key] = verses
        return verses

    # --- Prefetch ---

    @staticmethod
    def adjacent_chapters(book: Book, chapter: int) -> List[Tuple[Book, int]]:
        """The chapters right before and after, crossing book boundaries."""
        targets = []
        if chapter < book.chapter_count:
            targets.append((book, chapter + 1))
        else:
            following = bible_data.next_book(book)
            if following is not None:
                targets.append((following, 1))
        if chapter > 1:
            targets.append((book, chapter - 1))
        else:
            preceding = bible_data.previous_book(book)
            if preceding is not None:
                targets.append((preceding, preceding.chapter_count))
        return targets

    def _prefetch(self, targets: List[Tuple[Book, int]]):
        for book, chapter in targets:
            try:
                self.fetch_chapter(book, chapter)
            except (BibleAPIError, OSError):
                continue

    def prefetch_adjacent_chapters(self, book: Book, chapter: int) -> concurrent.futures.Future:
        """Warm the cache for neighbouring chapters in the background (best-effort)."""
        return self._executor.submit(self._prefetch, self.adjacent_chapters(book, chapter))

    # --- Cache invalidation ---

    def clear_cache(self):
        with self._cache_lock:
            self._cache.clear()

    def clear_chapter_cache(self, book: Book, chapter: int):
        """Forget one chapter in memory and in the offline store of both translations."""
        prefix = f"{book.id}-{chapter}-"
        with self._cache_lock:
            for key in [k for k in self._cache if k.startswith(prefix)]:
                del self._cache[key]
        self._load_saved_translations()
        self.storage.delete_chapter(self.primary_translation_id, book.id, chapter)
        self.storage.delete_chapter(self.secondary_translation_id, book.id, chapter)

    # --- Translation catalog ---

    def _fetch_translations_from_api(self) -> List[Translation]:
        try:
            response = self.session.get(API.LANGUAGES_URL, timeout=API.TRANSLATIONS_TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise BibleAPIError(f"Network error: {e}")
        data = self._handle_response(response)

        translations = []
        try:
            for group in data["languages"]:
                language = group["language"]
                for item in group["translations"]:
                    translation_id = item["translation"]
                    translations.append(Translation(
                        id=translation_id,
                        name=item.get("name") or translation_id,
                        short_name=item.get("abbreviation") or translation_id,
                        language=language,
                        language_code=bible_data.language_code_for(language),
                    ))
        except (KeyError, TypeError, ValidationError) as e:
            raise BibleAPIError(f"Failed to parse translations: {e}")
        return translations

    def fetch_available_translations(self) -> List[Translation]:
        """All translations offered by the API; cached for a day, defaults when offline."""
        if (self._translations is not None and self._translations_fetched_at is not None
                and time.time() - self._translations_fetched_at < API.TRANSLATIONS_CACHE_EXPIRY):
            return self._translations

        try:
            translations = self._fetch_translations_from_api()
        except BibleAPIError as e:
            print(f"{Fore.YELLOW}⚠️ Failed to fetch translations: {e}{Style.RESET_ALL}", file=sys.stderr)
            stored = self.preferences.get(self.preferences.CACHED_TRANSLATIONS)
            if stored:
                try:
                    return [Translation.model_validate(item) for item in stored]
                except ValidationError:
                    print(f"{Fore.YELLOW}Cached translation list is invalid, using defaults.{Style.RESET_ALL}", file=sys.stderr)
            return list(bible_data.DEFAULT_TRANSLATIONS)

        self._translations = translations
        self._translations_fetched_at = time.time()
        self.preferences.set(self.preferences.CACHED_TRANSLATIONS,
                             [t.model_dump() for t in translations])
        return translations

    def shutdown(self):
        self._executor.shutdown(wait=False)
