# selah/favorites.py
import sys
from datetime import datetime
from typing import Callable, List, Optional

from colorama import Fore, Style
from pydantic import TypeAdapter, ValidationError

from . import bible_data
from .models import (Book, FavoriteVerse, LanguageMode, SingleVerse, Verse, VerseList,
                     make_favorite_key, span_for)
from .preferences import PreferencesStore
from .recommended_verses import RECOMMENDED_VERSES

_FAVORITE_LIST = TypeAdapter(List[FavoriteVerse])

# (book_name_en, chapter, verse_number)
FavoriteListener = Callable[[str, int, int], None]


class FavoriteService:
    """
    Saved verses and passages, newest first.

    The whole list is written back to preferences on every change.
    """

    def __init__(self, preferences: PreferencesStore, now: Callable[[], datetime] = datetime.now):
        self.preferences = preferences
        self._now = now
        self.favorites: List[FavoriteVerse] = []
        self._saved_listeners: List[FavoriteListener] = []
        self._removed_listeners: List[FavoriteListener] = []
        self._load_favorites()
        self._populate_recommended_verses_if_needed()

    # --- Listeners ---

    def add_saved_listener(self, listener: FavoriteListener):
        self._saved_listeners.append(listener)

    def add_removed_listener(self, listener: FavoriteListener):
        self._removed_listeners.append(listener)

    def _notify(self, listeners: List[FavoriteListener], book_name_en: str, chapter: int, verse_numbers: List[int]):
        for number in verse_numbers:
            for listener in list(listeners):
                listener(book_name_en, chapter, number)

    # --- Queries ---

    def is_favorite(self, book_id: str, chapter: int, verse_number: int) -> bool:
        """True for an exact single-verse entry or any passage that covers the verse."""
        key = make_favorite_key(book_id, chapter, SingleVerse(verse=verse_number))
        if any(f.id == key for f in self.favorites):
            return True
        return any(
            f.book_id == book_id and f.chapter == chapter and f.covers(verse_number)
            for f in self.favorites
        )

    def is_favorite_verse(self, verse: Verse, book: Book) -> bool:
        return self.is_favorite(book.id, verse.chapter, verse.verse_number)

    def get_favorite(self, book_id: str, chapter: int, verse_number: int) -> Optional[FavoriteVerse]:
        key = make_favorite_key(book_id, chapter, SingleVerse(verse=verse_number))
        return next((f for f in self.favorites if f.id == key), None)

    def get_by_id(self, favorite_id: str) -> Optional[FavoriteVerse]:
        return next((f for f in self.favorites if f.id == favorite_id), None)

    def get_all_favorites(self) -> List[FavoriteVerse]:
        return sorted(self.favorites, key=lambda f: f.liked_at, reverse=True)

    @property
    def count(self) -> int:
        return len(self.favorites)

    @property
    def has_favorites(self) -> bool:
        return bool(self.favorites)

    # --- Mutations ---

    def add_favorite(self, verse: Verse, book: Book, note: Optional[str] = None):
        if self.is_favorite_verse(verse, book):
            return
        span = SingleVerse(verse=verse.verse_number)
        favorite = FavoriteVerse(
            id=make_favorite_key(book.id, verse.chapter, span),
            book_id=book.id,
            book_name_en=book.name_en,
            book_name_kr=book.name_kr,
            chapter=verse.chapter,
            span=span,
            text_en=verse.text_en,
            text_kr=verse.text_kr,
            liked_at=self._now(),
            note=note or None,
        )
        self.favorites.insert(0, favorite)
        self._save_favorites()
        self._notify(self._saved_listeners, verse.book_name, verse.chapter, [verse.verse_number])

    def add_favorite_passage(self, verses: List[Verse], book: Book, note: Optional[str] = None):
        """Save several verses of one chapter as a single entry."""
        if not verses:
            return
        if len(verses) == 1:
            self.add_favorite(verses[0], book, note)
            return

        ordered = sorted(verses, key=lambda v: v.verse_number)
        chapter = ordered[0].chapter
        span = span_for([v.verse_number for v in ordered])
        favorite_id = make_favorite_key(book.id, chapter, span)
        if any(f.id == favorite_id for f in self.favorites):
            return

        separator = "\n\n" if isinstance(span, VerseList) else " "
        favorite = FavoriteVerse(
            id=favorite_id,
            book_id=book.id,
            book_name_en=book.name_en,
            book_name_kr=book.name_kr,
            chapter=chapter,
            span=span,
            text_en=separator.join(v.text_en for v in ordered),
            text_kr=separator.join(v.text_kr for v in ordered),
            liked_at=self._now(),
            note=note or None,
        )
        self.favorites.insert(0, favorite)
        self._save_favorites()
        self._notify(self._saved_listeners, book.name_en, chapter, [v.verse_number for v in ordered])

    def remove_favorite(self, favorite_id: str):
        favorite = self.get_by_id(favorite_id)
        if favorite is None:
            return
        self.favorites = [f for f in self.favorites if f.id != favorite_id]
        self._save_favorites()
        # One notification per covered verse so per-verse highlights can clear
        self._notify(self._removed_listeners, favorite.book_name_en, favorite.chapter, favorite.covered_verses())

    def remove_favorite_verse(self, book_id: str, chapter: int, verse_number: int):
        """Remove the single-verse entry, or else the first passage covering the verse."""
        favorite = self.get_favorite(book_id, chapter, verse_number)
        if favorite is None:
            favorite = next(
                (f for f in self.favorites
                 if f.book_id == book_id and f.chapter == chapter and f.covers(verse_number)),
                None,
            )
        if favorite is not None:
            self.remove_favorite(favorite.id)

    def toggle_favorite(self, verse: Verse, book: Book) -> bool:
        """Returns True when the verse is a favorite afterwards."""
        if self.is_favorite_verse(verse, book):
            self.remove_favorite_verse(book.id, verse.chapter, verse.verse_number)
            return False
        self.add_favorite(verse, book)
        return True

    def update_note(self, favorite_id: str, note: Optional[str]):
        for index, favorite in enumerate(self.favorites):
            if favorite.id == favorite_id:
                self.favorites[index] = favorite.model_copy(update={"note": note or None})
                self._save_favorites()
                return

    def clear_all(self):
        self.favorites = []
        self.preferences.remove(self.preferences.FAVORITE_VERSES)

    # --- Persistence ---

    def _load_favorites(self):
        stored = self.preferences.get(self.preferences.FAVORITE_VERSES)
        if not stored:
            return
        try:
            decoded = _FAVORITE_LIST.validate_python(stored)
        except ValidationError as e:
            print(f"{Fore.YELLOW}Warning: Could not read saved favorites: {e}{Style.RESET_ALL}", file=sys.stderr)
            return
        self.favorites = sorted(decoded, key=lambda f: f.liked_at, reverse=True)

    def _save_favorites(self):
        self.preferences.set(self.preferences.FAVORITE_VERSES,
                             [f.model_dump(mode="json") for f in self.favorites])

    def _populate_recommended_verses_if_needed(self):
        prefs = self.preferences
        if prefs.get(prefs.HAS_POPULATED_RECOMMENDED, False):
            return
        prefs.set(prefs.HAS_POPULATED_RECOMMENDED, True)

        install_time = self._now()
        # Seed notes follow the language of the primary translation
        language = LanguageMode.from_language_code(prefs.get(prefs.PRIMARY_LANGUAGE_CODE) or "ko")
        recommended = []
        for seed in RECOMMENDED_VERSES:
            book = bible_data.book_by_id(seed.book_id)
            if book is None:
                continue
            span = SingleVerse(verse=seed.verse)
            if self.get_by_id(make_favorite_key(seed.book_id, seed.chapter, span)) is not None:
                continue
            recommended.append(FavoriteVerse(
                id=make_favorite_key(seed.book_id, seed.chapter, span),
                book_id=seed.book_id,
                book_name_en=book.name_en,
                book_name_kr=book.name_kr,
                chapter=seed.chapter,
                span=span,
                text_en=seed.text_en,
                text_kr=seed.text_kr,
                liked_at=install_time,
                note=seed.note_kr if language is LanguageMode.KR else seed.note_en,
                is_recommended=True,
            ))
        self.favorites.extend(recommended)
        self._save_favorites()
