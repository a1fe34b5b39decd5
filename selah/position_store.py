# selah/position_store.py
from colorama import Fore, Style

from . import bible_data
from .constants import DEFAULT_BOOK_ID, DEFAULT_CHAPTER
from .models import BookSortOrder, LanguageMode, ReadingPosition
from .preferences import PreferencesStore


class PositionStore:
    """Reading position persisted under fixed preference keys."""

    def __init__(self, preferences: PreferencesStore):
        self.preferences = preferences

    def load(self) -> ReadingPosition:
        prefs = self.preferences
        book = bible_data.book_by_id(prefs.get(prefs.SAVED_BOOK_ID) or "")
        if book is None:
            # Nothing saved yet, or an id the catalog no longer knows
            book = bible_data.book_by_id(DEFAULT_BOOK_ID)
            chapter = DEFAULT_CHAPTER
        else:
            chapter = prefs.get(prefs.SAVED_CHAPTER, DEFAULT_CHAPTER)
            if not isinstance(chapter, int) or not 1 <= chapter <= book.chapter_count:
                print(f"{Fore.YELLOW}Saved chapter {chapter!r} is out of range for {book.name_en}, using chapter 1.{Style.RESET_ALL}")
                chapter = 1

        verse_index = prefs.get(prefs.SAVED_VERSE_INDEX, 0)
        if not isinstance(verse_index, int) or verse_index < 0:
            verse_index = 0

        try:
            language_mode = LanguageMode(prefs.get(prefs.SAVED_LANGUAGE_MODE, LanguageMode.KR.value))
        except ValueError:
            language_mode = LanguageMode.KR

        return ReadingPosition(book_id=book.id, chapter=chapter,
                               verse_index=verse_index, language_mode=language_mode)

    def save(self, position: ReadingPosition):
        prefs = self.preferences
        prefs.update({
            prefs.SAVED_BOOK_ID: position.book_id,
            prefs.SAVED_CHAPTER: position.chapter,
            prefs.SAVED_VERSE_INDEX: position.verse_index,
            prefs.SAVED_LANGUAGE_MODE: position.language_mode.value,
        })

    def load_sort_order(self) -> BookSortOrder:
        try:
            return BookSortOrder(self.preferences.get(self.preferences.SAVED_SORT_ORDER, BookSortOrder.CANONICAL.value))
        except ValueError:
            return BookSortOrder.CANONICAL

    def save_sort_order(self, sort_order: BookSortOrder):
        self.preferences.set(self.preferences.SAVED_SORT_ORDER, sort_order.value)
