# selah/view_model.py
from concurrent.futures import Future
from typing import List, Optional

from . import bible_data
from .bible_api_client import BibleAPIClient, BibleAPIError
from .error_reporter import ErrorContext, ErrorLogger, ErrorReporter, report_error
from .models import Book, BookSortOrder, LanguageMode, ReadingPosition, Verse
from .position_store import PositionStore
from .preferences import PreferencesStore


class BibleViewModel:
    """
    Where the reader currently is, plus the bookshelf overlay flags.

    Book, chapter, verse index, language and sort order are written back to
    the preferences file on every assignment.
    """

    def __init__(self, preferences: PreferencesStore, client: BibleAPIClient,
                 position_store: Optional[PositionStore] = None,
                 error_logger: Optional[ErrorLogger] = None, error_reporter: Optional[ErrorReporter] = None):
        self.preferences = preferences
        self.client = client
        self.error_logger = error_logger
        self.error_reporter = error_reporter
        self.position_store = position_store if position_store is not None else PositionStore(preferences)

        position = self.position_store.load()
        self._current_book: Book = bible_data.book_by_id(position.book_id)
        self._current_chapter: int = position.chapter
        self._current_verse_index: int = position.verse_index
        self._language_mode: LanguageMode = position.language_mode
        self._sort_order: BookSortOrder = self.position_store.load_sort_order()

        self.verses: List[Verse] = []
        self.is_loading = False
        self.error_message: Optional[str] = None
        self.show_bookshelf = False
        self.selected_book_for_chapter: Optional[Book] = None
        self.is_search_active = False
        self.target_verse_number: Optional[int] = None
        self.last_prefetch: Optional[Future] = None

        self.primary_language_code = "ko"
        self.secondary_language_code = "en"
        self.reload_language_codes()

    # --- Persisted state ---

    @property
    def current_book(self) -> Book:
        return self._current_book

    @current_book.setter
    def current_book(self, book: Book):
        self._current_book = book
        self._save_position()

    @property
    def current_chapter(self) -> int:
        return self._current_chapter

    @current_chapter.setter
    def current_chapter(self, chapter: int):
        self._current_chapter = chapter
        self._save_position()

    @property
    def current_verse_index(self) -> int:
        return self._current_verse_index

    @current_verse_index.setter
    def current_verse_index(self, index: int):
        self._current_verse_index = index
        self._save_position()

    @property
    def language_mode(self) -> LanguageMode:
        return self._language_mode

    @language_mode.setter
    def language_mode(self, mode: LanguageMode):
        self._language_mode = mode
        self._save_position()

    @property
    def sort_order(self) -> BookSortOrder:
        return self._sort_order

    @sort_order.setter
    def sort_order(self, order: BookSortOrder):
        self._sort_order = order
        self.position_store.save_sort_order(order)

    def _save_position(self):
        self.position_store.save(ReadingPosition(
            book_id=self._current_book.id,
            chapter=self._current_chapter,
            verse_index=self._current_verse_index,
            language_mode=self._language_mode,
        ))

    def reload_language_codes(self):
        """Re-read the translation language codes (after a settings change)."""
        prefs = self.preferences
        self.primary_language_code = prefs.get(prefs.PRIMARY_LANGUAGE_CODE) or "ko"
        self.secondary_language_code = prefs.get(prefs.SECONDARY_LANGUAGE_CODE) or "en"

    # --- Derived ---

    @property
    def current_verse(self) -> Optional[Verse]:
        if 0 <= self._current_verse_index < len(self.verses):
            return self.verses[self._current_verse_index]
        return None

    @property
    def ui_language(self) -> LanguageMode:
        """Korean labels only while the translation on screen is a Korean one."""
        active_code = self.primary_language_code if self._language_mode is LanguageMode.KR else self.secondary_language_code
        return LanguageMode.from_language_code(active_code)

    @property
    def header_text(self) -> str:
        return f"{self._current_book.name(self.ui_language)} {self._current_chapter}"

    @property
    def sorted_books(self) -> List[Book]:
        return bible_data.sorted_books(self._sort_order, self.ui_language)

    @property
    def can_go_to_previous_chapter(self) -> bool:
        return self._current_chapter > 1 or bible_data.previous_book(self._current_book) is not None

    @property
    def can_go_to_next_chapter(self) -> bool:
        return (self._current_chapter < self._current_book.chapter_count
                or bible_data.next_book(self._current_book) is not None)

    # --- Loading ---

    def load_current_chapter(self) -> bool:
        """Fetch the current chapter. On failure the verse list is emptied and error_message set."""
        self.is_loading = True
        self.error_message = None
        try:
            self.verses = self.client.fetch_chapter(self._current_book, self._current_chapter)
        except BibleAPIError as e:
            self.error_message = str(e)
            self.verses = []
            if self.error_logger is not None:
                report_error(e, ErrorContext(service="BibleViewModel", action="loadCurrentChapter",
                                             additional_info={"book": self._current_book.id,
                                                              "chapter": str(self._current_chapter)}),
                             self.error_logger, self.error_reporter)
            return False
        finally:
            self.is_loading = False

        if self._current_verse_index >= len(self.verses):
            self.current_verse_index = max(0, len(self.verses) - 1)
        self.last_prefetch = self.client.prefetch_adjacent_chapters(self._current_book, self._current_chapter)
        return True

    def reload_current_chapter(self) -> bool:
        """Reload after the translation pair changed."""
        self.client.reload_translations()
        self.reload_language_codes()
        return self.load_current_chapter()

    # --- Verse navigation ---

    def go_to_next_verse(self):
        if self._current_verse_index < len(self.verses) - 1:
            self.current_verse_index = self._current_verse_index + 1

    def go_to_previous_verse(self):
        if self._current_verse_index > 0:
            self.current_verse_index = self._current_verse_index - 1

    def on_verse_snap(self, index: int):
        if index != self._current_verse_index:
            self.current_verse_index = index

    # --- Chapter navigation ---

    def _move_to(self, book: Book, chapter: int, verse_index: int = 0):
        # One snapshot write for the whole move
        self._current_book = book
        self._current_chapter = chapter
        self._current_verse_index = verse_index
        self._save_position()

    def go_to_next_chapter(self) -> bool:
        """Next chapter, rolling into the next book. Returns False at the end of Revelation."""
        if self._current_chapter < self._current_book.chapter_count:
            self._move_to(self._current_book, self._current_chapter + 1)
        else:
            following = bible_data.next_book(self._current_book)
            if following is None:
                return False
            self._move_to(following, 1)
        self.load_current_chapter()
        return True

    def go_to_previous_chapter(self) -> bool:
        """Previous chapter, rolling into the last chapter of the previous book."""
        if self._current_chapter > 1:
            self._move_to(self._current_book, self._current_chapter - 1)
        else:
            preceding = bible_data.previous_book(self._current_book)
            if preceding is None:
                return False
            self._move_to(preceding, preceding.chapter_count)
        self.load_current_chapter()
        return True

    def navigate_to(self, book: Book, chapter: int, verse: int = 0) -> bool:
        """
        Jump to a book and chapter, optionally to a verse number.

        An out-of-range chapter leaves the position untouched, sets
        error_message and returns False.
        """
        if not 1 <= chapter <= book.chapter_count:
            self.error_message = f"{book.name_en} has {book.chapter_count} chapter(s); {chapter} is out of range"
            return False

        self._move_to(book, chapter)
        self.show_bookshelf = False
        self.selected_book_for_chapter = None
        self.load_current_chapter()

        index = None
        if verse > 0:
            # Verse numbers are not always index + 1
            index = next((i for i, v in enumerate(self.verses) if v.verse_number == verse), None)
        if index is not None:
            self.current_verse_index = index
            self.target_verse_number = verse
        else:
            self.current_verse_index = 0
            self.target_verse_number = None
        return True

    def clear_target_verse(self):
        self.target_verse_number = None

    # --- Toggles and overlay ---

    def toggle_language(self):
        saved_index = self._current_verse_index
        self.language_mode = self._language_mode.toggled()
        self.current_verse_index = saved_index

    def toggle_sort_order(self):
        self.sort_order = (BookSortOrder.ALPHABETICAL if self._sort_order is BookSortOrder.CANONICAL
                           else BookSortOrder.CANONICAL)

    def select_book(self, book: Book):
        self.selected_book_for_chapter = book

    def open_bookshelf(self, show_chapters: bool = True, with_search: bool = False):
        # Pre-selecting the current book opens the chapter grid first
        self.selected_book_for_chapter = self._current_book if show_chapters else None
        self.is_search_active = with_search
        self.show_bookshelf = True

    def dismiss_bookshelf(self):
        self.show_bookshelf = False
        self.selected_book_for_chapter = None
        self.is_search_active = False
