# selah/reading_progress.py
import time
from typing import Callable, Dict, Set

from .constants import CHAPTER_TOAST_EXPIRY
from .models import Book
from .preferences import PreferencesStore


def _chapter_key(book_id: str, chapter: int) -> str:
    return f"{book_id}_{chapter}"


class ReadingProgressTracker:
    """Chapters the reader has marked as read."""

    def __init__(self, preferences: PreferencesStore):
        self.preferences = preferences
        self.read_chapters: Set[str] = set(preferences.get(preferences.READ_CHAPTERS, []) or [])

    def is_chapter_read(self, book_id: str, chapter: int) -> bool:
        return _chapter_key(book_id, chapter) in self.read_chapters

    def is_book_fully_read(self, book: Book) -> bool:
        return self.read_chapter_count(book) == book.chapter_count

    def read_chapter_count(self, book: Book) -> int:
        return sum(1 for chapter in range(1, book.chapter_count + 1) if self.is_chapter_read(book.id, chapter))

    def mark_as_read(self, book_id: str, chapter: int):
        self.read_chapters.add(_chapter_key(book_id, chapter))
        self._save()

    def mark_as_unread(self, book_id: str, chapter: int):
        self.read_chapters.discard(_chapter_key(book_id, chapter))
        self._save()

    def toggle_read_state(self, book_id: str, chapter: int) -> bool:
        """Returns True when the chapter is read afterwards."""
        if self.is_chapter_read(book_id, chapter):
            self.mark_as_unread(book_id, chapter)
            return False
        self.mark_as_read(book_id, chapter)
        return True

    def clear_all(self):
        self.read_chapters = set()
        self.preferences.remove(self.preferences.READ_CHAPTERS)

    def _save(self):
        self.preferences.set(self.preferences.READ_CHAPTERS, sorted(self.read_chapters))


class ChapterToastTracker:
    """
    Remembers when each chapter's intro toast was last shown.

    A toast shows again once roughly six months have passed; older entries
    are dropped when the tracker is created.
    """

    def __init__(self, preferences: PreferencesStore, clock: Callable[[], float] = time.time,
                 expiration: float = CHAPTER_TOAST_EXPIRY):
        self.preferences = preferences
        self._clock = clock
        self.expiration = expiration
        self._cleanup_expired_entries()

    def _seen_dates(self) -> Dict[str, float]:
        stored = self.preferences.get(self.preferences.SEEN_CHAPTER_TOASTS, {})
        return stored if isinstance(stored, dict) else {}

    def should_show_toast(self, book_id: str, chapter: int) -> bool:
        seen_at = self._seen_dates().get(_chapter_key(book_id, chapter))
        if seen_at is None:
            return True
        return self._clock() - seen_at > self.expiration

    def mark_as_seen(self, book_id: str, chapter: int):
        seen = self._seen_dates()
        seen[_chapter_key(book_id, chapter)] = self._clock()
        self.preferences.set(self.preferences.SEEN_CHAPTER_TOASTS, seen)

    def clear_all(self):
        self.preferences.remove(self.preferences.SEEN_CHAPTER_TOASTS)

    def _cleanup_expired_entries(self):
        seen = self._seen_dates()
        if not seen:
            return
        now = self._clock()
        kept = {key: seen_at for key, seen_at in seen.items() if now - seen_at < self.expiration}
        if len(kept) != len(seen):
            self.preferences.set(self.preferences.SEEN_CHAPTER_TOASTS, kept)
