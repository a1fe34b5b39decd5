# selah/download_manager.py
import sys
import threading
import time
from typing import Callable, Dict, List, Optional, Set, Tuple

from colorama import Fore, Style

from . import bible_data
from .bible_api_client import BibleAPIError
from .constants import Download
from .models import (Book, Completed, Downloading, DownloadState, Failed, Idle,
                     OfflineVerse, Paused)
from .offline_storage import OfflineStorage

ChapterFetcher = Callable[[str, Book, int], List[OfflineVerse]]
StateListener = Callable[[str, DownloadState], None]


class DownloadManager:
    """
    Downloads every chapter of a translation into the offline store.

    One worker per translation id. Chapters already on disk are skipped, so a
    paused or failed download picks up where it stopped when started again.
    """

    def __init__(self, storage: OfflineStorage, fetch_chapter: ChapterFetcher,
                 books: Optional[List[Book]] = None,
                 request_delay: float = Download.REQUEST_DELAY,
                 retry_passes: int = Download.RETRY_PASSES,
                 fail_on_gaps: bool = False,
                 sleep: Callable[[float], None] = time.sleep):
        self.storage = storage
        self.fetch_chapter = fetch_chapter
        self.books = books if books is not None else bible_data.BOOKS
        self.request_delay = request_delay
        self.retry_passes = retry_passes
        self.fail_on_gaps = fail_on_gaps
        self._sleep = sleep

        self.total_chapters = bible_data.total_chapter_count(self.books)
        self._books_by_id = {book.id: book for book in self.books}

        self.download_states: Dict[str, DownloadState] = {}
        self.downloaded_translations: Set[str] = set()
        self.translation_sizes: Dict[str, int] = {}
        # Chapters that still failed after the retry passes, per translation
        self.missing_chapters: Dict[str, List[Tuple[str, int]]] = {}

        self._lock = threading.RLock()
        self._cancel_events: Dict[str, threading.Event] = {}
        self._threads: Dict[str, threading.Thread] = {}
        self._listeners: List[StateListener] = []

    # --- State ---

    def add_listener(self, listener: StateListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_state(self, translation_id: str, state: DownloadState):
        with self._lock:
            self.download_states[translation_id] = state
        for listener in list(self._listeners):
            listener(translation_id, state)

    def get_state(self, translation_id: str) -> DownloadState:
        with self._lock:
            return self.download_states.get(translation_id, Idle())

    def is_available_offline(self, translation_id: str) -> bool:
        return translation_id in self.downloaded_translations

    def total_storage_size(self) -> int:
        return self.storage.total_storage_size()

    def _progress(self, downloaded: int) -> float:
        return downloaded / self.total_chapters if self.total_chapters else 0.0

    # --- Control ---

    def _begin(self, translation_id: str) -> bool:
        """Claim the translation for a new run. False when one is already running."""
        with self._lock:
            if self.get_state(translation_id).is_downloading:
                return False
            event = self._cancel_events.setdefault(translation_id, threading.Event())
            event.clear()
            self.missing_chapters.pop(translation_id, None)
            self._set_state(translation_id, Downloading(progress=self.get_state(translation_id).progress,
                                                        current_book="", current_chapter=0))
            return True

    def start_download(self, translation_id: str) -> bool:
        """Start downloading in a background thread. No-op while already downloading."""
        with self._lock:
            if self.get_state(translation_id).is_downloading:
                return False
            previous = self._threads.get(translation_id)
        # A cancelled worker may still be finishing its current chapter
        if previous is not None and previous.is_alive():
            previous.join()

        if not self._begin(translation_id):
            return False
        thread = threading.Thread(target=self._run, args=(translation_id,),
                                  name=f"download-{translation_id}", daemon=True)
        with self._lock:
            self._threads[translation_id] = thread
        thread.start()
        return True

    def download_translation(self, translation_id: str) -> DownloadState:
        """Run a download on the calling thread and return the final state."""
        if not self._begin(translation_id):
            return self.get_state(translation_id)
        self._run(translation_id)
        return self.get_state(translation_id)

    def wait(self, translation_id: str, timeout: Optional[float] = None):
        thread = self._threads.get(translation_id)
        if thread is not None:
            thread.join(timeout)

    def cancel_download(self, translation_id: str):
        """Ask the worker to stop before its next chapter; the state becomes Paused."""
        with self._lock:
            event = self._cancel_events.get(translation_id)
            if event is not None:
                event.set()
            state = self.get_state(translation_id)
            if isinstance(state, Downloading):
                self._set_state(translation_id, Paused(progress=state.progress))

    def resume_download(self, translation_id: str) -> bool:
        if not isinstance(self.get_state(translation_id), Paused):
            return False
        return self.start_download(translation_id)

    def delete_download(self, translation_id: str):
        self.storage.delete_translation(translation_id)
        with self._lock:
            self.downloaded_translations.discard(translation_id)
            self.translation_sizes.pop(translation_id, None)
            self.missing_chapters.pop(translation_id, None)
        self._set_state(translation_id, Idle())

    def refresh_downloaded_translations(self):
        """Rebuild the downloaded set and sizes from what is on disk."""
        downloaded = self.storage.downloaded_translations(self.books)
        with self._lock:
            self.downloaded_translations = set(downloaded)
            for translation_id in downloaded:
                self.translation_sizes[translation_id] = self.storage.storage_size(translation_id)
        for translation_id in downloaded:
            if self.storage.download_progress(translation_id, self.books) >= 1.0:
                self._set_state(translation_id, Completed())

    # --- Worker ---

    def _run(self, translation_id: str):
        try:
            self._download(translation_id)
        except Exception as e:
            print(f"{Fore.RED}Download of {translation_id} stopped: {e}{Style.RESET_ALL}", file=sys.stderr)
            self._set_state(translation_id, Failed(error=str(e)))

    def _fetch_and_store(self, translation_id: str, book: Book, chapter: int) -> bool:
        try:
            verses = self.fetch_chapter(translation_id, book, chapter)
            # Strong's numbers and other markup never reach the offline store
            cleaned = [verse.cleaned() for verse in verses]
            self.storage.save_chapter(translation_id, book.id, chapter, cleaned)
        except (BibleAPIError, OSError) as e:
            print(f"{Fore.YELLOW}⚠️ Failed to download {book.id} {chapter}: {e}{Style.RESET_ALL}", file=sys.stderr)
            return False
        if self.request_delay > 0:
            self._sleep(self.request_delay)
        return True

    def _download(self, translation_id: str):
        cancel = self._cancel_events[translation_id]

        downloaded = sum(
            1 for book in self.books for chapter in range(1, book.chapter_count + 1)
            if self.storage.has_chapter(translation_id, book.id, chapter)
        )

        def paused() -> bool:
            if cancel.is_set():
                self._set_state(translation_id, Paused(progress=self._progress(downloaded)))
                print(f"{Fore.YELLOW}Download of {translation_id} paused at {self._progress(downloaded):.0%}{Style.RESET_ALL}")
                return True
            return False

        missing: List[Tuple[str, int]] = []
        for book in self.books:
            for chapter in range(1, book.chapter_count + 1):
                if paused():
                    return
                if self.storage.has_chapter(translation_id, book.id, chapter):
                    continue
                self._set_state(translation_id, Downloading(progress=self._progress(downloaded),
                                                            current_book=book.name_kr, current_chapter=chapter))
                if self._fetch_and_store(translation_id, book, chapter):
                    downloaded += 1
                else:
                    missing.append((book.id, chapter))

        for _ in range(self.retry_passes):
            if not missing:
                break
            still_missing = []
            for book_id, chapter in missing:
                if paused():
                    return
                book = self._books_by_id[book_id]
                self._set_state(translation_id, Downloading(progress=self._progress(downloaded),
                                                            current_book=book.name_kr, current_chapter=chapter))
                if self._fetch_and_store(translation_id, book, chapter):
                    downloaded += 1
                else:
                    still_missing.append((book_id, chapter))
            missing = still_missing

        if missing:
            with self._lock:
                self.missing_chapters[translation_id] = missing
            print(f"{Fore.YELLOW}{translation_id}: {len(missing)} chapters could not be downloaded.{Style.RESET_ALL}", file=sys.stderr)
            if self.fail_on_gaps:
                self._set_state(translation_id, Failed(error=f"{len(missing)} chapters could not be downloaded"))
                return

        with self._lock:
            # Only a translation with every chapter on disk counts as offline
            if not missing:
                self.downloaded_translations.add(translation_id)
            self.translation_sizes[translation_id] = self.storage.storage_size(translation_id)
        self._set_state(translation_id, Completed())
        print(f"{Fore.GREEN}✅ Download completed for {translation_id}{Style.RESET_ALL}")
