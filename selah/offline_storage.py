# selah/offline_storage.py
import json
import os
import shutil
import sys
import threading
from typing import List, Optional

from colorama import Fore, Style
from pydantic import TypeAdapter, ValidationError

from . import bible_data
from .constants import OFFLINE_DIR_NAME
from .models import Book, OfflineVerse
from .utils import get_data_dir

_VERSE_LIST = TypeAdapter(List[OfflineVerse])


class OfflineStorage:
    """
    Chapter text stored one JSON file per chapter:
    <base>/OfflineBibles/<translation_id>/<book_id>_<chapter>.json
    """

    def __init__(self, base_dir: Optional[str] = None):
        if base_dir is None:
            base_dir = get_data_dir()
        self.root = os.path.join(base_dir, OFFLINE_DIR_NAME)
        os.makedirs(self.root, exist_ok=True)
        self._lock = threading.Lock()

    # --- Paths ---

    def translation_dir(self, translation_id: str) -> str:
        return os.path.join(self.root, translation_id)

    def chapter_path(self, translation_id: str, book_id: str, chapter: int) -> str:
        return os.path.join(self.translation_dir(translation_id), f"{book_id}_{chapter}.json")

    # --- Chapter operations ---

    def save_chapter(self, translation_id: str, book_id: str, chapter: int, verses: List[OfflineVerse]):
        path = self.chapter_path(translation_id, book_id, chapter)
        data = _VERSE_LIST.dump_json(verses)
        with self._lock:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            # Write to a temp file first so a reader never sees half a chapter
            tmp_path = path + ".tmp"
            with open(tmp_path, 'wb') as f:
                f.write(data)
            os.replace(tmp_path, path)

    def load_chapter(self, translation_id: str, book_id: str, chapter: int) -> Optional[List[OfflineVerse]]:
        """Stored verses, or None when the chapter is missing or unreadable."""
        path = self.chapter_path(translation_id, book_id, chapter)
        try:
            with open(path, 'rb') as f:
                return _VERSE_LIST.validate_json(f.read())
        except FileNotFoundError:
            return None
        except (OSError, ValidationError) as e:
            print(f"{Fore.YELLOW}Warning: Could not read offline chapter {path}: {e}{Style.RESET_ALL}", file=sys.stderr)
            return None

    def has_chapter(self, translation_id: str, book_id: str, chapter: int) -> bool:
        return os.path.isfile(self.chapter_path(translation_id, book_id, chapter))

    def delete_chapter(self, translation_id: str, book_id: str, chapter: int):
        path = self.chapter_path(translation_id, book_id, chapter)
        with self._lock:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass

    # --- Translation operations ---

    def downloaded_chapter_count(self, translation_id: str) -> int:
        directory = self.translation_dir(translation_id)
        if not os.path.isdir(directory):
            return 0
        return sum(1 for name in os.listdir(directory) if name.endswith(".json"))

    def download_progress(self, translation_id: str, books: Optional[List[Book]] = None) -> float:
        total = bible_data.total_chapter_count(books)
        if total == 0:
            return 0.0
        return min(1.0, self.downloaded_chapter_count(translation_id) / total)

    def is_fully_downloaded(self, translation_id: str, books: Optional[List[Book]] = None) -> bool:
        return self.downloaded_chapter_count(translation_id) >= bible_data.total_chapter_count(books)

    def downloaded_translations(self, books: Optional[List[Book]] = None) -> List[str]:
        """Translations whose every chapter is on disk."""
        if not os.path.isdir(self.root):
            return []
        return sorted(
            name for name in os.listdir(self.root)
            if os.path.isdir(self.translation_dir(name)) and self.is_fully_downloaded(name, books)
        )

    def delete_translation(self, translation_id: str):
        with self._lock:
            shutil.rmtree(self.translation_dir(translation_id), ignore_errors=True)

    def delete_all(self):
        with self._lock:
            shutil.rmtree(self.root, ignore_errors=True)
            os.makedirs(self.root, exist_ok=True)

    # --- Sizes ---

    @staticmethod
    def _directory_size(directory: str) -> int:
        total = 0
        for dirpath, _, filenames in os.walk(directory):
            for filename in filenames:
                try:
                    total += os.path.getsize(os.path.join(dirpath, filename))
                except OSError:
                    continue
        return total

    def storage_size(self, translation_id: str) -> int:
        return self._directory_size(self.translation_dir(translation_id))

    def total_storage_size(self) -> int:
        return self._directory_size(self.root)

    @staticmethod
    def format_size(num_bytes: int) -> str:
        size = float(num_bytes)
        for unit in ("B", "KB", "MB", "GB"):
            if size < 1024 or unit == "GB":
                return f"{int(size)} {unit}" if unit == "B" else f"{size:.1f} {unit}"
            size /= 1024
        return f"{size:.1f} GB"
