# tests/test_offline_storage.py
import os

from conftest import make_book

from selah.models import OfflineVerse
from selah.offline_storage import OfflineStorage

BOOKS = [make_book("alpha", 2, 1), make_book("beta", 1, 2)]
VERSES = [OfflineVerse(pk=1, verse=1, text="In the beginning"), OfflineVerse(pk=2, verse=2, text="And")]


class TestChapters:
    def test_save_and_load(self, storage):
        storage.save_chapter("KJV", "genesis", 1, VERSES)
        assert storage.has_chapter("KJV", "genesis", 1)
        assert storage.load_chapter("KJV", "genesis", 1) == VERSES

    def test_layout(self, storage):
        storage.save_chapter("KJV", "genesis", 1, VERSES)
        assert os.path.isfile(os.path.join(storage.root, "KJV", "genesis_1.json"))
        assert os.path.basename(storage.root) == "OfflineBibles"

    def test_missing_chapter(self, storage):
        assert storage.load_chapter("KJV", "genesis", 1) is None
        assert not storage.has_chapter("KJV", "genesis", 1)

    def test_corrupt_chapter_reads_as_missing(self, storage):
        path = storage.chapter_path("KJV", "genesis", 1)
        os.makedirs(os.path.dirname(path))
        with open(path, "w") as f:
            f.write("[{\"verse\": ")
        assert storage.load_chapter("KJV", "genesis", 1) is None

    def test_delete_chapter(self, storage):
        storage.save_chapter("KJV", "genesis", 1, VERSES)
        storage.delete_chapter("KJV", "genesis", 1)
        storage.delete_chapter("KJV", "genesis", 1)
        assert not storage.has_chapter("KJV", "genesis", 1)


class TestTranslations:
    def test_progress_and_completion(self, storage):
        storage.save_chapter("KJV", "alpha", 1, VERSES)
        assert storage.downloaded_chapter_count("KJV") == 1
        assert storage.download_progress("KJV", BOOKS) == 1 / 3
        assert not storage.is_fully_downloaded("KJV", BOOKS)

        storage.save_chapter("KJV", "alpha", 2, VERSES)
        storage.save_chapter("KJV", "beta", 1, VERSES)
        assert storage.is_fully_downloaded("KJV", BOOKS)
        assert storage.downloaded_translations(BOOKS) == ["KJV"]

    def test_partial_translation_not_listed(self, storage):
        storage.save_chapter("KRV", "alpha", 1, VERSES)
        assert storage.downloaded_translations(BOOKS) == []

    def test_delete_translation(self, storage):
        storage.save_chapter("KJV", "alpha", 1, VERSES)
        storage.delete_translation("KJV")
        assert storage.downloaded_chapter_count("KJV") == 0
        assert storage.storage_size("KJV") == 0

    def test_delete_all(self, storage):
        storage.save_chapter("KJV", "alpha", 1, VERSES)
        storage.save_chapter("KRV", "alpha", 1, VERSES)
        storage.delete_all()
        assert storage.total_storage_size() == 0
        assert os.path.isdir(storage.root)

    def test_sizes(self, storage):
        storage.save_chapter("KJV", "alpha", 1, VERSES)
        assert storage.storage_size("KJV") > 0
        assert storage.total_storage_size() == storage.storage_size("KJV")


class TestFormatSize:
    def test_units(self):
        assert OfflineStorage.format_size(512) == "512 B"
        assert OfflineStorage.format_size(2048) == "2.0 KB"
        assert OfflineStorage.format_size(5 * 1024 * 1024) == "5.0 MB"
