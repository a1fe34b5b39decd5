# tests/test_bible_api_client.py
import pytest
import requests

from conftest import FakeResponse, FakeSession

from selah import bible_data
from selah.bible_api_client import BibleAPIClient, BibleAPIError
from selah.constants import API

JOHN = bible_data.book_by_id("john")


def chapter_url(translation: str, book_number: int, chapter: int) -> str:
    return API.CHAPTER_URL.format(translation=translation, book_number=book_number, chapter=chapter)


KRV_JOHN_3 = [
    {"pk": 1, "verse": 0, "text": "요한복음 3장"},
    {"pk": 2, "verse": 2, "text": "그가 밤에 예수께 와서"},
    {"pk": 3, "verse": 1, "text": "바리새인 중에<S>5330</S> 니고데모라"},
]
KJV_JOHN_3 = [
    {"pk": 11, "verse": 1, "text": "There was a man of the Pharisees<sup>1</sup>"},
    {"pk": 12, "verse": 2, "text": "The same came to Jesus by night"},
]


@pytest.fixture
def session():
    return FakeSession({
        chapter_url("KRV", 43, 3): FakeResponse(KRV_JOHN_3),
        chapter_url("KJV", 43, 3): FakeResponse(KJV_JOHN_3),
    })


@pytest.fixture
def client(prefs, storage, session):
    api_client = BibleAPIClient(prefs, storage, session)
    yield api_client
    api_client.shutdown()


class TestFetchTranslationChapter:
    def test_url_and_parse(self, client, session):
        verses = client.fetch_translation_chapter("KJV", JOHN, 3)
        assert session.get_calls == [chapter_url("KJV", 43, 3)]
        assert [v.verse for v in verses] == [1, 2]
        # raw text, cleaning happens later
        assert verses[0].text.endswith("<sup>1</sup>")

    def test_network_error(self, client):
        with pytest.raises(BibleAPIError):
            client.fetch_translation_chapter("KJV", JOHN, 4)

    def test_http_error(self, prefs, storage):
        session = FakeSession(default=FakeResponse({"detail": "nope"}, status_code=404))
        with pytest.raises(BibleAPIError):
            BibleAPIClient(prefs, storage, session).fetch_translation_chapter("KJV", JOHN, 3)

    def test_not_a_list(self, prefs, storage):
        session = FakeSession(default=FakeResponse({"detail": "nope"}))
        with pytest.raises(BibleAPIError):
            BibleAPIClient(prefs, storage, session).fetch_translation_chapter("KJV", JOHN, 3)

    def test_invalid_json(self, prefs, storage):
        session = FakeSession(default=FakeResponse(raw_text="<html>"))
        with pytest.raises(BibleAPIError):
            BibleAPIClient(prefs, storage, session).fetch_translation_chapter("KJV", JOHN, 3)


class TestFetchChapter:
    def test_merges_primary_and_secondary(self, client):
        verses = client.fetch_chapter(JOHN, 3)
        assert [v.verse_number for v in verses] == [1, 2]
        assert verses[0].text_kr == "바리새인 중에 니고데모라"
        assert verses[0].text_en == "There was a man of the Pharisees"
        assert verses[0].book_name == "John"

    def test_writes_cleaned_chapters_offline(self, client, storage):
        client.fetch_chapter(JOHN, 3)
        stored = storage.load_chapter("KRV", "john", 3)
        assert "<S>" not in " ".join(v.text for v in stored)
        assert storage.has_chapter("KJV", "john", 3)

    def test_offline_copy_avoids_network(self, client, session):
        client.fetch_chapter(JOHN, 3)
        client.clear_cache()
        session.routes.clear()
        verses = client.fetch_chapter(JOHN, 3)
        assert len(verses) == 2
        assert len(session.get_calls) == 2

    def test_one_translation_missing(self, prefs, storage):
        session = FakeSession({chapter_url("KRV", 43, 3): FakeResponse(KRV_JOHN_3)})
        client = BibleAPIClient(prefs, storage, session)
        verses = client.fetch_chapter(JOHN, 3)
        assert [v.text_en for v in verses] == ["", ""]
        assert verses[1].text_kr == "그가 밤에 예수께 와서"

    def test_memory_cache_used_while_a_translation_is_missing(self, prefs, storage):
        session = FakeSession({chapter_url("KRV", 43, 3): FakeResponse(KRV_JOHN_3)})
        client = BibleAPIClient(prefs, storage, session)
        client.fetch_chapter(JOHN, 3)
        calls = len(session.get_calls)
        client.fetch_chapter(JOHN, 3)
        assert len(session.get_calls) == calls

    def test_both_missing_raises(self, prefs, storage):
        client = BibleAPIClient(prefs, storage, FakeSession())
        with pytest.raises(BibleAPIError):
            client.fetch_chapter(JOHN, 3)

    def test_translation_pair_from_preferences(self, prefs, storage, session):
        prefs.update({prefs.PRIMARY_TRANSLATION_ID: "KJV", prefs.SECONDARY_TRANSLATION_ID: "KRV"})
        client = BibleAPIClient(prefs, storage, session)
        verses = client.fetch_chapter(JOHN, 3)
        assert verses[1].text_kr == "The same came to Jesus by night"

    def test_clear_chapter_cache_removes_offline_files(self, client, storage):
        client.fetch_chapter(JOHN, 3)
        client.clear_chapter_cache(JOHN, 3)
        assert not storage.has_chapter("KRV", "john", 3)
        assert not storage.has_chapter("KJV", "john", 3)


class TestPrefetch:
    def test_adjacent_within_book(self):
        targets = BibleAPIClient.adjacent_chapters(JOHN, 3)
        assert [(b.id, c) for b, c in targets] == [("john", 4), ("john", 2)]

    def test_adjacent_across_books(self):
        malachi = bible_data.book_by_id("malachi")
        matthew = bible_data.book_by_id("matthew")
        assert [(b.id, c) for b, c in BibleAPIClient.adjacent_chapters(malachi, 4)] == [("matthew", 1), ("malachi", 3)]
        assert [(b.id, c) for b, c in BibleAPIClient.adjacent_chapters(matthew, 1)] == [("matthew", 2), ("malachi", 4)]

    def test_edges_of_the_bible(self):
        genesis = bible_data.book_by_id("genesis")
        revelation = bible_data.book_by_id("revelation")
        assert [(b.id, c) for b, c in BibleAPIClient.adjacent_chapters(genesis, 1)] == [("genesis", 2)]
        assert [(b.id, c) for b, c in BibleAPIClient.adjacent_chapters(revelation, 22)] == [("revelation", 21)]

    def test_failures_are_swallowed(self, client, session):
        future = client.prefetch_adjacent_chapters(JOHN, 3)
        assert future.result(timeout=5) is None
        assert chapter_url("KRV", 43, 4) in session.get_calls


LANGUAGES = {"languages": [
    {"language": "Korean", "translations": [{"translation": "KRV", "abbreviation": "개역한글", "name": "Korean Revised"}]},
    {"language": "English", "translations": [{"translation": "KJV", "abbreviation": "KJV", "name": "King James"}]},
]}


class TestAvailableTranslations:
    def test_parses_catalog(self, prefs, storage):
        session = FakeSession({API.LANGUAGES_URL: FakeResponse(LANGUAGES)})
        translations = BibleAPIClient(prefs, storage, session).fetch_available_translations()
        assert [(t.id, t.language_code) for t in translations] == [("KRV", "ko"), ("KJV", "en")]
        assert prefs.get(prefs.CACHED_TRANSLATIONS)[0]["id"] == "KRV"

    def test_cached_in_memory(self, prefs, storage):
        session = FakeSession({API.LANGUAGES_URL: FakeResponse(LANGUAGES)})
        client = BibleAPIClient(prefs, storage, session)
        client.fetch_available_translations()
        client.fetch_available_translations()
        assert session.get_calls.count(API.LANGUAGES_URL) == 1

    def test_falls_back_to_saved_copy(self, prefs, storage):
        BibleAPIClient(prefs, storage, FakeSession({API.LANGUAGES_URL: FakeResponse(LANGUAGES)})) \
            .fetch_available_translations()
        offline = BibleAPIClient(prefs, storage, FakeSession(default=requests.exceptions.Timeout("slow")))
        assert [t.id for t in offline.fetch_available_translations()] == ["KRV", "KJV"]

    def test_falls_back_to_defaults(self, prefs, storage):
        client = BibleAPIClient(prefs, storage, FakeSession())
        assert client.fetch_available_translations() == bible_data.DEFAULT_TRANSLATIONS
