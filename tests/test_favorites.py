# tests/test_favorites.py
from datetime import datetime, timedelta

import pytest

from conftest import make_verses

from selah import bible_data
from selah.favorites import FavoriteService
from selah.models import SingleVerse, VerseList, VerseRange
from selah.recommended_verses import RECOMMENDED_VERSES

JOHN = bible_data.book_by_id("john")


class Clock:
    def __init__(self):
        self.now = datetime(2024, 5, 1, 9, 0)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def service(seeded_prefs):
    return FavoriteService(seeded_prefs, now=Clock())


class TestSingleVerses:
    def test_add_then_is_favorite(self, service):
        verse = make_verses()[0]
        service.add_favorite(verse, JOHN)
        assert service.is_favorite("john", 3, 1)
        assert service.is_favorite_verse(verse, JOHN)
        assert service.get_favorite("john", 3, 1).id == "john_3_1"

    def test_duplicate_add_is_noop(self, service):
        verse = make_verses()[0]
        service.add_favorite(verse, JOHN)
        service.add_favorite(verse, JOHN)
        assert service.count == 1

    def test_remove(self, service):
        verse = make_verses()[0]
        service.add_favorite(verse, JOHN)
        service.remove_favorite("john_3_1")
        assert not service.is_favorite("john", 3, 1)
        assert not service.has_favorites

    def test_toggle(self, service):
        verse = make_verses()[1]
        assert service.toggle_favorite(verse, JOHN) is True
        assert service.toggle_favorite(verse, JOHN) is False
        assert service.count == 0

    def test_newest_first(self, service):
        first, second = make_verses(count=2)
        service.add_favorite(first, JOHN)
        service.add_favorite(second, JOHN)
        assert [f.id for f in service.favorites] == ["john_3_2", "john_3_1"]
        assert [f.id for f in service.get_all_favorites()] == ["john_3_2", "john_3_1"]

    def test_empty_note_stored_as_none(self, service):
        service.add_favorite(make_verses()[0], JOHN, note="")
        assert service.get_by_id("john_3_1").note is None


class TestPassages:
    def test_continuous_range(self, service):
        verses = make_verses(count=6)
        service.add_favorite_passage([verses[4], verses[2], verses[3]], JOHN)
        favorite = service.get_by_id("john_3_3-5")
        assert favorite.span == VerseRange(start=3, end=5)
        assert favorite.verse_number_end == 5
        assert all(service.is_favorite("john", 3, n) for n in (3, 4, 5))
        assert not service.is_favorite("john", 3, 6)
        assert favorite.text_en == "English verse 3 English verse 4 English verse 5"

    def test_non_continuous_list(self, service):
        verses = make_verses(count=5)
        service.add_favorite_passage([verses[0], verses[2], verses[4]], JOHN)
        favorite = service.get_by_id("john_3_1,3,5")
        assert favorite.verse_numbers == [1, 3, 5]
        assert [n for n in range(1, 6) if service.is_favorite("john", 3, n)] == [1, 3, 5]
        assert favorite.text_kr == "한국어 구절 1\n\n한국어 구절 3\n\n한국어 구절 5"

    def test_single_verse_passage_degrades(self, service):
        service.add_favorite_passage([make_verses()[1]], JOHN)
        assert service.get_by_id("john_3_2").span == SingleVerse(verse=2)

    def test_duplicate_passage_is_noop(self, service):
        verses = make_verses(count=3)
        service.add_favorite_passage(verses, JOHN)
        service.add_favorite_passage(list(reversed(verses)), JOHN)
        assert service.count == 1

    def test_removal_notifies_every_covered_verse(self, service):
        removed = []
        service.add_removed_listener(lambda book, chapter, verse: removed.append((book, chapter, verse)))
        verses = make_verses(count=5)
        service.add_favorite_passage([verses[0], verses[2], verses[4]], JOHN)
        service.remove_favorite("john_3_1,3,5")
        assert removed == [("John", 3, 1), ("John", 3, 3), ("John", 3, 5)]

    def test_saved_listener(self, service):
        saved = []
        service.add_saved_listener(lambda book, chapter, verse: saved.append(verse))
        service.add_favorite_passage(make_verses(count=3), JOHN)
        assert saved == [1, 2, 3]

    def test_remove_verse_inside_passage(self, service):
        service.add_favorite_passage(make_verses(count=3), JOHN)
        service.remove_favorite_verse("john", 3, 2)
        assert service.count == 0

    def test_covered_verse_cannot_be_added_again(self, service):
        verses = make_verses(count=3)
        service.add_favorite_passage(verses, JOHN)
        service.add_favorite(verses[1], JOHN)
        assert service.count == 1


class TestNotesAndPersistence:
    def test_update_note_keeps_position(self, service):
        for verse in make_verses(count=3):
            service.add_favorite(verse, JOHN)
        service.update_note("john_3_2", "Born again")
        assert [f.id for f in service.favorites] == ["john_3_3", "john_3_2", "john_3_1"]
        assert service.get_by_id("john_3_2").note == "Born again"
        service.update_note("john_3_2", "")
        assert service.get_by_id("john_3_2").note is None

    def test_reloaded_from_preferences(self, seeded_prefs, service):
        verses = make_verses(count=5)
        service.add_favorite(verses[0], JOHN, note="first")
        service.add_favorite_passage([verses[1], verses[3]], JOHN)
        reloaded = FavoriteService(seeded_prefs)
        assert [f.id for f in reloaded.favorites] == ["john_3_2,4", "john_3_1"]
        assert reloaded.get_by_id("john_3_2,4").span == VerseList(numbers=[2, 4])
        assert reloaded.get_by_id("john_3_1").note == "first"

    def test_clear_all(self, seeded_prefs, service):
        service.add_favorite(make_verses()[0], JOHN)
        service.clear_all()
        assert FavoriteService(seeded_prefs).count == 0


class TestRecommendedVerses:
    def test_seeded_once(self, prefs):
        service = FavoriteService(prefs)
        assert service.count == len(RECOMMENDED_VERSES) == 24
        assert all(f.is_recommended for f in service.favorites)
        assert prefs.get(prefs.HAS_POPULATED_RECOMMENDED) is True

        service.clear_all()
        assert FavoriteService(prefs).count == 0

    def test_notes_follow_primary_language(self, prefs):
        seed = RECOMMENDED_VERSES[0]
        assert FavoriteService(prefs).get_by_id("philippians_4_13").note == seed.note_kr

    def test_english_notes_for_english_primary(self, prefs):
        prefs.set(prefs.PRIMARY_LANGUAGE_CODE, "en")
        seed = RECOMMENDED_VERSES[0]
        assert FavoriteService(prefs).get_by_id("philippians_4_13").note == seed.note_en

    def test_seed_references_exist(self):
        for seed in RECOMMENDED_VERSES:
            book = bible_data.book_by_id(seed.book_id)
            assert book is not None, seed.book_id
            assert 1 <= seed.chapter <= book.chapter_count

    def test_user_favorites_stay_in_front(self, prefs):
        service = FavoriteService(prefs)
        service.add_favorite(make_verses(book_name="John", chapter=21, count=1)[0], JOHN)
        assert service.favorites[0].id == "john_21_1"
        assert not service.favorites[0].is_recommended
