# tests/conftest.py
import json
from typing import List, Optional

import pytest
import requests

from selah.models import Book, LanguageMode, Verse
from selah.offline_storage import OfflineStorage
from selah.preferences import PreferencesStore
from selah.speech import SpeechEngine


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, lines: Optional[List[str]] = None,
                 content: bytes = b"", raw_text: Optional[str] = None):
        self.payload = payload
        self.status_code = status_code
        self.lines = lines or []
        self.content = content
        self.raw_text = raw_text
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        self.closed = True

    def json(self):
        if self.raw_text is not None:
            return json.loads(self.raw_text)
        if self.payload is None:
            raise json.JSONDecodeError("Expecting value", "", 0)
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def iter_lines(self, decode_unicode: bool = False):
        return iter(self.lines)


class FakeSession:
    """Routes requests by URL; a route may be a FakeResponse or an exception to raise."""

    def __init__(self, routes=None, default=None):
        self.headers = {}
        self.routes = routes or {}
        self.default = default
        self.get_calls: List[str] = []
        self.post_calls: List[dict] = []

    def _respond(self, url):
        result = self.routes.get(url, self.default)
        if result is None:
            raise requests.exceptions.ConnectionError(f"no route for {url}")
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, timeout=None, **kwargs):
        self.get_calls.append(url)
        return self._respond(url)

    def post(self, url, json=None, headers=None, timeout=None, stream=False, **kwargs):
        self.post_calls.append({"url": url, "json": json, "headers": headers, "stream": stream})
        return self._respond(url)


class FakeSpeechEngine(SpeechEngine):
    """Records calls; tests fire the callbacks by hand."""

    def __init__(self):
        super().__init__()
        self.calls = []
        self.texts: List[str] = []

    def speak_from(self, index: int, texts: List[str], language: LanguageMode):
        self.calls.append(("speak_from", index))
        self.texts = list(texts)
        self.current_index = index
        self.is_playing = True
        self.is_paused = False
        self.is_loading = False

    def pause(self):
        self.calls.append(("pause",))
        self.is_playing = False
        self.is_paused = True

    def resume(self):
        self.calls.append(("resume",))
        self.is_playing = True
        self.is_paused = False

    def stop(self):
        self.calls.append(("stop",))
        self.is_playing = False
        self.is_paused = False
        self.is_loading = False


def make_verses(book_name: str = "John", chapter: int = 3, count: int = 3) -> List[Verse]:
    return [
        Verse(book_name=book_name, chapter=chapter, verse_number=n,
              text_en=f"English verse {n}", text_kr=f"한국어 구절 {n}")
        for n in range(1, count + 1)
    ]


def make_book(book_id: str, chapters: int, order: int) -> Book:
    return Book(id=book_id, name_en=book_id.title(), name_kr=f"{book_id}-kr", abbr_en=book_id[:3],
                abbr_kr=book_id[:1], api_name=book_id, chapter_count=chapters, order=order)


@pytest.fixture
def prefs(tmp_path):
    return PreferencesStore(str(tmp_path / "Selah-Settings.json"))


@pytest.fixture
def seeded_prefs(prefs):
    """Preferences where the first-run favorites have already been added."""
    prefs.set(prefs.HAS_POPULATED_RECOMMENDED, True)
    return prefs


@pytest.fixture
def storage(tmp_path):
    return OfflineStorage(str(tmp_path / "data"))


@pytest.fixture
def fake_engine():
    return FakeSpeechEngine()
