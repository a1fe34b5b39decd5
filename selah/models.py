# selah/models.py
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class LanguageMode(str, Enum):
    KR = "kr"
    EN = "en"

    @property
    def api_version(self) -> str:
        return "ko-krv" if self is LanguageMode.KR else "en-kjv"

    @property
    def display_name(self) -> str:
        return "KR" if self is LanguageMode.KR else "EN"

    @property
    def full_name(self) -> str:
        return "한국어" if self is LanguageMode.KR else "English"

    def toggled(self) -> "LanguageMode":
        return LanguageMode.EN if self is LanguageMode.KR else LanguageMode.KR

    @classmethod
    def from_language_code(cls, language_code: str) -> "LanguageMode":
        """Korean UI only for Korean; every other language falls back to English."""
        return cls.KR if (language_code or "").lower() == "ko" else cls.EN


class BookSortOrder(str, Enum):
    CANONICAL = "canonical"
    ALPHABETICAL = "alphabetical"

    def display_name(self, language: LanguageMode) -> str:
        if language is LanguageMode.KR:
            return "목차순" if self is BookSortOrder.CANONICAL else "ㄱㄴㄷ"
        return "Canonical" if self is BookSortOrder.CANONICAL else "A-Z"


class Book(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str                 # e.g., "genesis"
    name_en: str
    name_kr: str
    abbr_en: str            # e.g., "Gen"
    abbr_kr: str            # e.g., "창"
    api_name: str
    chapter_count: int = Field(ge=1)
    order: int = Field(ge=1, le=66)

    @property
    def is_single_chapter(self) -> bool:
        return self.chapter_count == 1

    @property
    def is_old_testament(self) -> bool:
        return self.order <= 39

    @property
    def is_new_testament(self) -> bool:
        return self.order > 39

    def name(self, language: LanguageMode) -> str:
        return self.name_kr if language is LanguageMode.KR else self.name_en

    def abbreviation(self, language: LanguageMode) -> str:
        return self.abbr_kr if language is LanguageMode.KR else self.abbr_en


# KJV marginal notes embedded in the verse text, e.g. "2.14 toward...: or, text"
KJV_FOOTNOTE_PATTERN = re.compile(r"\d+\.\d+\s+[^:]+:.*$")


class Verse(BaseModel):
    model_config = ConfigDict(frozen=True)

    book_name: str
    chapter: int
    verse_number: int
    text_en: str
    text_kr: str

    @property
    def id(self) -> str:
        return f"{self.book_name.lower()}-{self.chapter}-{self.verse_number}"

    def text(self, language: LanguageMode) -> str:
        if language is LanguageMode.EN:
            raw_text = self.text_en
        else:
            raw_text = self.text_kr or self.text_en
        cleaned = raw_text.replace("¶", "").strip()
        if language is LanguageMode.EN:
            cleaned = KJV_FOOTNOTE_PATTERN.sub("", cleaned).strip()
        return cleaned


STRONGS_PATTERN = re.compile(r"<S>\d+</S>")
FOOTNOTE_PATTERN = re.compile(r"<sup>.*?</sup>")
TAG_PATTERN = re.compile(r"<[^>]+>")
WHITESPACE_PATTERN = re.compile(r"\s+")


class OfflineVerse(BaseModel):
    """One verse as served by the chapter API and as stored offline."""
    pk: int = 0
    verse: int
    text: str

    @staticmethod
    def clean_text(text: str) -> str:
        """Strip Strong's numbers, footnotes and any remaining markup."""
        text = STRONGS_PATTERN.sub("", text)
        text = FOOTNOTE_PATTERN.sub("", text)
        text = TAG_PATTERN.sub("", text)
        text = WHITESPACE_PATTERN.sub(" ", text)
        return text.strip()

    def cleaned(self) -> "OfflineVerse":
        return OfflineVerse(pk=self.pk, verse=self.verse, text=self.clean_text(self.text))


class ReadingPosition(BaseModel):
    book_id: str
    chapter: int
    verse_index: int = 0
    language_mode: LanguageMode = LanguageMode.KR


class Translation(BaseModel):
    id: str                 # e.g., "KRV", "KJV"
    name: str               # e.g., "Korean Revised Version"
    short_name: str         # e.g., "개역한글"
    language: str           # e.g., "Korean"
    language_code: str      # e.g., "ko"

    @property
    def display_name(self) -> str:
        return f"{self.short_name} ({self.id})"


# --- Favorite verse spans ---

class SingleVerse(BaseModel):
    kind: Literal["single"] = "single"
    verse: int

    def as_list(self) -> List[int]:
        return [self.verse]


class VerseRange(BaseModel):
    kind: Literal["range"] = "range"
    start: int
    end: int

    def as_list(self) -> List[int]:
        return list(range(self.start, self.end + 1))


class VerseList(BaseModel):
    kind: Literal["list"] = "list"
    numbers: List[int]

    def as_list(self) -> List[int]:
        return list(self.numbers)


VerseSpan = Annotated[Union[SingleVerse, VerseRange, VerseList], Field(discriminator="kind")]


def span_for(verse_numbers: List[int]) -> Union[SingleVerse, VerseRange, VerseList]:
    """Pick the span shape for a set of verse numbers within one chapter."""
    numbers = sorted(set(verse_numbers))
    if not numbers:
        raise ValueError("A favorite needs at least one verse number")
    if len(numbers) == 1:
        return SingleVerse(verse=numbers[0])
    if numbers == list(range(numbers[0], numbers[-1] + 1)):
        return VerseRange(start=numbers[0], end=numbers[-1])
    return VerseList(numbers=numbers)


def make_favorite_key(book_id: str, chapter: int, span) -> str:
    if isinstance(span, SingleVerse):
        suffix = str(span.verse)
    elif isinstance(span, VerseRange):
        suffix = f"{span.start}-{span.end}"
    else:
        suffix = ",".join(str(n) for n in span.as_list())
    return f"{book_id}_{chapter}_{suffix}"


class FavoriteVerse(BaseModel):
    id: str
    book_id: str
    book_name_en: str
    book_name_kr: str
    chapter: int
    span: VerseSpan
    text_en: str
    text_kr: str
    liked_at: datetime
    note: Optional[str] = None
    is_recommended: bool = False

    @property
    def verse_number(self) -> int:
        return self.span.as_list()[0]

    @property
    def verse_number_end(self) -> Optional[int]:
        if isinstance(self.span, SingleVerse):
            return None
        return self.span.as_list()[-1]

    @property
    def verse_numbers(self) -> Optional[List[int]]:
        return self.span.as_list() if isinstance(self.span, VerseList) else None

    @property
    def is_passage(self) -> bool:
        return not isinstance(self.span, SingleVerse)

    @property
    def is_non_continuous(self) -> bool:
        return isinstance(self.span, VerseList)

    def covered_verses(self) -> List[int]:
        return self.span.as_list()

    def covers(self, verse_number: int) -> bool:
        if isinstance(self.span, VerseRange):
            return self.span.start <= verse_number <= self.span.end
        return verse_number in self.span.as_list()

    def book_name(self, language: LanguageMode) -> str:
        return self.book_name_kr if language is LanguageMode.KR else self.book_name_en

    def text(self, language: LanguageMode) -> str:
        if language is LanguageMode.EN:
            return self.text_en
        return self.text_kr or self.text_en

    def _verse_label(self) -> str:
        if isinstance(self.span, VerseList):
            return ", ".join(str(n) for n in self.span.as_list())
        if isinstance(self.span, VerseRange):
            return f"{self.span.start}-{self.span.end}"
        return str(self.span.verse)

    def reference_text(self, language: LanguageMode) -> str:
        """e.g. "창세기 1장 1절" or "Genesis 1:1"."""
        name = self.book_name(language)
        if language is LanguageMode.KR:
            return f"{name} {self.chapter}장 {self._verse_label()}절"
        return f"{name} {self.chapter}:{self._verse_label()}"

    def short_reference(self, language: LanguageMode, abbreviation: Optional[str] = None) -> str:
        """e.g. "창 1:1" or "Gen 1:1"; just "1:1" without an abbreviation."""
        reference = f"{self.chapter}:{self._verse_label()}"
        return f"{abbreviation} {reference}" if abbreviation else reference


# --- Offline download state ---

@dataclass(frozen=True)
class Idle:
    @property
    def progress(self) -> float:
        return 0.0

    @property
    def is_downloading(self) -> bool:
        return False


@dataclass(frozen=True)
class Downloading:
    progress: float
    current_book: str
    current_chapter: int

    @property
    def is_downloading(self) -> bool:
        return True


@dataclass(frozen=True)
class Paused:
    progress: float

    @property
    def is_downloading(self) -> bool:
        return False


@dataclass(frozen=True)
class Completed:
    @property
    def progress(self) -> float:
        return 1.0

    @property
    def is_downloading(self) -> bool:
        return False


@dataclass(frozen=True)
class Failed:
    error: str

    @property
    def progress(self) -> float:
        return 0.0

    @property
    def is_downloading(self) -> bool:
        return False


DownloadState = Union[Idle, Downloading, Paused, Completed, Failed]
