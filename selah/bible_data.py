# selah/bible_data.py
import re
from typing import Dict, List, Optional, Tuple

from .models import Book, BookSortOrder, LanguageMode, Translation

# (id, English name, Korean name, English abbr, Korean abbr, chapter count)
_BOOK_TABLE = [
    # Old Testament
    ("genesis", "Genesis", "창세기", "Gen", "창", 50),
    ("exodus", "Exodus", "출애굽기", "Exo", "출", 40),
    ("leviticus", "Leviticus", "레위기", "Lev", "레", 27),
    ("numbers", "Numbers", "민수기", "Num", "민", 36),
    ("deuteronomy", "Deuteronomy", "신명기", "Deu", "신", 34),
    ("joshua", "Joshua", "여호수아", "Jos", "수", 24),
    ("judges", "Judges", "사사기", "Jdg", "삿", 21),
    ("ruth", "Ruth", "룻기", "Rut", "룻", 4),
    ("1samuel", "1 Samuel", "사무엘상", "1Sa", "삼상", 31),
    ("2samuel", "2 Samuel", "사무엘하", "2Sa", "삼하", 24),
    ("1kings", "1 Kings", "열왕기상", "1Ki", "왕상", 22),
    ("2kings", "2 Kings", "열왕기하", "2Ki", "왕하", 25),
    ("1chronicles", "1 Chronicles", "역대상", "1Ch", "대상", 29),
    ("2chronicles", "2 Chronicles", "역대하", "2Ch", "대하", 36),
    ("ezra", "Ezra", "에스라", "Ezr", "스", 10),
    ("nehemiah", "Nehemiah", "느헤미야", "Neh", "느", 13),
    ("esther", "Esther", "에스더", "Est", "에", 10),
    ("job", "Job", "욥기", "Job", "욥", 42),
    ("psalms", "Psalms", "시편", "Psa", "시", 150),
    ("proverbs", "Proverbs", "잠언", "Pro", "잠", 31),
    ("ecclesiastes", "Ecclesiastes", "전도서", "Ecc", "전", 12),
    ("songofsolomon", "Song of Solomon", "아가", "Sng", "아", 8),
    ("isaiah", "Isaiah", "이사야", "Isa", "사", 66),
    ("jeremiah", "Jeremiah", "예레미야", "Jer", "렘", 52),
    ("lamentations", "Lamentations", "예레미야애가", "Lam", "애", 5),
    ("ezekiel", "Ezekiel", "에스겔", "Eze", "겔", 48),
    ("daniel", "Daniel", "다니엘", "Dan", "단", 12),
    ("hosea", "Hosea", "호세아", "Hos", "호", 14),
    ("joel", "Joel", "요엘", "Joe", "욜", 3),
    ("amos", "Amos", "아모스", "Amo", "암", 9),
    ("obadiah", "Obadiah", "오바댜", "Oba", "옵", 1),
    ("jonah", "Jonah", "요나", "Jon", "욘", 4),
    ("micah", "Micah", "미가", "Mic", "미", 7),
    ("nahum", "Nahum", "나훔", "Nah", "나", 3),
    ("habakkuk", "Habakkuk", "하박국", "Hab", "합", 3),
    ("zephaniah", "Zephaniah", "스바냐", "Zep", "습", 3),
    ("haggai", "Haggai", "학개", "Hag", "학", 2),
    ("zechariah", "Zechariah", "스가랴", "Zec", "슥", 14),
    ("malachi", "Malachi", "말라기", "Mal", "말", 4),
    # New Testament
    ("matthew", "Matthew", "마태복음", "Mat", "마", 28),
    ("mark", "Mark", "마가복음", "Mar", "막", 16),
    ("luke", "Luke", "누가복음", "Luk", "눅", 24),
    ("john", "John", "요한복음", "Joh", "요", 21),
    ("acts", "Acts", "사도행전", "Act", "행", 28),
    ("romans", "Romans", "로마서", "Rom", "롬", 16),
    ("1corinthians", "1 Corinthians", "고린도전서", "1Co", "고전", 16),
    ("2corinthians", "2 Corinthians", "고린도후서", "2Co", "고후", 13),
    ("galatians", "Galatians", "갈라디아서", "Gal", "갈", 6),
    ("ephesians", "Ephesians", "에베소서", "Eph", "엡", 6),
    ("philippians", "Philippians", "빌립보서", "Phi", "빌", 4),
    ("colossians", "Colossians", "골로새서", "Col", "골", 4),
    ("1thessalonians", "1 Thessalonians", "데살로니가전서", "1Th", "살전", 5),
    ("2thessalonians", "2 Thessalonians", "데살로니가후서", "2Th", "살후", 3),
    ("1timothy", "1 Timothy", "디모데전서", "1Ti", "딤전", 6),
    ("2timothy", "2 Timothy", "디모데후서", "2Ti", "딤후", 4),
    ("titus", "Titus", "디도서", "Tit", "딛", 3),
    ("philemon", "Philemon", "빌레몬서", "Phm", "몬", 1),
    ("hebrews", "Hebrews", "히브리서", "Heb", "히", 13),
    ("james", "James", "야고보서", "Jas", "약", 5),
    ("1peter", "1 Peter", "베드로전서", "1Pe", "벧전", 5),
    ("2peter", "2 Peter", "베드로후서", "2Pe", "벧후", 3),
    ("1john", "1 John", "요한일서", "1Jo", "요일", 5),
    ("2john", "2 John", "요한이서", "2Jo", "요이", 1),
    ("3john", "3 John", "요한삼서", "3Jo", "요삼", 1),
    ("jude", "Jude", "유다서", "Jud", "유", 1),
    ("revelation", "Revelation", "요한계시록", "Rev", "계", 22),
]

BOOKS: List[Book] = [
    Book(id=book_id, name_en=name_en, name_kr=name_kr, abbr_en=abbr_en, abbr_kr=abbr_kr,
         api_name=book_id, chapter_count=chapters, order=order)
    for order, (book_id, name_en, name_kr, abbr_en, abbr_kr, chapters) in enumerate(_BOOK_TABLE, start=1)
]

_BOOKS_BY_ID: Dict[str, Book] = {book.id: book for book in BOOKS}
_BOOKS_BY_ORDER: Dict[int, Book] = {book.order: book for book in BOOKS}

# Book number used by the chapter API (Genesis=1 ... Revelation=66)
BOOK_NUMBERS: Dict[str, int] = {book.api_name: book.order for book in BOOKS}

SINGLE_CHAPTER_BOOK_IDS = {book.id for book in BOOKS if book.is_single_chapter}


def book_by_id(book_id: str) -> Optional[Book]:
    return _BOOKS_BY_ID.get(book_id)


def book_at(order: int) -> Optional[Book]:
    return _BOOKS_BY_ORDER.get(order)


def next_book(book: Book) -> Optional[Book]:
    if book.order >= 66:
        return None
    return book_at(book.order + 1)


def previous_book(book: Book) -> Optional[Book]:
    if book.order <= 1:
        return None
    return book_at(book.order - 1)


def total_chapter_count(books: Optional[List[Book]] = None) -> int:
    """1189 for the full canon."""
    return sum(book.chapter_count for book in (books if books is not None else BOOKS))


def sorted_books(sort_order: BookSortOrder, language: LanguageMode) -> List[Book]:
    if sort_order is BookSortOrder.CANONICAL:
        return sorted(BOOKS, key=lambda b: b.order)
    # Hangul syllables are laid out in ganada order, so plain ordering works for Korean
    return sorted(BOOKS, key=lambda b: b.name(language).lower())


def _normalize(name: str) -> str:
    return re.sub(r"[\s.]", "", name).lower()


def find_book(name: str) -> Optional[Book]:
    """Find a book by id, English/Korean name or abbreviation, then by English prefix."""
    query = _normalize(name)
    if not query:
        return None
    for book in BOOKS:
        candidates = {book.id, book.api_name, _normalize(book.name_en), book.name_kr,
                      _normalize(book.abbr_en), book.abbr_kr}
        if query in candidates:
            return book
    if len(query) >= 2:
        for book in BOOKS:
            if book.id.startswith(query) or _normalize(book.name_en).startswith(query):
                return book
    return None


_REFERENCE_PATTERN = re.compile(
    r"^\s*(?P<book>.+?)\s*(?P<chapter>\d+)\s*장?(?:\s*[:\s]\s*(?P<verse>\d+)\s*절?)?\s*$"
)


def parse_reference(text: str) -> Optional[Tuple[Book, int, int]]:
    """
    Parse "John 3:16", "john 3 16", "요 3:16" or "요한복음 3장 16절".

    Returns (book, chapter, verse) with verse 0 when absent, or None when the
    text is not a reference to an existing chapter.
    """
    match = _REFERENCE_PATTERN.match(text or "")
    if not match:
        return None
    book = find_book(match.group("book"))
    if book is None:
        return None
    chapter = int(match.group("chapter"))
    verse = int(match.group("verse")) if match.group("verse") else 0
    # "Jude 5" means verse 5 of the only chapter
    if book.is_single_chapter and verse == 0 and chapter > 1:
        chapter, verse = 1, chapter
    if not 1 <= chapter <= book.chapter_count:
        return None
    return book, chapter, verse


DEFAULT_TRANSLATIONS: List[Translation] = [
    # Korean
    Translation(id="KRV", name="Korean Revised Version", short_name="개역한글", language="Korean", language_code="ko"),
    Translation(id="NKRV", name="New Korean Revised Version", short_name="개역개정", language="Korean", language_code="ko"),
    Translation(id="KLB", name="Korean Living Bible", short_name="현대인의성경", language="Korean", language_code="ko"),
    # English
    Translation(id="KJV", name="King James Version", short_name="KJV", language="English", language_code="en"),
    Translation(id="ESV", name="English Standard Version", short_name="ESV", language="English", language_code="en"),
    Translation(id="NIV", name="New International Version", short_name="NIV", language="English", language_code="en"),
    Translation(id="NASB", name="New American Standard Bible", short_name="NASB", language="English", language_code="en"),
    Translation(id="NLT", name="New Living Translation", short_name="NLT", language="English", language_code="en"),
    Translation(id="ASV", name="American Standard Version", short_name="ASV", language="English", language_code="en"),
    Translation(id="WEB", name="World English Bible", short_name="WEB", language="English", language_code="en"),
    # Others
    Translation(id="RVR1960", name="Reina Valera 1960", short_name="RVR60", language="Spanish", language_code="es"),
    Translation(id="CUNP", name="Chinese Union Version (Traditional)", short_name="和合本", language="Chinese", language_code="zh"),
    Translation(id="JLB", name="Japanese Living Bible", short_name="リビングバイブル", language="Japanese", language_code="ja"),
    Translation(id="LUTH1545", name="Luther Bible 1545", short_name="Luther", language="German", language_code="de"),
    Translation(id="LSG", name="Louis Segond", short_name="LSG", language="French", language_code="fr"),
    Translation(id="ARA", name="Almeida Revista e Atualizada", short_name="ARA", language="Portuguese", language_code="pt"),
]

_LANGUAGE_CODES = {
    "korean": "ko", "english": "en", "japanese": "ja", "chinese": "zh", "spanish": "es",
    "german": "de", "french": "fr", "portuguese": "pt", "italian": "it", "russian": "ru",
}


def language_code_for(language: str) -> str:
    return _LANGUAGE_CODES.get((language or "").lower(), "en")


def translation_by_id(translation_id: str) -> Optional[Translation]:
    for translation in DEFAULT_TRANSLATIONS:
        if translation.id == translation_id:
            return translation
    return None
