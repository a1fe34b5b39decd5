# selah/constants.py
import os

APP_NAME = "Selah"
APP_AUTHOR = "Selah"
VERSION = "1.0.0"

PREFERENCES_FILENAME = "Selah-Settings.json"
OFFLINE_DIR_NAME = "OfflineBibles"


class API:
    # bolls.life serves every translation with the same chapter layout
    BASE_URL = "https://bolls.life"
    CHAPTER_URL = BASE_URL + "/get-chapter/{translation}/{book_number}/{chapter}/"
    LANGUAGES_URL = BASE_URL + "/static/bolls/app/views/languages.json"
    TIMEOUT = 30
    TRANSLATIONS_TIMEOUT = 15
    TRANSLATIONS_CACHE_EXPIRY = 3600 * 24  # 24 hours
    USER_AGENT = f"SelahClient/{VERSION}"


class OpenAI:
    API_KEY = os.environ.get("OPENAI_API_KEY", "")
    CHAT_URL = "https://api.openai.com/v1/chat/completions"
    CHAT_MODEL = "gpt-4o-mini"
    TTS_URL = "https://api.openai.com/v1/audio/speech"
    TTS_MODEL = "tts-1"
    TTS_VOICE = "nova"
    AVAILABLE_VOICES = ["alloy", "echo", "fable", "onyx", "nova", "shimmer"]
    TIMEOUT = 60


class Translations:
    DEFAULT_PRIMARY = "KRV"
    DEFAULT_SECONDARY = "KJV"
    DEFAULT_PRIMARY_LANGUAGE = "ko"
    DEFAULT_SECONDARY_LANGUAGE = "en"


class Download:
    REQUEST_DELAY = 0.05  # 50ms between chapter requests
    RETRY_PASSES = 1


class ErrorReporting:
    WEBHOOK_URL = os.environ.get("SELAH_ERROR_WEBHOOK_URL", "")
    MIN_REPORT_INTERVAL = 5.0
    MAX_REPORTS_PER_HOUR = 20
    MAX_STORED_LOGS = 100


# Default reading position when nothing valid has been saved
DEFAULT_BOOK_ID = "john"
DEFAULT_CHAPTER = 1

# Chapter toasts reappear after roughly six months
CHAPTER_TOAST_EXPIRY = 6 * 30 * 24 * 60 * 60
