# selah/app.py
import os
import shutil
import sys
import textwrap
from typing import List, Optional

import requests
from colorama import Fore, Style, init
from tqdm import tqdm

from . import bible_data
from .bible_api_client import BibleAPIClient, BibleAPIError
from .chat_client import ChatClient, ChatMessage, ChatServiceError
from .constants import VERSION
from .download_manager import DownloadManager
from .error_reporter import ErrorContext, ErrorLogger, ErrorReporter, report_error
from .favorites import FavoriteService
from .listening import ListeningSession, VerseProgressState
from .models import (Completed, Downloading, DownloadState, Failed, LanguageMode,
                     Paused)
from .offline_storage import OfflineStorage
from .preferences import PreferencesStore
from .reading_progress import ChapterToastTracker, ReadingProgressTracker
from .tts_engine import OpenAISpeechEngine
from .view_model import BibleViewModel

SELAH_BANNER = r"""
  ____       _       _
 / ___|  ___| | __ _| |__
 \___ \ / _ \ |/ _` | '_ \
  ___) |  __/ | (_| | | | |
 |____/ \___|_|\__,_|_| |_|
"""

HELP_TEXT = [
    ("n / p", "next / previous chapter"),
    ("j / k", "next / previous verse"),
    ("go <ref>", "jump to a reference, e.g. 'go john 3:16' or 'go 요 3:16'"),
    ("lang", "switch between primary and secondary translation"),
    ("books", "list books (add 'sort' to toggle the order)"),
    ("fav [verses]", "save the current verse, or e.g. 'fav 3-5' / 'fav 1,3,5'"),
    ("favs", "list saved verses"),
    ("unfav <id|verse>", "remove a saved verse or passage"),
    ("note <id> <text>", "attach a note to a saved verse (empty text clears it)"),
    ("read", "mark the chapter as read / unread"),
    ("tr [primary secondary]", "show or change the translation pair"),
    ("dl <translation>", "download a translation for offline use (Ctrl+C pauses)"),
    ("downloads", "show offline translations and their size"),
    ("rmdl <translation>", "delete an offline translation"),
    ("ask <question>", "ask Gamaliel, the Bible study assistant"),
    ("listen", "read the chapter aloud from the current verse"),
    ("help", "show this list"),
    ("quit", "exit"),
]


def _parse_verse_numbers(arg: str) -> Optional[List[int]]:
    """'3', '3-5' or '1,3,5' to a list of verse numbers."""
    numbers = []
    try:
        for part in arg.split(","):
            part = part.strip()
            if "-" in part:
                start, end = (int(p) for p in part.split("-", 1))
                numbers.extend(range(min(start, end), max(start, end) + 1))
            elif part:
                numbers.append(int(part))
    except ValueError:
        return None
    return sorted(set(numbers)) or None


class SelahApp:
    def __init__(self, preferences: Optional[PreferencesStore] = None, storage: Optional[OfflineStorage] = None,
                 session: Optional[requests.Session] = None):
        self.preferences = preferences if preferences is not None else PreferencesStore()
        self.term_size = shutil.get_terminal_size()
        self.storage = storage if storage is not None else OfflineStorage()
        self.client = BibleAPIClient(self.preferences, self.storage, session)
        self.error_logger = ErrorLogger(self.preferences)
        self.error_reporter = ErrorReporter()
        self.view_model = BibleViewModel(self.preferences, self.client, error_logger=self.error_logger,
                                         error_reporter=self.error_reporter)
        self.favorites = FavoriteService(self.preferences)
        self.reading_progress = ReadingProgressTracker(self.preferences)
        self.toasts = ChapterToastTracker(self.preferences)
        self.downloads = DownloadManager(self.storage, self.client.fetch_translation_chapter)
        self.downloads.refresh_downloaded_translations()
        self.chat = ChatClient()
        self.chat_history: List[ChatMessage] = []
        self._speech_engine: Optional[OpenAISpeechEngine] = None

    # --- Display ---

    def _clear_terminal(self):
        os.system('cls' if os.name == 'nt' else 'clear')

    def _display_header(self):
        print(Fore.RED + Style.BRIGHT + SELAH_BANNER + Style.RESET_ALL)
        print(Fore.WHITE + f"  Bilingual Bible reader  v{VERSION}   (type 'help' for commands)\n")

    def _wrap(self, text: str, indent: str = "   ") -> str:
        width = max(40, self.term_size.columns - 4)
        return textwrap.fill(text, width=width, initial_indent=indent, subsequent_indent=indent)

    def _display_chapter(self):
        vm = self.view_model
        book = vm.current_book
        lang = vm.ui_language
        read_mark = f" {Fore.GREEN}✓" if self.reading_progress.is_chapter_read(book.id, vm.current_chapter) else ""
        print(Fore.RED + "╭─ " + Style.BRIGHT + Fore.GREEN + f"📖 {vm.header_text}" + read_mark)
        print(Fore.RED + f"│ • {Fore.CYAN}Translation: {Fore.WHITE}"
                         f"{self.client.primary_translation_id} / {self.client.secondary_translation_id}"
                         f"  {Fore.CYAN}Showing: {Fore.WHITE}{vm.language_mode.display_name}")
        print(Fore.RED + "╰" + "─" * 52)

        if self.toasts.should_show_toast(book.id, vm.current_chapter):
            testament = ("구약" if book.is_old_testament else "신약") if lang is LanguageMode.KR \
                else ("Old Testament" if book.is_old_testament else "New Testament")
            print(Fore.MAGENTA + f"   ✦ {book.name(lang)} · {testament} · {book.chapter_count} ch.")
            self.toasts.mark_as_seen(book.id, vm.current_chapter)

        if vm.error_message:
            print(Fore.RED + f"Error: {vm.error_message}")
            return
        if not vm.verses:
            print(Fore.YELLOW + "No verses to show.")
            return

        for index, verse in enumerate(vm.verses):
            star = "★ " if self.favorites.is_favorite(book.id, verse.chapter, verse.verse_number) else ""
            color = Fore.YELLOW + Style.BRIGHT if index == vm.current_verse_index else Fore.WHITE
            print(Fore.CYAN + f"{verse.verse_number:>3}" + color + f" {star}" + Style.RESET_ALL)
            print(color + self._wrap(verse.text(vm.language_mode)) + Style.RESET_ALL)

    def _display_current_verse(self):
        verse = self.view_model.current_verse
        if verse is None:
            print(Fore.YELLOW + "No verse selected.")
            return
        vm = self.view_model
        print(Fore.CYAN + f"{vm.header_text}:{verse.verse_number}")
        print(Fore.WHITE + self._wrap(verse.text(vm.language_mode)))

    def _display_help(self):
        print(Fore.RED + "┌─" + Fore.RED + Style.BRIGHT + " Commands")
        for command, description in HELP_TEXT:
            print(Fore.RED + "│ " + Fore.CYAN + f"{command:<24}" + Fore.WHITE + description)
        print(Fore.RED + "└" + "─" * 52)

    # --- Commands ---

    def _go(self, arg: str):
        reference = bible_data.parse_reference(arg)
        if reference is None:
            print(Fore.RED + f"Could not understand reference '{arg}'.")
            return
        book, chapter, verse = reference
        if self.view_model.navigate_to(book, chapter, verse):
            self._display_chapter()
        else:
            print(Fore.RED + self.view_model.error_message)

    def _books(self, arg: str):
        vm = self.view_model
        if arg == "sort":
            vm.toggle_sort_order()
        lang = vm.ui_language
        print(Fore.RED + "┌─" + Style.BRIGHT + f" Books ({vm.sort_order.display_name(lang)})")
        for book in vm.sorted_books:
            read = self.reading_progress.read_chapter_count(book)
            done = Fore.GREEN + " ✓" if self.reading_progress.is_book_fully_read(book) else ""
            print(Fore.RED + "│ " + Fore.CYAN + f"{book.abbreviation(lang):<8}" + Fore.WHITE
                  + f"{book.name(lang):<20}" + Fore.YELLOW + f"{read}/{book.chapter_count}" + done)
        print(Fore.RED + "└" + "─" * 52)

    def _fav(self, arg: str):
        vm = self.view_model
        if not vm.verses:
            print(Fore.YELLOW + "Nothing loaded to save.")
            return
        if not arg:
            verse = vm.current_verse
            added = self.favorites.toggle_favorite(verse, vm.current_book)
            print((Fore.GREEN + "★ Saved ") if added else (Fore.YELLOW + "☆ Removed "), end="")
            print(f"{vm.header_text}:{verse.verse_number}")
            return

        numbers = _parse_verse_numbers(arg)
        if numbers is None:
            print(Fore.RED + f"Invalid verse selection '{arg}'.")
            return
        selected = [v for v in vm.verses if v.verse_number in numbers]
        if not selected:
            print(Fore.RED + "None of those verses are in this chapter.")
            return
        self.favorites.add_favorite_passage(selected, vm.current_book)
        print(Fore.GREEN + f"★ Saved {vm.header_text}:{arg}")

    def _favs(self):
        favorites = self.favorites.get_all_favorites()
        if not favorites:
            print(Fore.YELLOW + "No saved verses yet.")
            return
        lang = self.view_model.ui_language
        for favorite in favorites:
            print(Fore.CYAN + favorite.reference_text(lang) + Fore.WHITE + Style.DIM + f"  [{favorite.id}]")
            print(Fore.WHITE + self._wrap(favorite.text(self.view_model.language_mode)))
            if favorite.note:
                print(Fore.MAGENTA + self._wrap(f"✎ {favorite.note}"))

    def _unfav(self, arg: str):
        if self.favorites.get_by_id(arg) is not None:
            self.favorites.remove_favorite(arg)
            print(Fore.YELLOW + f"Removed {arg}")
            return
        if arg.isdigit():
            vm = self.view_model
            self.favorites.remove_favorite_verse(vm.current_book.id, vm.current_chapter, int(arg))
            print(Fore.YELLOW + f"Removed {vm.header_text}:{arg}")
            return
        print(Fore.RED + f"No saved verse with id '{arg}'.")

    def _note(self, arg: str):
        favorite_id, _, note = arg.partition(" ")
        if self.favorites.get_by_id(favorite_id) is None:
            print(Fore.RED + f"No saved verse with id '{favorite_id}'.")
            return
        self.favorites.update_note(favorite_id, note.strip() or None)
        print(Fore.GREEN + "Note updated.")

    def _read(self):
        vm = self.view_model
        is_read = self.reading_progress.toggle_read_state(vm.current_book.id, vm.current_chapter)
        print((Fore.GREEN + "✓ Marked as read: ") if is_read else (Fore.YELLOW + "Marked as unread: "), end="")
        print(vm.header_text)

    def _translations(self, arg: str):
        prefs = self.preferences
        parts = arg.split()
        if len(parts) == 2:
            available = {t.id: t for t in self.client.fetch_available_translations()}
            primary, secondary = parts[0].upper(), parts[1].upper()
            unknown = [tid for tid in (primary, secondary) if tid not in available]
            if unknown:
                print(Fore.RED + f"Unknown translation(s): {', '.join(unknown)}")
                return
            prefs.update({
                prefs.PRIMARY_TRANSLATION_ID: primary,
                prefs.SECONDARY_TRANSLATION_ID: secondary,
                prefs.PRIMARY_LANGUAGE_CODE: available[primary].language_code,
                prefs.SECONDARY_LANGUAGE_CODE: available[secondary].language_code,
            })
            self.view_model.reload_current_chapter()
            self._display_chapter()
            return

        print(Fore.RED + "┌─" + Style.BRIGHT + " Translations")
        for translation in self.client.fetch_available_translations():
            offline = Fore.GREEN + " (offline)" if self.downloads.is_available_offline(translation.id) else ""
            print(Fore.RED + "│ " + Fore.CYAN + f"{translation.id:<10}" + Fore.WHITE
                  + f"{translation.display_name:<32}" + Fore.YELLOW + translation.language + offline)
        print(Fore.RED + "└" + "─" * 52)

    def _download(self, arg: str):
        translation_id = arg.strip().upper()
        if not translation_id:
            print(Fore.RED + "Usage: dl <translation>")
            return
        if translation_id not in {t.id for t in self.client.fetch_available_translations()}:
            print(Fore.RED + f"Unknown translation: {translation_id}")
            return
        total = self.downloads.total_chapters
        bar = tqdm(total=total, unit="ch", desc=translation_id, ncols=80)
        bar.n = int(self.downloads.get_state(translation_id).progress * total)
        bar.refresh()

        def on_state(tid: str, state: DownloadState):
            if tid != translation_id:
                return
            bar.n = int(round(state.progress * total))
            if isinstance(state, Downloading) and state.current_chapter:
                bar.set_postfix_str(f"{state.current_book} {state.current_chapter}")
            bar.refresh()

        self.downloads.add_listener(on_state)
        try:
            if isinstance(self.downloads.get_state(translation_id), Paused):
                self.downloads.resume_download(translation_id)
            else:
                self.downloads.start_download(translation_id)
            while True:
                self.downloads.wait(translation_id, timeout=0.5)
                if not self.downloads.get_state(translation_id).is_downloading:
                    break
        except KeyboardInterrupt:
            self.downloads.cancel_download(translation_id)
            self.downloads.wait(translation_id)
        finally:
            self.downloads.remove_listener(on_state)
            bar.close()

        state = self.downloads.get_state(translation_id)
        if isinstance(state, Completed):
            missing = self.downloads.missing_chapters.get(translation_id)
            if missing:
                print(Fore.YELLOW + f"{len(missing)} chapters are still missing; run 'dl {translation_id}' again to retry.")
        elif isinstance(state, Paused):
            print(Fore.YELLOW + f"Paused at {state.progress:.0%}. Run 'dl {translation_id}' to resume.")
        elif isinstance(state, Failed):
            print(Fore.RED + f"Download failed: {state.error}")

    def _list_downloads(self):
        downloaded = sorted(self.downloads.downloaded_translations)
        if not downloaded:
            print(Fore.YELLOW + "No translations downloaded yet.")
        for translation_id in downloaded:
            size = self.storage.format_size(self.downloads.translation_sizes.get(translation_id, 0))
            print(Fore.CYAN + f"{translation_id:<10}" + Fore.WHITE + size)
        print(Fore.WHITE + f"Total: {self.storage.format_size(self.downloads.total_storage_size())}")

    def _delete_download(self, arg: str):
        translation_id = arg.strip().upper()
        if not self.downloads.is_available_offline(translation_id):
            print(Fore.RED + f"{translation_id} is not downloaded.")
            return
        self.downloads.delete_download(translation_id)
        self.client.clear_cache()
        print(Fore.YELLOW + f"Deleted offline copy of {translation_id}.")

    def _ask(self, question: str):
        if not question:
            print(Fore.RED + "Usage: ask <question>")
            return
        if not self.chat.is_configured():
            print(Fore.YELLOW + "Set OPENAI_API_KEY to talk with Gamaliel.")
            return
        language = "ko" if self.view_model.ui_language is LanguageMode.KR else "en"
        self.chat_history.append(ChatMessage(role="user", content=question))
        print(Fore.GREEN + Style.BRIGHT + "Gamaliel: " + Style.RESET_ALL, end="", flush=True)
        answer = []
        try:
            for chunk in self.chat.chat_stream(self.chat_history, language):
                answer.append(chunk)
                print(chunk, end="", flush=True)
        except ChatServiceError as e:
            print()
            self.chat_history.pop()
            report_error(e, ErrorContext(service="ChatClient", action="chatStream"),
                         self.error_logger, self.error_reporter)
            return
        except KeyboardInterrupt:
            print(Fore.YELLOW + "\n(stopped)")
        print()
        self.chat_history.append(ChatMessage(role="assistant", content="".join(answer)))

    def _render_listening_progress(self, session: ListeningSession) -> str:
        marks = {
            VerseProgressState.COMPLETED: Fore.GREEN + "█",
            VerseProgressState.PLAYING: Fore.YELLOW + "▓",
            VerseProgressState.PENDING: Fore.WHITE + Style.DIM + "░",
        }
        return "".join(marks[s.state] + Style.RESET_ALL for s in session.progress_segments())

    def _listen(self):
        vm = self.view_model
        if not vm.verses:
            print(Fore.YELLOW + "Nothing loaded to read aloud.")
            return
        if self._speech_engine is None:
            self._speech_engine = OpenAISpeechEngine(self.preferences, error_logger=self.error_logger,
                                                     error_reporter=self.error_reporter)
        engine = self._speech_engine
        if not engine.is_configured():
            print(Fore.YELLOW + "Set OPENAI_API_KEY to use listening mode.")
            return

        session = ListeningSession(engine)
        engine.on_error = lambda message: print(Fore.RED + f"\nSpeech error: {message}")
        session.start_from(vm.verses, vm.language_mode, vm.current_verse_index)
        session.mark_view_ready()
        print(Fore.CYAN + "Listening. Enter: refresh  space: play/pause  n/b: next/previous verse  "
                          "<number>: jump to verse  q: stop")
        try:
            while session.is_active:
                print(self._render_listening_progress(session)
                      + Fore.WHITE + f"  {vm.header_text}:{session.current_verse_number}")
                if session.show_completion_buttons:
                    print(Fore.GREEN + "Finished the chapter.")
                    self.reading_progress.mark_as_read(vm.current_book.id, vm.current_chapter)
                    break
                choice = input(Fore.RED + "♪ " + Style.RESET_ALL)
                if choice == "q":
                    break
                elif choice == " ":
                    session.toggle_play_pause()
                elif choice == "n":
                    session.next_verse()
                elif choice == "b":
                    session.previous_verse()
                elif choice.isdigit():
                    number = int(choice)
                    index = next((i for i, v in enumerate(session.verses) if v.verse_number == number), -1)
                    session.jump_to_verse(index)
        except KeyboardInterrupt:
            session.pause_for_navigation()
        finally:
            if session.verses and session.current_verse_index < len(session.verses):
                vm.on_verse_snap(session.current_verse_index)
            session.exit()

    # --- Loop ---

    def _handle(self, line: str) -> bool:
        """Run one command. Returns False to leave the loop."""
        command, _, arg = line.strip().partition(" ")
        command = command.lower()
        arg = arg.strip()
        vm = self.view_model

        if command in ("quit", "exit", "q"):
            return False
        elif command == "":
            self._display_current_verse()
        elif command == "n":
            if vm.go_to_next_chapter():
                self._display_chapter()
            else:
                print(Fore.YELLOW + "This is the last chapter.")
        elif command == "p":
            if vm.go_to_previous_chapter():
                self._display_chapter()
            else:
                print(Fore.YELLOW + "This is the first chapter.")
        elif command == "j":
            vm.go_to_next_verse()
            self._display_current_verse()
        elif command == "k":
            vm.go_to_previous_verse()
            self._display_current_verse()
        elif command == "go":
            self._go(arg)
        elif command == "lang":
            vm.toggle_language()
            self._display_chapter()
        elif command == "books":
            self._books(arg)
        elif command == "fav":
            self._fav(arg)
        elif command == "favs":
            self._favs()
        elif command == "unfav":
            self._unfav(arg)
        elif command == "note":
            self._note(arg)
        elif command == "read":
            self._read()
        elif command == "tr":
            self._translations(arg)
        elif command == "dl":
            self._download(arg)
        elif command == "downloads":
            self._list_downloads()
        elif command == "rmdl":
            self._delete_download(arg)
        elif command == "ask":
            self._ask(arg)
        elif command == "listen":
            self._listen()
        elif command == "help":
            self._display_help()
        else:
            print(Fore.RED + f"Unknown command '{command}'. Type 'help' for the list.")
        return True

    def run(self):
        self._clear_terminal()
        self._display_header()
        self.view_model.load_current_chapter()
        self._display_chapter()
        while True:
            try:
                line = input(Fore.RED + "\n┌─ " + Style.BRIGHT + self.view_model.header_text
                             + Style.RESET_ALL + Fore.RED + "\n└─> " + Style.RESET_ALL)
            except EOFError:
                break
            except KeyboardInterrupt:
                print(Style.BRIGHT + Fore.YELLOW + "\n⚠ To exit, please type 'quit' or 'exit'")
                continue
            try:
                if not self._handle(line):
                    break
            except BibleAPIError as e:
                report_error(e, ErrorContext(service="SelahApp", action=line.split(" ", 1)[0]),
                             self.error_logger, self.error_reporter)
        self.client.shutdown()
        if self._speech_engine is not None:
            self._speech_engine.stop()


def main():
    init(autoreset=True)
    try:
        SelahApp().run()
        sys.exit(0)
    except KeyboardInterrupt:
        print(Style.BRIGHT + Fore.YELLOW + "\n⚠ Interrupted.")
        sys.exit(1)


if __name__ == "__main__":
    main()
