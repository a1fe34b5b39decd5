# tests/test_tts_engine.py
import threading
from types import SimpleNamespace

import pytest
import requests

from conftest import FakeResponse, FakeSession, make_verses

from selah import tts_engine
from selah.constants import OpenAI
from selah.listening import ListeningSession
from selah.models import LanguageMode
from selah.speech import SpeechError
from selah.tts_engine import OpenAISpeechEngine


@pytest.fixture
def make_engine(prefs, tmp_path, monkeypatch):
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
    engines = []

    def factory(session=None, api_key="sk-test"):
        engine = OpenAISpeechEngine(prefs, api_key=api_key, session=session or FakeSession(),
                                    audio_dir=str(tmp_path / "tts"))
        engines.append(engine)
        return engine

    yield factory
    for engine in engines:
        engine.stop()


class TestSettings:
    def test_defaults(self, make_engine):
        engine = make_engine()
        assert engine.voice == OpenAI.TTS_VOICE
        assert engine.speech_rate == 1.0

    def test_rate_and_volume_are_clamped_and_saved(self, prefs, make_engine):
        engine = make_engine()
        engine.speech_rate = 9
        engine.volume = -1
        assert engine.speech_rate == 4.0
        assert engine.volume == 0.0
        assert prefs.get(prefs.TTS_SPEECH_RATE) == 4.0

    def test_unknown_voice(self, make_engine):
        with pytest.raises(ValueError):
            make_engine().voice = "robot"

    def test_voice_saved(self, prefs, make_engine):
        make_engine().voice = "onyx"
        assert make_engine().voice == "onyx"


class TestSynthesis:
    def test_request_body(self, make_engine):
        session = FakeSession({OpenAI.TTS_URL: FakeResponse(content=b"ID3audio")})
        engine = make_engine(session)
        assert engine.generate_speech("태초에") == b"ID3audio"
        body = session.post_calls[0]["json"]
        assert body == {"model": OpenAI.TTS_MODEL, "voice": OpenAI.TTS_VOICE, "input": "태초에",
                        "speed": 1.0, "response_format": "mp3"}

    def test_missing_key(self, make_engine):
        with pytest.raises(SpeechError):
            make_engine(api_key="").generate_speech("hello")

    def test_api_error(self, make_engine):
        session = FakeSession({OpenAI.TTS_URL: FakeResponse({"error": {"message": "bad voice"}}, 400)})
        with pytest.raises(SpeechError, match="bad voice"):
            make_engine(session).generate_speech("hello")

    def test_network_error(self, make_engine):
        session = FakeSession({OpenAI.TTS_URL: requests.exceptions.ConnectionError("offline")})
        with pytest.raises(SpeechError, match="Network error"):
            make_engine(session).generate_speech("hello")

    def test_audio_cached_per_text(self, make_engine):
        session = FakeSession({OpenAI.TTS_URL: FakeResponse(content=b"ID3audio")})
        engine = make_engine(session)
        first = engine._audio_for("In the beginning")
        second = engine._audio_for("In the beginning")
        assert first == second
        assert first.read_bytes() == b"ID3audio"
        assert len(session.post_calls) == 1
        engine._audio_for("God created")
        assert len(session.post_calls) == 2

    def test_stop_resets_state(self, make_engine):
        engine = make_engine()
        engine.is_playing = True
        engine.current_index = 3
        engine.stop()
        assert not engine.is_playing
        assert engine.current_index == 0


class FakeMusic:
    """Stands in for pygame.mixer.music; every clip ends as soon as it starts."""

    def __init__(self):
        self.loaded = []

    def load(self, path):
        self.loaded.append(path)

    def set_volume(self, volume):
        pass

    def play(self):
        pass

    def pause(self):
        pass

    def unpause(self):
        pass

    def stop(self):
        pass

    def get_busy(self):
        return False


class FakeMP3:
    def __init__(self, path):
        self.info = SimpleNamespace(length=0.05)


@pytest.fixture
def playback(make_engine, monkeypatch, tmp_path):
    music = FakeMusic()
    monkeypatch.setattr(tts_engine.pygame.mixer, "music", music)
    monkeypatch.setattr(tts_engine, "MP3", FakeMP3)
    monkeypatch.setattr(tts_engine, "PROGRESS_INTERVAL", 0.01)

    engine = make_engine()
    engine.mixer_initialized = True
    gates = {}
    failing = set()

    def audio_for(text):
        # Synthesis of a gated text blocks until the test releases it
        if text in gates:
            gates[text].wait(5)
        if text in failing:
            raise SpeechError(f"could not synthesise {text}")
        return tmp_path / f"{text}.mp3"

    monkeypatch.setattr(engine, "_audio_for", audio_for)

    events = []
    finished = threading.Event()

    def on_all_finished():
        events.append(("all_finished",))
        finished.set()

    engine.on_utterance_start = lambda index: events.append(("start", index))
    engine.on_utterance_finish = lambda index: events.append(("finish", index))
    engine.on_all_finished = on_all_finished
    return SimpleNamespace(engine=engine, music=music, gates=gates, failing=failing,
                           events=events, finished=finished, audio_dir=tmp_path)


class TestPlayback:
    def test_clips_play_in_order_then_finish(self, playback):
        engine = playback.engine
        engine.speak_from(0, ["first", "second"], LanguageMode.KR)

        assert playback.finished.wait(5)
        assert playback.events == [("start", 0), ("finish", 0), ("start", 1), ("finish", 1), ("all_finished",)]
        assert playback.music.loaded == [str(playback.audio_dir / "first.mp3"),
                                         str(playback.audio_dir / "second.mp3")]
        assert not engine.is_playing
        assert engine.playback_progress == 1.0

    def test_audio_arriving_after_stop_is_dropped(self, playback):
        engine = playback.engine
        gate = playback.gates["slow"] = threading.Event()
        engine.speak_from(0, ["slow"], LanguageMode.KR)
        in_flight = engine.load_thread

        engine.stop()
        gate.set()
        in_flight.join(5)

        assert playback.music.loaded == []
        assert playback.events == []
        assert not engine.is_loading
        assert not engine.is_playing

    def test_audio_from_replaced_request_is_dropped(self, playback):
        engine = playback.engine
        gate = playback.gates["slow"] = threading.Event()
        engine.speak_from(0, ["slow"], LanguageMode.KR)
        in_flight = engine.load_thread

        engine.speak_from(0, ["fast"], LanguageMode.KR)
        assert playback.finished.wait(5)
        gate.set()
        in_flight.join(5)

        assert playback.music.loaded == [str(playback.audio_dir / "fast.mp3")]
        assert playback.events == [("start", 0), ("finish", 0), ("all_finished",)]

    def test_navigation_while_loading_stops_playback(self, playback):
        engine = playback.engine
        verses = make_verses(count=1)
        gate = playback.gates[verses[0].text_kr] = threading.Event()

        session = ListeningSession(engine)
        session.start(verses, LanguageMode.KR)
        session.mark_view_ready()
        assert engine.is_loading
        in_flight = engine.load_thread

        session.pause_for_navigation()
        gate.set()
        in_flight.join(5)

        assert playback.music.loaded == []
        assert not engine.is_loading
        assert not engine.is_playing
        assert not session.has_started_playing(0)

    def test_synthesis_failure_reports_error(self, playback):
        engine = playback.engine
        playback.failing.add("broken")
        errors = []
        engine.on_error = errors.append

        engine.speak_from(0, ["broken"], LanguageMode.KR)
        engine.load_thread.join(5)

        assert errors == ["could not synthesise broken"]
        assert engine.error_message == "could not synthesise broken"
        assert not engine.is_loading
        assert playback.events == []
