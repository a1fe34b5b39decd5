# tests/test_error_reporter.py
import concurrent.futures
from datetime import datetime, timedelta, timezone

import pytest
import requests

from conftest import FakeResponse, FakeSession

from selah.error_reporter import (ErrorContext, ErrorLogger, ErrorReporter,
                                  is_cancellation, report_error)

DISCORD = "https://discord.com/api/webhooks/123/abc"
SLACK = "https://hooks.slack.com/services/T0/B0/xyz"
GENERIC = "https://example.com/errors"


class Clock:
    def __init__(self):
        self.now = 10_000.0

    def __call__(self):
        return self.now


@pytest.fixture
def logger(prefs):
    return ErrorLogger(prefs)


def _raise(error):
    try:
        raise error
    except Exception as e:
        return e


class TestErrorContext:
    def test_description(self):
        context = ErrorContext(service="BibleAPIClient", action="fetchChapter",
                               additional_info={"book": "john", "chapter": "3"})
        assert context.description == "BibleAPIClient.fetchChapter [book: john, chapter: 3]"
        assert ErrorContext(service="A", action="b").description == "A.b"


class TestErrorLogger:
    def test_log_is_stored(self, logger):
        entry = logger.log(_raise(ValueError("bad value")), ErrorContext(service="S", action="a"))
        assert entry.error_message == "bad value"
        assert entry.error_domain == "ValueError"
        assert "Traceback" in entry.stack_trace
        assert [log.id for log in logger.get_stored_logs()] == [entry.id]

    def test_newest_first_and_bounded(self, prefs):
        logger = ErrorLogger(prefs, max_stored_logs=3)
        ids = [logger.log(None, ErrorContext(service="S", action="a"), message=f"m{i}").id for i in range(5)]
        assert [log.id for log in logger.get_stored_logs()] == list(reversed(ids))[:3]

    def test_device_id_is_stable(self, logger):
        assert logger.device_id() == logger.device_id()
        assert len(logger.device_id()) == 8

    def test_recent_logs(self, prefs, logger):
        logger.log(None, ErrorContext(service="S", action="old"), message="old")
        stored = prefs.get(prefs.STORED_ERROR_LOGS)
        stored[0]["timestamp"] = (datetime.now(timezone.utc) - timedelta(days=2)).isoformat()
        prefs.set(prefs.STORED_ERROR_LOGS, stored)
        logger.log(None, ErrorContext(service="S", action="new"), message="new")
        assert [log.error_message for log in logger.get_recent_logs()] == ["new"]

    def test_clear_and_export(self, logger):
        logger.log(None, ErrorContext(service="S", action="a"), message="boom", code="E1")
        assert '"error_code": "E1"' in logger.export_logs()
        logger.clear_logs()
        assert logger.get_stored_logs() == []

    def test_formatted(self, logger):
        entry = logger.make_log(None, ErrorContext(service="S", action="a"), message="boom", code="42")
        assert "Context: S.a" in entry.formatted
        assert "Code: 42" in entry.formatted


class TestErrorReporter:
    def _entry(self, logger):
        return logger.make_log(None, ErrorContext(service="S", action="a"), message="boom")

    def test_discord_payload(self, logger):
        session = FakeSession({DISCORD: FakeResponse({}, status_code=204)})
        assert ErrorReporter(DISCORD, session).report(self._entry(logger))
        assert "embeds" in session.post_calls[0]["json"]

    def test_slack_payload(self, logger):
        session = FakeSession({SLACK: FakeResponse({})})
        ErrorReporter(SLACK, session).report(self._entry(logger))
        assert "blocks" in session.post_calls[0]["json"]

    def test_generic_payload(self, logger):
        session = FakeSession({GENERIC: FakeResponse({})})
        entry = self._entry(logger)
        ErrorReporter(GENERIC, session).report(entry)
        assert session.post_calls[0]["json"]["id"] == entry.id

    def test_not_configured(self, logger):
        session = FakeSession()
        assert not ErrorReporter("", session).report(self._entry(logger))
        assert not ErrorReporter("https://YOUR_WEBHOOK", session).is_configured()
        assert session.post_calls == []

    def test_minimum_interval(self, logger):
        clock = Clock()
        session = FakeSession({GENERIC: FakeResponse({})})
        reporter = ErrorReporter(GENERIC, session, clock=clock)
        assert reporter.report(self._entry(logger))
        clock.now += 2
        assert not reporter.report(self._entry(logger))
        clock.now += 5
        assert reporter.report(self._entry(logger))

    def test_hourly_cap(self, logger):
        clock = Clock()
        session = FakeSession({GENERIC: FakeResponse({})})
        reporter = ErrorReporter(GENERIC, session, clock=clock)
        sent = 0
        for _ in range(25):
            clock.now += 6
            sent += reporter.report(self._entry(logger))
        assert sent == 20
        clock.now += 3600
        assert reporter.report(self._entry(logger))

    def test_network_failure(self, logger):
        session = FakeSession({GENERIC: requests.exceptions.ConnectionError("down")})
        assert not ErrorReporter(GENERIC, session).report(self._entry(logger))

    def test_http_failure(self, logger):
        session = FakeSession({GENERIC: FakeResponse({}, status_code=500)})
        assert not ErrorReporter(GENERIC, session).report(self._entry(logger))


class TestReportError:
    def test_cancellations_are_ignored(self, logger):
        for error in (concurrent.futures.CancelledError(), KeyboardInterrupt()):
            assert is_cancellation(error)
            assert report_error(error, ErrorContext(service="S", action="a"), logger) is None
        assert logger.get_stored_logs() == []

    def test_logs_and_forwards(self, logger):
        session = FakeSession({GENERIC: FakeResponse({})})
        entry = report_error(RuntimeError("bad"), ErrorContext(service="S", action="a"),
                             logger, ErrorReporter(GENERIC, session))
        assert entry.error_message == "bad"
        assert len(session.post_calls) == 1
