# selah/error_reporter.py
"""Local error history plus optional forwarding to a chat webhook."""
import concurrent.futures
import locale
import platform
import sys
import time
import traceback
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

import requests
from colorama import Fore, Style
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .constants import VERSION, ErrorReporting
from .preferences import PreferencesStore
from .utils import is_secret_configured


class ErrorContext(BaseModel):
    service: str
    action: str
    additional_info: Dict[str, str] = Field(default_factory=dict)

    @property
    def description(self) -> str:
        desc = f"{self.service}.{self.action}"
        if self.additional_info:
            info = ", ".join(f"{key}: {value}" for key, value in self.additional_info.items())
            desc += f" [{info}]"
        return desc


class DeviceInfo(BaseModel):
    model: str
    os_version: str
    language: str
    app_version: str
    device_id: str

    @classmethod
    def current(cls, device_id: str) -> "DeviceInfo":
        lang = locale.getlocale()[0] or "unknown"
        return cls(
            model=platform.machine() or "unknown",
            os_version=f"{platform.system()} {platform.release()}",
            language=lang,
            app_version=VERSION,
            device_id=device_id,
        )


class ErrorLog(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    error_code: Optional[str] = None
    error_message: str
    error_domain: Optional[str] = None
    context: str
    stack_trace: Optional[str] = None
    device_info: DeviceInfo

    @property
    def formatted(self) -> str:
        lines = [
            "=== Error Log ===",
            f"Time: {self.timestamp.isoformat()}",
            f"Context: {self.context}",
        ]
        if self.error_code:
            lines.append(f"Code: {self.error_code}")
        if self.error_domain:
            lines.append(f"Domain: {self.error_domain}")
        lines.append(f"Message: {self.error_message}")
        lines.append("")
        lines.append("--- Device Info ---")
        lines.append(f"Model: {self.device_info.model}")
        lines.append(f"OS: {self.device_info.os_version}")
        lines.append(f"Language: {self.device_info.language}")
        lines.append(f"App Version: {self.device_info.app_version}")
        lines.append(f"Device ID: {self.device_info.device_id}")
        return "\n".join(lines)


_LOG_LIST = TypeAdapter(List[ErrorLog])


class ErrorLogger:
    """Keeps the most recent error logs in the preferences file."""

    def __init__(self, preferences: PreferencesStore, max_stored_logs: int = ErrorReporting.MAX_STORED_LOGS):
        self.preferences = preferences
        self.max_stored_logs = max_stored_logs

    def device_id(self) -> str:
        """Anonymous id, generated once and kept in preferences."""
        existing = self.preferences.get(self.preferences.ANONYMOUS_DEVICE_ID)
        if existing:
            return existing
        new_id = uuid.uuid4().hex[:8]
        self.preferences.set(self.preferences.ANONYMOUS_DEVICE_ID, new_id)
        return new_id

    def make_log(self, error: Optional[BaseException], context: ErrorContext,
                 message: Optional[str] = None, code: Optional[str] = None) -> ErrorLog:
        stack_trace = None
        domain = None
        if error is not None:
            domain = type(error).__name__
            if error.__traceback__ is not None:
                stack_trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return ErrorLog(
            error_code=code,
            error_message=message or (str(error) if error is not None else "Unknown error"),
            error_domain=domain,
            context=context.description,
            stack_trace=stack_trace,
            device_info=DeviceInfo.current(self.device_id()),
        )

    def log(self, error: Optional[BaseException], context: ErrorContext,
            message: Optional[str] = None, code: Optional[str] = None) -> ErrorLog:
        entry = self.make_log(error, context, message, code)
        self._store(entry)
        self._print_to_console(entry)
        return entry

    def _store(self, entry: ErrorLog):
        logs = self.get_stored_logs()
        logs.insert(0, entry)
        logs = logs[:self.max_stored_logs]
        self.preferences.set(self.preferences.STORED_ERROR_LOGS, [log.model_dump(mode="json") for log in logs])

    def get_stored_logs(self) -> List[ErrorLog]:
        stored = self.preferences.get(self.preferences.STORED_ERROR_LOGS)
        if not stored:
            return []
        try:
            return _LOG_LIST.validate_python(stored)
        except ValidationError:
            print(f"{Fore.YELLOW}Stored error logs are unreadable, discarding them.{Style.RESET_ALL}", file=sys.stderr)
            return []

    def get_recent_logs(self) -> List[ErrorLog]:
        """Logs from the last 24 hours."""
        cutoff = datetime.now(timezone.utc) - timedelta(hours=24)
        return [log for log in self.get_stored_logs() if log.timestamp > cutoff]

    def clear_logs(self):
        self.preferences.remove(self.preferences.STORED_ERROR_LOGS)

    def export_logs(self) -> str:
        return _LOG_LIST.dump_json(self.get_stored_logs(), indent=2).decode("utf-8")

    def _print_to_console(self, entry: ErrorLog):
        print(f"{Fore.RED}🔴 ERROR: {entry.context}{Style.RESET_ALL}", file=sys.stderr)
        if entry.error_code:
            print(f"{Fore.RED}   Code: {entry.error_code}{Style.RESET_ALL}", file=sys.stderr)
        print(f"{Fore.RED}   Message: {entry.error_message}{Style.RESET_ALL}", file=sys.stderr)


class ErrorReporter:
    """Posts error logs to a Discord, Slack or generic JSON webhook, rate-limited."""

    def __init__(self, webhook_url: Optional[str] = None, session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.time):
        self.webhook_url = webhook_url if webhook_url is not None else ErrorReporting.WEBHOOK_URL
        self.session = session if session is not None else requests.Session()
        self._clock = clock
        self.min_report_interval = ErrorReporting.MIN_REPORT_INTERVAL
        self.max_reports_per_hour = ErrorReporting.MAX_REPORTS_PER_HOUR
        self._last_report_time: Optional[float] = None
        self._reports_this_hour = 0
        self._hour_start_time = clock()

    def is_configured(self) -> bool:
        return is_secret_configured(self.webhook_url)

    def should_send_report(self) -> bool:
        now = self._clock()
        if now - self._hour_start_time > 3600:
            self._hour_start_time = now
            self._reports_this_hour = 0
        if self._reports_this_hour >= self.max_reports_per_hour:
            return False
        if self._last_report_time is not None and now - self._last_report_time < self.min_report_interval:
            return False
        return True

    def report(self, log: ErrorLog) -> bool:
        """Send one report. Returns True when the webhook accepted it."""
        if not self.should_send_report():
            print(f"{Fore.YELLOW}⚠️ ErrorReporter: Rate limited, skipping report{Style.RESET_ALL}", file=sys.stderr)
            return False
        if not self.is_configured():
            return False

        url = self.webhook_url
        if "discord" in url:
            payload = self.discord_payload(log)
        elif "slack" in url:
            payload = self.slack_payload(log)
        else:
            payload = log.model_dump(mode="json")

        self._last_report_time = self._clock()
        self._reports_this_hour += 1
        try:
            response = self.session.post(url, json=payload, timeout=10)
        except requests.exceptions.RequestException as e:
            print(f"{Fore.YELLOW}⚠️ ErrorReporter: Failed to send report - {e}{Style.RESET_ALL}", file=sys.stderr)
            return False
        if 200 <= response.status_code < 300:
            return True
        print(f"{Fore.YELLOW}⚠️ ErrorReporter: HTTP {response.status_code}{Style.RESET_ALL}", file=sys.stderr)
        return False

    @staticmethod
    def discord_payload(log: ErrorLog) -> dict:
        device = log.device_info
        return {"embeds": [{
            "title": "🔴 Error Report",
            "color": 15158332,
            "fields": [
                {"name": "Context", "value": log.context, "inline": False},
                {"name": "Message", "value": log.error_message[:1000], "inline": False},
                {"name": "Code", "value": log.error_code or "N/A", "inline": True},
                {"name": "Device", "value": device.model, "inline": True},
                {"name": "OS", "value": device.os_version, "inline": True},
                {"name": "App Version", "value": device.app_version, "inline": True},
                {"name": "Language", "value": device.language, "inline": True},
                {"name": "Device ID", "value": device.device_id, "inline": True},
            ],
            "timestamp": log.timestamp.isoformat(),
        }]}

    @staticmethod
    def slack_payload(log: ErrorLog) -> dict:
        device = log.device_info
        return {"blocks": [
            {"type": "header", "text": {"type": "plain_text", "text": "🔴 Error Report", "emoji": True}},
            {"type": "section", "fields": [
                {"type": "mrkdwn", "text": f"*Context:*\n{log.context}"},
                {"type": "mrkdwn", "text": f"*Code:*\n{log.error_code or 'N/A'}"},
            ]},
            {"type": "section", "text": {"type": "mrkdwn", "text": f"*Message:*\n```{log.error_message[:500]}```"}},
            {"type": "section", "fields": [
                {"type": "mrkdwn", "text": f"*Device:*\n{device.model}"},
                {"type": "mrkdwn", "text": f"*OS:*\n{device.os_version}"},
                {"type": "mrkdwn", "text": f"*App Version:*\n{device.app_version}"},
                {"type": "mrkdwn", "text": f"*Device ID:*\n{device.device_id}"},
            ]},
            {"type": "context", "elements": [
                {"type": "mrkdwn", "text": f"Reported at {log.timestamp.isoformat()}"},
            ]},
        ]}


def is_cancellation(error: BaseException) -> bool:
    """Intentional stops: never worth logging or reporting."""
    return isinstance(error, (concurrent.futures.CancelledError, KeyboardInterrupt))


def report_error(error: BaseException, context: ErrorContext, logger: ErrorLogger,
                 reporter: Optional[ErrorReporter] = None) -> Optional[ErrorLog]:
    """Log an error locally and forward it to the webhook when one is configured."""
    if is_cancellation(error):
        return None
    entry = logger.log(error, context)
    if reporter is not None and reporter.is_configured():
        reporter.report(entry)
    return entry
