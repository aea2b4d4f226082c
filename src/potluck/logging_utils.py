"""Logging setup for Potluck: plain or JSON output with credential redaction."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Iterable, Sequence

REDACTED = "[redacted]"

# Credential shapes seen in merge-service and LLM traffic: bearer tokens, the Anthropic
# x-api-key header and the api_token query parameter accepted by this server.
_CREDENTIAL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(Bearer\s+)([A-Za-z0-9\-._~+/=]+)", re.IGNORECASE),
    re.compile(r"((?:x-)?api[-_]key['\"]?\s*[=:]\s*['\"]?)([^&\s'\",]+)", re.IGNORECASE),
    re.compile(r"(api_token=)([^&\s]+)", re.IGNORECASE),
)

CONTEXT_FIELDS = ("request_id", "event_id", "user_id")

# Client libraries that log every outbound request URL at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore")
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def redact(text: str, secrets: Sequence[str] = ()) -> str:
    """Mask credential patterns and any literal ``secrets`` found in ``text``."""

    for pattern in _CREDENTIAL_PATTERNS:
        text = pattern.sub(lambda match: match.group(1) + REDACTED, text)
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


class SensitiveDataFilter(logging.Filter):
    """Rewrite records so configured secrets never reach a handler."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        self.secrets = tuple(secret.strip() for secret in secrets if secret and secret.strip())

    def filter(self, record: logging.LogRecord) -> bool:
        rendered = record.getMessage()
        cleaned = redact(rendered, self.secrets)
        if cleaned != rendered:
            record.msg, record.args = cleaned, ()
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if isinstance(value, str):
                setattr(record, field, redact(value, self.secrets))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, carrying request/event context when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            {field: value for field in CONTEXT_FIELDS if (value := getattr(record, field, None))}
        )
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)
        return json.dumps(entry, ensure_ascii=True, default=str)


def _build_formatter(fmt: str) -> logging.Formatter:
    if (fmt or "plain").strip().lower() == "json":
        return JsonFormatter()
    return logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def configure_logging(level_name: str, fmt: str, secrets: Iterable[str]) -> None:
    """Install a single redacting stream handler on the root logger.

    ``fmt`` selects ``plain`` or ``json`` output. HTTP client loggers are held at WARNING unless
    running at DEBUG so merge-service URLs and headers stay out of normal logs.
    """

    level = logging.getLevelName((level_name or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    redactor = SensitiveDataFilter(secrets)
    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(fmt))
    handler.addFilter(redactor)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    logging.captureWarnings(True)

    for name in _SERVER_LOGGERS + _CHATTY_LOGGERS:
        named = logging.getLogger(name)
        named.handlers = []
        named.propagate = True
        named.filters = [f for f in named.filters if not isinstance(f, SensitiveDataFilter)]
        named.addFilter(redactor)
        if name in _CHATTY_LOGGERS:
            named.setLevel(level if level <= logging.DEBUG else logging.WARNING)
        else:
            named.setLevel(level)


__all__ = ["REDACTED", "JsonFormatter", "SensitiveDataFilter", "configure_logging", "redact"]
