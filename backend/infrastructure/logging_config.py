"""
Logging setup.

Production emits one JSON object per line; development uses a plain text
format. Both paths pass through a filter that masks credentials, so a
vendor key or a user's access token never reaches the log sink.
"""

import json
import logging
import re
import sys
from datetime import UTC, datetime

_REDACTIONS = [
    # Anthropic keys and Replicate tokens
    (re.compile(r"sk-ant-[A-Za-z0-9_\-]{20,}"), "[REDACTED_API_KEY]"),
    (re.compile(r"r8_[A-Za-z0-9]{20,}"), "[REDACTED_API_TOKEN]"),
    # Our own access tokens (header.payload.signature)
    (re.compile(r"eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+"), "[REDACTED_JWT]"),
    (re.compile(r"(Bearer\s+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r'((?:api[_-]?(?:key|token)|secret)["\s:=]+)[^\s&"\']+', re.IGNORECASE), r"\1[REDACTED]"),
]

# Record attributes passed via ``extra=`` that belong in the JSON line
CONTEXT_FIELDS = (
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "user_id",
    "operation",
    "tool",
    "creation_id",
)


def redact(text: str) -> str:
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


def _redact_value(value):
    return redact(value) if isinstance(value, str) else value


class SensitiveDataFilter(logging.Filter):
    """Masks credentials in the message and its arguments."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if isinstance(record.args, dict):
            record.args = {k: _redact_value(v) for k, v in record.args.items()}
        elif record.args:
            record.args = tuple(_redact_value(a) for a in record.args)
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name)) for name in CONTEXT_FIELDS if hasattr(record, name)
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


def setup_logging(json_output: bool = False, level: str = "INFO") -> None:
    """
    Replace the root handlers with a single stdout handler.

    Args:
        json_output: JSON lines when True, human-readable text otherwise
        level: Root log level name
    """
    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%H:%M:%S")
        )
    handler.addFilter(SensitiveDataFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name, lib_level in (
        ("sqlalchemy.engine", logging.WARNING),
        ("httpx", logging.WARNING),
        ("anthropic", logging.WARNING),
        ("replicate", logging.WARNING),
    ):
        logging.getLogger(name).setLevel(lib_level)
