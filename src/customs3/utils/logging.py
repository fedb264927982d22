"""Logging setup: readable console lines plus a JSON-lines audit file."""

import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional


# Structured fields a record may carry, in rendering order
CONTEXT_FIELDS = ('operation', 'bucket', 'kind')

LEVEL_COLORS = {
    'WARNING': '\033[33m',
    'ERROR': '\033[31m',
    'CRITICAL': '\033[35m',
}
RESET = '\033[0m'

QUIET_LOGGERS = ('boto3', 'botocore', 'urllib3')


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the structured fields present on a record."""
    return {name: getattr(record, name) for name in CONTEXT_FIELDS if hasattr(record, name)}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, stamped with the record's own creation time."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        entry.update(record_context(record))
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry)


class ConsoleFormatter(logging.Formatter):
    """Formats ``HH:MM:SS LEVEL [operation:bucket] message``.

    Only warnings and worse are coloured.
    """

    def format(self, record: logging.LogRecord) -> str:
        clock = datetime.fromtimestamp(record.created, timezone.utc).strftime('%H:%M:%S')
        level = f"{record.levelname:8}"
        if record.levelname in LEVEL_COLORS:
            level = f"{LEVEL_COLORS[record.levelname]}{level}{RESET}"

        context = record_context(record)
        message = record.getMessage()
        if 'bucket' in context:
            scope = context['bucket']
            if 'operation' in context:
                scope = f"{context['operation']}:{scope}"
            message = f"[{scope}] {message}"

        return f"{clock} {level} {message}"


def setup_logging(log_level: str = 'info', log_dir: Optional[str] = '.customs3/logs') -> None:
    """Configure the root logger for a command run.

    Args:
        log_level: Console level (debug, info, warning, error)
        log_dir: Directory for the daily JSON-lines file, None disables it.
            The file always receives DEBUG records.
    """
    level = getattr(logging, log_level.upper())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG if log_dir else level)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter())
    root.addHandler(console)

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        day = datetime.now(timezone.utc).strftime('%Y%m%d')
        audit = logging.FileHandler(directory / f"customs3-{day}.jsonl")
        audit.setLevel(logging.DEBUG)
        audit.setFormatter(JSONFormatter())
        root.addHandler(audit)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Attach ``fields`` to every record created inside the block.

    Nested blocks stack; the innermost value wins.
    """
    previous = logging.getLogRecordFactory()

    def factory(*args, **kwargs):
        record = previous(*args, **kwargs)
        for key, value in fields.items():
            setattr(record, key, value)
        return record

    logging.setLogRecordFactory(factory)
    try:
        yield
    finally:
        logging.setLogRecordFactory(previous)
