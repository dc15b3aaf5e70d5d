from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter


class JSONFormatter(JsonFormatter):
    """One JSON object per record; keyword fields from the logger become top-level keys."""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['message'] = record.getMessage()
        log_record['thread'] = record.threadName


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Appends the structured fields of an event as `key=value` pairs so that
    `--verbose` runs show what the JSONL log records.
    """

    # Attributes every LogRecord has; anything else came in through `extra`.
    _RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}

    def __init__(self) -> None:
        super().__init__(
            fmt='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        fields = {
            k: v for k, v in vars(record).items()
            if k not in self._RESERVED and k != "type"
        }
        if fields:
            text += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return text
