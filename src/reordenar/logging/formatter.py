"""Structured log output: one JSON object per line."""

import json
import logging
from datetime import UTC, datetime


class JSONLogFormatter(logging.Formatter):
    """Render a record as JSON tagged with the emitting service.

    A ``playlist_id`` passed through ``extra`` is copied into the object so
    session and sync logs can be filtered per playlist.
    """

    def __init__(self, service: str = "client") -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "service": self._service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        playlist_id = getattr(record, "playlist_id", None)
        if playlist_id:
            entry["playlist_id"] = playlist_id
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)
