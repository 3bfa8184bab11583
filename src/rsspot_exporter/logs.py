"""Logging setup for the exporter process."""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _json_default(obj: object) -> str:
    """Fallback serializer for objects that json can't handle."""
    return str(obj)


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Route all log output through a single stream handler.

    ``fmt="json"`` emits structured records; ``fmt="text"`` is meant for local runs.
    """
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(
            JsonFormatter(
                fmt=TEXT_FORMAT,
                rename_fields={"asctime": "timestamp", "levelname": "level"},
                json_default=_json_default,
            )
        )
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logging.root.handlers = [handler]
    logging.root.setLevel(level.upper())
    logging.getLogger("httpx").setLevel(logging.WARNING)
