from __future__ import annotations

import logging
import re
from collections.abc import Iterable

HEALTH_PATHS = frozenset({"/healthz", "/ping", "/openapi.json", "/"})
# httpx logs every request line at INFO; status probes would flood the output.
_NOISY_LOGGERS = ("httpx", "httpcore")
_REQUEST_LINE = re.compile(r'"[A-Z]+ (?P<path>/\S*) HTTP/[\d.]+"')


class _QuietPathFilter(logging.Filter):
    """Drops uvicorn access records for the given request paths."""

    def __init__(self, paths: Iterable[str]) -> None:
        super().__init__()
        self._paths = frozenset(_normalize_path(path) for path in paths)

    def filter(self, record: logging.LogRecord) -> bool:
        path = _request_path(record)
        return path is None or _normalize_path(path) not in self._paths


def _normalize_path(path: str) -> str:
    return path.split("?", 1)[0].rstrip("/") or "/"


def _request_path(record: logging.LogRecord) -> str | None:
    # uvicorn passes (client, method, path, http_version, status) as args.
    args = record.args
    if isinstance(args, tuple) and len(args) >= 3:
        return str(args[2])
    match = _REQUEST_LINE.search(record.getMessage())
    return match.group("path") if match else None


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger("uvicorn.access").addFilter(_QuietPathFilter(HEALTH_PATHS))
    if logging.getLogger().getEffectiveLevel() > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
