from __future__ import annotations

import logging
from collections.abc import Iterable

QUIET_ACCESS_PATHS = frozenset({"/healthz", "/"})
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class _HealthCheckAccessFilter(logging.Filter):
    """Drop uvicorn access records for health checks."""

    def __init__(self, paths: Iterable[str]) -> None:
        super().__init__()
        self._paths = {path.rstrip("/") or "/" for path in paths}

    def filter(self, record: logging.LogRecord) -> bool:
        return _request_path(record) not in self._paths


def _request_path(record: logging.LogRecord) -> str | None:
    # uvicorn.access args: (client_addr, method, path, http_version, status_code)
    args = record.args
    if isinstance(args, tuple) and len(args) >= 3:
        return str(args[2]).split("?", 1)[0] or None
    return None


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("uvicorn.access").addFilter(_HealthCheckAccessFilter(QUIET_ACCESS_PATHS))
    # openai logs every request at INFO through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
