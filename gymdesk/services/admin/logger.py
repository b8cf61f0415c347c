"""
Access log for the dashboard API.

One line per request with method, path, status and latency; the structured
entry rides along in ``extra["access"]``. Credentials are masked in both the
headers and the query string. Failed requests are raised in level so a 500
on a dashboard stands out, and health checks drop to DEBUG so uptime
monitors do not bury real traffic.
"""

import logging
import time
from typing import Any, Dict, Iterable, Tuple

from fastapi import Request, Response

log = logging.getLogger("gymdesk.access")

MASK = "***masked***"

SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "apikey", "x-supabase-key"})
SENSITIVE_PARAMS = frozenset({"access_token", "token", "apikey"})

QUIET_PREFIXES = ("/health",)


def _masked(items: Iterable[Tuple[str, str]], sensitive: frozenset) -> Dict[str, str]:
    return {k: (MASK if k.lower() in sensitive else v) for k, v in items}


def access_level(path: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    if path.startswith(QUIET_PREFIXES):
        return logging.DEBUG
    return logging.INFO


def log_request_response(request: Request, response: Response, start_time: float) -> Dict[str, Any]:
    """Log one request; ``start_time`` is a ``time.perf_counter()`` reading."""
    duration_ms = int((time.perf_counter() - start_time) * 1000)
    path = request.url.path

    entry: Dict[str, Any] = {
        "method": request.method,
        "path": path,
        "query": _masked(request.query_params.items(), SENSITIVE_PARAMS),
        "status_code": response.status_code,
        "duration_ms": duration_ms,
        "client": request.client.host if request.client else None,
        "headers": _masked(request.headers.items(), SENSITIVE_HEADERS),
    }

    log.log(
        access_level(path, response.status_code),
        "%s %s -> %s (%sms)",
        entry["method"],
        path,
        entry["status_code"],
        duration_ms,
        extra={"access": entry},
    )
    return entry
