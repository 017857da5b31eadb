"""Structured logging helpers for fetch operations."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from core.models import FetchLog


def _isoformat(value: datetime | None) -> str | None:
    """Serialize datetimes for logs."""
    if value is None:
        return None
    return value.isoformat()


def _json_value(value: Any) -> Any:
    # Enum tokens are logged by value ("max-redirect", "follow")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _write_line(record: dict[str, Any]) -> str:
    line = json.dumps(record, ensure_ascii=True, sort_keys=True, default=_json_value)
    print(line)
    return line


def fetch_log_to_dict(fetch_log: FetchLog) -> dict[str, Any]:
    """Convert FetchLog to a JSON-safe dictionary."""
    return {
        "id": fetch_log.id,
        "url": fetch_log.url,
        "final_url": fetch_log.final_url,
        "method": fetch_log.method,
        "status_code": fetch_log.status_code,
        "redirect_count": fetch_log.redirect_count,
        "latency_ms": fetch_log.latency_ms,
        "error_kind": fetch_log.error_kind.value if fetch_log.error_kind else None,
        "timestamp": _isoformat(fetch_log.created_at),
    }


def emit_event(
    event_type: str,
    *,
    fetch_id: str | None = None,
    level: str = "info",
    **payload: Any,
) -> str:
    """
    Emit one fetch event (e.g. ``redirect_followed``) as a JSON line.

    Every line carries ``event_type``, ``level``, ``timestamp`` and the
    ``fetch_id`` shared by all hops of one call. Returns the line for
    testability.
    """
    record: dict[str, Any] = dict(payload)
    record.update(
        event_type=event_type,
        level=level,
        fetch_id=fetch_id,
        timestamp=datetime.now(UTC).isoformat(),
    )
    return _write_line(record)


def emit_fetch_log(fetch_log: FetchLog) -> str:
    """Emit a structured JSON log line and return it for testability."""
    return _write_line(fetch_log_to_dict(fetch_log))
