"""JSON output wrapper that stamps CLI payloads with schema metadata."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from traitmatch import __version__


def json_response(
    schema_id: str,
    schema_version: int,
    *,
    produced_at: str | None = None,
    **data: Any,
) -> str:
    """Render ``data`` as strict JSON with schema metadata appended.

    Every payload carries ``schema_id``, ``schema_version``, ``producer``
    (``traitmatch-<version>``) and ``produced_at`` (UTC ISO timestamp unless
    given). Non-finite floats are rejected rather than written as the
    non-standard ``Infinity``/``NaN`` tokens, so callers dump pydantic
    models with ``mode="json"``.

    Example:
        >>> json_response("match_results", 1, user_id="user_007", results=[])
        {
          "user_id": "user_007",
          "results": [],
          "schema_id": "match_results",
          "schema_version": 1,
          "producer": "traitmatch-0.1.0",
          "produced_at": "2026-10-17T10:30:00+00:00"
        }
    """
    stamped = dict(data)
    stamped["schema_id"] = schema_id
    stamped["schema_version"] = schema_version
    stamped["producer"] = f"traitmatch-{__version__}"
    stamped["produced_at"] = produced_at or datetime.now(UTC).isoformat()
    return json.dumps(stamped, indent=2, default=str, allow_nan=False)
