"""Tests for schema stamping of CLI JSON output."""

from __future__ import annotations

import json
import math

import pytest

from traitmatch import __version__
from traitmatch.utils.cli_output import json_response

REQUIRED_SCHEMA_FIELDS = {"schema_id", "schema_version", "producer", "produced_at"}


def _strict_loads(raw: str) -> dict:
    def reject(token: str) -> None:
        raise ValueError(f"non-standard JSON constant {token}")

    return json.loads(raw, parse_constant=reject)


def test_json_response_has_schema_metadata():
    raw = json_response("tuning_report", 2, total_configs_tested=8)

    data = _strict_loads(raw)
    assert REQUIRED_SCHEMA_FIELDS <= set(data)
    assert data["schema_id"] == "tuning_report"
    assert data["schema_version"] == 2
    assert data["producer"] == f"traitmatch-{__version__}"
    assert data["total_configs_tested"] == 8


def test_json_response_keeps_given_timestamp():
    raw = json_response("match_results", 1, produced_at="2026-01-01T00:00:00+00:00", results=[])

    data = _strict_loads(raw)
    assert data["produced_at"] == "2026-01-01T00:00:00+00:00"
    assert data["results"] == []


def test_json_response_rejects_non_finite_floats():
    with pytest.raises(ValueError):
        json_response("tuning_report", 1, p95_latency_ms=math.inf)
