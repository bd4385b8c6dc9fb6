"""Tests for loading application records."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from jobcal.config import Config
from jobcal.store import (
    StoreError,
    SupabaseStore,
    load_records,
    load_records_file,
    load_snapshot,
    save_snapshot,
)

APPLICATION_ROWS = [
    {
        "id": "a1",
        "user_id": "u1",
        "company": "Acme",
        "position": "Eng",
        "status": "interview",
        "applied_date": "2024-03-04",
        "created_at": "2024-03-04T10:00:00+00:00",
    },
    {
        "id": "a2",
        "user_id": "u1",
        "company": "Globex",
        "position": "Analyst",
        "applied_date": None,
    },
]

EVENT_ROWS = [
    {"id": "e1", "job_id": "a1", "title": "Interview", "description": None, "date": "2024-03-06T14:00:00+00:00"},
    {"id": "e2", "job_id": "a1", "title": "Follow-up", "description": "Send thanks", "date": "2024-03-07"},
]


def _response(payload=None, error=None):
    response = MagicMock()
    response.json.return_value = payload
    if error is not None:
        response.raise_for_status.side_effect = error
    return response


def _store(*responses) -> tuple[SupabaseStore, MagicMock]:
    session = MagicMock()
    session.get.side_effect = list(responses)
    return SupabaseStore("https://example.supabase.co/", "anon-key", session=session), session


def test_fetch_applications_joins_events():
    store, session = _store(_response(APPLICATION_ROWS), _response(EVENT_ROWS))

    records = store.fetch_applications(user_id="u1")

    assert [r.id for r in records] == ["a1", "a2"]
    assert [e.title for e in records[0].events] == ["Interview", "Follow-up"]
    assert records[0].events[1].description == "Send thanks"
    assert records[1].events == []
    assert records[1].applied_date is None

    first_call, second_call = session.get.call_args_list
    assert first_call.args[0] == "https://example.supabase.co/rest/v1/job_applications"
    assert first_call.kwargs["params"]["user_id"] == "eq.u1"
    assert first_call.kwargs["params"]["order"] == "created_at.desc"
    assert first_call.kwargs["headers"]["apikey"] == "anon-key"
    assert first_call.kwargs["headers"]["Authorization"] == "Bearer anon-key"
    assert second_call.args[0].endswith("/rest/v1/job_application_events")
    assert second_call.kwargs["params"]["job_id"] == "in.(a1,a2)"


def test_access_token_used_for_authorization():
    store, session = _store(_response([]))
    store.access_token = "user-jwt"

    assert store.fetch_applications() == []
    headers = session.get.call_args.kwargs["headers"]
    assert headers["Authorization"] == "Bearer user-jwt"
    assert "user_id" not in session.get.call_args.kwargs["params"]
    assert session.get.call_count == 1


def test_application_fetch_failure_raises():
    store, _ = _store(_response(error=requests.HTTPError("500")))

    with pytest.raises(StoreError):
        store.fetch_applications()


def test_event_fetch_failure_keeps_applications():
    store, _ = _store(_response(APPLICATION_ROWS), _response(error=requests.ConnectionError("down")))

    records = store.fetch_applications()

    assert [r.id for r in records] == ["a1", "a2"]
    assert all(r.events == [] for r in records)


def test_load_records_file_yaml(tmp_path: Path):
    path = tmp_path / "applications.yaml"
    path.write_text(
        "- id: 1\n"
        "  company: Acme\n"
        "  position: Eng\n"
        "  appliedDate: 2024-03-04\n"
        "  events:\n"
        "    - title: Interview\n"
        "      date: '2024-03-06T14:00'\n"
    )

    (record,) = load_records_file(path)

    assert record.id == "1"
    assert record.applied_date == "2024-03-04"
    assert record.events[0].date == "2024-03-06T14:00"


def test_load_records_file_json_mapping(tmp_path: Path):
    path = tmp_path / "applications.json"
    path.write_text(json.dumps({"applications": [{"id": "x", "company": "A", "position": "B"}]}))

    assert [r.id for r in load_records_file(path)] == ["x"]


def test_load_records_file_errors(tmp_path: Path):
    with pytest.raises(StoreError):
        load_records_file(tmp_path / "missing.yaml")

    invalid = tmp_path / "invalid.yaml"
    invalid.write_text("- company: no id\n")
    with pytest.raises(StoreError):
        load_records_file(invalid)

    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("42\n")
    with pytest.raises(StoreError):
        load_records_file(scalar)


def test_snapshot_roundtrip(tmp_path: Path, records):
    path = tmp_path / "data" / "snapshot.json"

    save_snapshot(records, path)

    assert [r.model_dump() for r in load_snapshot(path)] == [r.model_dump() for r in records]


def test_missing_snapshot_is_empty(tmp_path: Path):
    assert load_snapshot(tmp_path / "none.json") == []


def test_load_records_falls_back_to_snapshot(tmp_path: Path, records, monkeypatch):
    snapshot = tmp_path / "snapshot.json"
    save_snapshot(records, snapshot)

    def failing_fetch(self, user_id=None):
        raise StoreError("backend down")

    monkeypatch.setattr(SupabaseStore, "fetch_applications", failing_fetch)
    config = Config(supabase_url="https://example.supabase.co", supabase_key="k", snapshot_file=snapshot)

    assert [r.model_dump() for r in load_records(config)] == [r.model_dump() for r in records]


def test_load_records_saves_snapshot(tmp_path: Path, records, monkeypatch):
    snapshot = tmp_path / "snapshot.json"
    monkeypatch.setattr(SupabaseStore, "fetch_applications", lambda self, user_id=None: records)
    config = Config(supabase_url="https://example.supabase.co", supabase_key="k", snapshot_file=snapshot)

    assert load_records(config) == records
    assert [r.model_dump() for r in load_snapshot(snapshot)] == [r.model_dump() for r in records]


def test_load_records_without_source(monkeypatch):
    monkeypatch.delenv("SUPABASE_KEY", raising=False)

    assert load_records(Config()) == []


def test_snapshot_write_failure_keeps_fetched_records(tmp_path: Path, records, monkeypatch, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    monkeypatch.setattr(SupabaseStore, "fetch_applications", lambda self, user_id=None: records)
    config = Config(
        supabase_url="https://example.supabase.co",
        supabase_key="k",
        snapshot_file=blocker / "snapshot.json",
    )

    assert [r.model_dump() for r in load_records(config)] == [r.model_dump() for r in records]
    assert "Could not save snapshot" in caplog.text


def test_records_file_with_invalid_utf8(tmp_path: Path):
    path = tmp_path / "applications.yaml"
    path.write_bytes(b"\xff\xfe- id: 1\n")

    with pytest.raises(StoreError):
        load_records_file(path)


def test_unreadable_snapshot(tmp_path: Path):
    path = tmp_path / "snapshot.json"
    path.write_bytes(b"\xff\xfe[]")

    with pytest.raises(StoreError):
        load_snapshot(path)


def test_backend_session_is_closed(tmp_path: Path, records, monkeypatch):
    session = MagicMock()
    session.__enter__.return_value = session
    monkeypatch.setattr(requests, "Session", MagicMock(return_value=session))
    seen = []

    def fetch(self, user_id=None):
        seen.append(self.session)
        return records

    monkeypatch.setattr(SupabaseStore, "fetch_applications", fetch)
    config = Config(
        supabase_url="https://example.supabase.co",
        supabase_key="k",
        snapshot_file=tmp_path / "snapshot.json",
    )

    load_records(config)

    assert seen == [session]
    session.__exit__.assert_called_once()
