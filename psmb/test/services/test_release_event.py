from __future__ import annotations

import json
from pathlib import Path

import pytest

from psmb.core.result import Err, Ok
from psmb.services.release.event import EVENT_PATH_VAR, event_from_payload, read_event


def _payload(**pr: object) -> dict[str, object]:
    pull_request: dict[str, object] = {
        "number": 42,
        "state": "open",
        "merged": False,
        "labels": [{"name": "minor"}, {"name": "prerelease"}],
        "base": {"ref": "main"},
        "head": {"ref": "feature/Foo-Bar!"},
    }
    pull_request.update(pr)
    return {"pull_request": pull_request, "repository": {"default_branch": "main"}}


def test_event_from_payload() -> None:
    result = event_from_payload(_payload())
    assert isinstance(result, Ok)
    event = result.value
    assert event.number == 42
    assert event.labels == ("minor", "prerelease")
    assert event.merged is False
    assert event.closed is False
    assert event.head_ref == "feature/Foo-Bar!"
    assert event.targets_default_branch


def test_closed_and_merged() -> None:
    result = event_from_payload(_payload(state="closed", merged=True))
    assert isinstance(result, Ok)
    assert result.value.closed and result.value.merged


def test_not_a_pull_request() -> None:
    result = event_from_payload({"push": {}})
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_event"


def test_read_event_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "event.json"
    path.write_text(json.dumps(_payload()), encoding="utf-8")
    monkeypatch.setenv(EVENT_PATH_VAR, str(path))
    result = read_event()
    assert isinstance(result, Ok)
    assert result.value.number == 42


def test_read_event_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(EVENT_PATH_VAR, raising=False)
    missing_env = read_event()
    assert isinstance(missing_env, Err)
    assert missing_env.error.hint is not None

    bad = tmp_path / "bad.json"
    bad.write_text("{nope", encoding="utf-8")
    invalid = read_event(bad)
    assert isinstance(invalid, Err)
    assert "JSON" in invalid.error.message

    not_found = read_event(tmp_path / "missing.json")
    assert isinstance(not_found, Err)
    assert "not found" in not_found.error.message
