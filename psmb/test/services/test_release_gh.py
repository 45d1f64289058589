from __future__ import annotations

import json
from pathlib import Path

import pytest

from psmb.core.result import Err, Ok
from psmb.platform.process import ProcessError
from psmb.services.release import gh as gh_mod
from psmb.services.release.gh import GhReleaseChannel, is_transient_gh_error


def _err(*, stderr: str, returncode: int = 1) -> Err[ProcessError]:
    return Err(
        ProcessError(
            command=("gh", "release", "list"),
            returncode=returncode,
            stdout="",
            stderr=stderr,
        )
    )


class FakeRun:
    def __init__(self, *responses: object) -> None:
        self.calls: list[list[str]] = []
        self._responses = list(responses)

    def __call__(self, cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd
        del timeout
        self.calls.append(cmd)
        return self._responses.pop(0)


def test_list_releases_parses_json(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    payload = [
        {"tagName": "v1.3.0", "name": "v1.3.0", "isPrerelease": False, "isLatest": True},
        {"tagName": "v1.4.0-featurefoo001", "name": "", "isPrerelease": True, "isLatest": False},
        {"name": "no tag"},
    ]
    fake = FakeRun(Ok(json.dumps(payload)))
    monkeypatch.setattr(gh_mod, "run_process", fake)

    result = GhReleaseChannel(workspace_root=tmp_path, repo="octo/example").list_releases()

    assert isinstance(result, Ok)
    assert [r.tag for r in result.value] == ["v1.3.0", "v1.4.0-featurefoo001"]
    assert result.value[0].is_latest
    assert result.value[1].is_prerelease
    assert result.value[1].name == "v1.4.0-featurefoo001"
    assert fake.calls[0][:3] == ["gh", "release", "list"]
    assert fake.calls[0][-2:] == ["--repo", "octo/example"]


def test_list_releases_marks_transient(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(gh_mod, "run_process", FakeRun(_err(stderr="HTTP 503 Service Unavailable")))
    result = GhReleaseChannel(workspace_root=tmp_path).list_releases()
    assert isinstance(result, Err)
    assert result.error.kind == "lookup_failed"
    assert result.error.transient is True


def test_list_releases_not_transient(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(gh_mod, "run_process", FakeRun(_err(stderr="HTTP 404 Not Found")))
    result = GhReleaseChannel(workspace_root=tmp_path).list_releases()
    assert isinstance(result, Err)
    assert result.error.transient is False


def test_list_releases_invalid_json(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(gh_mod, "run_process", FakeRun(Ok("not json")))
    result = GhReleaseChannel(workspace_root=tmp_path).list_releases()
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"


def test_create_release(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeRun(Ok("https://github.com/octo/example/releases/tag/v1.4.0-featurefoo003\n"))
    monkeypatch.setattr(gh_mod, "run_process", fake)

    result = GhReleaseChannel(workspace_root=tmp_path).create_release(
        tag="v1.4.0-featurefoo003",
        title="v1.4.0-featurefoo003",
        target="feature/Foo",
        prerelease=True,
    )

    assert result == Ok("https://github.com/octo/example/releases/tag/v1.4.0-featurefoo003")
    cmd = fake.calls[0]
    assert cmd[:4] == ["gh", "release", "create", "v1.4.0-featurefoo003"]
    assert "--generate-notes" in cmd
    assert "--prerelease" in cmd
    assert cmd[cmd.index("--target") + 1] == "feature/Foo"


def test_delete_release(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeRun(Ok(""), _err(stderr="release not found"))
    monkeypatch.setattr(gh_mod, "run_process", fake)
    channel = GhReleaseChannel(workspace_root=tmp_path)

    assert channel.delete_release("v1.0.0-x001") == Ok(None)
    assert fake.calls[0] == ["gh", "release", "delete", "v1.0.0-x001", "--cleanup-tag", "--yes"]

    failed = channel.delete_release("v1.0.0-x002")
    assert isinstance(failed, Err)
    assert failed.error.kind == "delete_failed"


def test_is_transient_gh_error() -> None:
    assert is_transient_gh_error(_err(stderr="Command timed out after 60s", returncode=-1).error)
    assert is_transient_gh_error(_err(stderr="connection reset by peer").error)
    assert not is_transient_gh_error(_err(stderr="HTTP 401: Bad credentials").error)
