from __future__ import annotations

from pathlib import Path

import pytest

from psmb.core import retry as retry_mod
from psmb.core.result import Err, Ok
from psmb.datafile.serialize import write_data_file
from psmb.output.console import MockConsole
from psmb.services.manifest.build import read_manifest_version
from psmb.services.release.context import Release
from psmb.services.release.errors import ReleaseError
from psmb.services.release.publish import cleanup_prereleases, publish_release, stale_prerelease_tags
from psmb.services.release.semver import SemVer

from psmb.test.services._release_fakes import FakeRegistry, FakeVcs, release


def _no_sleep(seconds: float) -> None:
    del seconds


@pytest.fixture(autouse=True)
def _patch_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(retry_mod, "sleep", _no_sleep)


@pytest.fixture
def module_dir(tmp_path: Path) -> Path:
    target = tmp_path / "Example"
    write_data_file(
        target / "Example.psd1",
        {"RootModule": "Example.psm1", "ModuleVersion": "0.0.1", "PrivateData": {"PSData": {"Tags": ["ci"]}}},
    )
    return target


def _vcs() -> FakeVcs:
    return FakeVcs(
        releases=[
            release("v1.3.0", latest=True),
            release("v1.4.0-featurefoobar001", prerelease=True),
            release("v1.4.0-featurefoobar002", prerelease=True),
            release("v1.4.0-other001", prerelease=True),
        ]
    )


def _stable() -> Release:
    return Release(
        version=SemVer(1, 4, 0, prefix="v"),
        is_prerelease=False,
        bump="minor",
        target="main",
        prerelease_name="featurefoobar",
        cleanup=True,
        latest=SemVer(1, 3, 0),
    )


def _prerelease() -> Release:
    return Release(
        version=SemVer(1, 4, 0, "featurefoobar003", prefix="v"),
        is_prerelease=True,
        bump="minor",
        target="feature/Foo-Bar!",
        prerelease_name="featurefoobar",
        cleanup=False,
        latest=SemVer(1, 3, 0),
    )


def test_stale_prerelease_tags() -> None:
    tags = stale_prerelease_tags(_vcs().releases, prerelease_name="featurefoobar", prefix="v")
    assert tags == ["v1.4.0-featurefoobar001", "v1.4.0-featurefoobar002"]
    assert stale_prerelease_tags(_vcs().releases, prerelease_name="", prefix="v") == []


def test_cleanup_deletes_branch_prereleases() -> None:
    vcs = _vcs()
    result = cleanup_prereleases(
        vcs=vcs, prerelease_name="featurefoobar", prefix="v", console=MockConsole(), whatif=False
    )
    assert result == Ok(["v1.4.0-featurefoobar001", "v1.4.0-featurefoobar002"])
    assert vcs.deleted == ["v1.4.0-featurefoobar001", "v1.4.0-featurefoobar002"]


def test_cleanup_whatif_deletes_nothing() -> None:
    vcs = _vcs()
    console = MockConsole()
    result = cleanup_prereleases(
        vcs=vcs, prerelease_name="featurefoobar", prefix="v", console=console, whatif=True
    )
    assert isinstance(result, Ok)
    assert len(result.value) == 2
    assert vcs.deleted == []
    assert len(console.find("WhatIf: gh release delete")) == 2


def test_publish_release(module_dir: Path) -> None:
    registry = FakeRegistry()
    vcs = _vcs()
    console = MockConsole()

    result = publish_release(
        release=_stable(),
        module_name="Example",
        module_dir=module_dir,
        registry=registry,
        vcs=vcs,
        api_key="key",
        console=console,
        whatif=False,
    )

    assert result == Ok("https://github.invalid/releases/tag/v1.4.0")
    assert read_manifest_version(module_dir / "Example.psd1") == Ok("1.4.0")
    assert registry.published == [module_dir]
    assert vcs.created == [("v1.4.0", "main", False)]
    assert vcs.deleted == ["v1.4.0-featurefoobar001", "v1.4.0-featurefoobar002"]
    assert not console.has_error()


def test_publish_prerelease_sets_manifest_and_keeps_others(module_dir: Path) -> None:
    vcs = _vcs()
    result = publish_release(
        release=_prerelease(),
        module_name="Example",
        module_dir=module_dir,
        registry=FakeRegistry(),
        vcs=vcs,
        api_key="key",
        console=MockConsole(),
        whatif=False,
    )

    assert isinstance(result, Ok)
    assert read_manifest_version(module_dir / "Example.psd1") == Ok("1.4.0-featurefoobar003")
    assert vcs.created == [("v1.4.0-featurefoobar003", "feature/Foo-Bar!", True)]
    assert vcs.deleted == []


def test_whatif_changes_nothing(module_dir: Path) -> None:
    manifest = module_dir / "Example.psd1"
    before = manifest.read_bytes()
    registry = FakeRegistry()
    vcs = _vcs()
    console = MockConsole()

    result = publish_release(
        release=_stable(),
        module_name="Example",
        module_dir=module_dir,
        registry=registry,
        vcs=vcs,
        api_key=None,
        console=console,
        whatif=True,
    )

    assert result == Ok(None)
    assert manifest.read_bytes() == before
    assert registry.published == []
    assert vcs.created == []
    assert vcs.deleted == []
    assert console.find("WhatIf: gh release create v1.4.0")


def test_missing_api_key(module_dir: Path) -> None:
    registry = FakeRegistry()
    result = publish_release(
        release=_stable(),
        module_name="Example",
        module_dir=module_dir,
        registry=registry,
        vcs=_vcs(),
        api_key=None,
        console=MockConsole(),
        whatif=False,
    )
    assert isinstance(result, Err)
    assert isinstance(result.error, ReleaseError)
    assert result.error.kind == "publish_failed"
    assert registry.published == []


def test_registry_failure_stops_before_release(module_dir: Path) -> None:
    vcs = _vcs()
    registry = FakeRegistry(publish_error=ReleaseError(kind="publish_failed", message="conflict"))
    result = publish_release(
        release=_stable(),
        module_name="Example",
        module_dir=module_dir,
        registry=registry,
        vcs=vcs,
        api_key="key",
        console=MockConsole(),
        whatif=False,
    )
    assert isinstance(result, Err)
    assert vcs.created == []
    assert vcs.deleted == []


def test_missing_manifest(tmp_path: Path) -> None:
    result = publish_release(
        release=_stable(),
        module_name="Example",
        module_dir=tmp_path,
        registry=FakeRegistry(),
        vcs=_vcs(),
        api_key="key",
        console=MockConsole(),
        whatif=False,
    )
    assert isinstance(result, Err)
    assert result.error.pretty().endswith("file not found")
