"""GitHub releases through the `gh` CLI.

Each call is a single attempt; retrying is left to the caller
(:func:`psmb.core.retry.with_retry`) using the ``transient`` flag on the
returned :class:`ReleaseError`.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

from psmb.core.result import Err, Ok, Result
from psmb.core.structured import as_obj_list, as_str_dict, get_bool, get_str
from psmb.platform.process import NOT_RUN, ProcessError
from psmb.platform.process import run as run_process
from psmb.services.release.errors import ReleaseError, ReleaseErrorKind
from psmb.services.release.model import VcsRelease
from psmb.services.timeouts import GH_TIMEOUT_SECONDS

__all__ = ["GhReleaseChannel", "ensure_gh_available", "is_transient_gh_error"]

RELEASE_LIST_LIMIT = 200
_RELEASE_FIELDS = "tagName,name,isPrerelease,isLatest,createdAt,publishedAt"


def is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == NOT_RUN and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


class GhReleaseChannel:
    """Release list of one repository (the current checkout by default)."""

    def __init__(self, *, workspace_root: Path, repo: str | None = None) -> None:
        self._root = workspace_root
        self._repo = repo

    def _cmd(self, *args: str) -> list[str]:
        cmd = ["gh", *args]
        if self._repo is not None:
            cmd += ["--repo", self._repo]
        return cmd

    def _run(self, cmd: list[str], *, kind: ReleaseErrorKind, message: str) -> Result[str, ReleaseError]:
        result = run_process(cmd, cwd=self._root, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            error = result.error
            return Err(
                ReleaseError(
                    kind=kind,
                    message=message,
                    hint=error.stderr.strip() or None,
                    transient=is_transient_gh_error(error),
                )
            )
        return result

    def list_releases(self) -> Result[list[VcsRelease], ReleaseError]:
        result = self._run(
            self._cmd(
                "release", "list", "--json", _RELEASE_FIELDS, "--limit", str(RELEASE_LIST_LIMIT)
            ),
            kind="lookup_failed",
            message="gh release list failed",
        )
        if isinstance(result, Err):
            return result

        try:
            obj: object = json.loads(result.value or "[]")
        except json.JSONDecodeError as e:
            return Err(
                ReleaseError(kind="invalid_input", message=f"gh release list returned invalid JSON: {e}")
            )

        raw = as_obj_list(obj)
        if raw is None:
            return Err(ReleaseError(kind="invalid_input", message="unexpected releases payload"))

        out: list[VcsRelease] = []
        for item in raw:
            d = as_str_dict(item)
            if d is None:
                continue
            tag = get_str(d, "tagName")
            if tag is None:
                continue
            out.append(
                VcsRelease(
                    tag=tag,
                    name=get_str(d, "name") or tag,
                    is_prerelease=get_bool(d, "isPrerelease") or False,
                    is_latest=get_bool(d, "isLatest") or False,
                    created_at=get_str(d, "createdAt"),
                    published_at=get_str(d, "publishedAt"),
                )
            )
        return Ok(out)

    def create_release(
        self, *, tag: str, title: str, target: str, prerelease: bool
    ) -> Result[str, ReleaseError]:
        """Create a release with generated notes; returns its URL."""
        args = ["release", "create", tag, "--title", title, "--target", target, "--generate-notes"]
        if prerelease:
            args.append("--prerelease")
        result = self._run(self._cmd(*args), kind="release_failed", message=f"gh release create {tag} failed")
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    def delete_release(self, tag: str) -> Result[None, ReleaseError]:
        """Delete a release together with its tag."""
        result = self._run(
            self._cmd("release", "delete", tag, "--cleanup-tag", "--yes"),
            kind="delete_failed",
            message=f"gh release delete {tag} failed",
        )
        if isinstance(result, Err):
            return result
        return Ok(None)
