"""Read the pull request event that triggered the run."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path

from psmb.core.result import Err, Ok, Result
from psmb.core.structured import as_obj_list, as_str_dict, get_bool, get_int, get_str, get_table
from psmb.services.release.errors import ReleaseError
from psmb.services.release.model import PullRequestEvent

__all__ = ["EVENT_PATH_VAR", "event_from_payload", "read_event"]

EVENT_PATH_VAR = "GITHUB_EVENT_PATH"


def _invalid(message: str) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="invalid_event", message=message))


def event_from_payload(payload: Mapping[str, object]) -> Result[PullRequestEvent, ReleaseError]:
    """Build a PullRequestEvent from a `pull_request` webhook payload."""
    pr = get_table(payload, "pull_request")
    if pr is None:
        return _invalid("event has no pull_request (not a pull request event?)")

    number = get_int(pr, "number") or get_int(payload, "number")
    if number is None:
        return _invalid("pull_request.number missing")

    base = get_table(pr, "base") or {}
    head = get_table(pr, "head") or {}
    base_ref = get_str(base, "ref")
    head_ref = get_str(head, "ref")
    if base_ref is None or head_ref is None:
        return _invalid("pull_request base/head ref missing")

    repo = get_table(payload, "repository") or get_table(base, "repo") or {}
    default_branch = get_str(repo, "default_branch") or "main"

    labels: list[str] = []
    for item in as_obj_list(pr.get("labels")) or []:
        label = as_str_dict(item)
        if label is None:
            continue
        name = get_str(label, "name")
        if name is not None:
            labels.append(name)

    state = get_str(pr, "state") or "open"
    return Ok(
        PullRequestEvent(
            number=number,
            labels=tuple(labels),
            merged=get_bool(pr, "merged") or False,
            closed=state.lower() == "closed",
            base_ref=base_ref,
            head_ref=head_ref,
            default_branch=default_branch,
        )
    )


def read_event(path: Path | None = None) -> Result[PullRequestEvent, ReleaseError]:
    """Read the event from ``path`` or from `$GITHUB_EVENT_PATH`."""
    if path is None:
        env = os.environ.get(EVENT_PATH_VAR)
        if not env:
            return Err(
                ReleaseError(
                    kind="invalid_event",
                    message="no event payload",
                    hint=f"pass --event or set {EVENT_PATH_VAR}",
                )
            )
        path = Path(env)

    try:
        obj: object = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return _invalid(f"event file not found: {path}")
    except (OSError, UnicodeDecodeError) as e:
        return _invalid(f"cannot read event file {path}: {e}")
    except json.JSONDecodeError as e:
        return _invalid(f"event file is not valid JSON: {e}")

    payload = as_str_dict(obj)
    if payload is None:
        return _invalid("event payload must be a JSON object")
    return event_from_payload(payload)
