"""The one place psmb starts external programs.

`pwsh` (PSResourceGet cmdlets) and `gh` are both driven through
:func:`run`. Their answers are read from stdout; a non-zero exit is not an
exception but an ``Err(ProcessError)`` whose stderr the callers inspect:

- :func:`psmb.platform.pwsh.is_transient_pwsh_error` and
  :func:`psmb.services.release.gh.is_transient_gh_error` decide whether
  :func:`psmb.core.retry.with_retry` tries again;
- the gallery channel recognises "module not found" answers and turns
  them into an empty version list.

A process that could not be started, or was killed after ``timeout``
seconds, reports ``returncode == -1``.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from psmb.core.result import Err, Ok, Result

__all__ = ["NOT_RUN", "ProcessError", "run"]

# returncode for a command that never started or did not finish
NOT_RUN = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A `pwsh` or `gh` invocation that did not exit with 0."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        # pwsh scripts are long; the program and its first flags identify the call.
        shown = " ".join(self.command[:3])
        if len(self.command) > 3:
            shown += " ..."
        return f"{shown} failed (exit {self.returncode})"


def _not_run(cmd: list[str], reason: str, stdout: str = "") -> Err[ProcessError]:
    return Err(ProcessError(command=tuple(cmd), returncode=NOT_RUN, stdout=stdout, stderr=reason))


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run ``cmd`` in ``cwd`` and return its stdout.

    ``env`` replaces the whole environment when given; the gallery channel
    uses it to hand the API key to `pwsh` without putting it on the
    command line.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return _not_run(cmd, f"Command timed out after {timeout}s", partial)
    except OSError as e:
        return _not_run(cmd, str(e))

    if proc.returncode == 0:
        return Ok(proc.stdout)
    return Err(
        ProcessError(
            command=tuple(cmd),
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
        )
    )
