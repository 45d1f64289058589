"""Helpers for running PowerShell (`pwsh`) scripts."""

from __future__ import annotations

import shutil

from psmb.platform.process import NOT_RUN, ProcessError

__all__ = ["PWSH", "is_transient_pwsh_error", "ps_quote", "pwsh_available", "pwsh_command"]

PWSH = "pwsh"


def ps_quote(value: str) -> str:
    """Quote ``value`` as a PowerShell single-quoted literal."""
    return "'" + value.replace("'", "''") + "'"


def pwsh_command(script: str) -> list[str]:
    return [PWSH, "-NoLogo", "-NoProfile", "-NonInteractive", "-Command", script]


def pwsh_available() -> bool:
    return shutil.which(PWSH) is not None


def is_transient_pwsh_error(error: ProcessError) -> bool:
    """Network-looking failures worth retrying."""
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
        "no such host",
        "name resolution",
        "network is unreachable",
        "(429)",
        "(500)",
        "(502)",
        "(503)",
        "(504)",
    )
    if error.returncode == NOT_RUN and "timed out" in text:
        return True
    return any(marker in text for marker in markers)
