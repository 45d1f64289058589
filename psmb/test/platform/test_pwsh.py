from __future__ import annotations

from psmb.platform.process import ProcessError
from psmb.platform.pwsh import is_transient_pwsh_error, ps_quote, pwsh_command


def _error(stderr: str, returncode: int = 1) -> ProcessError:
    return ProcessError(command=("pwsh",), returncode=returncode, stdout="", stderr=stderr)


def test_ps_quote_doubles_single_quotes() -> None:
    assert ps_quote("Pester") == "'Pester'"
    assert ps_quote("it's") == "'it''s'"


def test_pwsh_command_is_non_interactive() -> None:
    cmd = pwsh_command("Get-Date")
    assert cmd[0] == "pwsh"
    assert "-NonInteractive" in cmd
    assert "-NoProfile" in cmd
    assert cmd[-2:] == ["-Command", "Get-Date"]


def test_transient_markers() -> None:
    assert is_transient_pwsh_error(_error("Response status code does not indicate success: 503 (Service Unavailable)."))
    assert is_transient_pwsh_error(_error("The operation has timed out."))
    assert is_transient_pwsh_error(_error("Command timed out after 300s", returncode=-1))


def test_permanent_failures_are_not_transient() -> None:
    assert not is_transient_pwsh_error(_error("Package 'Nope' could not be found"))
    assert not is_transient_pwsh_error(_error("Access to the path is denied"))
