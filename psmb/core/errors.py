"""Exit codes shared by every psmb command."""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes.

    - 0: success (a skipped release is a success)
    - 1: user error (conflicting bounds, bad configuration, bad arguments)
    - 2: environment error (pwsh or gh missing)
    - 3: build error (manifest could not be produced)
    - 4: network error (registry / release lookups, installs, publishing)
    - 5: I/O error (unreadable event payload or data file)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")
