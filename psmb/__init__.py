"""psmb - PowerShell module build and release tooling."""

__version__ = "0.3.0"
