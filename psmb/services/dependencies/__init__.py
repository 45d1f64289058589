"""Dependency declarations: scanning, merging, range conversion, install."""

from .errors import ConflictError, InstallError, RequiresError
from .merge import merge_declarations
from .model import DeclKind, ModuleName, ModuleSpec, install_range, to_manifest_entry
from .ranges import convert_version_spec

__all__ = [
    "ConflictError",
    "DeclKind",
    "InstallError",
    "ModuleName",
    "ModuleSpec",
    "RequiresError",
    "convert_version_spec",
    "install_range",
    "merge_declarations",
    "to_manifest_entry",
]
