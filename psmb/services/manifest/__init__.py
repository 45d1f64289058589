"""Module manifest synthesis."""

from .build import build_manifest, manifest_path, update_manifest_version, write_manifest
from .compat import Compatibility, ConfigConflictError, check_compatibility
from .source import ModuleSource, read_module_source

__all__ = [
    "Compatibility",
    "ConfigConflictError",
    "ModuleSource",
    "build_manifest",
    "check_compatibility",
    "manifest_path",
    "read_module_source",
    "update_manifest_version",
    "write_manifest",
]
