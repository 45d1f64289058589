"""Core types shared by every psmb layer."""

from .config import Config, ConfigError, ModuleSettings, ReleaseSettings, load_config
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok
from .retry import with_retry

__all__ = [
    # config
    "Config",
    "ConfigError",
    "ModuleSettings",
    "ReleaseSettings",
    "load_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
    # retry
    "with_retry",
]
