"""Job execution — binding the entry point and running it on its own thread."""

from jobrunner.execution.binder import EntryPoint, EntryPointBinder
from jobrunner.execution.context import ExecutionContext
from jobrunner.execution.identity import (
    ANONYMOUS,
    AUTHENTICATION_TYPE,
    Identity,
    Principal,
    get_current_principal,
    impersonate,
    set_current_principal,
)

__all__ = [
    "EntryPoint",
    "EntryPointBinder",
    "ExecutionContext",
    "ANONYMOUS",
    "AUTHENTICATION_TYPE",
    "Identity",
    "Principal",
    "get_current_principal",
    "set_current_principal",
    "impersonate",
]
