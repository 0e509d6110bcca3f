"""Job activation — from a job type identifier to a job instance.

    identifier ──► JobTypeResolver ──► class ──► ServiceProvider ──► instance
                       │                               │
                  JobRegistry                 Default / Injecting

The ``JobActivator`` ties the two halves together and raises an
``ActivationError`` subclass for every failure mode.
"""

from jobrunner.activation.activator import JobActivator
from jobrunner.activation.providers import (
    ConfigurableServiceProvider,
    DefaultServiceProvider,
    InjectingServiceProvider,
    ScopedServiceProvider,
    ServiceProvider,
)
from jobrunner.activation.registry import (
    ENTRY_POINT_NAME,
    JobRegistry,
    get_default_registry,
    register_job,
    reset_default_registry,
)
from jobrunner.activation.resolver import JobTypeResolver

__all__ = [
    "ENTRY_POINT_NAME",
    "JobActivator",
    "JobRegistry",
    "JobTypeResolver",
    "ServiceProvider",
    "ConfigurableServiceProvider",
    "ScopedServiceProvider",
    "DefaultServiceProvider",
    "InjectingServiceProvider",
    "get_default_registry",
    "register_job",
    "reset_default_registry",
]
