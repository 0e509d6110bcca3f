"""
jobrunner - runtime for executing scheduled jobs in-process.

Given an execution request (job type identifier, opaque parameters, user
identity) the runtime resolves the job class, creates an instance, binds
its ``run`` entry point, executes it on a dedicated thread under the
requesting user's identity, and publishes lifecycle events throughout.

Quick start:
    >>> from jobrunner import ExecutionRequest, JobRuntime, RuntimeConfiguration
    >>> runtime = JobRuntime(RuntimeConfiguration(job_type_search_modules=["acme.jobs"]))
    >>> result = runtime.execute(ExecutionRequest(job_type="acme.jobs.Cleanup"))
    >>> result.succeeded
    True
"""

__version__ = "0.1.0"

from jobrunner.activation import (
    DefaultServiceProvider,
    InjectingServiceProvider,
    JobRegistry,
    JobTypeResolver,
    get_default_registry,
    register_job,
)
from jobrunner.configuration import RuntimeConfiguration
from jobrunner.events import LifecycleEvent, LifecycleEvents, LifecycleStage
from jobrunner.execution import get_current_principal
from jobrunner.models import ExecutionRequest, ExecutionResult, RuntimeContext, UserContext
from jobrunner.runtime import JobRuntime

__all__ = [
    "__version__",
    "JobRuntime",
    "RuntimeConfiguration",
    "ExecutionRequest",
    "ExecutionResult",
    "RuntimeContext",
    "UserContext",
    "LifecycleEvent",
    "LifecycleEvents",
    "LifecycleStage",
    "JobRegistry",
    "JobTypeResolver",
    "DefaultServiceProvider",
    "InjectingServiceProvider",
    "get_default_registry",
    "register_job",
    "get_current_principal",
]
