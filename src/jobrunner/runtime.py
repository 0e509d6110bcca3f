"""Job runtime — drives one execution through its lifecycle.

``JobRuntime.execute`` is the single entry point used by launchers. It
walks a strict sequence of stages and guarantees that the terminal
``ended`` event is emitted exactly once, whatever fails along the way.

Architecture:

    .. code-block:: text

        execute(request)
          │
          ├─ initializing    build UserContext, RuntimeContext into a run scope
          ├─ activating      JobActivator.create_instance
          │                    ActivationError ──► ended(False, None)
          ├─ wiring_method   EntryPointBinder.bind
          │                    BindingError    ──► ended(False, None)
          ├─ starting        ExecutionContext.start
          ├─ (running)       ExecutionContext.wait_for_completion
          │
          ├─ any other exception ──► infrastructure_exception(e)
          └─ ended(succeeded, exception)            ← always, exactly once

Failure semantics:
    - Activation and binding errors are soft failures: logged, the run ends
      unsuccessfully and no exception is reported.
    - ``ParameterCastError`` is not a binding error; it escapes the binding
      stage and is reported as an infrastructure exception.
    - Exceptions raised by the job body only appear as the ``exception`` of
      the ``ended`` event / :class:`ExecutionResult`.

Example:
    >>> runtime = JobRuntime(RuntimeConfiguration(job_type_search_modules=["acme.jobs"]))
    >>> runtime.subscribe(LifecycleStage.ENDED, lambda e: print(e.succeeded))
    >>> runtime.execute(ExecutionRequest(job_type="acme.jobs.Cleanup"))
    True
    ExecutionResult(succeeded=True, exception=None)
"""

from __future__ import annotations

import uuid
from typing import Any

from jobrunner.activation.activator import JobActivator
from jobrunner.activation.providers import DefaultServiceProvider
from jobrunner.activation.resolver import JobTypeResolver
from jobrunner.configuration import RuntimeConfiguration
from jobrunner.core.errors import ActivationError, BindingError
from jobrunner.core.logging import LogContext, get_logger
from jobrunner.events import LifecycleEvent, LifecycleEvents, LifecycleListener, LifecycleStage
from jobrunner.execution.binder import EntryPointBinder
from jobrunner.execution.context import ExecutionContext
from jobrunner.models import ExecutionRequest, ExecutionResult, RuntimeContext

logger = get_logger(__name__)


class JobRuntime:
    """Execute job requests with a guaranteed lifecycle.

    One runtime can serve many sequential or concurrent ``execute`` calls;
    each call gets its own run id, worker thread and user context.
    """

    def __init__(self, configuration: RuntimeConfiguration | None = None):
        configuration = configuration or RuntimeConfiguration()

        resolver = JobTypeResolver(
            configuration.job_type_search_modules,
            registry=configuration.registry,
            host_module=configuration.host_module,
        )
        service_provider = configuration.service_provider
        if service_provider is None:
            service_provider = DefaultServiceProvider()

        self._activator = JobActivator(resolver, service_provider)
        self._binder = EntryPointBinder()
        self.events = LifecycleEvents()

    @property
    def activator(self) -> JobActivator:
        return self._activator

    def subscribe(self, stage: LifecycleStage | str, handler: LifecycleListener) -> str:
        """Shortcut for ``runtime.events.subscribe``."""
        return self.events.subscribe(stage, handler)

    def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Run ``request`` to completion. Never raises for job or runtime failures."""
        run_id = uuid.uuid4().hex
        succeeded = False
        exception: BaseException | None = None

        with LogContext(run_id=run_id, job_type=request.job_type):
            try:
                succeeded, exception = self._execute(request, run_id)
            except Exception as e:
                exception = e
                logger.critical("runtime_infrastructure_exception", exc_info=e)
                self._emit(LifecycleStage.INFRASTRUCTURE_EXCEPTION, run_id, request, exception=e)
            finally:
                logger.info("job_execution_ended", succeeded=succeeded)
                self._emit(
                    LifecycleStage.ENDED,
                    run_id,
                    request,
                    succeeded=succeeded,
                    exception=exception,
                )

        return ExecutionResult(succeeded=succeeded, exception=exception)

    def _execute(self, request: ExecutionRequest, run_id: str) -> tuple[bool, BaseException | None]:
        self._emit(LifecycleStage.INITIALIZING, run_id, request)

        user_context = request.user_context()
        logger.debug("registering_runtime_context")
        activator = self._activator.for_run(RuntimeContext.from_user_context(user_context, run_id))

        logger.debug("activating_job")
        self._emit(LifecycleStage.ACTIVATING, run_id, request)
        try:
            instance = activator.create_instance(request.job_type)
        except ActivationError as e:
            e.with_context(run_id=run_id, user_id=user_context.user_id)
            logger.error("cannot_activate_job", **e.to_dict())
            return False, None

        logger.debug("wiring_entry_point")
        self._emit(LifecycleStage.WIRING_METHOD, run_id, request)
        try:
            action = self._binder.bind(instance, request.job_parameter, request.instance_parameter)
        except BindingError as e:
            e.with_context(
                job_type=request.job_type,
                run_id=run_id,
                user_id=user_context.user_id,
                entry_point=self._binder.entry_point_name,
            )
            logger.error("cannot_bind_entry_point", **e.to_dict())
            return False, None

        logger.debug("starting_job")
        self._emit(LifecycleStage.STARTING, run_id, request)
        execution = ExecutionContext(action, user_context, name=f"job-{run_id[:8]}")
        execution.start()

        succeeded = execution.wait_for_completion()
        return succeeded, execution.exception

    def _emit(self, stage: LifecycleStage, run_id: str, request: ExecutionRequest, **payload: Any) -> None:
        self.events.emit(LifecycleEvent(stage=stage, run_id=run_id, job_type=request.job_type, **payload))


__all__ = ["JobRuntime"]
