"""Isolated execution of a bound job body.

``ExecutionContext`` runs the zero-argument callable produced by the
binder on its own thread and reports how it went. The caller only blocks
in :meth:`ExecutionContext.wait_for_completion`.

Architecture:

    .. code-block:: text

        worker thread lifecycle:

        ┌─────────────────────────────────────────────┐
        │ 1. Remember the thread's principal          │
        │ 2. Impersonate the user (if a user id set)  │
        │ 3. ─── action() ───  (job body runs)        │
        │ 4a. Store the return value (on success)     │
        │ 4b. Capture the exception (on raise)        │
        │ 5. Restore the principal (always)           │
        └─────────────────────────────────────────────┘

The thread runs inside a copy of the caller's ``contextvars`` context, so
log context bound by the orchestrator (``run_id``, ``job_type``) is
visible to log calls made by the job body. The ambient principal is
thread-local and is never visible to the caller.

There is no timeout and no cancellation: a hung job body blocks its
caller until it returns.

Example:
    >>> context = ExecutionContext(lambda: print("working"), UserContext(user_id="jdoe"))
    >>> context.start()
    >>> context.wait_for_completion()
    working
    True
"""

from __future__ import annotations

import contextvars
import threading
from collections.abc import Callable
from typing import Any

from jobrunner.core.logging import get_logger
from jobrunner.execution.identity import Principal, get_current_principal, set_current_principal
from jobrunner.models import UserContext

logger = get_logger(__name__)


class ExecutionContext:
    """Run one job body on a dedicated thread, scoping the ambient identity to it."""

    def __init__(
        self,
        action: Callable[[], Any],
        user_context: UserContext | None = None,
        *,
        name: str = "job-execution",
    ):
        self._action = action
        self._user_context = user_context or UserContext()
        self._exception: BaseException | None = None
        self._result: Any = None
        self._caller_context = contextvars.copy_context()
        self._thread = threading.Thread(target=self._run_in_context, name=name)

    @property
    def user_context(self) -> UserContext:
        return self._user_context

    @property
    def exception(self) -> BaseException | None:
        """The last captured failure (job body or wait), if any."""
        return self._exception

    @property
    def result(self) -> Any:
        """Return value of the job body (None until it has returned)."""
        return self._result

    @property
    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread."""
        self._thread.start()

    def wait_for_completion(self) -> bool:
        """Block until the worker thread finishes.

        Returns:
            True only if the job body returned and the wait itself succeeded
        """
        try:
            self._thread.join()
        except Exception as e:
            logger.error("wait_for_completion_failed", exc_info=e)
            self._exception = e
            return False

        if self._exception is not None:
            logger.error("job_execution_faulted", exc_info=self._exception)
            return False

        return True

    # ------------------------------------------------------------------ #
    # Worker thread
    # ------------------------------------------------------------------ #

    def _run_in_context(self) -> None:
        self._caller_context.run(self._run)

    def _run(self) -> None:
        previous = get_current_principal()

        try:
            if self._user_context.has_user:
                set_current_principal(Principal.for_user(self._user_context.user_id))

            self._result = self._action()
        except BaseException as e:
            self._exception = e
        finally:
            set_current_principal(previous)


__all__ = ["ExecutionContext"]
