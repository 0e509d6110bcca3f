"""Lifecycle events — observable stage transitions of one execution.

WHY
───
Launchers embedding the runtime need to react to a run's progress
(report "starting" to the scheduler, ship the final outcome, alert on
infrastructure trouble) without the runtime knowing about any of that.
Every stage transition is published as a :class:`LifecycleEvent` to
synchronous listeners; a listener that raises is logged and skipped,
never aborting the run.

ARCHITECTURE
────────────
::

    LifecycleStage
      initializing → activating → wiring_method → starting → ended
      infrastructure_exception   (independent signal)

    LifecycleEvents
      ├── .subscribe(stage | "*", handler) → subscription id
      ├── .unsubscribe(subscription id)
      └── .emit(event)   ─ in-line, per-listener failure isolation

Related modules:
    runtime.py — JobRuntime emits the events
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from jobrunner.core.logging import get_logger

logger = get_logger(__name__)

ALL_STAGES = "*"


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class LifecycleStage(str, Enum):
    """Observable stages of an execution."""

    INITIALIZING = "initializing"
    ACTIVATING = "activating"
    WIRING_METHOD = "wiring_method"
    STARTING = "starting"
    ENDED = "ended"
    INFRASTRUCTURE_EXCEPTION = "infrastructure_exception"


@dataclass(frozen=True)
class LifecycleEvent:
    """One stage transition.

    ``succeeded`` is only meaningful for ``ENDED``; ``exception`` is set on
    ``ENDED`` (the final failure cause, if any) and on
    ``INFRASTRUCTURE_EXCEPTION``.
    """

    stage: LifecycleStage
    run_id: str
    job_type: str
    timestamp: datetime = field(default_factory=utcnow)
    succeeded: bool | None = None
    exception: BaseException | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON/logging."""
        return {
            "stage": self.stage.value,
            "run_id": self.run_id,
            "job_type": self.job_type,
            "timestamp": self.timestamp.isoformat(),
            "succeeded": self.succeeded,
            "exception": repr(self.exception) if self.exception is not None else None,
        }


LifecycleListener = Callable[[LifecycleEvent], Any]


@dataclass
class Subscription:
    """Internal subscription record."""

    id: str
    stage: str
    handler: LifecycleListener


class LifecycleEvents:
    """Synchronous listener hub for lifecycle events.

    Example::

        events = LifecycleEvents()
        events.subscribe(LifecycleStage.ENDED, lambda e: print(e.succeeded))
        events.subscribe("*", lambda e: print(e.stage.value))
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def subscribe(self, stage: LifecycleStage | str, handler: LifecycleListener) -> str:
        """Subscribe ``handler`` to one stage, or to every stage with ``"*"``.

        Returns:
            Subscription ID
        """
        key = ALL_STAGES if stage == ALL_STAGES else LifecycleStage(stage).value
        sub_id = f"sub_{uuid.uuid4().hex[:12]}"
        with self._lock:
            self._subscriptions[sub_id] = Subscription(id=sub_id, stage=key, handler=handler)
        return sub_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """Remove a subscription. Returns False if it did not exist."""
        with self._lock:
            return self._subscriptions.pop(subscription_id, None) is not None

    def emit(self, event: LifecycleEvent) -> None:
        """Deliver ``event`` to every matching listener, in subscription order."""
        with self._lock:
            handlers = [
                sub
                for sub in self._subscriptions.values()
                if sub.stage in (ALL_STAGES, event.stage.value)
            ]

        for sub in handlers:
            try:
                sub.handler(event)
            except Exception as e:
                logger.error(
                    "lifecycle_listener_failed",
                    stage=event.stage.value,
                    subscription_id=sub.id,
                    exc_info=e,
                )

    @property
    def subscription_count(self) -> int:
        """Number of active subscriptions."""
        return len(self._subscriptions)


__all__ = [
    "ALL_STAGES",
    "LifecycleStage",
    "LifecycleEvent",
    "LifecycleListener",
    "LifecycleEvents",
]
