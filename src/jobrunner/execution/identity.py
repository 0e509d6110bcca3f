"""Ambient identity — the thread-local "current principal".

Job code that needs to know who it runs for can call
:func:`get_current_principal` instead of having the user threaded through
every call. The principal is stored per thread: the execution thread swaps
it for the duration of the job body and restores the previous one
afterwards, so the caller's thread never observes the change.

::

    Principal
      ├── identity: Identity(name, authentication_type)
      └── roles: frozenset[str]

    ANONYMOUS  ─ default principal of every thread (empty name, unauthenticated)
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

AUTHENTICATION_TYPE = "JobRunnerIdentity"
"""Authentication type stamped on identities created for job executions."""


@dataclass(frozen=True)
class Identity:
    name: str = ""
    authentication_type: str = ""

    @property
    def is_authenticated(self) -> bool:
        return bool(self.name)


@dataclass(frozen=True)
class Principal:
    identity: Identity = field(default_factory=Identity)
    roles: frozenset[str] = frozenset()

    def is_in_role(self, role: str) -> bool:
        return role in self.roles

    @classmethod
    def for_user(cls, user_id: str) -> Principal:
        """Synthetic principal used for executions on behalf of ``user_id``."""
        return cls(Identity(user_id, AUTHENTICATION_TYPE), frozenset())


ANONYMOUS = Principal()

_local = threading.local()


def get_current_principal() -> Principal:
    """Return the calling thread's principal (``ANONYMOUS`` if none was set)."""
    return getattr(_local, "principal", ANONYMOUS)


def set_current_principal(principal: Principal) -> None:
    """Replace the calling thread's principal."""
    _local.principal = principal


@contextmanager
def impersonate(principal: Principal) -> Iterator[Principal]:
    """Run the body with ``principal`` as this thread's principal, then restore."""
    previous = get_current_principal()
    set_current_principal(principal)
    try:
        yield principal
    finally:
        set_current_principal(previous)


__all__ = [
    "AUTHENTICATION_TYPE",
    "ANONYMOUS",
    "Identity",
    "Principal",
    "get_current_principal",
    "set_current_principal",
    "impersonate",
]
