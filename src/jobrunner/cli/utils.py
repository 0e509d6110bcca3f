"""
CLI utility helpers — consoles and result rendering.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console

from jobrunner.core.errors import JobRunnerError
from jobrunner.models import ExecutionResult

console = Console()
err_console = Console(stderr=True)


def parse_parameter(raw: str | None) -> Any:
    """Decode a ``--job-parameter`` / ``--instance-parameter`` option.

    JSON text is decoded; anything else is passed on as the plain string so
    the binder can still adapt it (``hello`` for a ``str`` parameter).
    """
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def output_result(result: ExecutionResult, *, as_json: bool = False) -> None:
    """Render an ``ExecutionResult`` to the terminal."""
    if as_json:
        console.print_json(json.dumps(result.to_dict(), default=str))
        return

    if result.succeeded:
        console.print("[bold green]Job succeeded[/bold green]")
        return

    exc = result.exception
    if exc is None:
        err_console.print("[bold red]Job failed[/bold red] (see log for the reason)")
    elif isinstance(exc, JobRunnerError):
        err_console.print(f"[bold red]Job failed[/bold red] ({exc.category.value}): {exc.message}")
    else:
        err_console.print(f"[bold red]Job failed[/bold red]: {type(exc).__name__}: {exc}")
