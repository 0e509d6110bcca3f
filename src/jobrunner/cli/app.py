"""
Root Typer application for the ``jobrunner`` CLI.

``jobrunner run`` executes one request in-process and exits 0 on success,
1 otherwise, which makes it usable as the launcher a scheduler spawns per
job run. ``jobrunner resolve`` only performs type resolution and is handy
for checking a job type identifier before scheduling it.
"""

from __future__ import annotations

import typer
from typer import Typer

from jobrunner.cli.utils import console, err_console, output_result, parse_parameter
from jobrunner.configuration import RuntimeConfiguration
from jobrunner.core.errors import JobRunnerError
from jobrunner.core.logging import configure_logging

app = Typer(
    name="jobrunner",
    help="jobrunner — execute scheduled jobs in-process.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from jobrunner import __version__

        typer.echo(f"jobrunner {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """jobrunner CLI — run and inspect jobs."""


# ── Helpers ──────────────────────────────────────────────────────────────


def _configuration(search_modules: list[str] | None) -> RuntimeConfiguration:
    if search_modules:
        return RuntimeConfiguration.from_settings(job_type_search_modules=list(search_modules))
    return RuntimeConfiguration.from_settings()


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("run")
def run(
    job_type: str = typer.Argument(..., help="Job type identifier to execute"),
    job_parameter: str | None = typer.Option(None, "--job-parameter", "-j", help="Job parameter (JSON)"),  # noqa: UP007
    instance_parameter: str | None = typer.Option(  # noqa: UP007
        None, "--instance-parameter", "-i", help="Instance parameter (JSON)"
    ),
    user_id: str | None = typer.Option(None, "--user-id", "-u", help="Run on behalf of this user"),  # noqa: UP007
    user_display_name: str | None = typer.Option(None, "--user-display-name", help="User display name"),  # noqa: UP007
    search_module: list[str] | None = typer.Option(  # noqa: UP007
        None, "--search-module", "-m", help="Module probed for the job type (repeatable)"
    ),
    json_logs: bool | None = typer.Option(  # noqa: UP007
        None, "--json-logs/--console-logs", help="Log format (default: auto-detect)"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Log level"),  # noqa: UP007
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Execute one job and exit with its outcome.

    Example::

        jobrunner run acme.jobs.DailyReport --job-parameter '{"region": "emea"}'
        jobrunner run Cleanup -m acme.jobs --user-id jdoe
    """
    from jobrunner.models import ExecutionRequest
    from jobrunner.runtime import JobRuntime

    configure_logging(level=log_level, json_format=json_logs)

    try:
        runtime = JobRuntime(_configuration(search_module))
    except JobRunnerError as exc:
        err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {exc.message}")
        raise typer.Exit(code=1)

    request = ExecutionRequest(
        job_type=job_type,
        job_parameter=parse_parameter(job_parameter),
        instance_parameter=parse_parameter(instance_parameter),
        user_id=user_id,
        user_display_name=user_display_name,
    )
    result = runtime.execute(request)
    output_result(result, as_json=as_json)

    if not result.succeeded:
        raise typer.Exit(code=1)


@app.command("resolve")
def resolve(
    job_type: str = typer.Argument(..., help="Job type identifier to resolve"),
    search_module: list[str] | None = typer.Option(  # noqa: UP007
        None, "--search-module", "-m", help="Module probed for the job type (repeatable)"
    ),
) -> None:
    """Print the class a job type identifier resolves to."""
    from jobrunner.activation.resolver import JobTypeResolver

    configuration = _configuration(search_module)
    try:
        resolver = JobTypeResolver(
            configuration.job_type_search_modules,
            registry=configuration.registry,
            host_module=configuration.host_module,
        )
        job_class = resolver.resolve(job_type)
    except JobRunnerError as exc:
        err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {exc.message}")
        candidates = getattr(exc, "candidates", None)
        for candidate in candidates or ():
            err_console.print(f"  [cyan]candidate[/cyan]: {candidate}")
        raise typer.Exit(code=1)

    console.print(f"{job_class.__module__}.{job_class.__qualname__}")
