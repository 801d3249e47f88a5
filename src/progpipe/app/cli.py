"""Command-line interface for progpipe."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click

from progpipe.app.runner import ApplicationRunner
from progpipe.core.calculation import RateConvention
from progpipe.core.config import ConfigurationError, apply_overrides, load_config
from progpipe.core.exceptions import InvalidGoalError, InvalidSampleError
from progpipe.core.source import parse_goal
from progpipe.utils.logging import configure_logging

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_RUNTIME_ERROR = 1
EXIT_INTERRUPTED = 130


def validate_config_path(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: Path | None,
) -> Path | None:
    """Validate configuration file path.

    Args:
        ctx: Click context (required by Click callback signature)
        param: Click parameter (required by Click callback signature)
        value: Path value to validate

    Returns:
        Validated Path object

    Raises:
        click.BadParameter: If validation fails
    """
    if value is None:
        return value

    if value.exists() and value.is_dir():
        raise click.BadParameter('Configuration path must be a file, not a directory')

    valid_extensions = {'.yaml', '.yml'}
    if value.suffix.lower() not in valid_extensions:
        extensions_str = ", ".join(sorted(valid_extensions))
        raise click.BadParameter(
            f'Invalid configuration file extension. Supported extensions: {extensions_str}'
        )

    return value


def validate_log_level(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: str | None,
) -> str | None:
    """Validate and normalize log level.

    Args:
        ctx: Click context (required by Click callback signature)
        param: Click parameter (required by Click callback signature)
        value: Log level value to validate

    Returns:
        Normalized log level (uppercase)

    Raises:
        click.BadParameter: If validation fails
    """
    if value is None:
        return value

    normalized_value = value.upper().strip()

    valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
    if normalized_value not in valid_levels:
        raise click.BadParameter(
            f'Invalid log level "{value}". Valid options: {", ".join(sorted(valid_levels))}'
        )

    return normalized_value


def _flag(value: bool) -> bool | None:
    """Map an unset flag to None so it does not override the config file."""
    return True if value else None


# Import version from package
try:
    __version__ = version("progpipe")
except PackageNotFoundError:
    __version__ = "unknown"


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.argument('goal_arg', metavar='[GOAL]', required=False)
@click.option(
    '--goal', '-g', 'goal_opt',
    type=str,
    default=None,
    help='Goal number the input is moving toward (overrides the positional GOAL)'
)
@click.option(
    '--field', '-f',
    type=click.IntRange(min=1),
    default=None,
    help='Read the sample from this 1-based whitespace-separated column'
)
@click.option(
    '--message', '-m',
    type=str,
    default=None,
    help='Header line printed above the status line'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Print the remaining time as days/hours/minutes/seconds'
)
@click.option(
    '--debug', '-d',
    is_flag=True,
    help='Print every internal value on each update'
)
@click.option(
    '--signed-rate',
    is_flag=True,
    help='Treat movement away from the goal as regression (infinite ETC) instead of progress'
)
@click.option(
    '--config', '-c',
    type=click.Path(path_type=Path),
    default=None,
    callback=validate_config_path,
    help='YAML configuration file (.yaml or .yml)'
)
@click.option(
    '--log-level', '-l',
    type=str,
    default=None,
    callback=validate_log_level,
    help='Logging verbosity level on stderr (DEBUG, INFO, WARNING, ERROR, CRITICAL)'
)
@click.option(
    '--syslog',
    is_flag=True,
    help='Also send log records to the local syslog'
)
@click.version_option(version=__version__, prog_name='progpipe')
@click.pass_context
def cli(
    ctx: click.Context,
    goal_arg: str | None,
    goal_opt: str | None,
    field: int | None,
    message: str | None,
    verbose: bool,
    debug: bool,
    signed_rate: bool,
    config: Path | None,
    log_level: str | None,
    syslog: bool,
) -> None:
    """progpipe - ETC calculations on incrementing or decrementing piped input.

    Reads one number per line from standard input and prints the percent
    complete, average rate per second and estimated time of completion.

    Examples:

        # Count up to 101
        for i in $(seq 1 101); do echo $i; sleep 0.25; done | progpipe 101

        # Count down to zero, reading the third column
        (stream) | progpipe -g 0 -f 3 -m "File Download" --verbose
    """
    try:
        settings = apply_overrides(
            load_config(config),
            {
                'estimation': {'rate_convention': RateConvention.SIGNED if signed_rate else None},
                'display': {'message': message, 'verbose': _flag(verbose), 'debug': _flag(debug)},
                'input': {'field': field},
                'application': {'log_level': log_level, 'syslog_enabled': _flag(syslog)},
            },
        )
    except ConfigurationError as exc:
        click.echo(f"Configuration error:\n{exc}", err=True)
        ctx.exit(EXIT_ERROR)

    configure_logging(
        log_level=settings.application.log_level,
        enable_syslog=settings.application.syslog_enabled,
    )

    try:
        goal = parse_goal(goal_opt if goal_opt is not None else goal_arg)
    except InvalidGoalError as exc:
        click.echo(str(exc), err=True)
        ctx.exit(EXIT_ERROR)

    runner = ApplicationRunner(
        goal=goal,
        config=settings,
        lines=click.get_text_stream('stdin'),
    )

    try:
        _ = runner.run()
    except InvalidSampleError as exc:
        click.echo(str(exc), err=True)
        ctx.exit(EXIT_ERROR)
    except KeyboardInterrupt:
        ctx.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        # Unexpected error with stack trace
        click.echo(f"Unexpected error: {exc}", err=True)
        logging.exception("Unexpected error during progress estimation")
        ctx.exit(EXIT_RUNTIME_ERROR)


if __name__ == '__main__':
    cli()
