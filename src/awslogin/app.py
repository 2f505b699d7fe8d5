"""Typer application and CLI entry point for awslogin.

This module wires together the top-level Typer application and its
commands:

* ``login`` -- run the interactive MFA wizard and publish the session.
* ``profiles`` -- list the profiles found in the credentials file.
* ``shell-init`` -- print the shell function that runs ``login`` and
  imports the published session into the calling shell.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`awslogin.config`: Settings resolution.
    :mod:`awslogin.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from awslogin import __version__
from awslogin.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE


app = typer.Typer(
    name="aws-login",
    help="Obtain short-lived AWS credentials with an MFA code.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"aws-login {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~awslogin.output.OutputManager` and
    logging from CLI flags.
    """
    from awslogin.output import OutputFormat, OutputManager, set_output, setup_logging

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    setup_logging(verbose=verbose, console=output.console)


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("login")
def login_command(
    profile: Optional[str] = typer.Argument(
        None, help="Profile to log in as (auto-selected when valid)."
    ),
    driver: Optional[str] = typer.Option(
        None, "--driver", "-d", help="MFA code source: manual or 1password."
    ),
    ecr: Optional[bool] = typer.Option(
        None, "--ecr/--no-ecr", help="Also log Docker in to ECR."
    ),
    credentials_file: Optional[Path] = typer.Option(
        None, "--credentials-file", help="Shared credentials file to read."
    ),
    session_file: Optional[Path] = typer.Option(
        None, "--session-file", help="Where to write the session handoff file."
    ),
    region: Optional[str] = typer.Option(
        None, "--region", help="Region used for ECR login."
    ),
    duration: Optional[int] = typer.Option(
        None, "--duration", help="Session duration in seconds (900-129600)."
    ),
) -> None:
    """Exchange an MFA code for session credentials.

    Walks through profile, driver and role selection, reads or fetches the
    MFA code, calls STS (and ``assume-role`` when a role was chosen), then
    writes the session to the handoff file for the shell wrapper.

    Example::

        aws-login login prd --driver 1password --ecr
    """
    from awslogin.auth import CredentialStore
    from awslogin.config import resolve_settings
    from awslogin.exceptions import AwsLoginError, CredentialsFileError
    from awslogin.flow import create_runner
    from awslogin.output import debug, error, suggest, warning
    from awslogin.ui import TerminalUI

    try:
        settings = resolve_settings(
            cli_driver=driver,
            cli_ecr=ecr,
            cli_profile=profile,
            cli_credentials_file=credentials_file,
            cli_session_file=session_file,
            cli_region=region,
            cli_duration=duration,
        )
        store = CredentialStore.from_file(settings.credentials_path)
    except AwsLoginError as exc:
        error(str(exc))
        if isinstance(exc, CredentialsFileError):
            suggest("Pass --credentials-file or set AWS_SHARED_CREDENTIALS_FILE")
        raise typer.Exit(code=exc.exit_code) from None

    debug(f"Loaded {len(store)} profiles from {settings.credentials_path}")

    ui = TerminalUI()
    final = create_runner(settings, store, ui).run()

    if final.error is not None:
        raise typer.Exit(code=final.error.exit_code)
    if final.result is None:
        ui.show_outcome(None, None)
        raise typer.Exit(code=EXIT_CANCELLED)
    if settings.attempt_ecr_login and not final.result.ecr_auth:
        warning("ECR login was requested but did not succeed; rerun with --verbose for details")


@app.command("profiles")
def profiles_command(
    credentials_file: Optional[Path] = typer.Option(
        None, "--credentials-file", help="Shared credentials file to read."
    ),
) -> None:
    """List profiles in the credentials file.

    Shows whether each profile can log in directly, which role other
    profiles assume to act as it, and whether a vault key is configured.
    """
    from awslogin.auth import CredentialStore
    from awslogin.config import default_credentials_path
    from awslogin.exceptions import AwsLoginError
    from awslogin.output import error, info, print_table, suggest

    path = credentials_file.expanduser() if credentials_file else default_credentials_path()
    try:
        store = CredentialStore.from_file(path)
    except AwsLoginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not len(store):
        info(f"No profiles found in {path}.")
        suggest("Add a [profile] section with aws_access_key_id, aws_secret_access_key and mfa_serial")
        return

    rows = []
    for name in store.profiles():
        cred = store.require(name)
        rows.append(
            [
                name,
                "yes" if cred.is_valid else "no",
                cred.assumable_role_id or "-",
                "yes" if cred.vault_key else "no",
            ]
        )
    print_table(["Profile", "Valid", "Assumable role", "Vault key"], rows, title="Profiles")


_SHELL_FUNCTION = """\
# aws-login shell integration
# Add to your shell profile:  eval "$(aws-login shell-init)"
{name}() {{
    command aws-login login "$@"
    local rc=$?
    local session_file="${{AWS_LOGIN_SESSION_FILE:-{session_path}}}"
    if [ $rc -eq 0 ] && [ -f "$session_file" ]; then
        export AWS_ACCESS_KEY_ID="$(jq -r '.AccessKeyId' "$session_file")"
        export AWS_SECRET_ACCESS_KEY="$(jq -r '.SecretAccessKey' "$session_file")"
        export AWS_SESSION_TOKEN="$(jq -r '.SessionToken' "$session_file")"
        export AWS_PROFILE="$(jq -r '.ProfileName' "$session_file")"
    fi
    rm -f "$session_file"
    return $rc
}}
"""


@app.command("shell-init")
def shell_init_command(
    name: str = typer.Option(
        "aws-login", "--name", help="Name of the shell function to define."
    ),
) -> None:
    """Print a bash/zsh function that logs in and imports the session.

    A child process cannot change its parent's environment, so the function
    runs ``aws-login login``, sources the handoff file into the current
    shell when the login succeeded, and deletes it either way. Requires
    ``jq``.

    Example::

        eval "$(aws-login shell-init)"
        aws-login prd
    """
    from awslogin.config import default_session_path
    from awslogin.output import error, print_data

    if not name.replace("-", "").replace("_", "").isalnum():
        error(f"Invalid function name '{name}'")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    script = _SHELL_FUNCTION.format(name=name, session_path=default_session_path())
    print_data(script.rstrip("\n"))


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from awslogin.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``aws-login`` console script.

    Unhandled :class:`~awslogin.exceptions.AwsLoginError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from awslogin.exceptions import AwsLoginError
        from awslogin.output import error

        if isinstance(exc, AwsLoginError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
