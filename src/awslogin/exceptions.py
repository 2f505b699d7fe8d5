"""Exception hierarchy for awslogin.

All exceptions inherit from :class:`AwsLoginError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`awslogin.exit_codes`.
The top-level handler in :func:`awslogin.app.main` catches
``AwsLoginError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    AwsLoginError (exit 1)
    +-- ConfigError                (exit 2)
    +-- CredentialsFileError       (exit 4)
    +-- ProfileNotFoundError       (exit 5)
    +-- MfaNotConfiguredError      (exit 5)
    +-- DriverError                (exit 6)
    |   +-- UnsupportedOperationError
    +-- ExchangeError              (exit 3)
    |   +-- SessionPublishError
    +-- RegistryLoginError         (exit 7)
    +-- CommandError               (exit 1)
"""

from __future__ import annotations

from typing import Sequence

from awslogin.exit_codes import (
    EXIT_CREDENTIALS_FILE,
    EXIT_DRIVER_FAILURE,
    EXIT_EXCHANGE_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PROFILE_ERROR,
    EXIT_REGISTRY_FAILURE,
)


class AwsLoginError(Exception):
    """Base exception for all awslogin errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`awslogin.exit_codes`.

    Args:
        message: Human-readable error description, shown verbatim to the user.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(AwsLoginError):
    """Raised for invalid startup configuration (e.g. an unknown auth driver)."""

    exit_code = EXIT_INVALID_USAGE


class CredentialsFileError(AwsLoginError):
    """Raised when the shared credentials file cannot be opened or read."""

    exit_code = EXIT_CREDENTIALS_FILE


class ProfileNotFoundError(AwsLoginError):
    """Raised when a profile is not present in the credentials file."""

    exit_code = EXIT_PROFILE_ERROR


class MfaNotConfiguredError(AwsLoginError):
    """Raised when a profile has no ``mfa_serial`` configured."""

    exit_code = EXIT_PROFILE_ERROR


class DriverError(AwsLoginError):
    """Raised when an auth driver fails to produce an MFA code."""

    exit_code = EXIT_DRIVER_FAILURE


class UnsupportedOperationError(DriverError):
    """Raised when a driver is asked for a capability it does not have."""


class ExchangeError(AwsLoginError):
    """Raised when ``get-session-token`` or ``assume-role`` fails or returns garbage."""

    exit_code = EXIT_EXCHANGE_FAILURE


class SessionPublishError(ExchangeError):
    """Raised when session credentials cannot be written to the handoff file."""


class RegistryLoginError(AwsLoginError):
    """Raised when Docker cannot be logged in to ECR.

    The flow treats this as non-fatal: it only clears the ECR flag on the
    final outcome.
    """

    exit_code = EXIT_REGISTRY_FAILURE


class CommandError(AwsLoginError):
    """Raised by the command executor when an external program fails.

    Callers wrap it in the domain error for the operation they were
    attempting, keeping this message as the cause.

    Args:
        args: The argument vector that was executed.
        returncode: Process exit status, or ``None`` if it never started.
        stderr: Captured standard error, stripped, or the OS error text
            when the program could not be started.
    """

    def __init__(
        self,
        args: Sequence[str],
        returncode: int | None = None,
        stderr: str = "",
    ):
        self.args_ = list(args)
        self.returncode = returncode
        self.stderr = stderr
        program = self.args_[0] if self.args_ else "<empty>"
        if returncode is None:
            message = f"{program} could not be started"
        else:
            message = f"{program} exited with status {returncode}"
        if stderr:
            message += f": {stderr}"
        super().__init__(message)
