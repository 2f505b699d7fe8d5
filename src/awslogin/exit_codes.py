"""Numeric process exit codes for ``aws-login``.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~awslogin.exceptions.AwsLoginError` subclass.
The shell wrapper can inspect the exit code to tell a rejected MFA code
apart from a broken local setup without parsing stderr.

Example::

    $ aws-login login prd
    $ echo $?
    3   # EXIT_EXCHANGE_FAILURE -- STS rejected the MFA code
"""

EXIT_SUCCESS = 0
"""The login completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments or configuration (e.g. an unknown auth driver)."""

EXIT_EXCHANGE_FAILURE = 3
"""The session-token or assume-role exchange failed."""

EXIT_CREDENTIALS_FILE = 4
"""The shared credentials file could not be read."""

EXIT_PROFILE_ERROR = 5
"""The chosen profile is missing or not configured for MFA."""

EXIT_DRIVER_FAILURE = 6
"""The auth driver could not produce an MFA code."""

EXIT_REGISTRY_FAILURE = 7
"""Docker could not be logged in to ECR."""

EXIT_CANCELLED = 130
"""The user cancelled the flow (Ctrl-C)."""
