"""awslogin -- Interactive MFA login for the AWS CLI.

This package exchanges an MFA code for short-lived AWS session credentials,
optionally chains into an assumable role owned by another profile, and
optionally logs Docker in to ECR. The whole flow is driven by a small
terminal wizard.

Typical workflow::

    eval "$(aws-login shell-init)"   # install the shell wrapper once
    aws-login prd                    # pick driver/role, enter MFA code

The wrapper sources the session handoff file written by the login command so
the parent shell picks up the new credentials.

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Settings resolution and path defaults.
    session: Publishes session credentials to the environment and handoff file.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting and logging setup.
"""

__version__ = "0.3.0"
