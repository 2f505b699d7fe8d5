"""AWS CLI exchanges: session token, role assumption, and ECR login.

:class:`AwsCli` is a thin wrapper around ``aws`` and ``docker`` invoked
through a :class:`~awslogin.client.executor.CommandExecutor`. It knows the
argument vectors and response shapes; it does not know about profiles,
the credentials file or the flow.

All exchange failures are raised as
:class:`~awslogin.exceptions.ExchangeError` and registry failures as
:class:`~awslogin.exceptions.RegistryLoginError`, with the executor's
message preserved so the user sees what the CLI printed.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from awslogin.client.executor import CommandExecutor
from awslogin.exceptions import CommandError, ExchangeError, RegistryLoginError
from awslogin.models import AssumeRoleResponse, SessionCredential, STSResponse

logger = logging.getLogger(__name__)

ECR_USERNAME = "AWS"


def ecr_registry_host(account_id: str, region: str) -> str:
    """Return the private ECR registry hostname for an account and region."""
    return f"{account_id}.dkr.ecr.{region}.amazonaws.com"


class AwsCli:
    """Issue STS and ECR calls through the ``aws`` and ``docker`` CLIs.

    Args:
        executor: Runs the external programs.
    """

    def __init__(self, executor: CommandExecutor) -> None:
        self._executor = executor

    def get_session_token(
        self,
        profile: str,
        mfa_serial: str,
        mfa_code: str,
        duration: int = 86400,
    ) -> SessionCredential:
        """Exchange an MFA code for session credentials of *profile*.

        Returns:
            The session credentials, attributed to *profile*.

        Raises:
            ExchangeError: If the call fails or its output is not a valid
                STS response.
        """
        try:
            output = self._executor.run(
                [
                    "aws", "sts", "get-session-token",
                    "--duration", str(duration),
                    "--serial-number", mfa_serial,
                    "--token-code", mfa_code,
                    "--profile", profile,
                ]
            )
        except CommandError as exc:
            raise ExchangeError(f"failed to get AWS session token: {exc}") from exc

        try:
            response = STSResponse.model_validate_json(output)
        except ValidationError as exc:
            raise ExchangeError(f"failed to parse STS response: {exc}") from exc

        logger.info("Session token issued for profile %s", profile)
        return response.credentials.model_copy(update={"profile": profile})

    def assume_role(
        self,
        role_arn: str,
        profile: str,
        session_name: str = "aws-login-session",
    ) -> SessionCredential:
        """Assume *role_arn* using whatever credentials are active in the environment.

        Args:
            role_arn: ARN of the role to assume.
            profile: Profile name the resulting session is attributed to.
            session_name: ``--role-session-name`` passed to STS.

        Raises:
            ExchangeError: If the call fails or returns unparsable output.
        """
        role_arn = role_arn.strip()
        try:
            output = self._executor.run(
                [
                    "aws", "sts", "assume-role",
                    "--role-arn", role_arn,
                    "--role-session-name", session_name,
                ]
            )
        except CommandError as exc:
            raise ExchangeError(f"failed to assume role {role_arn}: {exc}") from exc

        try:
            response = AssumeRoleResponse.model_validate_json(output)
        except ValidationError as exc:
            raise ExchangeError(f"failed to parse assume-role response: {exc}") from exc

        logger.info("Assumed role %s as profile %s", role_arn, profile)
        return response.credentials.model_copy(update={"profile": profile})

    def ecr_login(
        self,
        account_id: str,
        region: str,
        registry: Optional[str] = None,
    ) -> str:
        """Log Docker in to ECR with the active credentials.

        Args:
            account_id: Account owning the registry.
            region: Region passed to ``get-login-password``.
            registry: Registry host override; derived from the account and
                region when omitted.

        Returns:
            The registry host that Docker was logged in to.

        Raises:
            RegistryLoginError: If either command fails.
        """
        try:
            password = self._executor.run(
                ["aws", "ecr", "get-login-password", "--region", region]
            )
        except CommandError as exc:
            raise RegistryLoginError(f"failed to get ECR login password: {exc}") from exc

        host = registry or ecr_registry_host(account_id, region)
        try:
            self._executor.run(
                [
                    "docker", "login",
                    "--username", ECR_USERNAME,
                    "--password-stdin",
                    host,
                ],
                input=password,
            )
        except CommandError as exc:
            raise RegistryLoginError(f"failed to login to ECR: {exc}") from exc

        logger.info("Docker logged in to %s", host)
        return host
