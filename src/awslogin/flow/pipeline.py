"""The PROCESSING step: session token, optional role chain, ECR login.

:class:`AuthPipeline` runs the three exchanges strictly in order:

1. ``get-session-token`` for the selected profile's MFA device; the session
   is published.
2. If a role was chosen, ``assume-role`` using that session; the new
   session is published over the first and the current profile becomes
   the role's owner.
3. A best-effort ECR login with the final credentials.

A failure in (1) or (2) propagates and nothing after it runs. A failure in
(3) is logged and only clears :attr:`~awslogin.models.AuthFlowResult.ecr_auth`.
"""

from __future__ import annotations

import logging

from awslogin.auth.credential_store import CredentialStore
from awslogin.client.aws_cli import AwsCli
from awslogin.exceptions import ProfileNotFoundError, RegistryLoginError
from awslogin.models import AuthFlowResult, LoginSettings, StaticCredential
from awslogin.session import SessionPublisher

logger = logging.getLogger(__name__)


def resolve_account_id(credential: StaticCredential) -> str:
    """Return the AWS account id for ECR login.

    Uses ``account_id`` when set, otherwise the account field of the
    profile's ``assumable_role_id`` ARN (``arn:aws:iam::ACCOUNT:role/NAME``).

    Raises:
        RegistryLoginError: If neither yields an account id.
    """
    if credential.account_id:
        return credential.account_id

    parts = credential.assumable_role_id.split(":")
    if len(parts) > 4 and parts[4]:
        return parts[4]
    raise RegistryLoginError(
        f"cannot determine account id for profile '{credential.profile_name}': "
        "set account_id or assumable_role_id"
    )


class AuthPipeline:
    """Exchange an MFA code for the final session.

    Args:
        store: Loaded credential store.
        aws: STS/ECR client.
        publisher: Receives each session as it is issued.
        settings: Startup settings (ECR opt-in, region, durations).
    """

    def __init__(
        self,
        store: CredentialStore,
        aws: AwsCli,
        publisher: SessionPublisher,
        settings: LoginSettings,
    ) -> None:
        self._store = store
        self._aws = aws
        self._publisher = publisher
        self._settings = settings

    def run(self, profile: str, role: str, mfa_code: str) -> AuthFlowResult:
        """Run the exchanges for *profile*, optionally chaining into *role*.

        Returns:
            The outcome, attributed to the profile the final session acts as.

        Raises:
            ProfileNotFoundError: If *profile* is unknown or *role* has no owner.
            MfaNotConfiguredError: If *profile* has no MFA serial.
            ExchangeError: If either STS call fails or the session cannot
                be published.
        """
        mfa_serial = self._store.mfa_serial(profile)
        session = self._aws.get_session_token(
            profile, mfa_serial, mfa_code, self._settings.session_duration
        )
        self._publisher.publish(session)

        current = profile
        if role:
            owner = self._store.profile_for_role(role)
            if not owner:
                raise ProfileNotFoundError(f"no profile owns assumable role '{role}'")
            assumed = self._aws.assume_role(role, owner, self._settings.role_session_name)
            self._publisher.publish(assumed)
            current = owner

        return AuthFlowResult(profile=current, ecr_auth=self._try_registry_login(current))

    def registry_login(self, profile: str) -> str:
        """Log Docker in to ECR as *profile*.

        Returns:
            The registry host.

        Raises:
            RegistryLoginError: If ECR login is disabled, the account id
                cannot be determined, or either command fails.
        """
        if not self._settings.attempt_ecr_login:
            raise RegistryLoginError("ECR login is disabled")

        account_id = ""
        if not self._settings.ecr_registry:
            account_id = resolve_account_id(self._store.require(profile))
        return self._aws.ecr_login(
            account_id, self._settings.ecr_region, self._settings.ecr_registry
        )

    def _try_registry_login(self, profile: str) -> bool:
        try:
            self.registry_login(profile)
        except (RegistryLoginError, ProfileNotFoundError) as exc:
            logger.info("Skipping ECR login: %s", exc)
            return False
        return True
