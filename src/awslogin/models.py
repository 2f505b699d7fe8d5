"""Canonical Pydantic models shared across all awslogin modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Credential models** -- parsed from the shared credentials file or returned
by STS:
    :class:`StaticCredential`, :class:`SessionCredential`,
    :class:`STSResponse`, :class:`AssumeRoleResponse`, and
    :class:`SessionArtifact` (the JSON handoff file).

**Flow outcome** -- :class:`AuthFlowResult`, rendered at the end of the wizard.

**Configuration** -- :class:`DriverName` and :class:`LoginSettings`, resolved
once at startup by :func:`awslogin.config.resolve_settings`.

STS responses use the AWS CLI's PascalCase keys, so those models declare
aliases and accept either spelling (``populate_by_name=True``).
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Static credentials ---


class StaticCredential(BaseModel):
    """One ``[profile]`` section of the shared credentials file.

    Besides the standard AWS keys this carries the project-specific
    ``assumable_role_id`` (the ARN another profile may assume to act as this
    one) and ``vault_key`` (the password-vault item holding the TOTP seed).

    A profile is *valid* for direct authentication only when the access
    key, secret and MFA serial are all present. Profiles that only declare
    an assumable role are still useful as assume-role targets.
    """

    model_config = ConfigDict(frozen=True)

    profile_name: str
    access_key: str = ""
    access_secret: str = ""
    account_id: str = ""
    mfa_serial: str = ""
    assumable_role_id: str = Field(
        default="", description="ARN of the role other profiles assume to act as this one"
    )
    vault_key: str = Field(
        default="", description="Password-vault item that yields the MFA code"
    )

    @property
    def is_valid(self) -> bool:
        """Whether this profile can authenticate directly with an MFA code."""
        return bool(self.access_key and self.access_secret and self.mfa_serial)


# --- Session credentials ---


class SessionCredential(BaseModel):
    """Temporary credentials returned by ``get-session-token`` or ``assume-role``.

    ``profile`` is not part of the STS payload; it is attached afterwards to
    record which profile the session acts as.
    """

    model_config = ConfigDict(populate_by_name=True)

    access_key_id: str = Field(alias="AccessKeyId")
    secret_access_key: str = Field(alias="SecretAccessKey")
    session_token: str = Field(alias="SessionToken")
    expiration: str = Field(default="", alias="Expiration")
    profile: str = Field(default="", alias="Profile")


class STSResponse(BaseModel):
    """Response body of ``aws sts get-session-token``."""

    credentials: SessionCredential = Field(alias="Credentials")


class AssumedRoleUser(BaseModel):
    assumed_role_id: str = Field(default="", alias="AssumedRoleId")
    arn: str = Field(default="", alias="Arn")


class AssumeRoleResponse(BaseModel):
    """Response body of ``aws sts assume-role``."""

    credentials: SessionCredential = Field(alias="Credentials")
    assumed_role_user: Optional[AssumedRoleUser] = Field(
        default=None, alias="AssumedRoleUser"
    )


class SessionArtifact(BaseModel):
    """The one-shot JSON handoff file consumed by the shell wrapper.

    Serialised with ``by_alias=True`` so the keys match what the wrapper
    reads with ``jq`` (``.AccessKeyId``, ``.ProfileName``, ...).
    """

    model_config = ConfigDict(populate_by_name=True)

    version: int = Field(default=1, alias="Version")
    access_key_id: str = Field(alias="AccessKeyId")
    secret_access_key: str = Field(alias="SecretAccessKey")
    session_token: str = Field(alias="SessionToken")
    expiration: str = Field(default="", alias="Expiration")
    profile_name: str = Field(alias="ProfileName")

    @classmethod
    def from_credential(cls, credential: SessionCredential) -> SessionArtifact:
        return cls(
            access_key_id=credential.access_key_id,
            secret_access_key=credential.secret_access_key,
            session_token=credential.session_token,
            expiration=credential.expiration,
            profile_name=credential.profile,
        )


# --- Flow outcome ---


class AuthFlowResult(BaseModel):
    """Successful outcome of the login flow.

    Attributes:
        profile: The profile the active session acts as (the role owner
            when a role was assumed).
        ecr_auth: Whether Docker was logged in to ECR.
    """

    profile: str
    ecr_auth: bool = False


# --- Configuration ---


class DriverName(str, enum.Enum):
    """Closed set of MFA code sources.

    Dispatch for each member lives in :mod:`awslogin.auth.drivers`; adding a
    member without a dispatch entry fails at import time.
    """

    MANUAL = "manual"
    ONEPASSWORD = "1password"


class LoginSettings(BaseModel):
    """Immutable startup configuration handed to the flow.

    Built by :func:`awslogin.config.resolve_settings` from CLI flags,
    environment variables and defaults. ``driver`` is ``None`` when the user
    did not choose one explicitly, in which case the wizard asks.
    """

    model_config = ConfigDict(frozen=True)

    driver: Optional[DriverName] = None
    attempt_ecr_login: bool = False
    credentials_path: Path
    session_path: Path
    profile: Optional[str] = Field(
        default=None, description="Preferred profile, auto-selected when valid"
    )
    ecr_region: str = "eu-west-2"
    ecr_registry: Optional[str] = Field(
        default=None, description="Registry host override (default derived from account)"
    )
    session_duration: int = Field(default=86400, ge=900, le=129600)
    role_session_name: str = "aws-login-session"
