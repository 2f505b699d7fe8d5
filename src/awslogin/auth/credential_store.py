"""In-memory index of the shared AWS credentials file.

The credentials file is an INI-like text file with one ``[profile]`` section
per profile::

    [prd]
    aws_access_key_id = AKIA...
    aws_secret_access_key = ...
    mfa_serial = arn:aws:iam::111111111111:mfa/alice
    assumable_role_id = arn:aws:iam::111111111111:role/admin
    vault_key = aws-prd

Parsing is lenient: unknown keys, lines without ``=``, lines
outside a section (including under a nameless ``[]`` header) and empty
values are skipped rather than rejected, so a
partially configured profile still loads. Inputs :mod:`configparser` would reject
(duplicate keys, indented continuation lines) load as well.

:class:`CredentialStore` keeps two maps: profile name to
:class:`~awslogin.models.StaticCredential`, and the reverse index from
``assumable_role_id`` to the owning profile. It is built once at startup,
passed explicitly to the flow, and never mutated afterwards except by
:meth:`CredentialStore.clear` in tests.

See Also:
    :class:`~awslogin.flow.machine.FlowMachine` -- the main consumer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from awslogin.exceptions import (
    CredentialsFileError,
    MfaNotConfiguredError,
    ProfileNotFoundError,
)
from awslogin.models import StaticCredential

logger = logging.getLogger(__name__)

_KEY_FIELDS: dict[str, str] = {
    "aws_access_key_id": "access_key",
    "aws_secret_access_key": "access_secret",
    "account_id": "account_id",
    "aws_account_id": "account_id",
    "mfa_serial": "mfa_serial",
    "assumable_role_id": "assumable_role_id",
    "vault_key": "vault_key",
}
"""Recognised keys and the :class:`StaticCredential` field each one sets."""


class CredentialStore:
    """Profile and assumable-role lookups over a parsed credentials file.

    Example::

        store = CredentialStore.from_text(
            "[prd]\\nmfa_serial = arn:...\\nassumable_role_id = arn:...:role/a\\n"
        )
        store.profile_for_role("arn:...:role/a")   # "prd"
    """

    def __init__(self) -> None:
        self._credentials: dict[str, StaticCredential] = {}
        self._role_to_profile: dict[str, str] = {}

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def from_file(cls, path: Path) -> CredentialStore:
        """Build a store from the credentials file at *path*.

        Raises:
            CredentialsFileError: If the file cannot be opened or read.
        """
        store = cls()
        store.load(path)
        return store

    @classmethod
    def from_text(cls, text: str) -> CredentialStore:
        """Build a store from literal credentials-file content."""
        store = cls()
        store.loads(text)
        return store

    def load(self, path: Path) -> None:
        """Parse the credentials file at *path* into this store.

        Raises:
            CredentialsFileError: If the file cannot be opened or read.
                Malformed content never raises.
        """
        try:
            text = Path(path).expanduser().read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CredentialsFileError(
                f"failed to open credentials file {path}: {exc}"
            ) from exc
        self.loads(text)
        logger.debug("Loaded %d profiles from %s", len(self._credentials), path)

    def loads(self, text: str) -> None:
        """Parse credentials-file *text* into this store."""
        self._parse(text.splitlines())

    def clear(self) -> None:
        """Drop every profile and role mapping. Intended for tests."""
        self._credentials.clear()
        self._role_to_profile.clear()

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def profiles(self) -> list[str]:
        """All profile names in file order, valid or not."""
        return list(self._credentials)

    def valid_profiles(self) -> list[str]:
        """Profiles that can authenticate directly, in file order.

        A profile qualifies when its access key, secret and MFA serial are
        all set. Profiles that only declare an assumable role or vault key
        are excluded here but remain usable as assume-role targets.
        """
        return [name for name, cred in self._credentials.items() if cred.is_valid]

    def assumable_roles(self, profile: str) -> list[str]:
        """Role ARNs *profile* may assume, in file order.

        Every profile's ``assumable_role_id`` is included except the one
        owned by *profile* itself: a profile never assumes its own role. An
        unknown *profile* gets every role.
        """
        roles = (
            cred.assumable_role_id
            for name, cred in self._credentials.items()
            if name != profile and cred.assumable_role_id
        )
        return list(dict.fromkeys(roles))

    def profile_for_role(self, role_id: str) -> str:
        """Return the profile owning *role_id*, or ``""`` if none does."""
        if not role_id:
            return ""
        return self._role_to_profile.get(role_id, "")

    def credential(self, profile: str) -> tuple[Optional[StaticCredential], bool]:
        """Return ``(credential, found)`` for *profile*."""
        cred = self._credentials.get(profile)
        return cred, cred is not None

    def require(self, profile: str) -> StaticCredential:
        """Return the credential for *profile*.

        Raises:
            ProfileNotFoundError: If *profile* is not in the store.
        """
        cred, found = self.credential(profile)
        if not found or cred is None:
            raise ProfileNotFoundError(f"profile '{profile}' not found in credentials")
        return cred

    def mfa_serial(self, profile: str) -> str:
        """Return the MFA device ARN configured for *profile*.

        Raises:
            ProfileNotFoundError: If *profile* is not in the store.
            MfaNotConfiguredError: If the profile has no ``mfa_serial``.
        """
        cred = self.require(profile)
        if not cred.mfa_serial:
            raise MfaNotConfiguredError(
                f"MFA serial not configured for profile '{profile}'"
            )
        return cred.mfa_serial

    def __len__(self) -> int:
        return len(self._credentials)

    def __contains__(self, profile: object) -> bool:
        return profile in self._credentials

    # ------------------------------------------------------------------ #
    # Parsing
    # ------------------------------------------------------------------ #

    def _parse(self, lines: Iterable[str]) -> None:
        current: Optional[dict[str, str]] = None

        for raw in lines:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            if line.startswith("[") and line.endswith("]"):
                if current is not None:
                    self._flush(current)
                name = line.strip("[]")
                # keys under a nameless header belong to no profile
                current = {"profile_name": name} if name.strip() else None
                if current is None:
                    logger.debug("Skipping section with an empty name")
                continue

            if current is None or "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()
            if not value:
                continue
            field_name = _KEY_FIELDS.get(key)
            if field_name is not None:
                current[field_name] = value

        if current is not None:
            self._flush(current)

    def _flush(self, fields: dict[str, str]) -> None:
        cred = StaticCredential(**fields)
        name = cred.profile_name

        # A repeated section replaces the earlier one, including its role.
        previous = self._credentials.get(name)
        if previous is not None and previous.assumable_role_id:
            if self._role_to_profile.get(previous.assumable_role_id) == name:
                del self._role_to_profile[previous.assumable_role_id]

        self._credentials[name] = cred

        role = cred.assumable_role_id
        if role:
            owner = self._role_to_profile.get(role)
            if owner is not None and owner != name:
                logger.warning(
                    "Role %s is claimed by profiles '%s' and '%s'; using '%s'",
                    role, owner, name, name,
                )
            self._role_to_profile[role] = name
