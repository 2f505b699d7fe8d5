"""MFA code sources ("auth drivers").

A driver answers three questions for the flow:

* ``yields_code`` -- can it produce the MFA code itself, or must the user
  type it?
* ``get_code()`` -- produce the code (only for drivers that yield one).
* ``is_installed()`` -- is the backing tool available on this machine?

The set of drivers is closed: :class:`~awslogin.models.DriverName` lists
them and :data:`_DISPATCH` maps each member to its capabilities. The table
is checked against the enum at import time, so adding a member without an
entry fails immediately.

Built-in drivers:

- ``manual`` -- the user types the code into the wizard. Always installed.
- ``1password`` -- reads the TOTP for the profile's ``vault_key`` with
  ``op item get <vault_key> --otp``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from awslogin.client.executor import CommandExecutor
from awslogin.exceptions import (
    CommandError,
    ConfigError,
    DriverError,
    UnsupportedOperationError,
)
from awslogin.models import DriverName


@dataclass(frozen=True)
class DriverSpec:
    """Static description and capabilities of one driver."""

    label: str
    description: str
    yields_code: bool
    get_code: Callable[[CommandExecutor, str], str]
    is_installed: Callable[[CommandExecutor], bool]


def _manual_get_code(executor: CommandExecutor, vault_key: str) -> str:
    raise UnsupportedOperationError(
        "manual driver cannot yield an MFA code; it is entered in the prompt"
    )


def _manual_is_installed(executor: CommandExecutor) -> bool:
    return True


def _onepassword_get_code(executor: CommandExecutor, vault_key: str) -> str:
    if not vault_key:
        raise DriverError(
            "no vault_key configured for this profile; 1Password cannot look up the MFA code"
        )
    try:
        output = executor.run(["op", "item", "get", vault_key, "--otp"])
    except CommandError as exc:
        raise DriverError(
            f"failed to retrieve MFA code from 1Password with vault key {vault_key}: {exc}"
        ) from exc

    code = output.strip()
    if not code:
        raise DriverError("empty MFA code from 1Password")
    return code


def _onepassword_is_installed(executor: CommandExecutor) -> bool:
    return executor.succeeds(["op", "--version"])


_DISPATCH: dict[DriverName, DriverSpec] = {
    DriverName.MANUAL: DriverSpec(
        label="Manual",
        description="Enter MFA code manually",
        yields_code=False,
        get_code=_manual_get_code,
        is_installed=_manual_is_installed,
    ),
    DriverName.ONEPASSWORD: DriverSpec(
        label="1Password",
        description="Use 1Password CLI (requires the op CLI)",
        yields_code=True,
        get_code=_onepassword_get_code,
        is_installed=_onepassword_is_installed,
    ),
}

_missing = set(DriverName) - set(_DISPATCH)
if _missing:  # pragma: no cover - guards future enum additions
    raise RuntimeError(f"No dispatch entry for drivers: {sorted(m.value for m in _missing)}")


def driver_spec(name: DriverName) -> DriverSpec:
    """Return the capabilities of the driver *name*."""
    return _DISPATCH[name]


def valid_driver_names() -> list[str]:
    """Return the accepted driver identifiers in declaration order."""
    return [member.value for member in DriverName]


def parse_driver_name(value: str) -> DriverName:
    """Parse a driver identifier, case-insensitively.

    Raises:
        ConfigError: If *value* does not name a driver. The message names
            the offending value and lists the valid options.
    """
    normalised = value.strip().lower()
    for member in DriverName:
        if member.value == normalised:
            return member
    raise ConfigError(
        f"invalid auth driver '{value}', valid options are: "
        + ", ".join(valid_driver_names())
    )


def resolve_driver_name(value: Optional[str]) -> Optional[DriverName]:
    """Resolve a configured driver, or ``None`` when *value* is unset or blank.

    ``None`` leaves the choice to the login flow, which auto-selects the
    only installed driver or asks.

    Raises:
        ConfigError: If *value* is set but invalid.
    """
    if value is None or not value.strip():
        return None
    return parse_driver_name(value)


class AuthDriver:
    """A driver bound to one profile's vault key.

    Args:
        name: Which driver this is.
        executor: Runs the driver's external CLI.
        vault_key: The profile's ``vault_key`` (ignored by manual).
    """

    def __init__(
        self,
        name: DriverName,
        executor: CommandExecutor,
        vault_key: str = "",
    ) -> None:
        self.name = name
        self.vault_key = vault_key
        self._executor = executor
        self._spec = driver_spec(name)

    @property
    def label(self) -> str:
        return self._spec.label

    @property
    def yields_code(self) -> bool:
        """Whether :meth:`get_code` can produce the MFA code."""
        return self._spec.yields_code

    def get_code(self) -> str:
        """Produce the current MFA code.

        Raises:
            UnsupportedOperationError: For drivers that do not yield codes.
            DriverError: If the backing tool fails or returns nothing.
        """
        return self._spec.get_code(self._executor, self.vault_key)

    def is_installed(self) -> bool:
        """Probe for the backing tool. Never raises."""
        return self._spec.is_installed(self._executor)

    def __repr__(self) -> str:
        return f"AuthDriver({self.name.value!r})"


def installed_drivers(executor: CommandExecutor) -> list[DriverName]:
    """Return the drivers whose backing tool is available, manual first."""
    return [name for name in DriverName if _DISPATCH[name].is_installed(executor)]
