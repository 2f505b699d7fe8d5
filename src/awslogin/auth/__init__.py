"""Credential lookup and MFA code sources.

The main entry points are:

- :class:`CredentialStore` -- parsed view of the shared credentials file,
  with the assumable-role reverse index.
- :class:`AuthDriver` -- a driver (manual or 1Password) bound to a profile's
  vault key.
- :func:`parse_driver_name` / :func:`resolve_driver_name` -- turn a
  configured string into a :class:`~awslogin.models.DriverName`.
- :func:`installed_drivers` -- the drivers usable on this machine.

Typical usage::

    from awslogin.auth import AuthDriver, CredentialStore

    store = CredentialStore.from_file(settings.credentials_path)
    cred = store.require("prd")
    driver = AuthDriver(DriverName.ONEPASSWORD, executor, cred.vault_key)
    code = driver.get_code()
"""

from awslogin.auth.credential_store import CredentialStore
from awslogin.auth.drivers import (
    AuthDriver,
    DriverSpec,
    driver_spec,
    installed_drivers,
    parse_driver_name,
    resolve_driver_name,
    valid_driver_names,
)

__all__ = [
    "AuthDriver",
    "CredentialStore",
    "DriverSpec",
    "driver_spec",
    "installed_drivers",
    "parse_driver_name",
    "resolve_driver_name",
    "valid_driver_names",
]
