"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles everything awslogin reads once at startup:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.aws-login/`` on macOS and Windows. Only the data directory is used
  (crash logs). See :func:`get_data_dir`.
* **Well-known paths** -- the shared credentials file
  (:func:`default_credentials_path`) and the session handoff file
  (:func:`default_session_path`).
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables and defaults into an immutable
  :class:`~awslogin.models.LoginSettings`.

Handoff writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so the shell wrapper never sources a half-written file.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from awslogin.auth.drivers import resolve_driver_name
from awslogin.exceptions import ConfigError
from awslogin.models import LoginSettings

_APP_NAME = "aws-login"
_SESSION_FILENAME = "aws-session.json"

ENV_AUTH_DRIVER = "AWS_LOGIN_AUTH_DRIVER"
ENV_ECR = "AWS_LOGIN_ECR"
ENV_ECR_REGION = "AWS_LOGIN_ECR_REGION"
ENV_ECR_REGISTRY = "ECR_REGISTRY"
ENV_PROFILE = "AWS_LOGIN_PROFILE"
ENV_SESSION_FILE = "AWS_LOGIN_SESSION_FILE"
ENV_CREDENTIALS_FILE = "AWS_SHARED_CREDENTIALS_FILE"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/aws-login/`` (default ``~/.local/share/aws-login/``).
    On macOS/Windows: ``~/.aws-login/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_credentials_path() -> Path:
    """The shared credentials file, honouring ``AWS_SHARED_CREDENTIALS_FILE``."""
    override = os.environ.get(ENV_CREDENTIALS_FILE, "")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".aws" / "credentials"


def default_session_path() -> Path:
    """The handoff file the shell wrapper sources after a successful login."""
    override = os.environ.get(ENV_SESSION_FILE, "")
    if override:
        return Path(override).expanduser()
    return Path(tempfile.gettempdir()) / _SESSION_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: int = 0o600) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. Permissions are set
    before any content is written.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Precedence resolution ---


def _env_flag(name: str) -> Optional[bool]:
    """Parse a boolean environment variable, ``None`` when unset."""
    raw = os.environ.get(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"Invalid value '{raw}' for {name}: expected true or false")


def resolve_settings(
    cli_driver: Optional[str] = None,
    cli_ecr: Optional[bool] = None,
    cli_profile: Optional[str] = None,
    cli_credentials_file: Optional[Path] = None,
    cli_session_file: Optional[Path] = None,
    cli_region: Optional[str] = None,
    cli_duration: Optional[int] = None,
) -> LoginSettings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``AWS_LOGIN_AUTH_DRIVER``,
           ``AWS_LOGIN_ECR``, ``AWS_LOGIN_PROFILE``,
           ``AWS_SHARED_CREDENTIALS_FILE``, ``AWS_LOGIN_SESSION_FILE``,
           ``AWS_LOGIN_ECR_REGION``, ``ECR_REGISTRY``)
        3. Defaults

    Returns:
        The frozen :class:`~awslogin.models.LoginSettings`.

    Raises:
        ConfigError: If the driver name is not recognised or a value fails
            validation.
    """
    driver_value = cli_driver if cli_driver is not None else os.environ.get(ENV_AUTH_DRIVER, "")
    driver = resolve_driver_name(driver_value)

    attempt_ecr = cli_ecr
    if attempt_ecr is None:
        attempt_ecr = bool(_env_flag(ENV_ECR))

    profile = cli_profile or os.environ.get(ENV_PROFILE) or None

    fields: dict[str, object] = {
        "driver": driver,
        "attempt_ecr_login": attempt_ecr,
        "credentials_path": (
            cli_credentials_file.expanduser()
            if cli_credentials_file is not None
            else default_credentials_path()
        ),
        "session_path": (
            cli_session_file.expanduser()
            if cli_session_file is not None
            else default_session_path()
        ),
        "profile": profile,
        "ecr_registry": os.environ.get(ENV_ECR_REGISTRY) or None,
    }
    region = cli_region or os.environ.get(ENV_ECR_REGION)
    if region:
        fields["ecr_region"] = region
    if cli_duration is not None:
        fields["session_duration"] = cli_duration

    try:
        return LoginSettings.model_validate(fields)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
