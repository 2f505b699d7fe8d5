"""Publish session credentials to the process and to the parent shell.

A child process cannot change its parent's environment, so every published
session goes two places:

1. The current process environment (``AWS_ACCESS_KEY_ID``,
   ``AWS_SECRET_ACCESS_KEY``, ``AWS_SESSION_TOKEN``, ``AWS_PROFILE``), so
   that later ``aws`` calls in this run (assume-role, ECR login) use it.
2. A JSON handoff file, written atomically with ``0o600`` permissions,
   that the shell wrapper sources and then deletes.

Each publish overwrites the previous one: at most one session is active.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import MutableMapping, Optional

from awslogin.config import atomic_write
from awslogin.exceptions import SessionPublishError
from awslogin.models import SessionArtifact, SessionCredential

logger = logging.getLogger(__name__)

ENV_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
ENV_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
ENV_SESSION_TOKEN = "AWS_SESSION_TOKEN"
ENV_PROFILE = "AWS_PROFILE"


class SessionPublisher:
    """Expose the active session to this process and the calling shell.

    Args:
        path: Location of the handoff file.
        environ: Environment mapping to update. Defaults to
            :data:`os.environ`; tests pass a plain dict.
    """

    def __init__(
        self,
        path: Path,
        environ: Optional[MutableMapping[str, str]] = None,
    ) -> None:
        self._path = path
        self._environ = os.environ if environ is None else environ
        self._active: Optional[SessionCredential] = None

    @property
    def path(self) -> Path:
        """The handoff file location."""
        return self._path

    @property
    def active(self) -> Optional[SessionCredential]:
        """The most recently published session, if any."""
        return self._active

    def publish(self, credential: SessionCredential) -> None:
        """Make *credential* the active session.

        Raises:
            SessionPublishError: If the handoff file cannot be written. The
                environment has already been updated at that point.
        """
        self._environ[ENV_ACCESS_KEY_ID] = credential.access_key_id
        self._environ[ENV_SECRET_ACCESS_KEY] = credential.secret_access_key
        self._environ[ENV_SESSION_TOKEN] = credential.session_token
        self._environ[ENV_PROFILE] = credential.profile
        self._active = credential

        artifact = SessionArtifact.from_credential(credential)
        text = json.dumps(artifact.model_dump(by_alias=True), indent=2) + "\n"
        try:
            atomic_write(self._path, text)
        except OSError as exc:
            raise SessionPublishError(
                f"failed to write credentials to JSON file {self._path}: {exc}"
            ) from exc
        logger.debug("Published session for profile %s to %s", credential.profile, self._path)
