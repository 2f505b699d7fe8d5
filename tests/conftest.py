"""Shared test fixtures for awslogin.

Provides reusable fixtures for isolated environments, a scripted fake
command executor, a scripted fake UI, sample credentials files, and the
CLI runner. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import contextlib
import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

import pytest

from awslogin.exceptions import AwsLoginError, CommandError
from awslogin.models import AuthFlowResult
from awslogin.output import OutputFormat, OutputManager, reset_output, set_output
from awslogin.ui import Choice, SelectionUI


SAMPLE_CREDENTIALS = """\
[default]
aws_access_key_id = AKIADEFAULT
aws_secret_access_key = default-secret
mfa_serial = arn:aws:iam::111111111111:mfa/alice

[int]
aws_access_key_id = AKIAINT
aws_secret_access_key = int-secret
mfa_serial = arn:aws:iam::222222222222:mfa/alice
vault_key = aws-int

[no-mfa]
aws_access_key_id = AKIANOMFA
aws_secret_access_key = nomfa-secret

[prd]
assumable_role_id = arn:aws:iam::333333333333:role/admin

[staging]
assumable_role_id = arn:aws:iam::444444444444:role/admin

[dev]
account_id = 555555555555
assumable_role_id = arn:aws:iam::555555555555:role/dev
"""


def sts_payload(
    access_key: str = "ASIASESSION",
    secret: str = "session-secret",
    token: str = "session-token",
    expiration: str = "2030-01-01T00:00:00Z",
    **extra: Any,
) -> str:
    """Return a JSON body shaped like ``aws sts get-session-token`` output."""
    body: dict[str, Any] = {
        "Credentials": {
            "AccessKeyId": access_key,
            "SecretAccessKey": secret,
            "SessionToken": token,
            "Expiration": expiration,
        }
    }
    body.update(extra)
    return json.dumps(body)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use. The
    ``awslogin`` logger is restored too, since ``setup_logging`` disables
    propagation and that would hide records from ``caplog``.
    """
    yield
    reset_output()
    logger = logging.getLogger("awslogin")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate the process environment to a temporary directory.

    Points XDG_DATA_HOME and HOME at tmp_path, clears every variable the
    tool reads or publishes, and changes the working directory.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("HOME", str(tmp_path))

    for var in [
        "AWS_LOGIN_AUTH_DRIVER",
        "AWS_LOGIN_ECR",
        "AWS_LOGIN_ECR_REGION",
        "AWS_LOGIN_PROFILE",
        "AWS_LOGIN_SESSION_FILE",
        "AWS_SHARED_CREDENTIALS_FILE",
        "ECR_REGISTRY",
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_SESSION_TOKEN",
        "AWS_PROFILE",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def credentials_file(tmp_path: Path) -> Path:
    """Write :data:`SAMPLE_CREDENTIALS` to a temporary credentials file."""
    path = tmp_path / "credentials"
    path.write_text(SAMPLE_CREDENTIALS)
    return path


# ---------------------------------------------------------------------------
# Fake executor
# ---------------------------------------------------------------------------


class FakeExecutor:
    """Stand-in for :class:`~awslogin.client.executor.CommandExecutor`.

    Responses are scripted by argv prefix: the longest registered prefix
    matching a call wins. A response is either the stdout string or a
    :class:`CommandError` to raise. Unscripted calls fail like a missing
    program. Every call is recorded in :attr:`calls` as ``(argv, input)``.
    """

    def __init__(self) -> None:
        self._responses: dict[tuple[str, ...], Any] = {}
        self.calls: list[tuple[list[str], Optional[str]]] = []

    def on(self, prefix: Sequence[str], response: Any = "") -> FakeExecutor:
        self._responses[tuple(prefix)] = response
        return self

    def fail(self, prefix: Sequence[str], stderr: str = "boom", returncode: int = 1) -> FakeExecutor:
        self._responses[tuple(prefix)] = CommandError(list(prefix), returncode, stderr)
        return self

    def run(self, args: Sequence[str], input: Optional[str] = None) -> str:
        argv = list(args)
        self.calls.append((argv, input))
        match: Optional[tuple[str, ...]] = None
        for prefix in self._responses:
            if tuple(argv[: len(prefix)]) == prefix:
                if match is None or len(prefix) > len(match):
                    match = prefix
        if match is None:
            raise CommandError(argv, None, "No such file or directory")
        response = self._responses[match]
        if isinstance(response, Exception):
            raise response
        return response

    def succeeds(self, args: Sequence[str]) -> bool:
        try:
            self.run(args)
        except CommandError:
            return False
        return True

    def argvs(self) -> list[list[str]]:
        return [argv for argv, _ in self.calls]

    def programs(self) -> list[str]:
        """The first three words of each call, e.g. ``"aws sts get-session-token"``."""
        return [" ".join(argv[:3]) for argv, _ in self.calls]


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


# ---------------------------------------------------------------------------
# Fake UI
# ---------------------------------------------------------------------------


class _FakeStatus:
    def __init__(self, log: list[str]) -> None:
        self._log = log

    def update(self, status: str) -> None:
        self._log.append(status)


class FakeUI(SelectionUI):
    """Scripted :class:`~awslogin.ui.SelectionUI`.

    ``selections`` are consumed in order by :meth:`select`; each entry is
    the *value* to return, or a callable taking the choices. ``codes`` are
    consumed by :meth:`ask_mfa_code`. An exception instance in either list
    is raised instead, which is how tests simulate Ctrl-C.
    """

    def __init__(
        self,
        selections: Optional[list[Any]] = None,
        codes: Optional[list[Any]] = None,
    ) -> None:
        self.selections = list(selections or [])
        self.codes = list(codes or [])
        self.titles: list[str] = []
        self.presented: list[list[Choice]] = []
        self.notices: list[str] = []
        self.statuses: list[str] = []
        self.outcomes: list[tuple[Optional[AuthFlowResult], Optional[AwsLoginError]]] = []

    def select(self, title: str, choices: Sequence[Choice], default: int = 0) -> Any:
        self.titles.append(title)
        self.presented.append(list(choices))
        answer = self.selections.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        if callable(answer):
            return answer(choices)
        return answer

    def ask_mfa_code(self, notice: str = "") -> str:
        self.notices.append(notice)
        answer = self.codes.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    @contextlib.contextmanager
    def status(self, message: str):
        self.statuses.append(message)
        yield _FakeStatus(self.statuses)

    def show_outcome(
        self,
        result: Optional[AuthFlowResult],
        error: Optional[AwsLoginError],
    ) -> None:
        self.outcomes.append((result, error))


@pytest.fixture
def fake_ui() -> FakeUI:
    return FakeUI()


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


# ---------------------------------------------------------------------------
# Factories for helpers that take arguments
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_credentials() -> str:
    """The literal text of the sample credentials file."""
    return SAMPLE_CREDENTIALS


@pytest.fixture
def sts_body():
    """Factory building STS JSON responses (see :func:`sts_payload`)."""
    return sts_payload


@pytest.fixture
def make_ui():
    """Factory building a scripted :class:`FakeUI`."""
    return FakeUI
