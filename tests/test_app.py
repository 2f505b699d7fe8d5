"""CLI tests for the ``aws-login`` Typer application."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from awslogin import __version__
from awslogin.app import app, main
from awslogin.exceptions import ProfileNotFoundError
from awslogin.session import SessionPublisher

SOLO = """\
[solo]
aws_access_key_id = AKIA
aws_secret_access_key = secret
mfa_serial = arn:aws:iam::111111111111:mfa/solo
"""


@pytest.fixture()
def solo_file(isolated_env: Path) -> Path:
    path = isolated_env / "credentials"
    path.write_text(SOLO)
    return path


@pytest.fixture()
def scripted(monkeypatch: pytest.MonkeyPatch, fake_executor, make_ui):
    """Route ``login`` through a fake executor, a scripted UI and a private environ."""
    from awslogin.flow import runner as runner_module

    ui = make_ui()
    real_create_runner = runner_module.create_runner

    def create_runner(settings, store, _ui, executor=None, publisher=None):
        return real_create_runner(
            settings,
            store,
            ui,
            executor=fake_executor,
            publisher=SessionPublisher(settings.session_path, environ={}),
        )

    monkeypatch.setattr("awslogin.flow.create_runner", create_runner)
    return fake_executor, ui


class TestGlobalOptions:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_args_shows_help(self, cli_runner) -> None:
        result = cli_runner.invoke(app, [])
        assert "login" in result.output
        assert "shell-init" in result.output


class TestLogin:
    def test_success(self, cli_runner, solo_file, isolated_env, scripted, sts_body) -> None:
        executor, ui = scripted
        executor.on(["aws", "sts", "get-session-token"], sts_body())
        ui.codes = ["123456"]
        session_file = isolated_env / "session.json"

        result = cli_runner.invoke(
            app,
            ["login", "--credentials-file", str(solo_file), "--session-file", str(session_file)],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(session_file.read_text())["ProfileName"] == "solo"
        assert ui.outcomes[0][0].profile == "solo"

    def test_ecr_warning(self, cli_runner, solo_file, isolated_env, scripted, sts_body) -> None:
        executor, ui = scripted
        executor.on(["aws", "sts", "get-session-token"], sts_body())
        ui.codes = ["123456"]

        result = cli_runner.invoke(
            app,
            [
                "--no-color", "login", "--ecr",
                "--credentials-file", str(solo_file),
                "--session-file", str(isolated_env / "s.json"),
            ],
        )

        assert result.exit_code == 0
        assert "ECR login was requested but did not succeed" in result.output

    def test_invalid_driver(self, cli_runner, solo_file, scripted) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "login", "--driver", "keepass", "--credentials-file", str(solo_file)]
        )
        assert result.exit_code == 2
        assert "invalid auth driver 'keepass'" in result.output

    def test_invalid_driver_from_env(
        self, cli_runner, solo_file, scripted, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AWS_LOGIN_AUTH_DRIVER", "keepass")
        result = cli_runner.invoke(app, ["login", "--credentials-file", str(solo_file)])
        assert result.exit_code == 2

    def test_missing_credentials_file(self, cli_runner, isolated_env, scripted) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "login", "--credentials-file", str(isolated_env / "missing")]
        )
        assert result.exit_code == 4
        assert "failed to open credentials file" in result.output
        assert "--credentials-file" in result.output

    def test_exchange_failure(self, cli_runner, solo_file, isolated_env, scripted) -> None:
        executor, ui = scripted
        executor.fail(["aws", "sts"], stderr="invalid MFA one time pass code")
        ui.codes = ["123456"]

        result = cli_runner.invoke(
            app,
            [
                "login",
                "--credentials-file", str(solo_file),
                "--session-file", str(isolated_env / "s.json"),
            ],
        )

        assert result.exit_code == 3
        assert not (isolated_env / "s.json").exists()

    def test_cancelled(self, cli_runner, solo_file, scripted) -> None:
        _, ui = scripted
        ui.codes = [KeyboardInterrupt()]
        result = cli_runner.invoke(
            app, ["--no-color", "login", "--credentials-file", str(solo_file)]
        )
        assert result.exit_code == 130
        # the flow quits without an outcome; the command reports the cancellation
        assert ui.outcomes == []
        assert "Cancelled" in result.output


class TestProfiles:
    def test_plain(self, cli_runner, credentials_file) -> None:
        result = cli_runner.invoke(app, ["--plain", "profiles", "--credentials-file", str(credentials_file)])
        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines[0] == "Profile\tValid\tAssumable role\tVault key"
        assert "default\tyes\t-\tno" in lines
        assert "prd\tno\tarn:aws:iam::333333333333:role/admin\tno" in lines

    def test_json(self, cli_runner, credentials_file) -> None:
        result = cli_runner.invoke(app, ["--json", "profiles", "--credentials-file", str(credentials_file)])
        assert result.exit_code == 0
        rows = json.loads(result.output)
        assert [r["Profile"] for r in rows] == ["default", "int", "no-mfa", "prd", "staging", "dev"]
        assert rows[1]["Vault key"] == "yes"

    def test_empty_file(self, cli_runner, isolated_env) -> None:
        path = isolated_env / "empty"
        path.write_text("")
        result = cli_runner.invoke(app, ["--no-color", "profiles", "--credentials-file", str(path)])
        assert result.exit_code == 0
        assert "No profiles found" in result.output

    def test_missing_file(self, cli_runner, isolated_env) -> None:
        result = cli_runner.invoke(app, ["profiles", "--credentials-file", str(isolated_env / "nope")])
        assert result.exit_code == 4


class TestShellInit:
    def test_prints_function(self, cli_runner, isolated_env, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AWS_LOGIN_SESSION_FILE", str(isolated_env / "handoff.json"))
        result = cli_runner.invoke(app, ["shell-init"])

        assert result.exit_code == 0
        assert "aws-login() {" in result.output
        assert 'command aws-login login "$@"' in result.output
        assert str(isolated_env / "handoff.json") in result.output
        assert "jq -r '.SessionToken'" in result.output
        assert 'rm -f "$session_file"' in result.output

    def test_session_imported_only_after_success(self, cli_runner, isolated_env) -> None:
        output = cli_runner.invoke(app, ["shell-init"]).output
        guard = output.index('if [ $rc -eq 0 ] && [ -f "$session_file" ]; then')
        assert guard < output.index("export AWS_ACCESS_KEY_ID")
        assert output.index("\n    fi\n") < output.index('rm -f "$session_file"')

    def test_custom_name(self, cli_runner, isolated_env) -> None:
        result = cli_runner.invoke(app, ["shell-init", "--name", "awsl"])
        assert result.exit_code == 0
        assert "awsl() {" in result.output

    def test_invalid_name(self, cli_runner, isolated_env) -> None:
        result = cli_runner.invoke(app, ["shell-init", "--name", "rm -rf"])
        assert result.exit_code == 2


class TestMain:
    def test_domain_error_exit_code(self, monkeypatch: pytest.MonkeyPatch, isolated_env) -> None:
        def boom() -> None:
            raise ProfileNotFoundError("profile 'x' not found in credentials")

        monkeypatch.setattr("awslogin.app.app", boom)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 5

    def test_crash_log(self, monkeypatch: pytest.MonkeyPatch, isolated_env: Path) -> None:
        def boom() -> None:
            raise RuntimeError("unexpected")

        monkeypatch.setattr("awslogin.app.app", boom)
        monkeypatch.setattr("awslogin.config._is_xdg_platform", lambda: True)
        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        logs = list((isolated_env / "data" / "aws-login" / "logs").iterdir())
        assert len(logs) == 1
        assert "RuntimeError: unexpected" in logs[0].read_text()

    def test_keyboard_interrupt(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def interrupted() -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr("awslogin.app.app", interrupted)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 130
