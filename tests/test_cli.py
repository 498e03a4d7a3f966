# tests/test_cli.py
import json

import pytest
from click.testing import CliRunner

from srun_core import cli
from srun_core.exceptions import TransportError
from srun_core.models import OperationResult


class FakeClient:
    """替代 SrunClient，记录收到的配置并返回预设结果。"""

    results: dict = {}
    last_config = None

    def __init__(self, config):
        FakeClient.last_config = config

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def _result(self, action):
        value = self.results[action]
        if isinstance(value, Exception):
            raise value
        return value

    async def status(self):
        return await self._result("status")

    async def login(self):
        return await self._result("login")

    async def logout(self):
        return await self._result("logout")


@pytest.fixture
def runner(monkeypatch, clean_env):
    FakeClient.results = {}
    FakeClient.last_config = None
    monkeypatch.setattr(cli, "SrunClient", FakeClient)
    return CliRunner()


def _result(**data) -> OperationResult:
    return OperationResult.from_response(data)


def test_status_online(runner):
    FakeClient.results["status"] = _result(
        error="ok", online_ip="10.0.0.2", user_name="u1"
    )

    out = runner.invoke(cli.cli, ["status"])

    assert out.exit_code == 0
    assert "srun: 10.0.0.2 (u1) is online" in out.output


def test_status_offline_needs_no_credentials(runner):
    FakeClient.results["status"] = _result(error="not_online_error", client_ip="10.0.0.9")

    out = runner.invoke(cli.cli, ["status"])

    assert out.exit_code == 0
    assert "10.0.0.9 is offline" in out.output
    assert FakeClient.last_config.username == ""


def test_login_failure_is_displayed(runner):
    FakeClient.results["login"] = _result(
        error="E2911", error_msg="IP not online", online_ip="10.0.0.2"
    )

    out = runner.invoke(cli.cli, ["-u", "u1", "-p", "p1", "login"])

    assert out.exit_code == 0
    assert "failed to login, E2911 (IP not online)" in out.output


def test_login_success_with_ip_override(runner):
    FakeClient.results["login"] = _result(error="ok", online_ip="10.0.0.2", username="u1")

    out = runner.invoke(cli.cli, ["-u", "u1", "-p", "p1", "--ip", "10.0.0.2", "login"])

    assert out.exit_code == 0
    assert "10.0.0.2 (u1) logged in" in out.output
    assert FakeClient.last_config.client_ip == "10.0.0.2"


def test_login_prompts_for_missing_password(runner):
    FakeClient.results["login"] = _result(error="ok", online_ip="10.0.0.2")

    out = runner.invoke(cli.cli, ["-u", "u1", "login"], input="secret\n")

    assert out.exit_code == 0
    assert "Please enter your password" in out.output
    assert FakeClient.last_config.password == "secret"


def test_credentials_from_default_json_file(runner, clean_env):
    (clean_env / "bit-user.json").write_text('{"username": "u9", "password": "p9"}')
    FakeClient.results["logout"] = _result(error="ok", online_ip="10.0.0.2")

    out = runner.invoke(cli.cli, ["logout"])

    assert out.exit_code == 0
    assert "10.0.0.2 logged out" in out.output
    assert FakeClient.last_config.username == "u9"


def test_command_line_overrides_config_file(runner, clean_env):
    path = clean_env / "srun.toml"
    path.write_text('[srun]\nusername = "u9"\npassword = "p9"\nscheme = "hmac_md5"\n')
    FakeClient.results["login"] = _result(error="ok", online_ip="10.0.0.2")

    out = runner.invoke(cli.cli, ["-c", str(path), "-u", "u1", "login"])

    assert out.exit_code == 0
    assert FakeClient.last_config.username == "u1"
    assert FakeClient.last_config.password == "p9"
    assert FakeClient.last_config.scheme.value == "hmac_md5"


def test_verbose_prints_raw_response(runner):
    FakeClient.results["logout"] = _result(
        error="E2833", error_msg="Your IP address is not online", online_ip="10.0.0.2"
    )

    out = runner.invoke(cli.cli, ["-u", "u1", "-p", "p1", "-v", "logout"])

    assert out.exit_code == 0
    assert "failed to logout, E2833" in out.output
    payload = out.output[out.output.index("{") :]
    assert json.loads(payload)["error"] == "E2833"


def test_transport_error_exits_non_zero(runner):
    FakeClient.results["login"] = TransportError("连接失败: http://10.0.0.55")

    out = runner.invoke(cli.cli, ["-u", "u1", "-p", "p1", "login"])

    assert out.exit_code == 1
    assert "连接失败" in out.output


def test_bad_config_exits_non_zero(runner):
    out = runner.invoke(cli.cli, ["-u", "u1", "-p", "p1", "--ip", "999.1.1.1", "login"])

    assert out.exit_code == 1
    assert "IP" in out.output


def test_login_failure_shows_known_error_description(runner):
    FakeClient.results["login"] = _result(
        error="login_error", error_msg="E2553: Password is error."
    )

    out = runner.invoke(cli.cli, ["-u", "u1", "-p", "p1", "login"])

    assert out.exit_code == 0
    assert "failed to login, login_error (E2553: Password is error.) 账号或密码错误" in out.output


def test_logout_not_online_shows_description(runner):
    FakeClient.results["logout"] = _result(error="not_online_error", client_ip="10.0.0.9")

    out = runner.invoke(cli.cli, ["-u", "u1", "-p", "p1", "logout"])

    assert "failed to logout, not_online_error" in out.output
    assert "当前 IP 不在线" in out.output


def test_malformed_default_json_falls_back_to_prompt(runner, clean_env):
    (clean_env / "bit-user.json").write_text("{not json")
    FakeClient.results["login"] = _result(error="ok", online_ip="10.0.0.2")

    out = runner.invoke(cli.cli, ["login"], input="u7\np7\n")

    assert out.exit_code == 0
    assert "Please enter your campus id" in out.output
    assert FakeClient.last_config.username == "u7"
    assert FakeClient.last_config.password == "p7"


def test_malformed_explicit_config_still_fails(runner, clean_env):
    path = clean_env / "creds.json"
    path.write_text("{not json")

    out = runner.invoke(cli.cli, ["-c", str(path), "-u", "u1", "-p", "p1", "login"])

    assert out.exit_code == 1
    assert "JSON" in out.output
