"""Tests for the clashkeys command line."""

from __future__ import annotations

import json

import httpx
import pytest
from typer.testing import CliRunner

from clashkeys import __version__
from clashkeys.app import app
from clashkeys.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFLICT,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def env(monkeypatch, credentials) -> None:
    monkeypatch.setenv("CLASHKEYS_EMAIL", credentials[0])
    monkeypatch.setenv("CLASHKEYS_PASSWORD", credentials[1])


def _invoke(runner: CliRunner, provider, *args: str):
    client = httpx.Client(transport=httpx.MockTransport(provider.handler))
    return runner.invoke(app, ["--plain", "--no-color", "--quiet", *args], obj={"http_client": client})


class TestGlobal:
    def test_version(self, runner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_config_env(self, runner, provider, monkeypatch) -> None:
        monkeypatch.setenv("CLASHKEYS_TIMEOUT", "soon")
        result = _invoke(runner, provider, "ip")
        assert result.exit_code == EXIT_GENERIC_FAILURE


class TestIp:
    def test_prints_public_ip(self, runner, provider) -> None:
        result = _invoke(runner, provider, "ip")
        assert result.exit_code == 0
        assert "1.2.3.4" in result.stdout

    def test_lookup_failure(self, runner, provider) -> None:
        provider.ip_status = 500
        result = _invoke(runner, provider, "ip")
        assert result.exit_code == EXIT_CONNECTION_ERROR


class TestKeys:
    def test_list(self, runner, provider, env) -> None:
        provider.add_key(["1.2.3.0/24"], token="abcdefghijklmnopqrstuvwxyz")
        provider.add_key(["8.8.8.8"], token="zyxwvutsrqponmlkjihgfedcba")

        result = _invoke(runner, provider, "keys", "list")

        assert result.exit_code == 0
        lines = result.stdout.strip().splitlines()
        assert lines[0] == "id\tname\tcidr_ranges\tvalid\ttoken"
        assert lines[1].split("\t")[3:] == ["yes", "abcd…wxyz"]
        assert lines[2].split("\t")[3] == "no"

    def test_list_show_tokens(self, runner, provider, env) -> None:
        provider.add_key(["1.2.3.4"], token="full-token-value-here")
        result = _invoke(runner, provider, "keys", "list", "--show-tokens")
        assert "full-token-value-here" in result.stdout

    def test_valid(self, runner, provider, env) -> None:
        provider.add_key(["1.2.3.4"], token="good")
        provider.add_key(["8.8.8.8"], token="bad")

        result = _invoke(runner, provider, "keys", "valid")
        assert result.exit_code == 0
        assert result.stdout.split() == ["good"]

    def test_valid_for_explicit_ip(self, runner, provider, env) -> None:
        provider.add_key(["8.8.8.8"], token="bad")
        result = _invoke(runner, provider, "keys", "valid", "--ip", "8.8.8.8")
        assert result.stdout.split() == ["bad"]

    def test_create(self, runner, provider, env) -> None:
        result = _invoke(runner, provider, "keys", "create")

        assert result.exit_code == 0
        assert result.stdout.strip() == provider.keys[0]["key"]

    def test_create_conflict(self, runner, provider, env) -> None:
        provider.add_key(["1.2.3.4"])
        result = _invoke(runner, provider, "keys", "create")

        assert result.exit_code == EXIT_CONFLICT
        assert len(provider.keys) == 1

    def test_ensure_reuses(self, runner, provider, env) -> None:
        provider.add_key(["1.2.3.4"], token="existing")
        result = _invoke(runner, provider, "keys", "ensure")

        assert result.exit_code == 0
        assert result.stdout.strip() == "existing"

    def test_revoke(self, runner, provider, env) -> None:
        provider.add_key(["1.2.3.4"], token="doomed")
        result = _invoke(runner, provider, "keys", "revoke", "doomed")

        assert result.exit_code == 0
        assert provider.keys == []

    def test_revoke_failure(self, runner, provider, env) -> None:
        provider.revoke_status = 404
        result = _invoke(runner, provider, "keys", "revoke", "ghost")
        assert result.exit_code == EXIT_NOT_FOUND

    def test_prune(self, runner, provider, env) -> None:
        provider.add_key(["1.2.3.4"], token="mine")
        provider.add_key(["8.8.8.8"], token="stale")

        result = _invoke(runner, provider, "keys", "prune")

        assert result.exit_code == 0
        assert [k["key"] for k in provider.keys] == ["mine"]

    def test_bad_credentials(self, runner, provider, monkeypatch, credentials) -> None:
        monkeypatch.setenv("CLASHKEYS_EMAIL", credentials[0])
        monkeypatch.setenv("CLASHKEYS_PASSWORD", "wrong")

        result = _invoke(runner, provider, "keys", "list")
        assert result.exit_code == EXIT_AUTH_FAILURE

    def test_missing_credentials(self, runner, provider) -> None:
        result = _invoke(runner, provider, "keys", "list")
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert provider.requests == []

    def test_list_as_json(self, runner, provider, env) -> None:
        provider.add_key(["1.2.3.4"], token="abcdefghijklmnopqrstuvwxyz")
        client = httpx.Client(transport=httpx.MockTransport(provider.handler))

        result = runner.invoke(app, ["--json", "--quiet", "keys", "list"], obj={"http_client": client})

        assert result.exit_code == 0
        records = json.loads(result.stdout)
        assert records[0]["valid"] == "yes"
        assert records[0]["token"] == "abcd…wxyz"


class TestTransport:
    def test_built_from_config(self, runner, provider, monkeypatch) -> None:
        seen = []

        def fake_make_http_client(config):
            seen.append(config.timeout)
            return httpx.Client(transport=httpx.MockTransport(provider.handler))

        monkeypatch.setattr("clashkeys.commands.keys.make_http_client", fake_make_http_client)
        result = runner.invoke(app, ["--plain", "--quiet", "--timeout", "7", "ip"])

        assert result.exit_code == 0
        assert "1.2.3.4" in result.stdout
        assert seen == [7.0]
