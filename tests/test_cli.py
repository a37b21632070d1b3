"""Tests for the wesabe-request command line.

Tests cover:
- Argument parsing and validation
- Flag / config file / environment precedence
- Exit codes for each outcome and for configuration/transport errors
"""

from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from wesabe.cli import (
    EXIT_ERROR,
    EXIT_NOT_FOUND,
    EXIT_OK,
    EXIT_REDIRECT,
    EXIT_REQUEST_FAILED,
    EXIT_UNAUTHORIZED,
    main,
    parse_args,
    report_outcome,
)
from wesabe.models import RequestFailed, Success

from tests.conftest import basic_auth_header


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep the real ~/.wesabe config, env credentials and log handlers out of tests."""
    monkeypatch.delenv("WESABE_USERNAME", raising=False)
    monkeypatch.delenv("WESABE_PASSWORD", raising=False)
    with patch("wesabe.cli.default_config_path", return_value=tmp_path / "absent.yaml"), \
         patch("wesabe.cli.setup_logging"):
        yield


HTTP_ARGS = ["--base-url", "http://api.test", "-u", "jo", "-p", "secret"]


class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args(["/accounts.xml"])

        assert args.url == "/accounts.xml"
        assert args.method == "GET"
        assert args.config is None
        assert args.timeout is None
        assert args.verbose is False

    def test_method_upper_cased(self) -> None:
        assert parse_args(["/x", "-X", "post"]).method == "POST"

    def test_unknown_method_rejected(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["/x", "-X", "fetch"])

    @pytest.mark.parametrize("value", ["0", "-3", "soon"])
    def test_timeout_must_be_positive_number(self, value: str) -> None:
        with pytest.raises(SystemExit):
            parse_args(["/x", "--timeout", value])


class TestExitCodes:
    def test_success_writes_body(self, fake_api, capsys: pytest.CaptureFixture) -> None:
        fake_api(200, body="<accounts/>")

        assert main(["/accounts.xml", *HTTP_ARGS]) == EXIT_OK
        assert capsys.readouterr().out == "<accounts/>"

    def test_redirect(self, fake_api, capsys: pytest.CaptureFixture) -> None:
        fake_api(302, headers={"Location": "/login"})

        assert main(["/accounts.xml", *HTTP_ARGS]) == EXIT_REDIRECT
        assert "http://api.test/login" in capsys.readouterr().err

    def test_unauthorized(self, fake_api) -> None:
        fake_api(401)
        assert main(["/accounts.xml", *HTTP_ARGS]) == EXIT_UNAUTHORIZED

    def test_not_found(self, fake_api) -> None:
        fake_api(404)
        assert main(["/accounts.xml", *HTTP_ARGS]) == EXIT_NOT_FOUND

    def test_request_failed_prints_message(self, fake_api, capsys: pytest.CaptureFixture) -> None:
        fake_api(500, body="<error><message>Try again later</message></error>")

        assert main(["/accounts.xml", *HTTP_ARGS]) == EXIT_REQUEST_FAILED
        assert "Request failed (500): Try again later" in capsys.readouterr().err

    def test_missing_credentials(self, fake_api, capsys: pytest.CaptureFixture) -> None:
        api = fake_api(200)

        assert main(["/accounts.xml", "--base-url", "http://api.test"]) == EXIT_ERROR
        assert "Error:" in capsys.readouterr().err
        assert api.requests == []

    def test_malformed_proxy(self, fake_api, capsys: pytest.CaptureFixture) -> None:
        api = fake_api(200)

        assert main(["/accounts.xml", *HTTP_ARGS, "--proxy", "proxy.local:3128"]) == EXIT_ERROR
        assert "Error:" in capsys.readouterr().err
        assert api.requests == []

    def test_malformed_proxy_from_config_file(
        self, tmp_path: Path, fake_api, capsys: pytest.CaptureFixture
    ) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("proxy: proxy.local:3128\n")
        api = fake_api(200)

        assert main(["/accounts.xml", *HTTP_ARGS, "--config", str(config)]) == EXIT_ERROR
        assert "proxy" in capsys.readouterr().err
        assert api.requests == []

    def test_transport_error(self, fake_api, capsys: pytest.CaptureFixture) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        fake_api(handler=handler)

        assert main(["/accounts.xml", *HTTP_ARGS]) == EXIT_ERROR
        assert "connection broken" in capsys.readouterr().err


class TestConfigPrecedence:
    def test_config_file_values(self, tmp_path: Path, fake_api) -> None:
        config = tmp_path / "wesabe.yaml"
        config.write_text("base_url: http://api.test\nusername: cfg\npassword: cfgpass\n")
        api = fake_api(200, body="ok")

        assert main(["/accounts.xml", "--config", str(config)]) == EXIT_OK
        assert str(api.last_request.url) == "http://api.test/accounts.xml"
        assert api.last_request.headers["authorization"] == basic_auth_header("cfg", "cfgpass")

    def test_flags_override_config_file(self, tmp_path: Path, fake_api) -> None:
        config = tmp_path / "wesabe.yaml"
        config.write_text("base_url: http://config.test\nusername: cfg\npassword: cfgpass\n")
        api = fake_api(200, body="ok")

        assert main(["/accounts.xml", "--config", str(config), *HTTP_ARGS]) == EXIT_OK
        assert str(api.last_request.url) == "http://api.test/accounts.xml"
        assert api.last_request.headers["authorization"] == basic_auth_header("jo", "secret")

    def test_env_credentials(self, fake_api, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WESABE_USERNAME", "envuser")
        monkeypatch.setenv("WESABE_PASSWORD", "envpass")
        api = fake_api(200, body="ok")

        assert main(["/accounts.xml", "--base-url", "http://api.test"]) == EXIT_OK
        assert api.last_request.headers["authorization"] == basic_auth_header("envuser", "envpass")

    def test_missing_config_file(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        assert main(["/accounts.xml", "--config", str(tmp_path / "nope.yaml")]) == EXIT_ERROR
        assert "Config file not found" in capsys.readouterr().err

    def test_method_and_data(self, fake_api) -> None:
        api = fake_api(201, body="created")

        assert main(["/uploads", *HTTP_ARGS, "-X", "POST", "-d", "<upload/>"]) == EXIT_OK
        assert api.last_request.method == "POST"
        assert api.last_request.content == b"<upload/>"


class TestReportOutcome:
    def test_request_failed(self, capsys: pytest.CaptureFixture) -> None:
        outcome = RequestFailed(status_code=503, body="Down for maintenance")

        assert report_outcome(outcome) == EXIT_REQUEST_FAILED
        assert "Request failed (503): Down for maintenance" in capsys.readouterr().err

    def test_success(self, capsys: pytest.CaptureFixture) -> None:
        assert report_outcome(Success(body="<accounts/>")) == EXIT_OK
        assert capsys.readouterr().out == "<accounts/>"

    def test_unknown_outcome_raises_type_error(self) -> None:
        """Not silently mapped to an exit code, even when asserts are stripped with -O."""
        with pytest.raises(TypeError, match="Unknown outcome"):
            report_outcome(object())
