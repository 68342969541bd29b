"""
Strapi CLI Test Suite

Two kinds of tests:
- Smoke tests run the real CLI in a subprocess (help output and --dry-run,
  neither of which touches the network)
- Command tests call the cmd_* handlers in-process against a client backed
  by a fake transport

Run with: python -m pytest tests/test_cli.py -v
"""

import argparse
import io
import json
import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

from strapi_cli import cli
from strapi_cli.core.client import APIError
from strapi_cli.core.types import FilterOperator, LogicOperator

PAGINATION = "&pagination[page]=1&pagination[pageSize]=25"

# =============================================================================
# CLI Runner
# =============================================================================


CLI_TIMEOUT = 30  # Timeout in seconds for CLI commands


@dataclass
class CLITestResult:
    """Track result of a single CLI invocation."""

    args: list[str]
    success: bool
    exit_code: int
    stdout: str
    stderr: str


def run_cli(*args: str, timeout: int = CLI_TIMEOUT) -> CLITestResult:
    """Run the CLI with given arguments and return a CLITestResult."""
    cmd = [sys.executable, "-m", "strapi_cli.cli"] + list(args)

    env = os.environ.copy()
    env["STRAPI_ENDPOINT"] = "http://cms.test/api/"

    result = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        env=env,
        timeout=timeout,
        cwd=Path(__file__).resolve().parent.parent,
    )
    return CLITestResult(
        args=list(args),
        success=result.returncode == 0,
        exit_code=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
    )


def run_command(client, argv: list[str]) -> None:
    """Parse argv and run the selected handler against ``client``."""
    args = cli.create_parser().parse_args(argv)
    args.func(client, args)


# =============================================================================
# Help Tests - All Commands Should Have Working Help
# =============================================================================


class TestHelpCommands:
    """Test that all help commands work."""

    def test_main_help(self):
        result = run_cli("--help")
        assert result.success, f"Main help failed: {result.stderr}"
        assert "Strapi CLI" in result.stdout

    @pytest.mark.parametrize(
        "command",
        ["find", "find-one", "get", "post", "put", "delete", "register", "login", "forgot-password", "download"],
    )
    def test_command_help(self, command):
        result = run_cli(command, "--help")
        assert result.success, f"{command} help failed: {result.stderr}"

    def test_no_command_prints_help(self):
        result = run_cli()
        assert result.success
        assert "Commands" in result.stdout


class TestDryRun:
    """--dry-run prints the URL without sending a request."""

    def test_find_dry_run(self):
        result = run_cli("find", "articles", "-p", "*", "--sort", "title", "--dry-run")
        assert result.success, result.stderr
        assert json.loads(result.stdout) == {
            "method": "GET",
            "url": f"http://cms.test/api/articles?populate=*&sort[0]=title{PAGINATION}",
        }

    def test_endpoint_flag_overrides_env(self):
        result = run_cli("--endpoint", "http://other.test/api/", "find-one", "articles", "7", "--dry-run")
        assert result.success, result.stderr
        assert json.loads(result.stdout)["url"] == f"http://other.test/api/articles/7?{PAGINATION}"

    def test_bad_filter_is_usage_error(self):
        result = run_cli("find", "articles", "--filter", "title:like:x", "--dry-run")
        assert result.exit_code == 2
        assert "Invalid filter" in result.stderr


# =============================================================================
# Argument Parsing
# =============================================================================


class TestParseFilter:
    """Tests for PATH:OP:VALUE parsing."""

    def test_nested_path_and_number(self):
        condition = cli.parse_filter("author.id:eq:5")
        assert condition.fields == ("author", "id")
        assert condition.operator is FilterOperator.EQUALS
        assert condition.value == 5

    def test_value_with_colons(self):
        assert cli.parse_filter("publishedAt:gt:2024-01-01T00:00:00Z").value == "2024-01-01T00:00:00Z"

    def test_list_value(self):
        assert cli.parse_filter("id:in:[1,2,3]").value == [1, 2, 3]

    def test_string_values_are_percent_encoded(self):
        assert cli.parse_filter("title:eq:hello world").value == "hello%20world"
        assert cli.parse_filter('tag:in:["a b","c"]').value == ["a%20b", "c"]

    def test_missing_value(self):
        condition = cli.parse_filter("cover:null")
        assert condition.operator is FilterOperator.IS_NULL
        assert condition.value is None

    def test_logic_operator(self):
        assert cli.parse_filter("a:eq:1", LogicOperator.OR).logic_operator is LogicOperator.OR

    @pytest.mark.parametrize("expression", ["title", ":eq:1", "title:like:x"])
    def test_invalid(self, expression):
        with pytest.raises(argparse.ArgumentTypeError) as exc:
            cli.parse_filter(expression)
        assert "Invalid filter" in str(exc.value)


class TestTableOutput:
    """Tests for the TTY table renderer."""

    def test_columns_padded_and_truncated(self, capsys):
        cli.table_output(["ID", "Name"], [["1", "a long title"], [2, "abc"]], [4, 5])
        lines = capsys.readouterr().out.splitlines()
        assert lines == ["ID    Name ", "-----------", "1     a lon", "2     abc  "]


# =============================================================================
# Command Tests
# =============================================================================


class TestQueryCommands:
    """find / find-one handlers."""

    def test_find_builds_full_query(self, client, transport, capsys):
        run_command(
            client,
            [
                "find",
                "posts",
                "-p",
                "author",
                "-p",
                "tags",
                "--or",
                "title:containsi:news",
                "-f",
                "views:gte:10",
                "--or",
                "title:containsi:blog",
                "-s",
                "title:desc",
                "--page",
                "2",
                "--page-size",
                "10",
                "--params",
                "&locale=en",
            ],
        )
        assert transport.last_url == (
            "http://cms.test/api/posts?populate[0]=author&populate[1]=tags"
            "&filters[$or][0][title][$containsi]=news"
            "&filters[views][$gte]=10"
            "&filters[$or][2][title][$containsi]=blog"
            "&sort[0]=title:desc"
            "&pagination[page]=2&pagination[pageSize]=10"
            "&locale=en"
        )
        assert json.loads(capsys.readouterr().out) == {"data": [], "meta": {}}

    def test_find_one(self, client, transport, capsys):
        transport.response = {"data": {"id": 3}, "meta": {}}
        run_command(client, ["find-one", "articles", "3", "-p", "*"])
        assert transport.last_url == f"http://cms.test/api/articles/3?populate=*{PAGINATION}"
        assert json.loads(capsys.readouterr().out)["data"] == {"id": 3}

    def test_find_dry_run_sends_nothing(self, client, transport, capsys):
        run_command(client, ["find", "articles", "--dry-run"])
        assert transport.calls == []
        assert json.loads(capsys.readouterr().out)["url"] == f"http://cms.test/api/articles?{PAGINATION}"

    def test_filter_value_is_percent_encoded(self, client, transport):
        run_command(client, ["find", "posts", "-f", "title:containsi:hello world"])
        assert transport.last_url == f"http://cms.test/api/posts?&filters[title][$containsi]=hello%20world{PAGINATION}"

    def test_non_ascii_filter_value_is_percent_encoded(self, client, transport):
        run_command(client, ["find", "posts", "-f", "title:eq:café"])
        assert "&filters[title][$eq]=caf%C3%A9&" in transport.last_url

    def test_unsendable_url_exits_with_json_error(self, capsys):
        client = cli.StrapiClient(endpoint="http://127.0.0.1:9/api/")
        with pytest.raises(SystemExit) as exc:
            run_command(client, ["find", "posts", "--params", "&locale=fr fr"])
        assert exc.value.code == 1
        assert json.loads(capsys.readouterr().out)["error"].startswith("Invalid URL")

    def test_api_error_exits(self, client, transport, capsys):
        transport.response = APIError("Not Found", status=404)
        with pytest.raises(SystemExit) as exc:
            run_command(client, ["find", "missing"])
        assert exc.value.code == 1
        assert json.loads(capsys.readouterr().out) == {"error": "Not Found", "status": 404}


class TestVerbCommands:
    """get / post / put / delete handlers."""

    def test_get(self, client, transport):
        run_command(client, ["get", "articles/1"])
        assert transport.calls == [("GET", "http://cms.test/api/articles/1", None)]

    def test_post_with_body(self, client, transport):
        run_command(client, ["post", "articles", "--body", '{"data": {"title": "Hi"}}'])
        assert transport.calls == [("POST", "http://cms.test/api/articles", {"data": {"title": "Hi"}})]

    def test_put_from_stdin(self, client, transport, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO('{"data": {"title": "Yo"}}'))
        run_command(client, ["put", "articles/1", "--body", "-"])
        assert transport.calls == [("PUT", "http://cms.test/api/articles/1", {"data": {"title": "Yo"}})]

    def test_invalid_body(self, client, transport, capsys):
        with pytest.raises(SystemExit):
            run_command(client, ["post", "articles", "--body", "{not json"])
        assert "Invalid JSON in --body" in capsys.readouterr().out
        assert transport.calls == []

    def test_delete(self, client, transport):
        run_command(client, ["delete", "articles/1"])
        assert transport.calls == [("DELETE", "http://cms.test/api/articles/1", None)]


class TestAuthCommands:
    """Auth handlers."""

    def test_register(self, client, transport):
        run_command(client, ["register", "--body", '{"username": "jane", "email": "j@x.io", "password": "pw"}'])
        assert transport.calls[0][:2] == ("POST", "http://cms.test/api/auth/local/register")

    def test_login_json(self, client, transport, capsys):
        transport.response = {"jwt": "tok", "user": {"id": 1}}
        run_command(client, ["login", "j@x.io", "pw"])
        assert json.loads(capsys.readouterr().out) == {"token": "tok", "user": {"id": 1}}

    def test_forgot_password(self, client, transport):
        run_command(client, ["forgot-password", "j@x.io"])
        assert transport.calls == [("POST", "http://cms.test/api/auth/forgot-password", {"email": "j@x.io"})]

    def test_reset_password(self, client, transport):
        run_command(client, ["reset-password", "pw", "pw", "c0de"])
        assert transport.calls[0][2] == {"password": "pw", "passwordConfirmation": "pw", "code": "c0de"}

    def test_download(self, client, opened):
        run_command(client, ["download", "/uploads/a.pdf"])
        assert opened == ["http://cms.test/uploads/a.pdf"]
