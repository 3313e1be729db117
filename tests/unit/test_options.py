"""
Unit tests for option resolution (environment, keywords, --oml-* arguments).
"""

import argparse
from datetime import datetime, timedelta, timezone

import pytest

from oml_client.config import OMLSettings
from oml_client.errors import ConfigurationError
from oml_client.options import InitOptions, resolve_options


def test_keywords_only():
    opts, _, rest = resolve_options(
        [], domain="lab", node_id="n1", app_name="monitor", collect="tcp:host"
    )
    assert opts == InitOptions(domain="lab", node_id="n1", app_name="monitor", collect="tcp:host")
    assert rest == []


def test_environment_overrides_keywords(monkeypatch):
    monkeypatch.setenv("OML_DOMAIN", "env-lab")
    monkeypatch.setenv("OML_NAME", "env-node")
    monkeypatch.setenv("OML_COLLECT", "file:env.txt")

    opts, _, _ = resolve_options([], domain="lab", node_id="n1", app_name="monitor", collect="x")

    assert (opts.domain, opts.node_id, opts.collect) == ("env-lab", "env-node", "file:env.txt")


def test_oml_id_env_is_lowest_priority_node_id(monkeypatch):
    monkeypatch.setenv("OML_ID", "fallback")
    opts, _, _ = resolve_options([], app_name="monitor")
    assert opts.node_id == "fallback"

    opts, _, _ = resolve_options([], node_id="explicit", app_name="monitor")
    assert opts.node_id == "explicit"


def test_command_line_overrides_everything(monkeypatch):
    monkeypatch.setenv("OML_DOMAIN", "env-lab")
    argv = [
        "--oml-domain",
        "cli-lab",
        "--oml-id",
        "cli-node",
        "--oml-collect",
        "tcp:cli-host:4000",
        "--oml-log-level",
        "2",
        "input.csv",
    ]
    opts, _, rest = resolve_options(argv, domain="lab", node_id="n1", app_name="monitor")

    assert opts.domain == "cli-lab"
    assert opts.node_id == "cli-node"
    assert opts.collect == "tcp:cli-host:4000"
    assert opts.log_level == 2
    assert rest == ["input.csv"]


def test_deprecated_spellings_warn(log_messages):
    opts, _, _ = resolve_options(
        ["--oml-exp-id", "old-lab", "--oml-file", "out.txt"], node_id="n1", app_name="monitor"
    )
    assert opts.domain == "old-lab"
    assert opts.collect == "file:out.txt"
    assert any("--oml-exp-id is deprecated" in m for m in log_messages)
    assert any("--oml-file is deprecated" in m for m in log_messages)


def test_deprecated_env_and_keywords(monkeypatch, log_messages):
    monkeypatch.setenv("OML_EXP_ID", "old-lab")
    monkeypatch.setenv("OML_SERVER", "tcp:old-server")
    opts, _, _ = resolve_options([], node_id="n1", app_name="monitor")
    assert opts.domain == "old-lab"
    assert opts.collect == "tcp:old-server"
    assert any("OML_SERVER are deprecated" in m for m in log_messages)


def test_oml_server_argument():
    opts, _, _ = resolve_options(["--oml-server", "tcp:srv"], app_name="monitor")
    assert opts.collect == "tcp:srv"


def test_url_is_rejected(monkeypatch):
    with pytest.raises(ConfigurationError, match="OML_COLLECT"):
        resolve_options([], url="tcp:host")
    monkeypatch.setenv("OML_URL", "tcp:host")
    with pytest.raises(ConfigurationError):
        resolve_options([])


def test_noop_from_flag_keyword_and_env(monkeypatch):
    assert resolve_options(["--oml-noop"])[0].noop
    assert resolve_options([], noop=True)[0].noop
    monkeypatch.setenv("OML_NOOP", "true")
    assert resolve_options([])[0].noop


def test_explicit_settings_object():
    settings = OMLSettings(OML_DOMAIN="given", OML_LOG_LEVEL=1)
    opts, _, _ = resolve_options([], settings=settings, app_name="monitor")
    assert opts.domain == "given"
    assert opts.log_level == 1


def test_application_parser_is_extended():
    parser = argparse.ArgumentParser(prog="monitor", add_help=False)
    parser.add_argument("--interval", type=float, default=1.0)

    opts, ns, rest = resolve_options(
        ["--interval", "0.5", "--oml-id", "n1", "extra"], parser=parser, app_name="monitor"
    )

    assert ns.interval == 0.5
    assert opts.node_id == "n1"
    assert rest == ["extra"]


def test_require_reports_missing_values():
    with pytest.raises(ConfigurationError, match="Missing values"):
        InitOptions(domain="lab", app_name="monitor").require()
    InitOptions(domain="lab", node_id="n1", app_name="monitor").require()


def test_default_collect_uri_names_a_local_file():
    opts = InitOptions(domain="lab", node_id="n1", app_name="monitor")
    now = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone(timedelta(hours=1)))
    assert opts.collect_uri(now) == "file:monitor_n1_lab_2024-03-05t14.07.09+0100"


def test_configured_collect_uri_wins():
    opts = InitOptions(domain="lab", node_id="n1", app_name="monitor", collect="tcp:host")
    assert opts.collect_uri() == "tcp:host"
