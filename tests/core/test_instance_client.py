from __future__ import annotations

import subprocess

import pytest

from streamchaos_core.errors import AuthError, CollaboratorError
from streamchaos_core.instances import (
    ChaosProxyInstance,
    OscInstanceClient,
    parse_create_output,
    parse_describe_output,
    parse_list_output,
)
from streamchaos_core.instances import client as client_module

CREATE_OUTPUT = (
    "Instance created:\n"
    "[1] {\n"
    "[1]   name: \x1b[32m'demo'\x1b[39m,\n"
    "[1]   url: \x1b[32m'https://demo.eyevinn-chaos-stream-proxy.auto.prod.osaas.io'"
    "\x1b[39m,\n"
    "[1]   statefulmode: \x1b[33mtrue\x1b[39m\n"
    "[1] }\n"
)


class _Recorder:
    def __init__(self, outputs: dict[str, tuple[int, str, str]]) -> None:
        self.outputs = outputs
        self.calls: list[dict[str, object]] = []

    def __call__(self, cmd, **kwargs):
        self.calls.append({"cmd": cmd, **kwargs})
        code, stdout, stderr = self.outputs.get(cmd[1], (0, "", ""))
        if cmd[1] == "describe":
            code, stdout, stderr = self.outputs.get(
                f"describe:{cmd[3]}", (0, "", "")
            )
        return subprocess.CompletedProcess(cmd, code, stdout, stderr)


def _client(timeout: int = 120) -> OscInstanceClient:
    client = OscInstanceClient(timeout_seconds=timeout)
    client.set_access_token("token-1")
    return client


@pytest.mark.core
def test_parse_list_output_skips_headers():
    output = "NAME\n──────\n demo \n\nother\n"
    assert parse_list_output(output) == ["demo", "other"]
    assert parse_list_output("") == []


@pytest.mark.core
def test_parse_create_output_strips_ansi():
    instance = parse_create_output(CREATE_OUTPUT, stateful_mode=False)
    assert instance == ChaosProxyInstance(
        name="demo",
        url="https://demo.eyevinn-chaos-stream-proxy.auto.prod.osaas.io",
        stateful_mode=False,
    )
    with pytest.raises(CollaboratorError):
        parse_create_output("Instance created:\n{}", stateful_mode=True)


@pytest.mark.core
def test_parse_describe_output():
    details = parse_describe_output(
        "name: demo\nurl: https://demo.example.com\nstatefulmode: true\n"
        "status: running\n"
    )
    assert details.name == "demo"
    assert details.url == "https://demo.example.com"
    assert details.stateful_mode is True
    assert details.status == "running"
    assert parse_describe_output("nothing useful") is None


@pytest.mark.core
def test_commands_require_token():
    client = OscInstanceClient()
    with pytest.raises(AuthError):
        client.list_instances()
    client.set_access_token("")
    assert client.access_token is None


@pytest.mark.core
def test_create_instance_runs_cli(monkeypatch):
    recorder = _Recorder({"create": (0, CREATE_OUTPUT, "")})
    monkeypatch.setattr(client_module.subprocess, "run", recorder)

    instance = _client(timeout=90).create_instance("demo", True)

    assert instance.name == "demo"
    assert instance.stateful_mode is True
    call = recorder.calls[0]
    assert call["cmd"] == [
        "osc",
        "create",
        "eyevinn-chaos-stream-proxy",
        "demo",
        "-o",
        "STATEFUL=true",
    ]
    assert call["timeout"] == 90
    assert call["env"]["OSC_ACCESS_TOKEN"] == "token-1"


@pytest.mark.core
def test_list_instances_falls_back_when_describe_is_empty(monkeypatch):
    recorder = _Recorder(
        {
            "list": (0, "NAME\nalpha\nbeta\n", ""),
            "describe:alpha": (
                0,
                "name: alpha\nurl: https://alpha.example.com\nstatefulmode: true\n",
                "",
            ),
            "describe:beta": (0, "", ""),
        }
    )
    monkeypatch.setattr(client_module.subprocess, "run", recorder)

    instances = _client().list_instances()

    assert instances == [
        ChaosProxyInstance("alpha", "https://alpha.example.com", True),
        ChaosProxyInstance("beta", "https://beta.osc.eyevinn.technology", False),
    ]


@pytest.mark.core
@pytest.mark.parametrize(
    ("code", "stdout", "stderr", "expected"),
    [
        (1, "", "boom", "boom"),
        (0, "Authorization token is invalid", "", "Authorization token is invalid"),
        (0, "Error: no such instance", "", "Error: no such instance"),
    ],
)
def test_cli_failures_keep_message(monkeypatch, code, stdout, stderr, expected):
    recorder = _Recorder({"remove": (code, stdout, stderr)})
    monkeypatch.setattr(client_module.subprocess, "run", recorder)
    with pytest.raises(CollaboratorError) as exc_info:
        _client().delete_instance("demo")
    assert expected in exc_info.value.message


@pytest.mark.core
def test_cli_timeout(monkeypatch):
    def slow(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(client_module.subprocess, "run", slow)
    with pytest.raises(CollaboratorError, match="timed out after 5 seconds"):
        _client(timeout=5).describe_instance("demo")
