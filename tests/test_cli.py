from __future__ import annotations

import json

from streamchaos_cli import cli


def test_up_dry_run(capsys):
    code = cli.main(["up", "--dry-run", "--port", "4000"])
    assert code == 0
    output = capsys.readouterr().out
    assert "local_adapter.chaos_config_service:app" in output
    assert "--port 4000" in output


def test_configs_list_prints_rows(monkeypatch, capsys):
    calls = []

    def fake_request(method, url, payload=None, timeout=30):
        calls.append((method, url))
        return {
            "configs": [
                {
                    "name": "demo",
                    "protocol": "hls",
                    "redirectUrl": "http://localhost:3001/redirect/demo.m3u8",
                }
            ]
        }

    monkeypatch.setattr(cli, "_request_json", fake_request)
    code = cli.main(["configs", "list", "--url", "http://svc:3001/"])
    assert code == 0
    assert calls == [("GET", "http://svc:3001/api/config")]
    assert capsys.readouterr().out.strip() == (
        "demo\thls\thttp://localhost:3001/redirect/demo.m3u8"
    )


def test_configs_save_posts_file(monkeypatch, tmp_path, config_payload):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config_payload()), encoding="utf-8")
    captured = {}

    def fake_request(method, url, payload=None, timeout=30):
        captured.update(method=method, url=url, payload=payload)
        return {"success": True}

    monkeypatch.setattr(cli, "_request_json", fake_request)
    code = cli.main(["configs", "save", "--file", str(path), "--name", "renamed"])
    assert code == 0
    assert captured["method"] == "POST"
    assert captured["url"].endswith("/api/config")
    assert captured["payload"]["name"] == "renamed"


def test_configs_delete_reports_http_error(monkeypatch, capsys):
    def fake_request(method, url, payload=None, timeout=30):
        raise RuntimeError("HTTP 404 Configuration 'demo' (hls) not found")

    monkeypatch.setattr(cli, "_request_json", fake_request)
    code = cli.main(["configs", "delete", "demo", "hls"])
    assert code == 1
    assert "HTTP 404" in capsys.readouterr().err


def test_encode_prints_proxy_url(tmp_path, capsys, config_payload):
    path = tmp_path / "config.json"
    payload = config_payload(
        timeouts=[{"sq": 4}],
        statusCodes=[{"br": 2500000, "code": 500}],
    )
    path.write_text(json.dumps(payload), encoding="utf-8")

    code = cli.main(
        ["encode", "--file", str(path), "--instance-url", "http://proxy:8080/"]
    )
    assert code == 0
    assert capsys.readouterr().out.strip() == (
        "http://proxy:8080/api/v2/manifests/hls/proxy-master.m3u8"
        "?url=https://origin.example.com/live/master.m3u8"
        "&delay=[{i:*,ms:1000}]"
        "&statusCode=[{br:2500000,code:500}]"
        "&timeout=[{sq:4}]"
    )


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 2
