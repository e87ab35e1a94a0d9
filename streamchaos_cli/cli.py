from __future__ import annotations

import argparse
import json
import os
import subprocess
import sys
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

DEFAULT_SERVICE_URL = "http://localhost:3001"
SERVICE_TARGET = "local_adapter.chaos_config_service:app"


def _resolve_service_url(value: str | None) -> str:
    return value or os.getenv("STREAMCHAOS_URL", DEFAULT_SERVICE_URL)


def _request_json(
    method: str,
    url: str,
    payload: dict[str, Any] | None = None,
    timeout: int = 30,
) -> dict[str, Any]:
    data = None
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(
        url,
        data=data,
        method=method,
        headers={"Content-Type": "application/json"},
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read()
            if not raw:
                return {}
            return json.loads(raw.decode("utf-8"))
    except urllib.error.HTTPError as exc:
        body = exc.read().decode("utf-8", errors="ignore")
        detail: str | dict[str, Any] = body
        try:
            detail = json.loads(body)
        except json.JSONDecodeError:
            detail = body or exc.reason
        if isinstance(detail, dict) and "message" in detail:
            detail = str(detail["message"])
        raise RuntimeError(f"HTTP {exc.code} {detail}") from exc


def _print_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise RuntimeError(f"Configuration file not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise RuntimeError("Configuration file must contain a JSON object")
    return payload


def _uvicorn_cmd(host: str, port: int, log_level: str) -> list[str]:
    return [
        "uvicorn",
        SERVICE_TARGET,
        "--host",
        host,
        "--port",
        str(port),
        "--log-level",
        log_level,
    ]


def cmd_up(args: argparse.Namespace) -> int:
    cmd = _uvicorn_cmd(args.host, args.port, args.log_level)
    if args.dry_run:
        print(" ".join(cmd))
        return 0
    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        return 0


def cmd_status(args: argparse.Namespace) -> int:
    base = _resolve_service_url(args.url).rstrip("/")
    _print_json(_request_json("GET", f"{base}/health"))
    return 0


def cmd_configs_list(args: argparse.Namespace) -> int:
    base = _resolve_service_url(args.url).rstrip("/")
    response = _request_json("GET", f"{base}/api/config")
    if args.json:
        _print_json(response)
        return 0
    for item in response.get("configs", []):
        print(f"{item['name']}\t{item['protocol']}\t{item.get('redirectUrl', '')}")
    return 0


def cmd_configs_get(args: argparse.Namespace) -> int:
    base = _resolve_service_url(args.url).rstrip("/")
    _print_json(
        _request_json("GET", f"{base}/api/config/{args.name}/{args.protocol}")
    )
    return 0


def cmd_configs_save(args: argparse.Namespace) -> int:
    base = _resolve_service_url(args.url).rstrip("/")
    payload = _read_config_file(Path(args.file))
    if args.name:
        payload["name"] = args.name
    _print_json(_request_json("POST", f"{base}/api/config", payload=payload))
    return 0


def cmd_configs_delete(args: argparse.Namespace) -> int:
    base = _resolve_service_url(args.url).rstrip("/")
    _print_json(
        _request_json("DELETE", f"{base}/api/config/{args.name}/{args.protocol}")
    )
    return 0


def cmd_encode(args: argparse.Namespace) -> int:
    from streamchaos_core.corruptions import parse_stored_configuration
    from streamchaos_core.urls import build_proxy_url

    payload = _read_config_file(Path(args.file))
    payload.setdefault("name", "adhoc")
    if args.instance_url:
        payload["instanceUrl"] = args.instance_url
    record = parse_stored_configuration(payload)
    url = build_proxy_url(record.instance_url, record.config)
    if url is None:
        raise RuntimeError("Configuration has no source URL")
    print(url)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="streamchaos")
    subparsers = parser.add_subparsers(dest="command")

    up_parser = subparsers.add_parser("up", help="Run the configuration service")
    up_parser.add_argument("--host", default="0.0.0.0")
    up_parser.add_argument("--port", type=int, default=3001)
    up_parser.add_argument("--log-level", default="info")
    up_parser.add_argument("--dry-run", action="store_true", help="Print command only")
    up_parser.set_defaults(func=cmd_up)

    status_parser = subparsers.add_parser("status", help="Check service health")
    status_parser.add_argument("--url")
    status_parser.set_defaults(func=cmd_status)

    configs_parser = subparsers.add_parser("configs", help="Manage configurations")
    configs_sub = configs_parser.add_subparsers(dest="configs_command")

    list_parser = configs_sub.add_parser("list", help="List configurations")
    list_parser.add_argument("--url")
    list_parser.add_argument("--json", action="store_true")
    list_parser.set_defaults(func=cmd_configs_list)

    get_parser = configs_sub.add_parser("get", help="Show one configuration")
    get_parser.add_argument("name")
    get_parser.add_argument("protocol", choices=["hls", "dash"])
    get_parser.add_argument("--url")
    get_parser.set_defaults(func=cmd_configs_get)

    save_parser = configs_sub.add_parser("save", help="Save from a JSON file")
    save_parser.add_argument("--file", required=True)
    save_parser.add_argument("--name")
    save_parser.add_argument("--url")
    save_parser.set_defaults(func=cmd_configs_save)

    delete_parser = configs_sub.add_parser("delete", help="Delete a configuration")
    delete_parser.add_argument("name")
    delete_parser.add_argument("protocol", choices=["hls", "dash"])
    delete_parser.add_argument("--url")
    delete_parser.set_defaults(func=cmd_configs_delete)

    encode_parser = subparsers.add_parser(
        "encode", help="Print the proxy URL for a configuration file"
    )
    encode_parser.add_argument("--file", required=True)
    encode_parser.add_argument("--instance-url")
    encode_parser.set_defaults(func=cmd_encode)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 2
    try:
        return args.func(args)
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
