from __future__ import annotations

import os
import re
import subprocess

from streamchaos_core.errors import AuthError, CollaboratorError
from streamchaos_core.instances.types import ChaosProxyInstance, InstanceDetails
from streamchaos_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SERVICE_ID = "eyevinn-chaos-stream-proxy"
DEFAULT_TIMEOUT_SECONDS = 120

_ANSI_PATTERN = re.compile(r"\x1b\[\d+m")
_NAME_PATTERN = re.compile(r"name:\s*'([^']+)'")
_URL_PATTERN = re.compile(r"url:\s*'(https://[^']+)'")
_STATEFUL_PATTERN = re.compile(r"statefulmode:\s*(true|false)")

_ERROR_MARKERS: tuple[str, ...] = (
    "Authorization token is invalid",
    "token is malformed",
    "token is expired",
    "Unauthorized",
)


def fallback_instance_url(name: str) -> str:
    return f"https://{name}.osc.eyevinn.technology"


def parse_list_output(output: str) -> list[str]:
    names = []
    for raw in output.splitlines():
        line = raw.strip()
        if not line or "─" in line or "name" in line.lower():
            continue
        names.append(line)
    return names


def parse_create_output(output: str, *, stateful_mode: bool) -> ChaosProxyInstance:
    cleaned = _ANSI_PATTERN.sub("", output)
    name_match = _NAME_PATTERN.search(cleaned)
    url_match = _URL_PATTERN.search(cleaned)
    if not name_match or not url_match:
        raise CollaboratorError("Failed to parse instance creation response")
    # The CLI echoes statefulmode: true regardless of the option sent.
    return ChaosProxyInstance(
        name=name_match.group(1),
        url=url_match.group(1),
        stateful_mode=stateful_mode,
    )


def parse_describe_output(output: str) -> InstanceDetails | None:
    fields: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if not sep or not key.strip():
            continue
        fields[key.strip()] = value.strip()
    name = fields.get("name")
    if not name:
        return None
    return InstanceDetails(
        name=name,
        url=fields.get("url") or None,
        stateful_mode=fields.get("statefulmode") == "true",
        status=fields.get("status") or None,
    )


class OscInstanceClient:
    """Manages chaos stream-proxy instances through the ``osc`` CLI."""

    def __init__(
        self,
        *,
        binary: str = "osc",
        service_id: str = DEFAULT_SERVICE_ID,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._binary = binary
        self._service_id = service_id
        self._timeout_seconds = timeout_seconds
        self._access_token: str | None = None

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def set_access_token(self, token: str | None) -> None:
        self._access_token = token or None

    def list_instances(self) -> list[ChaosProxyInstance]:
        output = self._run(["list", self._service_id])
        instances: list[ChaosProxyInstance] = []
        for name in parse_list_output(output):
            try:
                details = self.describe_instance(name)
            except CollaboratorError as exc:
                logger.warning(
                    "Failed to describe instance",
                    extra={"instance_name": name, "error_message": exc.message},
                )
                details = None
            if details is None:
                instances.append(
                    ChaosProxyInstance(
                        name=name,
                        url=fallback_instance_url(name),
                        stateful_mode=False,
                    )
                )
                continue
            instances.append(
                ChaosProxyInstance(
                    name=details.name,
                    url=details.url or fallback_instance_url(name),
                    stateful_mode=details.stateful_mode,
                )
            )
        return instances

    def create_instance(self, name: str, stateful_mode: bool) -> ChaosProxyInstance:
        stateful = "true" if stateful_mode else "false"
        output = self._run(
            ["create", self._service_id, name, "-o", f"STATEFUL={stateful}"]
        )
        if "Error" in output or "Failed" in output or "error" in output:
            raise CollaboratorError(f"Failed to create instance: {output.strip()}")
        if "Instance created:" not in output:
            raise CollaboratorError(f"Unexpected output: {output.strip()}")
        instance = parse_create_output(output, stateful_mode=stateful_mode)
        logger.info("Instance created", extra={"instance_name": instance.name})
        return instance

    def delete_instance(self, name: str) -> None:
        self._run(["remove", self._service_id, name])
        logger.info("Instance deleted", extra={"instance_name": name})

    def describe_instance(self, name: str) -> InstanceDetails | None:
        output = self._run(["describe", self._service_id, name])
        return parse_describe_output(output)

    def _run(self, args: list[str]) -> str:
        if not self._access_token:
            raise AuthError(
                "OSC access token not set. Please configure your token first."
            )
        env = dict(os.environ)
        env["OSC_ACCESS_TOKEN"] = self._access_token
        cmd = [self._binary, *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                env=env,
                timeout=self._timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise CollaboratorError(
                f"OSC CLI command timed out after {self._timeout_seconds} seconds"
            ) from exc
        except OSError as exc:
            raise CollaboratorError(f"OSC CLI command failed: {exc}") from exc

        stdout = result.stdout or ""
        if result.returncode != 0:
            message = (result.stderr or stdout).strip()
            logger.error(
                "OSC CLI command failed",
                extra={"status": result.returncode, "error_message": message},
            )
            raise CollaboratorError(f"OSC CLI command failed: {message}")
        if result.stderr and "Debugger" not in result.stderr:
            logger.warning(
                "OSC CLI wrote to stderr",
                extra={"error_message": result.stderr.strip()},
            )
        if any(marker in stdout for marker in _ERROR_MARKERS) or (
            "error:" in stdout.lower()
        ):
            raise CollaboratorError(stdout.strip())
        return stdout
