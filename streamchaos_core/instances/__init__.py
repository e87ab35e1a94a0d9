from streamchaos_core.instances.client import (
    OscInstanceClient,
    parse_create_output,
    parse_describe_output,
    parse_list_output,
)
from streamchaos_core.instances.probe import probe_url, validate_probe_url
from streamchaos_core.instances.types import (
    ChaosProxyInstance,
    InstanceDetails,
    ProbeResult,
)

__all__ = [
    "ChaosProxyInstance",
    "InstanceDetails",
    "OscInstanceClient",
    "ProbeResult",
    "parse_create_output",
    "parse_describe_output",
    "parse_list_output",
    "probe_url",
    "validate_probe_url",
]
