from streamchaos_core.corruptions.types import (
    DEFAULT_DELAY_MS,
    DEFAULT_STATUS_CODE,
    DEFAULT_THROTTLE_RATE,
    PROTOCOL_DASH,
    PROTOCOL_HLS,
    PROTOCOLS,
    STREAM_TYPES,
    WILDCARD,
    AllSegments,
    Bitrate,
    Corruption,
    DelayCorruption,
    LadderRung,
    MediaSequence,
    NoTarget,
    ProxyConfig,
    RelativeSequence,
    SegmentIndex,
    StatusCodeCorruption,
    StoredConfiguration,
    Target,
    ThrottleCorruption,
    TimeoutCorruption,
)
from streamchaos_core.corruptions.validation import (
    NAME_PATTERN,
    configuration_to_dict,
    parse_stored_configuration,
    parse_target,
    validate_name,
    validate_protocol,
)

__all__ = [
    "AllSegments",
    "Bitrate",
    "Corruption",
    "DEFAULT_DELAY_MS",
    "DEFAULT_STATUS_CODE",
    "DEFAULT_THROTTLE_RATE",
    "DelayCorruption",
    "LadderRung",
    "MediaSequence",
    "NAME_PATTERN",
    "NoTarget",
    "PROTOCOLS",
    "PROTOCOL_DASH",
    "PROTOCOL_HLS",
    "ProxyConfig",
    "RelativeSequence",
    "STREAM_TYPES",
    "SegmentIndex",
    "StatusCodeCorruption",
    "StoredConfiguration",
    "Target",
    "ThrottleCorruption",
    "TimeoutCorruption",
    "WILDCARD",
    "configuration_to_dict",
    "parse_stored_configuration",
    "parse_target",
    "validate_name",
    "validate_protocol",
]
