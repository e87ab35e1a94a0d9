from __future__ import annotations

import re
from typing import Any, Callable, Mapping

from streamchaos_core.corruptions.types import (
    PROTOCOL_HLS,
    PROTOCOLS,
    STREAM_TYPES,
    TARGET_KEYS,
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
from streamchaos_core.errors import InvalidProtocolError, ValidationError

NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

FieldErrors = list[dict[str, Any]]


def validate_name(name: object) -> str:
    if not isinstance(name, str) or not NAME_PATTERN.match(name):
        raise ValidationError(
            "Configuration name must contain only letters, numbers, "
            "hyphens, and underscores",
            details=[{"field": "name", "message": "invalid name format"}],
        )
    return name


def validate_protocol(protocol: object) -> str:
    if protocol not in PROTOCOLS:
        raise InvalidProtocolError(
            'Protocol must be either "hls" or "dash"',
            details=[{"field": "protocol", "message": f"unsupported: {protocol}"}],
        )
    return str(protocol)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _error(errors: FieldErrors, field: str, message: str) -> None:
    errors.append({"field": field, "message": message})


def _int_field(
    payload: Mapping[str, object],
    key: str,
    field: str,
    errors: FieldErrors,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    value = payload.get(key)
    if value is None:
        _error(errors, f"{field}.{key}", "is required")
        return None
    if not _is_int(value):
        _error(errors, f"{field}.{key}", "must be an integer")
        return None
    if minimum is not None and value < minimum:
        _error(errors, f"{field}.{key}", f"must be >= {minimum}")
        return None
    if maximum is not None and value > maximum:
        _error(errors, f"{field}.{key}", f"must be <= {maximum}")
        return None
    return value


def parse_target(
    payload: Mapping[str, object],
    field: str,
    errors: FieldErrors,
    *,
    allow_ladder: bool = False,
) -> Target:
    present = [key for key in TARGET_KEYS if payload.get(key) is not None]
    if not present:
        return NoTarget()
    if len(present) > 1:
        _error(
            errors,
            field,
            "at most one targeting field may be set, got " + ", ".join(present),
        )
        return NoTarget()
    key = present[0]
    if key == "i":
        if payload.get("i") == WILDCARD:
            return AllSegments()
        index = _int_field(payload, "i", field, errors, minimum=0)
        return SegmentIndex(index) if index is not None else NoTarget()
    if key == "sq":
        sequence = _int_field(payload, "sq", field, errors, minimum=0)
        return MediaSequence(sequence) if sequence is not None else NoTarget()
    if key == "rsq":
        offset = _int_field(payload, "rsq", field, errors)
        return RelativeSequence(offset) if offset is not None else NoTarget()
    if key == "br":
        bitrate = _int_field(payload, "br", field, errors, minimum=1)
        return Bitrate(bitrate) if bitrate is not None else NoTarget()
    if not allow_ladder:
        _error(errors, f"{field}.l", "ladder targeting is only valid for delays")
        return NoTarget()
    rung = _int_field(payload, "l", field, errors, minimum=0)
    return LadderRung(rung) if rung is not None else NoTarget()


def parse_delay(
    payload: Mapping[str, object], field: str, errors: FieldErrors
) -> DelayCorruption | None:
    target = parse_target(payload, field, errors, allow_ladder=True)
    ms = _int_field(payload, "ms", field, errors, minimum=0)
    if ms is None:
        return None
    return DelayCorruption(target=target, ms=ms)


def parse_status_code(
    payload: Mapping[str, object], field: str, errors: FieldErrors
) -> StatusCodeCorruption | None:
    target = parse_target(payload, field, errors)
    code = _int_field(payload, "code", field, errors, minimum=100, maximum=599)
    if code is None:
        return None
    return StatusCodeCorruption(target=target, code=code)


def parse_timeout(
    payload: Mapping[str, object], field: str, errors: FieldErrors
) -> TimeoutCorruption | None:
    return TimeoutCorruption(target=parse_target(payload, field, errors))


def parse_throttle(
    payload: Mapping[str, object], field: str, errors: FieldErrors
) -> ThrottleCorruption | None:
    target = parse_target(payload, field, errors)
    rate = _int_field(payload, "rate", field, errors, minimum=1)
    if rate is None:
        return None
    return ThrottleCorruption(target=target, rate=rate)


_Parser = Callable[[Mapping[str, object], str, FieldErrors], Any]


def _parse_list(
    items: object,
    field: str,
    parser: _Parser,
    errors: FieldErrors,
) -> tuple[Any, ...]:
    if items is None:
        return ()
    if not isinstance(items, (list, tuple)):
        _error(errors, field, "must be a list")
        return ()
    parsed = []
    for index, item in enumerate(items):
        item_field = f"{field}[{index}]"
        if not isinstance(item, Mapping):
            _error(errors, item_field, "must be an object")
            continue
        result = parser(item, item_field, errors)
        if result is not None:
            parsed.append(result)
    return tuple(parsed)


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def check_targeting_rules(
    config: ProxyConfig,
    errors: FieldErrors,
    *,
    stateful_mode: bool | None = None,
) -> None:
    if config.protocol != PROTOCOL_HLS:
        for index, delay in enumerate(config.delays):
            if isinstance(delay.target, LadderRung):
                _error(
                    errors,
                    f"delays[{index}].l",
                    "ladder targeting is only valid for HLS",
                )
    if stateful_mode is False:
        groups: tuple[tuple[str, tuple[Corruption, ...]], ...] = (
            ("delays", config.delays),
            ("statusCodes", config.status_codes),
            ("timeouts", config.timeouts),
            ("throttles", config.throttles),
        )
        for name, corruptions in groups:
            for index, corruption in enumerate(corruptions):
                if isinstance(corruption.target, RelativeSequence):
                    _error(
                        errors,
                        f"{name}[{index}].rsq",
                        "relative sequence targeting requires a stateful instance",
                    )


def parse_stored_configuration(
    payload: Mapping[str, object],
    *,
    stateful_mode: bool | None = None,
) -> StoredConfiguration:
    """Build a validated record from its camelCase wire form.

    Every problem is collected and reported together as a
    :class:`ValidationError` whose ``details`` name the offending fields.
    ``instanceUrl``, ``sourceUrl`` and ``description`` are stored with
    surrounding whitespace removed; a blank description is dropped.
    """
    errors: FieldErrors = []

    name = payload.get("name")
    if not name:
        _error(errors, "name", "is required")
    elif not isinstance(name, str) or not NAME_PATTERN.match(name):
        _error(
            errors,
            "name",
            "must contain only letters, numbers, hyphens, and underscores",
        )
    instance_url = _optional_text(payload.get("instanceUrl"))
    if not instance_url:
        _error(errors, "instanceUrl", "is required")
    source_url = _optional_text(payload.get("sourceUrl"))
    if not source_url:
        _error(errors, "sourceUrl", "is required")
    protocol = payload.get("protocol")
    if not protocol:
        _error(errors, "protocol", "is required")
    elif protocol not in PROTOCOLS:
        _error(errors, "protocol", 'must be either "hls" or "dash"')
    stream_type = payload.get("streamType") or "live"
    if stream_type not in STREAM_TYPES:
        _error(errors, "streamType", 'must be either "live" or "vod"')

    config = ProxyConfig(
        source_url=source_url,
        protocol=str(protocol),
        stream_type=str(stream_type),
        description=_optional_text(payload.get("description")),
        delays=_parse_list(payload.get("delays"), "delays", parse_delay, errors),
        status_codes=_parse_list(
            payload.get("statusCodes"), "statusCodes", parse_status_code, errors
        ),
        timeouts=_parse_list(
            payload.get("timeouts"), "timeouts", parse_timeout, errors
        ),
        throttles=_parse_list(
            payload.get("throttles"), "throttles", parse_throttle, errors
        ),
    )
    check_targeting_rules(config, errors, stateful_mode=stateful_mode)

    if errors:
        message = "; ".join(
            f"{item['field']}: {item['message']}" for item in errors
        )
        raise ValidationError(message, details=errors)

    return StoredConfiguration(
        name=str(name),
        instance_url=str(instance_url),
        config=config,
    )


def configuration_to_dict(record: StoredConfiguration) -> dict[str, object]:
    config = record.config
    payload: dict[str, object] = {
        "name": record.name,
        "instanceUrl": record.instance_url,
        "sourceUrl": config.source_url,
        "protocol": config.protocol,
        "streamType": config.stream_type,
    }
    if config.description is not None:
        payload["description"] = config.description
    payload["delays"] = [item.to_wire() for item in config.delays]
    payload["statusCodes"] = [item.to_wire() for item in config.status_codes]
    payload["timeouts"] = [item.to_wire() for item in config.timeouts]
    payload["throttles"] = [item.to_wire() for item in config.throttles]
    return payload
