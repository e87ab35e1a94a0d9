from __future__ import annotations

import pytest

from streamchaos_core.corruptions import (
    AllSegments,
    Bitrate,
    DelayCorruption,
    LadderRung,
    MediaSequence,
    NoTarget,
    RelativeSequence,
    SegmentIndex,
    StatusCodeCorruption,
    ThrottleCorruption,
    TimeoutCorruption,
    configuration_to_dict,
    parse_stored_configuration,
    parse_target,
    validate_name,
    validate_protocol,
)
from streamchaos_core.errors import InvalidProtocolError, ValidationError


@pytest.mark.core
def test_new_descriptor_defaults():
    assert DelayCorruption() == DelayCorruption(target=NoTarget(), ms=1000)
    assert StatusCodeCorruption().code == 404
    assert ThrottleCorruption().rate == 100000
    assert TimeoutCorruption().to_wire() == {}


@pytest.mark.core
@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({}, NoTarget()),
        ({"i": "*"}, AllSegments()),
        ({"i": 0}, SegmentIndex(0)),
        ({"sq": 42}, MediaSequence(42)),
        ({"rsq": -2}, RelativeSequence(-2)),
        ({"br": 2000000}, Bitrate(2000000)),
        ({"i": None, "sq": 7}, MediaSequence(7)),
    ],
)
def test_parse_target_modes(payload, expected):
    errors: list[dict[str, object]] = []
    assert parse_target(payload, "delays[0]", errors) == expected
    assert errors == []


@pytest.mark.core
def test_parse_target_ladder_only_when_allowed():
    errors: list[dict[str, object]] = []
    assert parse_target({"l": 2}, "delays[0]", errors, allow_ladder=True) == (
        LadderRung(2)
    )
    assert errors == []

    parse_target({"l": 2}, "timeouts[0]", errors)
    assert errors[0]["field"] == "timeouts[0].l"


@pytest.mark.core
def test_parse_target_rejects_two_modes():
    errors: list[dict[str, object]] = []
    assert parse_target({"i": 1, "br": 500}, "delays[0]", errors) == NoTarget()
    assert errors[0]["field"] == "delays[0]"
    assert "i, br" in str(errors[0]["message"])


@pytest.mark.core
@pytest.mark.parametrize(
    "payload",
    [{"i": -1}, {"i": "3"}, {"i": True}, {"sq": -5}, {"br": 0}, {"i": "all"}],
)
def test_parse_target_rejects_bad_values(payload):
    errors: list[dict[str, object]] = []
    parse_target(payload, "delays[0]", errors)
    assert errors


@pytest.mark.core
def test_wire_form_per_variant():
    assert DelayCorruption(AllSegments(), 1000).to_wire() == {"i": "*", "ms": 1000}
    assert StatusCodeCorruption(SegmentIndex(3), 503).to_wire() == {
        "i": 3,
        "code": 503,
    }
    assert TimeoutCorruption(Bitrate(2000000)).to_wire() == {"br": 2000000}
    assert ThrottleCorruption(MediaSequence(10), 5000).to_wire() == {
        "sq": 10,
        "rate": 5000,
    }
    assert DelayCorruption(LadderRung(1), 250).to_wire() == {"l": 1, "ms": 250}


@pytest.mark.core
def test_parse_stored_configuration_full(config_payload):
    record = parse_stored_configuration(
        config_payload(
            description="  origin flaps  ",
            statusCodes=[{"sq": 100, "code": 500}],
            timeouts=[{"br": 2000000}],
            throttles=[{"rate": 50000}],
        )
    )
    assert record.key == ("live-delay", "hls")
    assert record.config.description == "origin flaps"
    assert record.config.delays == (DelayCorruption(AllSegments(), 1000),)
    assert record.config.status_codes == (
        StatusCodeCorruption(MediaSequence(100), 500),
    )
    assert record.config.timeouts == (TimeoutCorruption(Bitrate(2000000)),)
    assert record.config.throttles == (ThrottleCorruption(NoTarget(), 50000),)


@pytest.mark.core
def test_parse_defaults_stream_type_and_empty_lists(config_payload):
    payload = config_payload()
    for key in ("streamType", "delays", "statusCodes", "timeouts", "throttles"):
        payload.pop(key)
    record = parse_stored_configuration(payload)
    assert record.config.stream_type == "live"
    assert record.config.delays == ()
    assert record.config.throttles == ()


@pytest.mark.core
def test_parse_reports_every_field_error(config_payload):
    payload = config_payload(
        name="bad name!",
        sourceUrl="",
        protocol="rtmp",
        delays=[{"i": 1, "ms": -5}],
        statusCodes=[{"i": "*"}],
        throttles=[{"rate": 0}],
    )
    with pytest.raises(ValidationError) as exc_info:
        parse_stored_configuration(payload)
    fields = exc_info.value.fields
    assert "name" in fields
    assert "sourceUrl" in fields
    assert "protocol" in fields
    assert "delays[0].ms" in fields
    assert "statusCodes[0].code" in fields
    assert "throttles[0].rate" in fields


@pytest.mark.core
def test_status_code_must_be_http_status(config_payload):
    with pytest.raises(ValidationError) as exc_info:
        parse_stored_configuration(config_payload(statusCodes=[{"code": 42}]))
    assert exc_info.value.fields == ["statusCodes[0].code"]


@pytest.mark.core
def test_ladder_requires_hls(config_payload):
    parse_stored_configuration(config_payload(delays=[{"l": 1, "ms": 500}]))
    with pytest.raises(ValidationError) as exc_info:
        parse_stored_configuration(
            config_payload(protocol="dash", delays=[{"l": 1, "ms": 500}])
        )
    assert exc_info.value.fields == ["delays[0].l"]


@pytest.mark.core
def test_relative_sequence_needs_stateful_instance(config_payload):
    payload = config_payload(timeouts=[{"rsq": 2}])
    parse_stored_configuration(payload)
    parse_stored_configuration(payload, stateful_mode=True)
    with pytest.raises(ValidationError) as exc_info:
        parse_stored_configuration(payload, stateful_mode=False)
    assert exc_info.value.fields == ["timeouts[0].rsq"]


@pytest.mark.core
def test_configuration_to_dict_is_sparse(config_payload):
    record = parse_stored_configuration(
        config_payload(timeouts=[{"br": 2000000}], throttles=[{"rate": 10}])
    )
    payload = configuration_to_dict(record)
    assert "description" not in payload
    assert payload["timeouts"] == [{"br": 2000000}]
    assert payload["throttles"] == [{"rate": 10}]
    assert parse_stored_configuration(payload) == record


@pytest.mark.core
def test_validate_name_and_protocol():
    assert validate_name("Stream_01-a") == "Stream_01-a"
    with pytest.raises(ValidationError):
        validate_name("bad name!")
    assert validate_protocol("dash") == "dash"
    with pytest.raises(InvalidProtocolError) as exc_info:
        validate_protocol("rtmp")
    assert exc_info.value.code == "invalid_protocol"
    assert exc_info.value.status_code == 400


@pytest.mark.core
def test_text_fields_are_stored_trimmed(config_payload):
    record = parse_stored_configuration(
        config_payload(
            instanceUrl="  https://chaos.example.com/ ",
            sourceUrl=" https://origin.example.com/live/master.m3u8\n",
            description="   ",
        )
    )
    assert record.instance_url == "https://chaos.example.com/"
    assert record.config.source_url == "https://origin.example.com/live/master.m3u8"
    assert record.config.description is None
    assert "description" not in configuration_to_dict(record)
