# processor/tests/test_iso_codec.py
import json
import struct

import pytest

from processor.errors import TruncatedField
from processor.iso_codec import (
    get_structured_data,
    pack_iso,
    response_mti,
    set_structured_data,
    unpack_iso,
)


def test_pack_unpack_frame():
    frame = pack_iso("0100", {"2": "5642570404782927", "127.22": "14MSDN172260953"})
    (length,) = struct.unpack(">I", frame[:4])
    assert length == len(frame) - 4
    assert unpack_iso(frame) == {
        "mti": "0100",
        "fields": {"2": "5642570404782927", "127.22": "14MSDN172260953"},
    }


def test_unpack_bare_payload():
    payload = json.dumps({"mti": "0200", "fields": {"4": "78000"}}).encode()
    assert unpack_iso(payload) == {"mti": "0200", "fields": {"4": "78000"}}


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"not json at all",
        b'{"fields": {}}',
        b'{"mti": "01", "fields": {}}',
        b'{"mti": "0100", "fields": []}',
        struct.pack(">I", 99) + b'{"mti":"0100"}',
    ],
)
def test_unpack_rejects_bad_payloads(payload):
    with pytest.raises(ValueError):
        unpack_iso(payload)


def test_pack_rejects_bad_mti():
    with pytest.raises(ValueError):
        pack_iso("110", {})


@pytest.mark.parametrize("request_mti,expected", [("0100", "0110"), ("0200", "0210"), ("0800", "0810")])
def test_response_mti(request_mti, expected):
    assert response_mti(request_mti) == expected


def test_response_mti_rejects_responses():
    with pytest.raises(ValueError):
        response_mti("0110")


def test_get_structured_data():
    fields = {"127.22": "216SENDER_FULL_NAME212John Mostert"}
    assert get_structured_data(fields) == {"SENDER_FULL_NAME": "John Mostert"}
    assert get_structured_data({}) == {}


def test_get_structured_data_from_other_field():
    assert get_structured_data({"48": "11A11B"}, field="48") == {"A": "B"}


def test_get_structured_data_propagates_format_errors():
    with pytest.raises(TruncatedField):
        get_structured_data({"127.22": "14MS"})


def test_set_structured_data():
    fields = {"2": "5642570404782927"}
    set_structured_data(fields, {"MSDN": "2260953"})
    assert fields == {"2": "5642570404782927", "127.22": "14MSDN172260953"}

    set_structured_data(fields, {})
    assert "127.22" not in fields
