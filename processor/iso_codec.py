# processor/iso_codec.py
"""
iso_codec.py — envelope codec for the ISO listener.

Frames are a 4-byte big-endian length followed by a UTF-8 JSON payload
{"mti": "0100", "fields": {"2": "...", "127.22": "..."}}. Field 127.22 holds
Postilion structured data, which is decoded/rebuilt with
processor.structured_data.
"""
from __future__ import annotations

import json
import logging
import socket
import struct
from typing import Any, Dict, Mapping, Optional

from .config import settings
from .structured_data import AttributeSet, decode, encode

LOG = logging.getLogger("processor.iso_codec")
LOG.addHandler(logging.NullHandler())

HEADER = struct.Struct(">I")


def pack_iso(mti: str, fields: Mapping[str, Any]) -> bytes:
    if not isinstance(mti, str) or len(mti) != 4 or not mti.isdigit():
        raise ValueError("MTI must be a 4-digit string")
    body = {"mti": mti, "fields": {str(k): v for k, v in (fields or {}).items()}}
    payload = json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    if len(payload) > settings.MAX_FRAME:
        raise ValueError(f"payload of {len(payload)} bytes exceeds MAX_FRAME")
    return HEADER.pack(len(payload)) + payload


def unpack_iso(frame_or_payload: bytes) -> Dict[str, Any]:
    """
    Accept either a full frame (4-byte BE length prefix + payload) or the bare
    JSON payload.

    Returns: {"mti": mti, "fields": fields} or raises ValueError on parse error.
    """
    if not frame_or_payload:
        raise ValueError("empty payload")

    data = frame_or_payload
    if len(data) >= HEADER.size and not data[:1].isspace() and data[:1] != b"{":
        (declen,) = HEADER.unpack(data[:HEADER.size])
        if declen != len(data) - HEADER.size:
            raise ValueError(f"frame declares {declen} bytes, got {len(data) - HEADER.size}")
        data = data[HEADER.size:]

    try:
        parsed = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError("payload is not UTF-8 JSON") from e

    if not isinstance(parsed, dict) or "mti" not in parsed:
        raise ValueError("payload has no MTI")
    fields = parsed.get("fields")
    if fields is None:
        fields = {}
    elif not isinstance(fields, dict):
        raise ValueError("payload fields must be an object")
    mti = str(parsed["mti"])
    if len(mti) != 4 or not mti.isdigit():
        raise ValueError(f"invalid MTI {mti!r}")
    return {"mti": mti, "fields": fields}


def response_mti(mti: str) -> str:
    """0100 -> 0110, 0200 -> 0210, 0800 -> 0810."""
    if len(mti) != 4 or not mti.isdigit():
        raise ValueError(f"invalid MTI {mti!r}")
    function = int(mti[2])
    if function % 2:
        raise ValueError(f"MTI {mti} is already a response")
    return mti[:2] + str(function + 1) + mti[3]


def get_structured_data(fields: Mapping[str, Any], field: Optional[str] = None) -> AttributeSet:
    """Decode the structured data sub-field; a missing field gives {}."""
    field = field or settings.STRUCTURED_DATA_FIELD
    raw = fields.get(field)
    if raw is not None and not isinstance(raw, str):
        raise ValueError(f"field {field} must be a string, got {type(raw).__name__}")
    return decode(raw)


def set_structured_data(fields: Dict[str, Any], attributes: Mapping[str, str], field: Optional[str] = None) -> Dict[str, Any]:
    """Encode attributes into the sub-field; an empty set removes the field."""
    field = field or settings.STRUCTURED_DATA_FIELD
    raw = encode(attributes)
    if raw:
        fields[field] = raw
    else:
        fields.pop(field, None)
    return fields


def recv_frame(sock, timeout=5.0):
    """
    Read a length-prefixed frame from a socket: 4-byte BE length + payload.
    Returns payload bytes.
    """
    sock.settimeout(timeout)
    hdr = b""
    while len(hdr) < HEADER.size:
        chunk = sock.recv(HEADER.size - len(hdr))
        if not chunk:
            raise ConnectionError("short header read")
        hdr += chunk
    (length,) = HEADER.unpack(hdr)
    if length <= 0 or length > settings.MAX_FRAME:
        raise ValueError(f"invalid frame length {length}")
    data = b""
    while len(data) < length:
        chunk = sock.recv(length - len(data))
        if not chunk:
            raise ConnectionError("short payload read")
        data += chunk
    return data


def send_message(host: str, port: int, mti: str, fields: Mapping[str, Any], timeout=5.0) -> Dict[str, Any]:
    """Blocking client: send one message to the ISO listener and return the unpacked reply."""
    frame = pack_iso(mti, fields)
    with socket.create_connection((host, port), timeout=timeout) as sock:
        sock.sendall(frame)
        payload = recv_frame(sock, timeout=timeout)
    LOG.debug("received %d byte reply from %s:%s", len(payload), host, port)
    return unpack_iso(payload)
