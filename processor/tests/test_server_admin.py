# processor/tests/test_server_admin.py
from fastapi.testclient import TestClient

from processor.server_admin import app

client = TestClient(app)


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_decode_endpoint_keeps_order():
    resp = client.post("/structured-data/decode", json={"raw": "216SENDER_FULL_NAME212John Mostert14MSDN172260953"})
    assert resp.status_code == 200
    assert list(resp.json()["attributes"].items()) == [
        ("SENDER_FULL_NAME", "John Mostert"),
        ("MSDN", "2260953"),
    ]


def test_decode_endpoint_empty():
    resp = client.post("/structured-data/decode", json={})
    assert resp.json() == {"attributes": {}}


def test_decode_endpoint_reports_format_error():
    resp = client.post("/structured-data/decode", json={"raw": "14MSDN17123"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "TruncatedField"
    assert body["offset"] == 8
    assert body["key"] == "MSDN"


def test_encode_endpoint():
    resp = client.post("/structured-data/encode", json={"attributes": {"MSDN": "2260953"}})
    assert resp.status_code == 200
    assert resp.json() == {"raw": "14MSDN172260953"}


def test_encode_endpoint_rejects_null_value():
    resp = client.post("/structured-data/encode", json={"attributes": {"someKey": None}})
    assert resp.status_code == 422
    assert resp.json()["error"] == "InvalidEntry"
