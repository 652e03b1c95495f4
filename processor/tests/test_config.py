# processor/tests/test_config.py
from processor.config import Settings


def test_defaults():
    s = Settings(_env_file=None)
    assert s.ISO_PORT == 2222
    assert s.STRUCTURED_DATA_FIELD == "127.22"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ISO_PORT", "9000")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    s = Settings(_env_file=None)
    assert s.ISO_PORT == 9000
    assert s.LOG_LEVEL == "DEBUG"
