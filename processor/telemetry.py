# processor/telemetry.py
import logging

from pythonjsonlogger import jsonlogger

from .errors import FormatError


class _ServiceFilter(logging.Filter):
    """Stamp every record with the service name so JSON lines can be grouped."""

    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def filter(self, record):
        record.service = self.service
        return True


def configure_logging(level="INFO", service="processor"):
    handler = logging.StreamHandler()
    fmt = jsonlogger.JsonFormatter(
        fmt='%(asctime)s %(levelname)s %(name)s %(service)s %(message)s',
        rename_fields={"levelname": "level", "name": "logger"},
    )
    handler.setFormatter(fmt)
    handler.addFilter(_ServiceFilter(service))
    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    logger = logging.getLogger("processor")
    logger.setLevel(level)
    return logger


def format_error_extra(err: FormatError, **context) -> dict:
    """Structured fields for logging a FormatError (passed as ``extra=``)."""
    extra = {
        "error_type": type(err).__name__,
        "error_offset": err.offset,
        "error_key": err.key,
    }
    extra.update(context)
    return extra
