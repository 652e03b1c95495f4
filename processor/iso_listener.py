# processor/iso_listener.py
import asyncio
import functools
import logging
from typing import Any, Dict, Optional, Sequence

from .config import settings
from .errors import FormatError
from .handlers import IsoMessage, MessageHandler, NoopMessageHandler, dispatch
from .iso_codec import HEADER, get_structured_data, pack_iso, response_mti, set_structured_data, unpack_iso
from .telemetry import configure_logging, format_error_extra

LOG = logging.getLogger("processor.iso_listener")
LOG.addHandler(logging.NullHandler())

# response codes (field 39)
APPROVED = "00"
FORMAT_ERROR = "30"
SYSTEM_MALFUNCTION = "96"

# used when the request is too broken to derive a response MTI from
FALLBACK_RESPONSE_MTI = "0210"

DEFAULT_HANDLERS = (NoopMessageHandler(),)


def _reply(mti: str, fields: Dict[str, Any], code: str) -> Dict[str, Any]:
    fields = dict(fields)
    fields["39"] = code
    return {"mti": mti, "fields": fields}


def process_message(payload: bytes, handlers: Optional[Sequence[MessageHandler]] = None) -> Dict[str, Any]:
    """
    Turn one inbound payload into the response envelope {"mti", "fields"}.

    Never raises: every failure becomes a response code in field 39.
    """
    handlers = DEFAULT_HANDLERS if handlers is None else handlers

    try:
        request = unpack_iso(payload)
    except ValueError as e:
        LOG.warning("Rejecting unparseable envelope: %s", e)
        return _reply(FALLBACK_RESPONSE_MTI, {}, FORMAT_ERROR)

    fields = request["fields"]
    try:
        mti = response_mti(request["mti"])
    except ValueError as e:
        LOG.warning("Rejecting message: %s", e)
        return _reply(request["mti"], fields, FORMAT_ERROR)

    try:
        attributes = get_structured_data(fields)
    except FormatError as e:
        LOG.warning("Malformed structured data: %s", e, extra=format_error_extra(e, mti=request["mti"]))
        return _reply(mti, fields, FORMAT_ERROR)
    except ValueError as e:
        LOG.warning("Rejecting structured data field: %s", e)
        return _reply(mti, fields, FORMAT_ERROR)

    # only a handler may set the response code
    request_fields = {k: v for k, v in fields.items() if k != "39"}
    message = IsoMessage(mti=request["mti"], fields=request_fields, attributes=attributes)
    handler = dispatch(message, handlers)
    if handler is None:
        return _reply(mti, fields, SYSTEM_MALFUNCTION)

    try:
        result = handler.handle_message(message)
        if not isinstance(result, IsoMessage):
            raise TypeError(f"handler returned {type(result).__name__}, not IsoMessage")
    except Exception as e:
        LOG.exception("Handler %s failed: %s", type(handler).__name__, e)
        return _reply(mti, fields, SYSTEM_MALFUNCTION)

    response_fields = dict(result.fields)
    try:
        set_structured_data(response_fields, result.attributes)
    except FormatError as e:
        LOG.error("Cannot encode response structured data: %s", e, extra=format_error_extra(e, mti=mti))
        return _reply(mti, fields, SYSTEM_MALFUNCTION)

    response_fields.setdefault("39", APPROVED)
    return {"mti": mti, "fields": response_fields}


async def read_frame(reader: asyncio.StreamReader, timeout: Optional[float] = None) -> Optional[bytes]:
    """Read a length-prefixed frame (4-byte big-endian length). Returns payload bytes or None on EOF."""
    try:
        raw_len = await asyncio.wait_for(reader.readexactly(HEADER.size), timeout)
    except asyncio.IncompleteReadError:
        return None
    (size,) = HEADER.unpack(raw_len)
    if size == 0 or size > settings.MAX_FRAME:
        raise ValueError(f"invalid frame length {size}")
    return await asyncio.wait_for(reader.readexactly(size), timeout)


async def handle_client(reader: asyncio.StreamReader, writer: asyncio.StreamWriter, handlers=None):
    peer = writer.get_extra_info("peername")
    LOG.info("Client connected: %s", peer)
    try:
        # several frames may arrive on one connection
        while True:
            payload = await read_frame(reader, settings.READ_TIMEOUT)
            if payload is None:
                break

            response = process_message(payload, handlers)
            frame = pack_iso(response["mti"], response["fields"])
            writer.write(frame)
            await writer.drain()
            LOG.info("Sent response to %s (%d bytes) mti=%s de39=%s",
                     peer, len(frame), response["mti"], response["fields"].get("39"))

    except asyncio.TimeoutError:
        LOG.info("Client idle, closing: %s", peer)
    except asyncio.IncompleteReadError:
        LOG.info("Client disconnected (incomplete): %s", peer)
    except ValueError as e:
        LOG.warning("Bad frame from %s: %s", peer, e)
    except ConnectionError as e:
        LOG.info("Connection to %s lost: %s", peer, e)
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except ConnectionError:
            pass
        LOG.info("Client disconnected: %s", peer)


async def create_server(host: str, port: int, handlers: Optional[Sequence[MessageHandler]] = None):
    return await asyncio.start_server(functools.partial(handle_client, handlers=handlers), host, port)


async def start_server(host: str = None, port: int = None, handlers: Optional[Sequence[MessageHandler]] = None):
    host = host or settings.HOST
    port = settings.ISO_PORT if port is None else port
    server = await create_server(host, port, handlers)
    LOG.info("ISO Listener serving on (%s, %d)", host, port)
    async with server:
        await server.serve_forever()


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL, service=settings.APP_NAME)
    asyncio.run(start_server())
