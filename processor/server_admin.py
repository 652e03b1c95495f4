# processor/server_admin.py
"""
A small admin HTTP server exposing /health and a JSON API to decode/encode
Postilion structured data (field 127.22) for support and troubleshooting.
You can run it alongside iso_listener.
"""
import logging
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import settings
from .errors import FormatError
from .structured_data import decode, encode
from .telemetry import format_error_extra

LOG = logging.getLogger("processor.server_admin")
LOG.addHandler(logging.NullHandler())

app = FastAPI(title=settings.APP_NAME + " Admin")


class DecodeRequest(BaseModel):
    raw: Optional[str] = None


class EncodeRequest(BaseModel):
    attributes: Dict[str, Optional[str]] = {}


@app.exception_handler(FormatError)
async def format_error_handler(request, exc: FormatError):
    LOG.warning("structured data rejected: %s", exc, extra=format_error_extra(exc, path=request.url.path))
    return JSONResponse(status_code=422, content=exc.to_dict())


@app.get("/health")
async def health():
    return {"status": "ok", "service": settings.APP_NAME, "iso_port": settings.ISO_PORT}


@app.post("/structured-data/decode")
async def decode_structured_data(req: DecodeRequest):
    return {"attributes": decode(req.raw)}


@app.post("/structured-data/encode")
async def encode_structured_data(req: EncodeRequest):
    return {"raw": encode(req.attributes)}


if __name__ == "__main__":
    import uvicorn
    from .telemetry import configure_logging

    configure_logging(settings.LOG_LEVEL, service=settings.APP_NAME)
    uvicorn.run(app, host=settings.HOST, port=settings.ADMIN_PORT)
