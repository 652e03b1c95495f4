# processor/handlers.py
"""
Business handlers for inbound messages.

The listener decodes the envelope and field 127.22, wraps the result in an
IsoMessage and hands it to the first handler whose can_handle() accepts it.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, Field

LOG = logging.getLogger("processor.handlers")
LOG.addHandler(logging.NullHandler())


class IsoMessage(BaseModel):
    mti: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    # decoded structured data, in wire order
    attributes: Dict[str, str] = Field(default_factory=dict)


class MessageHandler(ABC):

    @abstractmethod
    def can_handle(self, message: IsoMessage) -> bool:
        ...

    @abstractmethod
    def handle_message(self, message: IsoMessage) -> IsoMessage:
        ...


class NoopMessageHandler(MessageHandler):
    """Accepts every message and returns it untouched."""

    def can_handle(self, message: IsoMessage) -> bool:
        return True

    def handle_message(self, message: IsoMessage) -> IsoMessage:
        LOG.debug("noop handler: mti=%s fields=%s attributes=%s", message.mti, sorted(message.fields), message.attributes)
        return message


class AttributeMatchHandler(MessageHandler):
    """
    Route on MTI plus one structured data attribute, e.g. MTI 0100 with
    SENDER_FULL_NAME present, or ``channel == "USSD"``. Matching messages are
    passed to ``handler``; when omitted the message is returned as is.
    """

    def __init__(self, mti: str, key: str, value: Optional[str] = None, handler=None):
        self.mti = mti
        self.key = key
        self.value = value
        self.handler = handler

    def can_handle(self, message: IsoMessage) -> bool:
        if message.mti != self.mti or self.key not in message.attributes:
            return False
        return self.value is None or message.attributes[self.key] == self.value

    def handle_message(self, message: IsoMessage) -> IsoMessage:
        if self.handler is None:
            return message
        return self.handler(message)


def dispatch(message: IsoMessage, handlers: Iterable[MessageHandler]) -> Optional[MessageHandler]:
    for handler in handlers:
        if handler.can_handle(message):
            LOG.debug("dispatching mti=%s to %s", message.mti, type(handler).__name__)
            return handler
    LOG.warning("no handler accepts mti=%s", message.mti)
    return None
