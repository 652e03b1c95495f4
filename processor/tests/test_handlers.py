# processor/tests/test_handlers.py
from processor.handlers import AttributeMatchHandler, IsoMessage, NoopMessageHandler, dispatch


def _message(mti="0100", **attributes):
    return IsoMessage(mti=mti, fields={"11": "101183"}, attributes=attributes)


def test_noop_handler_accepts_and_returns_message():
    handler = NoopMessageHandler()
    message = _message(MSDN="2260953")
    assert handler.can_handle(message)
    assert handler.handle_message(message) is message


def test_attribute_match_on_presence_and_value():
    present = AttributeMatchHandler("0100", "SENDER_FULL_NAME")
    exact = AttributeMatchHandler("0100", "channel", "USSD")

    assert present.can_handle(_message(SENDER_FULL_NAME="John Mostert"))
    assert not present.can_handle(_message("0200", SENDER_FULL_NAME="John Mostert"))
    assert not present.can_handle(_message(MSDN="2260953"))

    assert exact.can_handle(_message(channel="USSD"))
    assert not exact.can_handle(_message(channel="WEB"))


def test_dispatch_picks_first_accepting_handler():
    ussd = AttributeMatchHandler("0100", "channel", "USSD")
    fallback = NoopMessageHandler()
    assert dispatch(_message(channel="USSD"), [ussd, fallback]) is ussd
    assert dispatch(_message(channel="WEB"), [ussd, fallback]) is fallback
    assert dispatch(_message(channel="WEB"), [ussd]) is None
