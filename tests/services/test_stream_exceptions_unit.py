from services.streaming import exceptions


def test_exception_error_codes_and_messages():
    e = exceptions.StreamClosedError()
    assert isinstance(e, exceptions.StreamingError)
    assert e.error_code == "stream_closed"
    assert "already ended" in e.message

    e2 = exceptions.TransportError("HTTP 503")
    assert isinstance(e2, exceptions.StreamingError)
    assert e2.error_code == "transport_failed"
    assert e2.message == "HTTP 503"
    assert str(e2) == "transport_failed: HTTP 503"


def test_transport_error_keeps_cause():
    cause = ConnectionError("reset")
    try:
        try:
            raise cause
        except ConnectionError as exc:
            raise exceptions.TransportError() from exc
    except exceptions.TransportError as wrapped:
        assert wrapped.__cause__ is cause
        assert wrapped.error_code == "transport_failed"
