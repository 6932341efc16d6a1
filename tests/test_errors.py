import httpx
import pytest

from neon_sdk.errors import APIError, NeonError, convert_error_response


class FaultyStream(httpx.SyncByteStream):
    def __iter__(self):
        raise httpx.ReadError("connection reset")
        yield b""  # pragma: no cover


def test_str():
    err = APIError(500, message="internal error")
    assert str(err) == "[HTTP Code: 500][Error Code: ] internal error"

    err = APIError(423, code="LOCKED", message="project is locked")
    assert str(err) == "[HTTP Code: 423][Error Code: LOCKED] project is locked"
    assert isinstance(err, NeonError)


def test_convert_error_response():
    resp = httpx.Response(409, content=b'{"code":"CONFLICT","message":"branch exists"}')
    err = convert_error_response(resp)
    assert (err.http_code, err.code, err.message) == (409, "CONFLICT", "branch exists")


def test_convert_error_response_null_fields():
    resp = httpx.Response(500, content=b'{"code":null,"message":"internal error"}')
    err = convert_error_response(resp)
    assert (err.http_code, err.code, err.message) == (500, "", "internal error")


@pytest.mark.parametrize("content", [b"{", b"", b"not json", b"[1, 2]", b'{"message": 1}'])
def test_convert_error_response_bad_body(content):
    err = convert_error_response(httpx.Response(500, content=content))
    assert err.http_code == 500
    assert err.code == ""
    assert err.message != ""


def test_convert_error_response_unreadable():
    err = convert_error_response(httpx.Response(503, stream=FaultyStream()))
    assert err.http_code == 503
    assert err.message == "cannot read response bytes"


def test_to_response():
    sent = APIError(404, code="", message="object not found")
    resp = sent.to_response()
    assert resp.status_code == 404
    assert resp.headers["Content-Type"] == "application/json"

    err = convert_error_response(resp)
    assert (err.http_code, err.code, err.message) == (404, "", "object not found")
