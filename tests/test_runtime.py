import io
from dataclasses import dataclass

import pytest

from apigen.runtime import (
    InvalidBody,
    Request,
    Response,
    decode_body,
    error_response,
    json_response,
    wsgi_app,
)


@dataclass
class Params:
    name: str
    count: int = 0


def test_decode_body_builds_dataclass():
    p = decode_body(Params, b'{"name": "x", "count": 2, "extra": true}')
    assert p == Params(name="x", count=2)


@pytest.mark.parametrize(
    "body",
    [
        b"",
        b"nope",
        b"[1]",
        b'{"name": "x", "count": "many"}',
        b'{"name": "x", "count": "2"}',
        b'{"name": "x", "count": 2.0}',
        b'{"name": "x", "count": true}',
        b'{"name": 7}',
    ],
)
def test_decode_body_rejects_bad_input(body):
    with pytest.raises(InvalidBody):
        decode_body(Params, body)


def test_decode_body_fills_missing_fields_with_zero_values():
    assert decode_body(Params, b"{}") == Params(name="", count=0)
    assert decode_body(Params, b'{"count": 3}') == Params(name="", count=3)


def test_error_response_shape():
    resp = error_response(404, "unknown method GET on /x")
    assert resp.status == 404
    assert resp.json() == {"HTTPStatus": 404, "Err": "unknown method GET on /x"}
    assert "Content-Type" not in resp.headers


def test_json_response_serializes_dataclasses():
    resp = json_response([Params(name="a")])
    assert resp.status == 200
    assert resp.headers == {"Content-Type": "application/json"}
    assert resp.json() == [{"name": "a", "count": 0}]


def test_request_header_default():
    req = Request(method="GET", path="/", headers={"X-Token": "1"})
    assert req.header("x-token") == "1"
    assert req.header("Authorization") == ""


def test_wsgi_app_adapts_environ_and_status():
    seen = {}

    def serve(api, request):
        seen["request"] = request
        if request.path == "/ok":
            return json_response({"api": api})
        return error_response(404, "nope")

    app = wsgi_app("svc", serve)
    body = b'{"a": 1}'
    environ = {
        "REQUEST_METHOD": "POST",
        "PATH_INFO": "/ok",
        "CONTENT_TYPE": "application/json",
        "CONTENT_LENGTH": str(len(body)),
        "HTTP_AUTHORIZATION": "100500",
        "wsgi.input": io.BytesIO(body),
    }
    started = {}

    def start_response(status, headers):
        started["status"] = status
        started["headers"] = dict(headers)

    chunks = app(environ, start_response)

    req = seen["request"]
    assert req.method == "POST"
    assert req.header("Authorization") == "100500"
    assert req.body == body
    assert started["status"] == "200 OK"
    assert started["headers"]["Content-Type"] == "application/json"
    assert b"".join(chunks) == b'{"api":"svc"}'

    app({"REQUEST_METHOD": "GET", "PATH_INFO": "/missing"}, start_response)
    assert started["status"] == "404 Not Found"


def test_response_defaults():
    assert Response(status=200).body == b""


def test_json_response_unserializable_result_is_500():
    resp = json_response({"value": object()})
    assert resp.status == 500
    assert "Content-Type" not in resp.headers
    assert resp.json()["HTTPStatus"] == 500
    assert resp.json()["Err"].startswith("cannot encode response:")
