"""
Support code imported by generated handler modules.

A generated router is a plain function `serve_x(api, request) -> Response`.
It never raises for client errors; every outcome is a Response.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from functools import lru_cache
from http import HTTPStatus
from typing import Any, Callable, Iterable, Mapping, TypeVar, get_type_hints

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, from_json, to_json

T = TypeVar("T")

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class Request:
    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str, default: str = "") -> str:
        # HTTP header names are case-insensitive
        wanted = name.lower()
        for k, v in self.headers.items():
            if k.lower() == wanted:
                return v
        return default


@dataclass(frozen=True)
class Response:
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> Any:
        return from_json(self.body)


class InvalidBody(Exception):
    pass


@lru_cache(maxsize=None)
def _adapter(model: type) -> TypeAdapter:
    return TypeAdapter(model)


_ZERO_VALUES = {str: "", int: 0, float: 0.0, bool: False}


@lru_cache(maxsize=None)
def _zero_defaults(model: type) -> tuple[tuple[str, Any], ...]:
    """(field, zero value) for every field of `model` that has no default of its own."""
    if dataclasses.is_dataclass(model):
        names = [
            f.name
            for f in dataclasses.fields(model)
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        ]
    elif isinstance(model, type) and issubclass(model, BaseModel):
        names = [name for name, info in model.model_fields.items() if info.is_required()]
    else:
        return ()
    hints = get_type_hints(model)
    return tuple((name, _ZERO_VALUES.get(hints.get(name))) for name in names)


def decode_body(model: type[T], body: bytes) -> T:
    """
    Validate a JSON request body into `model` (dataclass or pydantic model).

    Types are matched strictly: "50", 50.0 and true are not ints.
    A field missing from the body takes its zero value ("" / 0 / None), so
    presence is left to the `required` check.
    """
    try:
        data = from_json(body or b"")
    except ValueError as e:
        raise InvalidBody(str(e)) from e
    if not isinstance(data, dict):
        raise InvalidBody("request body must be a JSON object")

    for name, zero in _zero_defaults(model):
        data.setdefault(name, zero)

    try:
        return _adapter(model).validate_json(to_json(data), strict=True)
    except ValidationError as e:
        raise InvalidBody(str(e)) from e


def error_response(status: int, message: str) -> Response:
    return Response(status=status, body=to_json({"HTTPStatus": status, "Err": message}))


def json_response(result: Any) -> Response:
    try:
        body = to_json(result)
    except PydanticSerializationError as e:
        return error_response(HTTPStatus.INTERNAL_SERVER_ERROR.value, f"cannot encode response: {e}")
    return Response(
        status=HTTPStatus.OK.value,
        headers={"Content-Type": JSON_CONTENT_TYPE},
        body=body,
    )


# ---------------------------------------------------------------------------
# WSGI adapter (the listener itself lives outside this package)
# ---------------------------------------------------------------------------


def _request_from_environ(environ: Mapping[str, Any]) -> Request:
    headers: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            headers[key[5:].replace("_", "-").title()] = value
    if environ.get("CONTENT_TYPE"):
        headers["Content-Type"] = environ["CONTENT_TYPE"]

    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    stream = environ.get("wsgi.input")
    body = stream.read(length) if stream is not None and length > 0 else b""

    return Request(
        method=str(environ.get("REQUEST_METHOD", "GET")),
        path=environ.get("PATH_INFO", "") or "/",
        headers=headers,
        body=body,
    )


def wsgi_app(api: Any, serve: Callable[[Any, Request], Response]) -> Callable[..., Iterable[bytes]]:
    """Wrap `serve_x` from a generated module as a WSGI application bound to `api`."""

    def app(environ: Mapping[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        response = serve(api, _request_from_environ(environ))
        status = HTTPStatus(response.status)
        headers = list(response.headers.items())
        headers.append(("Content-Length", str(len(response.body))))
        start_response(f"{status.value} {status.phrase}", headers)
        return [response.body]

    return app
