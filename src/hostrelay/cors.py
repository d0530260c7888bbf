import typing

from starlette.datastructures import MutableHeaders

from hostrelay.allowlist import OriginAllowlist

ALLOW_METHODS = "GET, POST, PUT, DELETE, PATCH, OPTIONS"
DEFAULT_ALLOW_HEADERS = "Content-Type, Authorization, X-Requested-With"
MAX_AGE_SECS = "86400"


def cors_headers(
    request_headers: typing.Mapping[str, str], origins: OriginAllowlist,
) -> typing.Dict[str, str]:
    headers: typing.Dict[str, str] = {}
    origin = request_headers.get("origin")

    if not origins.allowed_origins():
        headers["Access-Control-Allow-Origin"] = "*"
    elif origins.is_allowed(origin):
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    # A configured list that rejects the origin emits no allow-origin header,
    # so the browser fails the request client-side.

    headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
    headers["Access-Control-Allow-Headers"] = (
        request_headers.get("access-control-request-headers") or DEFAULT_ALLOW_HEADERS
    )
    headers["Access-Control-Max-Age"] = MAX_AGE_SECS
    return headers


def apply_cors_headers(headers: MutableHeaders, cors: typing.Mapping[str, str]):
    for key, value in cors.items():
        if key.lower() == "vary":
            headers.append(key, value)
        else:
            headers[key] = value
