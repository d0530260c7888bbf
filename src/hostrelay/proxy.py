import functools
import logging
import math
import time
import typing
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import MutableHeaders

from hostrelay.allowlist import HostAllowlist, OriginAllowlist
from hostrelay.client_allowlist import ClientAllowlist
from hostrelay.config import ConfigManager
from hostrelay.constants import (
    HEAD_RESPONSE_HEADERS,
    META_ROUTE,
    PROXY_ERROR_HEADER,
    STRIP_REQUEST_HEADERS,
    STRIP_REQUEST_HEADER_PREFIXES,
    STRIP_RESPONSE_HEADERS,
    STRIP_RESPONSE_HEADER_PREFIXES,
)
from hostrelay.cors import apply_cors_headers, cors_headers
from hostrelay.datastructures import ParsedTarget, ProxyRequest, ProxyResponse
from hostrelay.exceptions import (
    ClientNotAllowedException,
    HostNotAllowedException,
    HostRelayException,
    InvalidTargetPathException,
    NetworkError,
    ProxyRejection,
    RateLimitExceededException,
)
from hostrelay.forwarder import Forwarder
from hostrelay.logging import setup_logging
from hostrelay.rate_limiter import RateLimiter
from hostrelay.url_parser import parse_target_url
from hostrelay.version import VERSION


PROXY_METHODS = ["GET", "POST", "PUT", "DELETE", "HEAD", "OPTIONS", "PATCH"]


setup_logging()

logger = logging.getLogger("hostrelay")


def error_response(
    request: Request,
    status_code: int,
    content: typing.Dict[str, typing.Any],
    headers: typing.Dict[str, str] | None = None,
) -> JSONResponse:
    response = JSONResponse(
        status_code=status_code,
        content=content,
        headers={PROXY_ERROR_HEADER: "proxy", **(headers or {})},
    )
    apply_cors_headers(response.headers, getattr(request.state, "cors_headers", {}))
    return response


def hostrelay_route():
    def wrapper(func):
        @functools.wraps(func)
        async def wrapped(*args, **kwargs):
            request: Request = kwargs.get('request') or args[-1]
            correlation_id = str(uuid.uuid4())
            request.state.correlation_id = correlation_id
            logger.info(
                "Incoming hostrelay request",
                extra={
                    "correlation_id": correlation_id,
                    "method": request.method,
                    "url": str(request.url),
                    "client_host": request.client.host if request.client else "unknown",
                }
            )
            start_time = time.time()

            try:
                response = await func(*args, **kwargs)
                elapsed_time = time.time() - start_time
                logger.info(
                    "HostRelay request processed successfully",
                    extra={
                        "correlation_id": correlation_id,
                        "status_code": response.status_code,
                        "content_type": response.headers.get("Content-Type", "unknown"),
                        "elapsed_time": f"{elapsed_time:.3f}s",
                    }
                )
                return response
            except ProxyRejection as pr:
                elapsed_time = time.time() - start_time
                logger.warning(
                    "Request rejected",
                    extra={
                        "correlation_id": correlation_id,
                        "status_code": pr.status_code,
                        "reason": pr.message,
                        "elapsed_time": f"{elapsed_time:.3f}s",
                    }
                )
                return error_response(request, pr.status_code, pr.body(), pr.headers)
            except NetworkError as ne:
                elapsed_time = time.time() - start_time
                logger.error(
                    "Failed to reach target server",
                    exc_info=True,
                    extra={
                        "correlation_id": correlation_id,
                        "exception": str(ne),
                        "elapsed_time": f"{elapsed_time:.3f}s",
                    }
                )
                return error_response(request, 502, {"error": "Failed to reach target server"})
            except HostRelayException as he:
                # Known internal failures, e.g. configuration
                elapsed_time = time.time() - start_time
                logger.error(
                    "HostRelayException encountered",
                    exc_info=True,
                    extra={
                        "correlation_id": correlation_id,
                        "exception": str(he),
                        "elapsed_time": f"{elapsed_time:.3f}s",
                    }
                )
                return error_response(request, 500, {"error": "Internal Server Error"})
            except Exception as exc:
                elapsed_time = time.time() - start_time
                logger.error(
                    "Unexpected error occurred",
                    exc_info=True,
                    extra={
                        "correlation_id": correlation_id,
                        "exception": str(exc),
                        "elapsed_time": f"{elapsed_time:.3f}s",
                    }
                )
                return error_response(request, 500, {"error": "Internal Server Error"})
        return wrapped
    return wrapper


def resolve_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def request_path(request: Request) -> str:
    # scope["path"] is percent-decoded; forward the path as the client encoded it.
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1").split("?", 1)[0]
    return request.url.path


def build_target_url(parsed: ParsedTarget, query: str) -> str:
    if not query:
        return parsed.target_url
    separator = "&" if "?" in parsed.target_url else "?"
    return f"{parsed.target_url}{separator}{query}"


def is_stripped_request_header(name: str) -> bool:
    name = name.lower()
    return name in STRIP_REQUEST_HEADERS or name.startswith(STRIP_REQUEST_HEADER_PREFIXES)


def is_stripped_response_header(name: str) -> bool:
    name = name.lower()
    return name in STRIP_RESPONSE_HEADERS or name.startswith(STRIP_RESPONSE_HEADER_PREFIXES)


class HostRelay:
    def __init__(
        self,
        config: ConfigManager | None = None,
        rate_limiter: RateLimiter | None = None,
        forwarder: Forwarder | None = None,
    ):
        self.config = config or ConfigManager()
        self.host_allowlist = HostAllowlist(self.config)
        self.client_allowlist = ClientAllowlist(self.config)
        self.origin_allowlist = OriginAllowlist(self.config)

        if rate_limiter is None:
            settings = self.config.rate_limit_settings()
            rate_limiter = RateLimiter(settings.limit, settings.window_ms)
        self.rate_limiter = rate_limiter
        self.forwarder = forwarder or Forwarder(timeout=self.config.proxy_client_timeout_secs)
        self.transformer = ProxyTransformer()

        logger.info(
            "HostRelay initialized",
            extra={
                "rate_limit": self.rate_limiter.limit,
                "rate_window_ms": self.rate_limiter.window_ms,
            },
        )

    @hostrelay_route()
    async def _meta_route(self, request: Request):
        return JSONResponse(
            content={
                "version": VERSION,
                "rate_limit": {
                    "limit": self.rate_limiter.limit,
                    "window_ms": self.rate_limiter.window_ms,
                },
            },
            status_code=200,
        )

    @hostrelay_route()
    async def _proxy_route(self, request: Request):
        cors = cors_headers(request.headers, self.origin_allowlist)
        request.state.cors_headers = cors

        if request.method == "OPTIONS":
            response = Response(status_code=204)
            apply_cors_headers(response.headers, cors)
            return response

        client_ip = resolve_client_ip(request)
        if not self.client_allowlist.is_allowed(client_ip):
            raise ClientNotAllowedException(f"Client IP not allowed: {client_ip}")

        if not self.rate_limiter.try_request():
            retry_after = math.ceil(self.rate_limiter.ms_until_reset() / 1000)
            raise RateLimitExceededException(retry_after)

        parsed = parse_target_url(request_path(request))
        if parsed is None:
            raise InvalidTargetPathException("Invalid request path. Expected: /<host>/<path>")

        if not self.host_allowlist.is_allowed(parsed.host):
            raise HostNotAllowedException(f"Host not allowed: {parsed.host}")

        proxy_request = await self.transformer.transform_request(request, parsed, client_ip)
        proxy_response = await self.forwarder.send(proxy_request)
        return self.transformer.transform_response(proxy_response, cors, method=request.method)

    def to_fastapi(self, app: FastAPI):
        app.api_route(META_ROUTE, methods=["GET"])(self._meta_route)
        app.api_route("/{path:path}", methods=PROXY_METHODS)(self._proxy_route)


class ProxyTransformer:
    async def transform_request(
        self, in_request: Request, parsed: ParsedTarget, client_ip: str,
    ) -> ProxyRequest:
        # Repeated inbound headers collapse into one comma-joined value.
        headers = MutableHeaders(
            {
                k: ", ".join(in_request.headers.getlist(k))
                for k in in_request.headers.keys()
                if not is_stripped_request_header(k)
            },
        )
        headers["X-Forwarded-For"] = client_ip

        return ProxyRequest(
            url=build_target_url(parsed, in_request.url.query),
            method=in_request.method,
            headers=headers,
            body=await in_request.body(),
        )

    def transform_response(
        self, in_response: ProxyResponse, cors: typing.Dict[str, str], method: str = "GET",
    ) -> Response:
        response = Response(content=in_response.body, status_code=in_response.status_code)
        apply_cors_headers(response.headers, cors)

        # A HEAD body is empty, so the upstream length and encoding describe the GET body.
        kept = HEAD_RESPONSE_HEADERS if method.upper() == "HEAD" else set()
        if kept and "content-length" in in_response.headers and "content-length" in response.headers:
            del response.headers["content-length"]

        for k, v in in_response.headers.items():
            if k.lower() in kept or not is_stripped_response_header(k):
                response.headers.append(k, v)
        return response
