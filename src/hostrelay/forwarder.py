import json
import logging
import typing

import httpx
from starlette.datastructures import MutableHeaders

from hostrelay.datastructures import ProxyRequest, ProxyResponse
from hostrelay.exceptions import NetworkError

logger = logging.getLogger("hostrelay")

BODYLESS_METHODS = {"GET", "HEAD"}


def encode_body(method: str, body: typing.Any) -> bytes | str | None:
    if method.upper() in BODYLESS_METHODS or not body:
        return None
    if isinstance(body, (bytes, str)):
        return body
    return json.dumps(body)


class Forwarder:
    """Performs the outbound call and buffers the whole response."""

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.transport = transport

    async def forward(
        self,
        url: str,
        method: str,
        headers: typing.Mapping[str, str],
        body: typing.Any = None,
    ) -> ProxyResponse:
        logger.debug("Forwarding request", extra={"method": method, "url": url})
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport, follow_redirects=False,
        ) as client:
            try:
                response = await client.request(
                    method,
                    url,
                    headers=list(headers.items()),
                    content=encode_body(method, body),
                )
            except (httpx.RequestError, httpx.InvalidURL) as e:
                raise NetworkError(f"Request to {url} failed: {e!s}") from e

        return ProxyResponse(
            status_code=response.status_code or 500,
            headers=MutableHeaders(raw=[
                (k.lower(), v) for k, v in response.headers.raw
            ]),
            body=response.content,
        )

    async def send(self, request: ProxyRequest) -> ProxyResponse:
        return await self.forward(
            request.url, request.method, request.headers, request.body,
        )
