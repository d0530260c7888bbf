import typing
from dataclasses import dataclass
from starlette.datastructures import MutableHeaders


@dataclass(frozen=True)
class ParsedTarget:
    host: str
    target_url: str


@dataclass
class ProxyRequest:
    url: str
    method: str
    headers: MutableHeaders
    body: typing.Any


@dataclass
class ProxyResponse:
    status_code: int
    headers: MutableHeaders
    body: bytes
