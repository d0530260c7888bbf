import typing


class HostRelayException(Exception):
    pass


class ConfigurationException(HostRelayException):
    pass


class NetworkError(HostRelayException):
    pass


class ProxyRejection(HostRelayException):
    status_code: int = 400

    def __init__(self, message: str, *, headers: typing.Dict[str, str] | None = None):
        super().__init__(message)
        self.message = message
        self.headers = headers or {}

    def body(self) -> typing.Dict[str, typing.Any]:
        return {"error": self.message}


class InvalidTargetPathException(ProxyRejection):
    status_code = 400


class ClientNotAllowedException(ProxyRejection):
    status_code = 403


class HostNotAllowedException(ProxyRejection):
    status_code = 403


class RateLimitExceededException(ProxyRejection):
    status_code = 429

    def __init__(self, retry_after: int):
        super().__init__(
            "Rate limit exceeded", headers={"Retry-After": str(retry_after)},
        )
        self.retry_after = retry_after

    def body(self) -> typing.Dict[str, typing.Any]:
        return {"error": self.message, "retryAfter": self.retry_after}
