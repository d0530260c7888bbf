import typing

from hostrelay.config import ConfigManager


def parse_allowlist(value: str | None, pipe_delimited: bool = True) -> typing.List[str]:
    if not value:
        return []

    # Some deploy targets mangle commas in env values, so a pipe may stand in.
    # Only one delimiter is active per value.
    delimiter = "|" if pipe_delimited and "|" in value else ","
    return [
        entry.strip()
        for entry in value.split(delimiter)
        if entry.strip()
    ]


class Allowlist:
    config_key: str
    pipe_delimited: bool = True

    def __init__(self, config: ConfigManager):
        self.config = config

    def entries(self) -> typing.List[str]:
        return parse_allowlist(self.config.get(self.config_key), self.pipe_delimited)


class HostAllowlist(Allowlist):
    """Target hosts the proxy may forward to. Unconfigured means none."""

    config_key = ConfigManager.ALLOWED_HOSTS_KEY

    def allowed_hosts(self) -> typing.List[str]:
        return self.entries()

    def is_allowed(self, host: str) -> bool:
        return host in self.allowed_hosts()


class OriginAllowlist(Allowlist):
    """Browser origins that get their ``Origin`` echoed back. Unconfigured means any."""

    config_key = ConfigManager.CORS_ALLOWED_ORIGINS_KEY

    def allowed_origins(self) -> typing.List[str]:
        return self.entries()

    def is_allowed(self, origin: str | None) -> bool:
        if not origin:
            return False
        origins = self.allowed_origins()
        if not origins:
            return True
        return origin in origins
