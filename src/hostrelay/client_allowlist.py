import ipaddress
import typing

from hostrelay.allowlist import Allowlist
from hostrelay.config import ConfigManager


def parse_ipv4(ip: str) -> ipaddress.IPv4Address | None:
    try:
        return ipaddress.IPv4Address(ip)
    except ValueError:
        return None


def ip_in_cidr(ip: str, cidr: str) -> bool:
    base, _, prefix = cidr.partition("/")
    if not (prefix.isascii() and prefix.isdigit()) or int(prefix) > 32:
        return False

    address = parse_ipv4(ip)
    base_address = parse_ipv4(base)
    if address is None or base_address is None:
        return False

    network = ipaddress.IPv4Network((base_address, int(prefix)), strict=False)
    return address in network


class ClientAllowlist(Allowlist):
    """Client IPs permitted to use the proxy.

    Entries are bare IPv4 literals (exact match) or CIDR blocks. Unlike the
    host list this one is comma-only, and an unconfigured list admits every
    client.
    """

    config_key = ConfigManager.CLIENT_IP_ALLOWLIST_KEY
    pipe_delimited = False

    def allowed_ips(self) -> typing.List[str]:
        return self.entries()

    def is_allowed(self, client_ip: str) -> bool:
        allowed_ips = self.allowed_ips()
        if not allowed_ips:
            return True

        for allowed in allowed_ips:
            if "/" in allowed:
                if ip_in_cidr(client_ip, allowed):
                    return True
            elif client_ip == allowed:
                return True
        return False
