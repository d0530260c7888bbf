from hostrelay.proxy import HostRelay
from hostrelay.version import VERSION

__all__ = ["HostRelay", "VERSION"]
