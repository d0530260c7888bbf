from hostrelay.datastructures import ParsedTarget


def parse_target_url(path: str) -> ParsedTarget | None:
    """Split an inbound path of the form ``/<host>/<path>`` into its target.

    The target is always addressed over https. Returns ``None`` for an empty
    or root path, or when the first segment does not look like a domain.
    """
    if not path or path == "/":
        return None

    without_slash = path[1:] if path.startswith("/") else path
    host, sep, rest = without_slash.partition("/")
    forward_path = sep + rest if sep else "/"

    if "." not in host:
        return None

    return ParsedTarget(host=host, target_url=f"https://{host}{forward_path}")
