PROXY_ERROR_HEADER = "X-HostRelay-Error"
META_ROUTE = "/_hostrelay/meta"

STRIP_REQUEST_HEADERS = {
    "host",
    "connection",
    "content-length",
    "transfer-encoding",
    # Browser-identifying headers, so targets don't treat the call as a browser request
    "origin",
    "referer",
}
STRIP_REQUEST_HEADER_PREFIXES = ("sec-fetch-", "sec-ch-ua")

STRIP_RESPONSE_HEADERS = {
    "transfer-encoding",
    "connection",
    # Recomputed by starlette; httpx has already decoded the body
    "content-length",
    "content-encoding",
}
STRIP_RESPONSE_HEADER_PREFIXES = ("access-control-",)

# Relayed verbatim on HEAD, where no body is sent to recompute them from
HEAD_RESPONSE_HEADERS = {"content-length", "content-encoding"}
