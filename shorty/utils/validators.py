from urllib.parse import urlsplit

MAX_URL_LENGTH = 2048
ALLOWED_SCHEMES = {"http", "https", "ftp", "ftps"}


def is_valid_url(url: str) -> bool:
    """Absolute URL check: known scheme, a host, sane length, no whitespace."""
    if not url or len(url) > MAX_URL_LENGTH:
        return False
    if any(ch.isspace() for ch in url):
        return False
    try:
        parts = urlsplit(url)
        # .hostname and .port raise ValueError on malformed netlocs
        host = parts.hostname
        parts.port
    except ValueError:
        return False
    return parts.scheme.lower() in ALLOWED_SCHEMES and bool(host)
