from urllib.parse import urlparse

SCHEMES = ("https://", "http://")


def ensure_scheme(url: str) -> str:
    if not url.startswith(SCHEMES):
        return f"https://{url}"
    return url


def extract_domain(raw_url: str) -> str:
    """
    Reduce a free-form address to the lowercase host used as cache key.

    Scheme, path and port are dropped. When nothing is left the raw input
    is returned as-is so the key stays deterministic.
    """
    host = raw_url
    for scheme in SCHEMES:
        if host.startswith(scheme):
            host = host[len(scheme):]

    host = host.split("/", 1)[0]
    host = host.split(":", 1)[0]

    if not host:
        return raw_url

    return host.lower()


def is_absolute_url(url: str) -> bool:
    try:
        return bool(urlparse(url).scheme)
    except ValueError:
        return False


def normalize_icon_url(base_url: str, icon_url: str) -> str:
    if icon_url.startswith("./"):
        icon_url = icon_url[1:]

    if icon_url.startswith(SCHEMES):
        return icon_url

    if icon_url.startswith("/"):
        return base_url + icon_url

    return f"{base_url}/{icon_url}"
