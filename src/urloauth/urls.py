"""URL normalisation helpers.

Registry keys and credential-store attributes are both derived from URLs.
Requests that differ only in their query string (or fragment) must resolve
to the same endpoint configuration, so every lookup goes through
:func:`normalize_key` first.
"""

from __future__ import annotations

from typing import NamedTuple, Optional, Sequence
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

_DEFAULT_PORTS = {"https": 443}


class UrlParts(NamedTuple):
    """The pieces of a URL that identify a protected resource."""

    scheme: str
    host: str
    port: Optional[int]
    path: str


def _netloc(host: str, port: Optional[int]) -> str:
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{port}" if port is not None else host


def split_url(url: str) -> UrlParts:
    """Split *url* into scheme, host, port and path.

    The port is resolved with :func:`url_port`, and an empty path becomes
    ``"/"`` so that ``https://h`` and ``https://h/`` share credentials.

    Raises:
        ValueError: If *url* has no scheme or host.
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Not an absolute URL: {url!r}")
    return UrlParts(
        scheme=parts.scheme,
        host=parts.hostname,
        port=url_port(url),
        path=parts.path or "/",
    )


def normalize_key(url: str) -> str:
    """Return *url* with query, fragment and userinfo removed.

    Scheme and host are lower-cased.  An explicit port is kept as written
    and an empty path becomes ``"/"``, as in :func:`split_url`.

    Example::

        >>> normalize_key("https://API.example.com/data?page=2#top")
        'https://api.example.com/data'
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Not an absolute URL: {url!r}")
    return urlunsplit(
        (parts.scheme, _netloc(parts.hostname, parts.port), parts.path or "/", "", "")
    )


def url_port(url: str) -> Optional[int]:
    """Return the explicit port of *url*, 443 for bare ``https``, else ``None``."""
    parts = urlsplit(url)
    if parts.port is not None:
        return parts.port
    return _DEFAULT_PORTS.get(parts.scheme)


def query_parameter(url: str, name: str) -> Optional[str]:
    """Return the first value of query parameter *name* in *url*.

    ``None`` when the URL has no query component or the parameter is
    missing or blank.
    """
    query = urlsplit(url).query
    if not query:
        return None
    values = parse_qs(query).get(name)
    if not values:
        return None
    return values[0]


def with_query(url: str, params: Sequence[tuple[str, str]]) -> str:
    """Append *params* to *url* as an url-encoded query string.

    Pairs are encoded in order.  An existing query on *url* is preserved
    and the new parameters are joined after it.
    """
    encoded = urlencode(list(params))
    if not encoded:
        return url
    separator = "&" if urlsplit(url).query else "?"
    return f"{url}{separator}{encoded}"
