"""Structural comparison of the hosts two URLs point at."""

from urllib.parse import urlsplit

from gitredirect.errors import HostnameMatchError


def _hostname(url: str) -> str:
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
        # Accessing .port validates it; a bad port raises ValueError
        parts.port
    except ValueError as exc:
        raise HostnameMatchError(f"{url!r}: {exc}") from exc
    if not hostname:
        raise HostnameMatchError(f"{url!r} has no host")
    return hostname.rstrip(".")


def hostnames_match(url1: str, url2: str) -> bool:
    """Return True when both URLs share the same effective host.

    Scheme, port, user info, path and case are ignored, so
    ``https://Git.Internal.Local:443/`` matches ``http://git.internal.local/org/repo.git``.
    """
    return _hostname(url1) == _hostname(url2)
