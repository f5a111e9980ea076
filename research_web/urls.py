from __future__ import annotations

import re
from urllib.parse import urlparse, urlunparse

from .errors import InvalidURLError, URLNotAllowedError

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z\d+.-]*://")
_HOST_RE = re.compile(r"^[a-z0-9_-]+(?:\.[a-z0-9_-]+)*\.?$")
_ILLEGAL_CHARS_RE = re.compile(r"[\s\x00-\x1f\x7f<>\"{}|\\^`]")

_BLOCKED_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0"}
_BLOCKED_SUFFIXES = (".localhost", ".local", ".internal")


def normalize_url(raw: str) -> str:
    """Turn free-form input into the canonical absolute URL used as cache key.

    Inputs without a scheme get ``https://``. The result has a lowercase
    scheme and host, no fragment, and ``/`` for an empty path.
    """
    value = (raw or "").strip()
    if not value or _ILLEGAL_CHARS_RE.search(value):
        raise InvalidURLError()

    if not _SCHEME_RE.match(value):
        value = "https://" + value

    parsed = urlparse(value)
    scheme = parsed.scheme.lower()
    if scheme not in ("http", "https"):
        raise InvalidURLError()

    try:
        host = parsed.hostname
        port = parsed.port
    except ValueError:
        raise InvalidURLError() from None
    if not host:
        raise InvalidURLError()
    if ":" in host:
        netloc_host = f"[{host}]"
    else:
        # non-ASCII names go out in their punycode form
        try:
            netloc_host = host.encode("idna").decode("ascii")
        except UnicodeError:
            raise InvalidURLError() from None
        if not _HOST_RE.match(netloc_host):
            raise InvalidURLError()

    netloc = netloc_host
    if port is not None and (scheme, port) not in (("http", 80), ("https", 443)):
        netloc = f"{netloc}:{port}"
    userinfo, sep, _ = parsed.netloc.rpartition("@")
    if sep:
        netloc = f"{userinfo}@{netloc}"

    return urlunparse((scheme, netloc, parsed.path or "/", parsed.params, parsed.query, ""))


def is_allowed_url(url: str) -> bool:
    # Basic safeguard against loopback/internal targets; egress filtering
    # belongs to the network layer.
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    if not hostname:
        return False
    if hostname in _BLOCKED_HOSTS:
        return False
    return not hostname.endswith(_BLOCKED_SUFFIXES)


def validate_url(raw: str) -> str:
    url = normalize_url(raw)
    if not is_allowed_url(url):
        raise URLNotAllowedError()
    return url
