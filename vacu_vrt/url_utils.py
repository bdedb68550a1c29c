"""Shared URL utilities: validate user-supplied hosts and build page URLs."""

from __future__ import annotations

from urllib.parse import urlparse


def is_valid_url(value: str) -> bool:
    """Return True for an absolute http:// or https:// URL."""
    if not value or any(c.isspace() for c in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def page_url(host: str, path: str) -> str:
    """Join an environment host and a page path without doubling the slash."""
    if not path:
        return host
    return host.rstrip("/") + "/" + path.lstrip("/")


def same_origin(url: str, host: str) -> bool:
    """Check that a browser URL is still on the environment host."""
    a, b = urlparse(url), urlparse(host)
    return (a.scheme, a.netloc.lower()) == (b.scheme, b.netloc.lower())
