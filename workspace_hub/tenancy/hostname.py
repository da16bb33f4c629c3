"""
Hostname helpers

Tenant slug extraction and tenant URL construction. These are the only
places that know how a tenant maps onto a hostname:

    acme.example.com      -> "acme"
    acme.localhost:3000   -> "acme"
    localhost:3000        -> None (no tenant)

Only the first label is used; multi-label subdomains are not supported.
"""
from typing import Optional
from urllib.parse import urlsplit

from workspace_hub.config import Settings, get_settings


def _strip_port(host: str) -> str:
    if host.startswith("["):
        # IPv6 literal, never a tenant host
        return host
    return host.split(":", 1)[0]


def extract_tenant_slug(host: Optional[str]) -> Optional[str]:
    """
    Slug for a Host header value, or None when the host has no
    dot-separated structure.

    The slug is lowercased; tenant slugs are stored lowercase.
    """
    if not host:
        return None

    hostname = _strip_port(host.strip()).lower()
    if "." not in hostname:
        return None

    slug = hostname.split(".", 1)[0]
    return slug or None


def build_tenant_url(slug: str, path: str = "", settings: Optional[Settings] = None) -> str:
    """
    Canonical link to a tenant workspace.

    Every part of the service that links to a workspace goes through here.
    """
    settings = settings or get_settings()
    if path and not path.startswith("/"):
        path = f"/{path}"

    if settings.ENVIRONMENT == "production":
        return f"https://{slug}.{settings.ROOT_DOMAIN}{path}"
    return f"http://{slug}.localhost:{settings.DEV_PORT}{path}"


def extract_tenant_from_url(url: str) -> Optional[str]:
    """First hostname label of a URL, or None if it has fewer than two labels."""
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return None

    if not hostname:
        return None

    parts = hostname.split(".")
    if len(parts) < 2:
        return None
    return parts[0] or None
