from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from ..core.config import EnvConfig


def _normalize(url: str) -> str:
    parts = urlsplit(url)
    if parts.netloc and not parts.path:
        parts = parts._replace(path="/")
    return urlunsplit(parts)


def join_url(path: str, base: str) -> str:
    """Resolve path against base the way a browser resolves a relative link"""
    return _normalize(urljoin(_normalize(base), path))


def append_subdomain(subdomain: str, url: str) -> str:
    """
    Prefix the hostname of url with subdomain.

    >>> append_subdomain("acme", "https://portal.example.com:8443/app")
    'https://acme.portal.example.com:8443/app'
    """
    parts = urlsplit(url)
    hostname = parts.hostname or ""
    netloc = f"{subdomain}.{hostname}"
    if parts.port:
        netloc += f":{parts.port}"
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo += f":{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    return _normalize(urlunsplit(parts._replace(netloc=netloc)))


def resolve_url(path: str, config: EnvConfig, subdomain: Optional[str] = None) -> str:
    """
    Build the absolute URL of a page.

    With a subdomain, local mode resolves against E2E_LOCAL_URL (the
    subdomain is ignored) and otherwise against the portal URL with the
    subdomain prepended. Without one, the base URL is used.
    """
    if subdomain is None:
        subdomain = config.subdomain

    if subdomain:
        if config.local:
            return join_url(path, config.require("local_url"))
        return join_url(path, append_subdomain(subdomain, config.require("portal_url")))

    return join_url(path, config.require("base_url"))
