"""Parse the URL syntaxes git accepts for remotes."""

import re
from urllib.parse import unquote, urlsplit

from github_ci_status.exceptions import UrlParseError
from github_ci_status.models import ParsedRemoteUrl

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_HOSTNAME_RE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9-]*[A-Za-z0-9])?(\.[A-Za-z0-9]([A-Za-z0-9-]*[A-Za-z0-9])?)*$")
# [user@]host:path, as long as the colon comes before any slash
_SCP_RE = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>\[[^\]/]+\]|[^:/]+):(?P<path>.*)$")


def _check_hostname(url: str, hostname: str) -> str:
    if hostname.startswith("[") and hostname.endswith("]"):
        return hostname[1:-1].lower()
    if not _HOSTNAME_RE.match(hostname):
        raise UrlParseError(url, f"invalid hostname {hostname!r}")
    return hostname.lower()


def parse_git_url(url: str) -> ParsedRemoteUrl:
    """Return the hostname and path of a git remote URL.

    Handles scheme URLs (``https://``, ``ssh://``, ``git://``, ...), scp-like
    ``[user@]host:path`` and local paths. Local paths and ``file://`` URLs
    have an empty hostname.
    """
    if not url or not url.strip():
        raise UrlParseError(url, "empty URL")

    if _SCHEME_RE.match(url):
        try:
            parts = urlsplit(url)
            # Accessing .port validates it
            parts.port
        except ValueError as e:
            raise UrlParseError(url, str(e)) from e
        if parts.scheme.lower() == "file":
            return ParsedRemoteUrl("", unquote(parts.path))
        netloc_host = parts.netloc.rpartition("@")[2]
        if netloc_host.startswith("["):
            host = netloc_host.partition("]")[0] + "]"
        else:
            host = netloc_host.partition(":")[0]
        if not host:
            raise UrlParseError(url, "missing hostname")
        return ParsedRemoteUrl(_check_hostname(url, host), unquote(parts.path) or "/")

    match = _SCP_RE.match(url)
    if match:
        hostname = _check_hostname(url, match.group("host"))
        path = match.group("path")
        if not path.startswith("/"):
            path = "/" + path
        return ParsedRemoteUrl(hostname, path)

    # Anything else is a path on the local filesystem
    return ParsedRemoteUrl("", url)
