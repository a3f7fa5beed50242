"""Determine the GitHub project for the repository in the working directory."""

import asyncio
import functools
import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple

from github_ci_status.exceptions import (
    ConfigCorruptionError,
    GitCommandError,
    UnknownProjectError,
    UrlParseError,
)
from github_ci_status.git import get_branch, read_config
from github_ci_status.git_url import parse_git_url
from github_ci_status.models import ParsedRemoteUrl, ProjectIdentity, RemoteEntry
from github_ci_status.settings import settings

logger = logging.getLogger(__name__)

GITHUB_HOSTNAME = "github.com"

# Same remote lookup order as hub(1)
REMOTE_NAMES_IN_LOOKUP_ORDER = ("upstream", "github", "origin")

_REMOTE_URL_KEY_RE = re.compile(r"^remote\.(.*)\.((?:push)?url)$")


def get_remote_entries(config_items: Iterable[Tuple[str, str]]) -> List[RemoteEntry]:
    """Collect the remote url/pushurl entries from config key/value pairs."""
    entries: List[RemoteEntry] = []
    for key, value in config_items:
        match = _REMOTE_URL_KEY_RE.match(key)
        if match:
            entries.append(
                RemoteEntry(
                    name=match.group(1),
                    is_push=match.group(2) == "pushurl",
                    url=value,
                )
            )
    return entries


def _lookup_rank(name: str) -> int:
    try:
        return REMOTE_NAMES_IN_LOOKUP_ORDER.index(name)
    except ValueError:
        return len(REMOTE_NAMES_IN_LOOKUP_ORDER)


def compare_remote_entries(
    entry1: RemoteEntry, entry2: RemoteEntry, branch_remote: Optional[str]
) -> int:
    """Comparator giving the order in which remotes are tried.

    The remote of the current branch comes first, then the well-known names in
    lookup order, then the rest by name. A push URL comes before the fetch URL
    of the same remote.
    """
    is_branch1 = branch_remote is not None and entry1.name == branch_remote
    is_branch2 = branch_remote is not None and entry2.name == branch_remote
    if is_branch1 != is_branch2:
        return -1 if is_branch1 else 1

    rank1 = _lookup_rank(entry1.name)
    rank2 = _lookup_rank(entry2.name)
    if rank1 != rank2:
        return -1 if rank1 < rank2 else 1

    if entry1.name != entry2.name:
        return -1 if entry1.name < entry2.name else 1

    if entry1.is_push != entry2.is_push:
        return -1 if entry1.is_push else 1

    raise ConfigCorruptionError(f"Duplicate config '{entry1.config_key}'")


def sort_remote_entries(
    entries: Iterable[RemoteEntry], branch_remote: Optional[str] = None
) -> List[RemoteEntry]:
    """Sort entries into trial order. Raises ConfigCorruptionError on duplicates."""
    ordered = sorted(
        entries,
        key=functools.cmp_to_key(
            functools.partial(compare_remote_entries, branch_remote=branch_remote)
        ),
    )
    # sorted() need not compare every adjacent pair, so duplicates that ended
    # up next to each other still have to be checked.
    for prev, cur in zip(ordered, ordered[1:]):
        compare_remote_entries(prev, cur, branch_remote)
    return ordered


def is_github_hostname(hostname: str, github_host: Optional[str] = None) -> bool:
    hostname = hostname.lower()
    return (
        hostname == GITHUB_HOSTNAME
        or (bool(github_host) and hostname == github_host.lower())
        or hostname.endswith("." + GITHUB_HOSTNAME)
    )


def get_github_urls(
    config: Mapping[str, str],
    branch_remote: Optional[str] = None,
    github_host: Optional[str] = None,
) -> List[ParsedRemoteUrl]:
    """Parsed GitHub remote URLs, in trial order, without value duplicates."""
    github_urls: List[ParsedRemoteUrl] = []
    for entry in sort_remote_entries(get_remote_entries(config.items()), branch_remote):
        try:
            parsed = parse_git_url(entry.url)
        except UrlParseError as e:
            logger.debug("Error parsing remote URL <%s>: %s", entry.url, e)
            continue
        if is_github_hostname(parsed.hostname, github_host):
            github_urls.append(parsed)
    # Keep order, remove duplicates
    return list(dict.fromkeys(github_urls))


def project_from_url(remote_url: ParsedRemoteUrl) -> Optional[ProjectIdentity]:
    """Owner and repo from a URL path of the form /owner/repo[.git]."""
    path_parts = remote_url.path_segments
    if len(path_parts) != 3 or path_parts[0] or not path_parts[1] or not path_parts[2]:
        logger.debug(
            "Skipping GitHub URL <%s>: Need exactly 2 non-empty path segments.",
            remote_url,
        )
        return None

    repo = path_parts[2]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        logger.debug("Skipping GitHub URL <%s>: Empty repo name.", remote_url)
        return None

    return ProjectIdentity(path_parts[1], repo)


def resolve_projects(
    config: Mapping[str, str],
    branch_remote: Optional[str] = None,
    github_host: Optional[str] = None,
) -> Iterator[ProjectIdentity]:
    """Yield candidate projects from git config in the order they should be tried.

    ``github_host`` defaults to the ``GITHUB_HOST`` setting.
    """
    if github_host is None:
        github_host = settings.github_host
    for remote_url in get_github_urls(config, branch_remote, github_host):
        project = project_from_url(remote_url)
        if project is not None:
            yield project


async def try_get_branch(cwd: Optional[Path] = None) -> Optional[str]:
    try:
        return await get_branch(cwd)
    except GitCommandError as e:
        logger.debug("Unable to get current branch name: %s", e)
        return None


async def get_project_name(cwd: Optional[Path] = None) -> ProjectIdentity:
    """Get the GitHub owner and repo name for the git repository in ``cwd``.

    Raises UnknownProjectError when no remote names a GitHub project.
    """
    # Run get_branch() and read_config() concurrently.
    branch, config = await asyncio.gather(try_get_branch(cwd), read_config("local", cwd))

    branch_remote = config.get(f"branch.{branch}.remote") if branch else None
    if branch and not branch_remote:
        logger.debug("No remote configured for current branch (%s)", branch)

    for project in resolve_projects(config, branch_remote):
        return project

    raise UnknownProjectError(
        "Unable to determine GitHub project name: No GitHub remote URLs recognized."
    )
