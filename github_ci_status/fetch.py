"""Fetch the CI feeds for a commit, optionally waiting while CI is pending."""

import asyncio
import math
import time
from typing import Callable, Dict, Optional, Tuple

import httpx

from github_ci_status.exceptions import FetchError
from github_ci_status.services.github import GitHubClient
from github_ci_status.settings import settings
from github_ci_status.status import combine_statuses, get_state


def _poll_delay(
    client: GitHubClient, poll_interval: float, remaining: float
) -> float:
    delay = poll_interval
    if client.rate_limit_reset is not None:
        # Out of quota: no point polling before the reset
        delay = max(delay, client.rate_limit_reset - time.time())
    return max(0.0, min(delay, remaining))


async def _fetch_once(
    client: GitHubClient, owner: str, repo: str, ref: str
) -> Tuple[Dict, Dict]:
    try:
        combined_status, checks_list = await asyncio.gather(
            client.get_combined_status(owner, repo, ref),
            client.list_check_runs(owner, repo, ref),
        )
    except httpx.HTTPError as e:
        raise FetchError(f"Unable to fetch CI status for {owner}/{repo}@{ref}: {e}") from e
    return combined_status, checks_list


async def fetch_ci_status(
    owner: str,
    repo: str,
    ref: str,
    *,
    auth: Optional[str] = None,
    wait: Optional[float] = None,
    debug: Optional[Callable[[str], None]] = None,
    client: Optional[GitHubClient] = None,
    poll_interval: Optional[float] = None,
) -> Tuple[Dict, Dict]:
    """
    Fetch the combined status and check runs for `ref`.

    `wait` is the number of seconds to keep polling while the overall state is
    pending (`math.inf` for no limit, `None` or 0 for a single fetch). When the
    budget runs out the most recently fetched data is returned.
    """
    max_wait = wait or 0
    if max_wait < 0 or math.isnan(max_wait):
        raise ValueError(f"wait must be a non-negative number of seconds, not {wait!r}")
    if poll_interval is None:
        poll_interval = settings.poll_interval
    if client is None:
        client = GitHubClient(token=auth)

    start = time.monotonic()
    while True:
        combined_status, checks_list = await _fetch_once(client, owner, repo, ref)
        if not max_wait:
            return combined_status, checks_list

        state = get_state(combine_statuses(combined_status, checks_list))
        elapsed = time.monotonic() - start
        if state != "pending":
            if debug:
                debug(f"CI status {state or 'no status'} after {elapsed:.1f}s")
            return combined_status, checks_list
        if elapsed >= max_wait:
            if debug:
                debug(f"CI status still pending after {elapsed:.1f}s, giving up")
            return combined_status, checks_list

        delay = _poll_delay(client, poll_interval, max_wait - elapsed)
        if debug:
            debug(f"CI status pending after {elapsed:.1f}s, polling again in {delay:.1f}s")
        await asyncio.sleep(delay)

        # Budget spent while sleeping: skip the poll, keep the last data
        elapsed = time.monotonic() - start
        if elapsed >= max_wait:
            if debug:
                debug(f"CI status still pending after {elapsed:.1f}s, giving up")
            return combined_status, checks_list
