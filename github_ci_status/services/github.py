from typing import Any, Dict, List, Optional

import httpx

from github_ci_status.exceptions import FetchError
from github_ci_status.settings import settings

PER_PAGE = 100


class GitHubClient:
    """
    Read-only client for the two commit CI feeds:
    the combined status and the check runs for a ref.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.base_url = (base_url or settings.github_api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.transport = transport
        self.rate_limit_reset: Optional[float] = None

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def _track_rate_limit(self, response: httpx.Response) -> None:
        # Remember when polling may resume if the quota ran out
        remaining = response.headers.get("x-ratelimit-remaining")
        reset = response.headers.get("x-ratelimit-reset")
        if remaining == "0" and reset and reset.isdigit():
            self.rate_limit_reset = float(reset)
        else:
            self.rate_limit_reset = None

    async def _get_paginated(self, url: str, items_key: str) -> Dict[str, Any]:
        """
        Fetch every page of a listing endpoint and concatenate `items_key`.
        The remaining fields come from the first page.
        """
        result: Dict[str, Any] = {}
        items: List[Dict] = []
        async with self._client() as client:
            page = 1
            while True:
                r = await client.get(
                    url,
                    headers=self._headers(),
                    params={"per_page": PER_PAGE, "page": page},
                )
                self._track_rate_limit(r)
                r.raise_for_status()
                try:
                    data = r.json()
                except ValueError as e:
                    raise FetchError(f"Invalid JSON response from {url}") from e
                if not isinstance(data, dict):
                    raise FetchError(f"Unexpected response from {url}: expected a JSON object")
                if not result:
                    result = data
                chunk = data.get(items_key) or []
                items.extend(chunk)
                if len(chunk) < PER_PAGE:
                    break
                page += 1
        result[items_key] = items
        return result

    async def get_combined_status(self, owner: str, repo: str, ref: str) -> Dict[str, Any]:
        """GET /repos/{owner}/{repo}/commits/{ref}/status"""
        url = f"{self.base_url}/repos/{owner}/{repo}/commits/{ref}/status"
        return await self._get_paginated(url, "statuses")

    async def list_check_runs(self, owner: str, repo: str, ref: str) -> Dict[str, Any]:
        """GET /repos/{owner}/{repo}/commits/{ref}/check-runs"""
        url = f"{self.base_url}/repos/{owner}/{repo}/commits/{ref}/check-runs"
        return await self._get_paginated(url, "check_runs")
