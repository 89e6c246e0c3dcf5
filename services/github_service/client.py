from typing import List, Optional

import httpx
import structlog

from shared.config import settings
from shared.errors import ExternalServiceError

from .schemas import GitHubProfile, GitHubRepo

logger = structlog.get_logger(__name__)

USER_AGENT = "Portfolio-API"
REPO_LIMIT = 10


class GitHubUpstreamError(ExternalServiceError):
    """Non-2xx reply from GitHub, relayed with the upstream status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class GitHubClient:

    def __init__(
        self,
        username: str,
        api_base: str = "https://api.github.com",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.username = username
        self.api_base = api_base.rstrip("/")
        self.transport = transport
        self.timeout = timeout

    async def _get(self, path: str, params: Optional[dict] = None, error: str = "GitHub request failed"):
        try:
            async with httpx.AsyncClient(
                base_url=self.api_base,
                headers={"User-Agent": USER_AGENT, "Accept": "application/vnd.github+json"},
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                resp = await client.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.error("github_unreachable", path=path, error=str(exc))
            raise ExternalServiceError(error) from exc

        if resp.is_error:
            logger.warning("github_error", path=path, status=resp.status_code)
            raise GitHubUpstreamError(error, resp.status_code)
        return resp.json()

    async def get_profile(self) -> GitHubProfile:
        data = await self._get(f"/users/{self.username}", error="Failed to fetch GitHub profile")
        return GitHubProfile(
            login=data.get("login") or "",
            name=data.get("name") or data.get("login") or "",
            avatar_url=data.get("avatar_url") or "",
            bio=data.get("bio") or "",
            public_repos=data.get("public_repos") or 0,
            followers=data.get("followers") or 0,
            following=data.get("following") or 0,
        )

    async def get_repos(self) -> List[GitHubRepo]:
        data = await self._get(
            f"/users/{self.username}/repos",
            params={"sort": "updated", "per_page": REPO_LIMIT},
            error="Failed to fetch GitHub repos",
        )
        return [
            GitHubRepo(
                id=repo["id"],
                name=repo.get("name") or "",
                description=repo.get("description") or "",
                html_url=repo.get("html_url") or "",
                language=repo.get("language") or "",
                stargazers_count=repo.get("stargazers_count") or 0,
                forks_count=repo.get("forks_count") or 0,
                updated_at=repo.get("updated_at") or "",
            )
            for repo in (data or [])[:REPO_LIMIT]
        ]


def get_github_client() -> GitHubClient:
    return GitHubClient(settings.GITHUB_USERNAME, settings.GITHUB_API_BASE)
