from fastapi import APIRouter, Depends

from .client import GitHubClient, get_github_client
from .schemas import GitHubProfile, GitHubRepo

router = APIRouter(tags=["GitHub"])


@router.get("/github-profile", response_model=GitHubProfile)
async def github_profile(client: GitHubClient = Depends(get_github_client)):
    return await client.get_profile()


@router.get("/github-repos", response_model=list[GitHubRepo])
async def github_repos(client: GitHubClient = Depends(get_github_client)):
    return await client.get_repos()
