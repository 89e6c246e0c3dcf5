from pydantic import BaseModel


class GitHubProfile(BaseModel):
    login: str
    name: str
    avatar_url: str
    bio: str
    public_repos: int
    followers: int
    following: int


class GitHubRepo(BaseModel):
    id: int
    name: str
    description: str
    html_url: str
    language: str
    stargazers_count: int
    forks_count: int
    updated_at: str
