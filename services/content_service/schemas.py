from typing import List, Optional

from pydantic import BaseModel, Field, HttpUrl


class PostCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    body: str = Field(min_length=10)


class PostResponse(BaseModel):
    id: int
    user_id: int
    title: str
    body: str

    class Config:
        from_attributes = True


class ProjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    technologies: List[str] = []
    rating: int = Field(ge=1, le=5)
    github_link: Optional[HttpUrl] = None
    live_link: Optional[HttpUrl] = None


class ProjectResponse(BaseModel):
    id: int
    title: str
    description: str
    technologies: List[str]
    rating: int
    github_link: Optional[str]
    live_link: Optional[str]

    class Config:
        from_attributes = True


class SkillCreate(BaseModel):
    category: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=100)
    level: int = Field(default=0, ge=0, le=100)
    color: str = Field(default="#3498db", max_length=20)


class SkillResponse(BaseModel):
    id: int
    category: str
    name: str
    level: int
    color: str

    class Config:
        from_attributes = True


class SkillEntry(BaseModel):
    id: int
    name: str
    level: int
    color: str


class SkillCategoryResponse(BaseModel):
    category: str
    skills: List[SkillEntry]


class TodoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    completed: bool = False


class TodoResponse(BaseModel):
    id: int
    user_id: int
    title: str
    completed: bool

    class Config:
        from_attributes = True
