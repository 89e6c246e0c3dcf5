from collections import OrderedDict
from datetime import datetime, timezone
from typing import List, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import NotFoundError, PermissionDeniedError
from shared.security import CurrentUser

from .models import Post, Project, Skill, Todo
from .repository import ContentRepository
from .schemas import PostCreate, ProjectCreate, SkillCategoryResponse, SkillCreate, SkillEntry, TodoCreate

logger = structlog.get_logger(__name__)


def _ensure_owner(entity, user: CurrentUser) -> None:
    if entity.user_id != user.id and not user.is_admin:
        raise PermissionDeniedError()


def _url(value):
    return str(value) if value is not None else None


class PostService:

    @staticmethod
    async def list_posts(db: AsyncSession) -> Sequence[Post]:
        return await ContentRepository.list_all(db, Post, Post.created_at.desc(), Post.id.desc())

    @staticmethod
    async def get_post(db: AsyncSession, post_id: int) -> Post:
        post = await ContentRepository.get(db, Post, post_id)
        if not post:
            raise NotFoundError("Post not found")
        return post

    @staticmethod
    async def create_post(db: AsyncSession, user: CurrentUser, data: PostCreate) -> Post:
        post = await ContentRepository.create(db, Post(user_id=user.id, title=data.title, body=data.body))
        logger.info("post_created", post_id=post.id, user_id=user.id)
        return post

    @staticmethod
    async def update_post(db: AsyncSession, post_id: int, user: CurrentUser, data: PostCreate) -> Post:
        post = await PostService.get_post(db, post_id)
        _ensure_owner(post, user)
        post.title = data.title
        post.body = data.body
        post.updated_at = datetime.now(timezone.utc)
        return await ContentRepository.save(db, post)

    @staticmethod
    async def delete_post(db: AsyncSession, post_id: int, user: CurrentUser) -> None:
        post = await PostService.get_post(db, post_id)
        _ensure_owner(post, user)
        await ContentRepository.delete(db, post)


class ProjectService:

    @staticmethod
    async def list_projects(db: AsyncSession) -> Sequence[Project]:
        return await ContentRepository.list_all(db, Project, Project.created_at.desc(), Project.id.desc())

    @staticmethod
    async def get_project(db: AsyncSession, project_id: int) -> Project:
        project = await ContentRepository.get(db, Project, project_id)
        if not project:
            raise NotFoundError("Project not found")
        return project

    @staticmethod
    async def create_project(db: AsyncSession, data: ProjectCreate) -> Project:
        project = Project(
            title=data.title,
            description=data.description,
            technologies=list(data.technologies),
            rating=data.rating,
            github_link=_url(data.github_link),
            live_link=_url(data.live_link),
        )
        return await ContentRepository.create(db, project)

    @staticmethod
    async def update_project(db: AsyncSession, project_id: int, data: ProjectCreate) -> Project:
        project = await ProjectService.get_project(db, project_id)
        project.title = data.title
        project.description = data.description
        project.technologies = list(data.technologies)
        project.rating = data.rating
        project.github_link = _url(data.github_link)
        project.live_link = _url(data.live_link)
        return await ContentRepository.save(db, project)

    @staticmethod
    async def delete_project(db: AsyncSession, project_id: int) -> None:
        project = await ProjectService.get_project(db, project_id)
        await ContentRepository.delete(db, project)


class SkillService:

    @staticmethod
    async def list_skills(db: AsyncSession) -> Sequence[Skill]:
        return await ContentRepository.list_all(db, Skill, Skill.id)

    @staticmethod
    async def grouped_skills(db: AsyncSession) -> List[SkillCategoryResponse]:
        """Skills grouped by category, categories in first-seen order."""
        groups: "OrderedDict[str, List[SkillEntry]]" = OrderedDict()
        for skill in await SkillService.list_skills(db):
            groups.setdefault(skill.category, []).append(
                SkillEntry(id=skill.id, name=skill.name, level=skill.level, color=skill.color)
            )
        return [SkillCategoryResponse(category=category, skills=skills) for category, skills in groups.items()]

    @staticmethod
    async def create_skill(db: AsyncSession, data: SkillCreate) -> Skill:
        return await ContentRepository.create(db, Skill(**data.model_dump()))

    @staticmethod
    async def delete_skill(db: AsyncSession, skill_id: int) -> None:
        skill = await ContentRepository.get(db, Skill, skill_id)
        if not skill:
            raise NotFoundError("Skill not found")
        await ContentRepository.delete(db, skill)


class TodoService:

    @staticmethod
    async def list_todos(db: AsyncSession) -> Sequence[Todo]:
        return await ContentRepository.list_all(db, Todo, Todo.created_at.desc(), Todo.id.desc())

    @staticmethod
    async def get_todo(db: AsyncSession, todo_id: int) -> Todo:
        todo = await ContentRepository.get(db, Todo, todo_id)
        if not todo:
            raise NotFoundError("Todo not found")
        return todo

    @staticmethod
    async def create_todo(db: AsyncSession, user: CurrentUser, data: TodoCreate) -> Todo:
        return await ContentRepository.create(
            db, Todo(user_id=user.id, title=data.title, completed=data.completed)
        )

    @staticmethod
    async def update_todo(db: AsyncSession, todo_id: int, user: CurrentUser, data: TodoCreate) -> Todo:
        todo = await TodoService.get_todo(db, todo_id)
        _ensure_owner(todo, user)
        todo.title = data.title
        todo.completed = data.completed
        return await ContentRepository.save(db, todo)

    @staticmethod
    async def delete_todo(db: AsyncSession, todo_id: int, user: CurrentUser) -> None:
        todo = await TodoService.get_todo(db, todo_id)
        _ensure_owner(todo, user)
        await ContentRepository.delete(db, todo)
