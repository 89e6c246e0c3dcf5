from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import CurrentUser, get_current_user, require_admin

from .schemas import (
    PostCreate,
    PostResponse,
    ProjectCreate,
    ProjectResponse,
    SkillCategoryResponse,
    SkillCreate,
    SkillResponse,
    TodoCreate,
    TodoResponse,
)
from .service import PostService, ProjectService, SkillService, TodoService

posts_router = APIRouter(prefix="/posts", tags=["Posts"])
projects_router = APIRouter(prefix="/projects", tags=["Projects"])
skills_router = APIRouter(prefix="/skills", tags=["Skills"])
todos_router = APIRouter(prefix="/todos", tags=["Todos"])


# --- Posts ---

@posts_router.get("", response_model=list[PostResponse])
async def list_posts(db: AsyncSession = Depends(get_db)):
    return await PostService.list_posts(db)


@posts_router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    return await PostService.get_post(db, post_id)


@posts_router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await PostService.create_post(db, user, payload)


@posts_router.put("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_post(
    post_id: int,
    payload: PostCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await PostService.update_post(db, post_id, user, payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@posts_router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await PostService.delete_post(db, post_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Projects ---

@projects_router.get("", response_model=list[ProjectResponse])
async def list_projects(db: AsyncSession = Depends(get_db)):
    return await ProjectService.list_projects(db)


@projects_router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: int, db: AsyncSession = Depends(get_db)):
    return await ProjectService.get_project(db, project_id)


@projects_router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_project(payload: ProjectCreate, db: AsyncSession = Depends(get_db)):
    return await ProjectService.create_project(db, payload)


@projects_router.put(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def update_project(project_id: int, payload: ProjectCreate, db: AsyncSession = Depends(get_db)):
    await ProjectService.update_project(db, project_id, payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@projects_router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_project(project_id: int, db: AsyncSession = Depends(get_db)):
    await ProjectService.delete_project(db, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Skills ---

@skills_router.get("", response_model=list[SkillCategoryResponse])
async def list_skills_by_category(db: AsyncSession = Depends(get_db)):
    return await SkillService.grouped_skills(db)


@skills_router.get("/all", response_model=list[SkillResponse])
async def list_all_skills(db: AsyncSession = Depends(get_db)):
    return await SkillService.list_skills(db)


@skills_router.post(
    "",
    response_model=SkillResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_skill(payload: SkillCreate, db: AsyncSession = Depends(get_db)):
    return await SkillService.create_skill(db, payload)


@skills_router.delete(
    "/{skill_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_skill(skill_id: int, db: AsyncSession = Depends(get_db)):
    await SkillService.delete_skill(db, skill_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Todos ---

@todos_router.get("", response_model=list[TodoResponse])
async def list_todos(db: AsyncSession = Depends(get_db)):
    return await TodoService.list_todos(db)


@todos_router.get("/{todo_id}", response_model=TodoResponse)
async def get_todo(todo_id: int, db: AsyncSession = Depends(get_db)):
    return await TodoService.get_todo(db, todo_id)


@todos_router.post("", response_model=TodoResponse, status_code=status.HTTP_201_CREATED)
async def create_todo(
    payload: TodoCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TodoService.create_todo(db, user, payload)


@todos_router.put("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_todo(
    todo_id: int,
    payload: TodoCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await TodoService.update_todo(db, todo_id, user, payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@todos_router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(
    todo_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await TodoService.delete_todo(db, todo_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
