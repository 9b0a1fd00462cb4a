from fastapi import APIRouter, Depends, Query, status

from app.models.api.crm_request import TaskCreateRequest, TaskUpdateRequest
from app.models.api.crm_response import ErrorResponse
from app.models.domain.crm_domain import Task
from app.repositories import TaskRepository, get_task_repository

router = APIRouter(
    prefix="/api/tasks",
    tags=["tasks"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)


@router.get("", response_model=list[Task])
def list_tasks(
    include_archived: bool = Query(default=False, alias="includeArchived"),
    tasks: TaskRepository = Depends(get_task_repository),
):
    return tasks.list(include_archived=include_archived)


@router.get("/{task_id}", response_model=Task)
def get_task(task_id: str, tasks: TaskRepository = Depends(get_task_repository)):
    return tasks.get(task_id)


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(request: TaskCreateRequest, tasks: TaskRepository = Depends(get_task_repository)):
    return tasks.create(request.changes())


@router.put("/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    request: TaskUpdateRequest,
    tasks: TaskRepository = Depends(get_task_repository),
):
    return tasks.update(task_id, request.changes(), expected_version=request.version)


@router.delete("/{task_id}", response_model=Task)
def archive_task(task_id: str, tasks: TaskRepository = Depends(get_task_repository)):
    return tasks.archive(task_id)
