"""
Task API endpoints (planner)
"""
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from seiton.api.deps import get_current_user, get_db, local_today
from seiton.application.tasks_usecases import (
    CreateTaskUseCase, PlanLimitError, TaskValidationError, ToggleTaskUseCase, list_tasks_for_date,
)
from seiton.infrastructure.db.models import TaskModel, User


router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


class CreateTaskRequest(BaseModel):
    title: str
    task_date: date | None = None


class TaskResponse(BaseModel):
    task_id: int
    title: str
    task_date: date
    points: int
    completed: bool
    completed_at: datetime | None = None


class ToggleTaskResponse(BaseModel):
    task: TaskResponse
    total_points: int
    level: int
    completed_tasks: int
    current_streak: int
    unlocked_achievements: list[str]


def task_response(task: TaskModel) -> TaskResponse:
    return TaskResponse(
        task_id=task.task_id,
        title=task.title,
        task_date=task.task_date,
        points=task.points,
        completed=task.is_completed,
        completed_at=task.completed_at,
    )


@router.get("", response_model=list[TaskResponse])
def list_tasks(
    day: date | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Tasks scheduled for `day` (default: today)"""
    tasks = list_tasks_for_date(db, user.id, day or local_today())
    return [task_response(t) for t in tasks]


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(
    req: CreateTaskRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        task_id = CreateTaskUseCase(db).execute(
            account_id=user.id,
            title=req.title,
            task_date=req.task_date or local_today(),
            actor_user_id=user.id,
        )
    except (TaskValidationError, PlanLimitError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    task = db.query(TaskModel).filter(
        TaskModel.task_id == task_id,
        TaskModel.account_id == user.id,
    ).first()
    if not task:
        raise HTTPException(status_code=500, detail="Task creation failed")
    return task_response(task)


@router.post("/{task_id}/toggle", response_model=ToggleTaskResponse)
def toggle_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Complete an active task or reopen a completed one"""
    try:
        result = ToggleTaskUseCase(db).execute(account_id=user.id, task_id=task_id, actor_user_id=user.id)
    except TaskValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    task = db.query(TaskModel).filter(
        TaskModel.task_id == task_id,
        TaskModel.account_id == user.id,
    ).first()
    return ToggleTaskResponse(
        task=task_response(task),
        total_points=result.profile.total_points,
        level=result.profile.level,
        completed_tasks=result.profile.completed_tasks,
        current_streak=result.profile.current_streak,
        unlocked_achievements=result.unlocked_achievements,
    )
