"""
FastAPI routes for tasks.
Task creation can hand the task to the best-fit project member when
`autoAssign` is set.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import task_service
from app.db import get_db
from app.logger import get_logger
from app.models import Member, Task
from app.notifications import NotificationPublisher, get_publisher
from schemas.members import MemberSummary
from schemas.tasks import (
    CandidateListResponse,
    CandidateOut,
    TaskCreate,
    TaskCreateResponse,
    TaskListResponse,
    TaskOut,
    TaskReassign,
    TaskStatus,
    TaskStatusUpdate,
    TaskUpdate,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


def _task_out(task: Task) -> TaskOut:
    return TaskOut(**task.to_dict())


def _member_summary(member: Member) -> MemberSummary:
    return MemberSummary(
        member_id=member.member_id,
        username=member.username,
        first_name=member.first_name,
        last_name=member.last_name,
        workload=member.workload,
    )


@router.post("", response_model=TaskCreateResponse, status_code=201)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_publisher),
):
    """
    Create a task.

    - `assigned_to` assigns a specific project member
    - `autoAssign: true` picks the best-fit member and reports the score
    - neither leaves the task unassigned
    """
    result = task_service.create_task(db, payload, publisher)
    return TaskCreateResponse(
        message="Task created successfully",
        task=_task_out(result.task),
        assigned_member=_member_summary(result.member) if result.member else None,
        score=result.score,
    )


@router.get("", response_model=TaskListResponse)
def list_tasks(
    skip: int = 0,
    limit: int = 50,
    assigned_to: Optional[int] = None,
    status: Optional[TaskStatus] = None,
    db: Session = Depends(get_db),
):
    """List tasks, optionally filtered by assignee and status."""
    tasks = task_service.list_tasks(db, assigned_to=assigned_to, status=status, skip=skip, limit=limit)
    total = task_service.count_tasks(db, assigned_to=assigned_to, status=status)
    return TaskListResponse(tasks=[_task_out(t) for t in tasks], total=total)


@router.get("/project/{project_id}", response_model=TaskListResponse)
def list_project_tasks(project_id: int, skip: int = 0, limit: int = 50, db: Session = Depends(get_db)):
    tasks = task_service.list_tasks(db, project_id=project_id, skip=skip, limit=limit)
    total = task_service.count_tasks(db, project_id=project_id)
    return TaskListResponse(tasks=[_task_out(t) for t in tasks], total=total)


@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: int, db: Session = Depends(get_db)):
    return _task_out(task_service.get_task(db, task_id))


@router.put("/{task_id}", response_model=TaskOut)
def update_task(task_id: int, payload: TaskUpdate, db: Session = Depends(get_db)):
    return _task_out(task_service.update_task(db, task_id, payload))


@router.patch("/{task_id}/status", response_model=TaskOut)
def update_task_status(task_id: int, payload: TaskStatusUpdate, db: Session = Depends(get_db)):
    """Change task status; completing a task releases its hours from the assignee."""
    return _task_out(task_service.update_task_status(db, task_id, payload.status))


@router.get("/{task_id}/candidates", response_model=CandidateListResponse)
def list_candidates(task_id: int, db: Session = Depends(get_db)):
    """Show how the project's members rank for this task, without assigning it."""
    ranking = task_service.candidates_for_task(db, task_id)
    return CandidateListResponse(
        task_id=task_id,
        candidates=[
            CandidateOut(member=_member_summary(c.member), score=c.score, breakdown=c.breakdown)
            for c in ranking
        ],
    )


@router.post("/{task_id}/auto-assign", response_model=TaskCreateResponse)
def auto_assign_task(
    task_id: int,
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_publisher),
):
    """Assign a stored, unassigned task to the best-fit member."""
    result = task_service.auto_assign_existing_task(db, task_id, publisher)
    return TaskCreateResponse(
        message="Task assigned successfully",
        task=_task_out(result.task),
        assigned_member=_member_summary(result.member),
        score=result.score,
    )


@router.post("/{task_id}/reassign", response_model=TaskOut)
def reassign_task(
    task_id: int,
    payload: TaskReassign,
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_publisher),
):
    return _task_out(task_service.reassign_task(db, task_id, payload.member_id, publisher))


@router.delete("/{task_id}")
def delete_task(task_id: int, db: Session = Depends(get_db)):
    task_service.delete_task(db, task_id)
    return {"message": "Task deleted successfully"}
