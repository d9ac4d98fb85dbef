"""
Task lifecycle: creation (manual, automatic or unassigned), updates, status
transitions, reassignment and deletion.

A member's workload is the sum of estimated hours of their open tasks, so
every operation that moves open hours on or off a member adjusts the
workload in the same transaction as the task change.
"""
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import assignment, repository
from app.config import settings
from app.errors import AssignmentServiceError, NotFoundError, PersistenceError, ValidationError
from app.logger import get_logger
from app.models import COMPLETED_STATUS, Member, Skill, Task, TaskSkillRequirement
from app.notifications import NotificationPublisher, publish_safely
from schemas.tasks import SkillRequirementIn, TaskCreate, TaskUpdate

logger = get_logger(__name__)


@dataclass
class TaskCreationResult:
    task: Task
    member: Optional[Member] = None
    score: Optional[float] = None


@contextmanager
def transaction(db: Session, action: str) -> Generator[None, None, None]:
    """
    Commit on success, roll back on failure.
    Database errors surface as PersistenceError.
    """
    try:
        yield
        db.commit()
    except AssignmentServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise PersistenceError(f"Failed to {action}: {e}") from e


def _resolve_skill(db: Session, requirement: SkillRequirementIn) -> Skill:
    if requirement.skill_id is not None:
        return repository.require_skill(db, requirement.skill_id)
    skill = repository.get_skill_by_name(db, requirement.skill_name)
    if skill is None:
        raise NotFoundError(f"Skill '{requirement.skill_name}' not found")
    return skill


def _notify_assignment(publisher: Optional[NotificationPublisher], task: Task, member: Member, score: Optional[float]) -> None:
    if publisher is None:
        return
    publish_safely(publisher, "task_assigned", {
        "task_id": task.task_id,
        "project_id": task.project_id,
        "member_id": member.member_id,
        "auto_assigned": task.auto_assigned,
        "score": score,
    })


def create_task(
    db: Session,
    payload: TaskCreate,
    publisher: Optional[NotificationPublisher] = None
) -> TaskCreationResult:
    """
    Create a task and optionally assign it.

    `assigned_to` assigns the given project member; otherwise `auto_assign`
    runs the scorer. Creation and assignment commit together or not at all.
    """
    project = repository.require_project(db, payload.project_id)
    roster_ids = {entry.member_id for entry in project.members}

    if payload.assigned_to is not None and payload.assigned_to not in roster_ids:
        raise ValidationError(
            f"Member {payload.assigned_to} is not a member of project {project.project_id}"
        )
    if payload.auto_assign and payload.assigned_to is None and payload.status == COMPLETED_STATUS:
        raise ValidationError("A completed task cannot be auto-assigned")

    dependency_ids = sorted(set(payload.dependencies))
    dependencies = repository.get_tasks_by_ids(db, dependency_ids)
    if len(dependencies) != len(dependency_ids):
        missing = set(dependency_ids) - {dep.task_id for dep in dependencies}
        raise NotFoundError(f"Dependency task(s) not found: {sorted(missing)}")
    foreign = [dep.task_id for dep in dependencies if dep.project_id != project.project_id]
    if foreign:
        raise ValidationError(f"Dependency task(s) belong to another project: {foreign}")

    requirements = [
        TaskSkillRequirement(skill=_resolve_skill(db, req), minimum_level=req.minimum_level)
        for req in payload.required_skills
    ]

    member: Optional[Member] = None
    score: Optional[float] = None

    with transaction(db, "create task"):
        task = repository.create_task(db, {
            "title": payload.title,
            "description": payload.description,
            "status": payload.status,
            "task_type": payload.task_type,
            "priority": payload.priority,
            "estimated_hours": payload.estimated_hours or settings.default_estimated_hours,
            "complexity": payload.complexity or settings.default_complexity,
            "project_id": project.project_id,
            "due_date": payload.due_date,
            "dependencies": dependencies,
            "required_skills": requirements,
        })

        if payload.assigned_to is not None:
            repository.set_assigned_member(db, task, payload.assigned_to, auto_assigned=False)
            if task.is_open:
                repository.increment_workload(db, payload.assigned_to, task.estimated_hours)
            member = repository.require_member(db, payload.assigned_to)
        elif payload.auto_assign:
            result = assignment.auto_assign_task(db, task, project.project_id, commit=False)
            member, score = result.member, result.score

    if member is not None:
        repository.refresh_workload(db, member)
        _notify_assignment(publisher, task, member, score)

    logger.info(f"Task {task.task_id} '{task.title}' created in project {project.project_id}")
    return TaskCreationResult(task=task, member=member, score=score)


def get_task(db: Session, task_id: int) -> Task:
    return repository.require_task(db, task_id)


def list_tasks(
    db: Session,
    project_id: Optional[int] = None,
    assigned_to: Optional[int] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 50
) -> List[Task]:
    return repository.list_tasks(db, project_id, assigned_to, status, skip, limit)


def count_tasks(
    db: Session,
    project_id: Optional[int] = None,
    assigned_to: Optional[int] = None,
    status: Optional[str] = None
) -> int:
    return repository.count_tasks(db, project_id, assigned_to, status)


def auto_assign_existing_task(
    db: Session,
    task_id: int,
    publisher: Optional[NotificationPublisher] = None
) -> assignment.AssignmentResult:
    """Run the scorer for a stored task that has no assignee yet."""
    task = repository.require_task(db, task_id)
    if task.assigned_to is not None:
        raise ValidationError(f"Task {task_id} is already assigned to member {task.assigned_to}")
    if not task.is_open:
        raise ValidationError(f"Task {task_id} is completed")

    result = assignment.auto_assign_task(db, task, task.project_id)
    _notify_assignment(publisher, task, result.member, result.score)
    return result


def candidates_for_task(db: Session, task_id: int) -> List[assignment.CandidateScore]:
    """Rank the project's members for a task without assigning it."""
    task = repository.require_task(db, task_id)
    return assignment.find_best_member(db, task, task.project_id)


def update_task_status(db: Session, task_id: int, status: str) -> Task:
    """
    Move a task to a new status.

    Completing an assigned task releases its hours from the assignee's
    workload; reopening a completed task puts them back.
    """
    task = repository.require_task(db, task_id)
    previous = task.status
    if previous == status:
        return task

    with transaction(db, "update task status"):
        was_open = task.is_open
        task.status = status
        db.flush()
        if task.assigned_to is not None:
            if was_open and not task.is_open:
                repository.increment_workload(db, task.assigned_to, -task.estimated_hours)
            elif not was_open and task.is_open:
                repository.increment_workload(db, task.assigned_to, task.estimated_hours)

    logger.info(f"Task {task_id} status {previous} -> {status}")
    return task


def update_task(db: Session, task_id: int, payload: TaskUpdate) -> Task:
    """Update task fields; a new estimate on an open assigned task moves the workload by the difference."""
    task = repository.require_task(db, task_id)
    changes = payload.model_dump(exclude_unset=True)

    with transaction(db, "update task"):
        previous_hours = task.estimated_hours
        for key, value in changes.items():
            if value is None and key in ("title", "task_type", "priority", "estimated_hours", "complexity"):
                continue
            setattr(task, key, value)
        db.flush()

        delta = task.estimated_hours - previous_hours
        if delta and task.assigned_to is not None and task.is_open:
            repository.increment_workload(db, task.assigned_to, delta)

    return task


def reassign_task(
    db: Session,
    task_id: int,
    member_id: int,
    publisher: Optional[NotificationPublisher] = None
) -> Task:
    """Hand a task to another project member, moving its open hours with it."""
    task = repository.require_task(db, task_id)
    project = repository.require_project(db, task.project_id)
    if member_id not in {entry.member_id for entry in project.members}:
        raise ValidationError(f"Member {member_id} is not a member of project {project.project_id}")

    previous = task.assigned_to
    if previous == member_id:
        return task

    with transaction(db, "reassign task"):
        repository.set_assigned_member(db, task, member_id, auto_assigned=False)
        if task.is_open:
            if previous is not None:
                repository.increment_workload(db, previous, -task.estimated_hours)
            repository.increment_workload(db, member_id, task.estimated_hours)

    member = repository.require_member(db, member_id)
    repository.refresh_workload(db, member)
    _notify_assignment(publisher, task, member, None)
    logger.info(f"Task {task_id} reassigned from {previous} to {member_id}")
    return task


def delete_task(db: Session, task_id: int) -> None:
    """Delete a task, releasing its open hours from the assignee."""
    task = repository.require_task(db, task_id)

    with transaction(db, "delete task"):
        if task.assigned_to is not None and task.is_open:
            repository.increment_workload(db, task.assigned_to, -task.estimated_hours)
        db.delete(task)

    logger.info(f"Task {task_id} deleted")
