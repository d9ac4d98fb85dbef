"""
Data access helpers for projects, members, skills and tasks.

All workload changes go through `increment_workload`, a single
`UPDATE ... SET workload = workload + :delta` statement, so concurrent
requests never overwrite each other's increments.
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.errors import NotFoundError, PersistenceError
from app.logger import get_logger
from app.models import COMPLETED_STATUS, Member, MemberSkill, Project, Skill, Task

logger = get_logger(__name__)


# ============================================================================
# Projects
# ============================================================================

def get_project_by_id(db: Session, project_id: int) -> Optional[Project]:
    """Load a project with its roster, or None."""
    return db.get(Project, project_id)


def require_project(db: Session, project_id: int) -> Project:
    project = get_project_by_id(db, project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found")
    return project


# ============================================================================
# Members
# ============================================================================

def get_member_by_id(db: Session, member_id: int) -> Optional[Member]:
    return db.get(Member, member_id)


def require_member(db: Session, member_id: int) -> Member:
    member = get_member_by_id(db, member_id)
    if member is None:
        raise NotFoundError(f"Member {member_id} not found")
    return member


def get_members_by_ids(db: Session, member_ids: Iterable[int]) -> List[Member]:
    ids = list(member_ids)
    if not ids:
        return []
    stmt = select(Member).where(Member.member_id.in_(ids)).order_by(Member.member_id)
    return list(db.scalars(stmt))


def increment_workload(db: Session, member_id: int, delta: float) -> None:
    """
    Atomically add `delta` hours to a member's workload.

    Runs inside the caller's transaction. Raises PersistenceError when no
    row was updated, so a vanished member never counts as a success.
    """
    if not delta:
        return

    result = db.execute(
        update(Member)
        .where(Member.member_id == member_id)
        .values(workload=Member.workload + delta)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise PersistenceError(f"Workload update for member {member_id} affected {result.rowcount} rows")

    logger.debug(f"Workload of member {member_id} adjusted by {delta:+g}h")


def refresh_workload(db: Session, member: Member) -> float:
    """Re-read a member's workload from the database after an SQL-side update."""
    db.refresh(member, attribute_names=["workload"])
    return member.workload


def compute_open_hours(db: Session, member_id: int) -> float:
    """Sum estimated hours of the member's non-completed tasks."""
    stmt = select(func.coalesce(func.sum(Task.estimated_hours), 0.0)).where(
        Task.assigned_to == member_id,
        Task.status != COMPLETED_STATUS,
    )
    return float(db.scalar(stmt) or 0.0)


def set_workload(db: Session, member_id: int, hours: float) -> None:
    db.execute(
        update(Member)
        .where(Member.member_id == member_id)
        .values(workload=hours)
        .execution_options(synchronize_session=False)
    )


def upsert_member_skill(
    db: Session,
    member: Member,
    skill: Skill,
    proficiency_level: int,
    years_of_experience: float = 0.0
) -> MemberSkill:
    for entry in member.skills:
        if entry.skill_id == skill.skill_id:
            entry.proficiency_level = proficiency_level
            entry.years_of_experience = years_of_experience
            return entry

    entry = MemberSkill(
        skill=skill,
        proficiency_level=proficiency_level,
        years_of_experience=years_of_experience,
    )
    member.skills.append(entry)
    return entry


# ============================================================================
# Skills
# ============================================================================

def get_skill_by_name(db: Session, name: str) -> Optional[Skill]:
    return db.scalar(select(Skill).where(func.lower(Skill.name) == name.strip().lower()))


def require_skill(db: Session, skill_id: int) -> Skill:
    skill = db.get(Skill, skill_id)
    if skill is None:
        raise NotFoundError(f"Skill {skill_id} not found")
    return skill


def list_skills(db: Session) -> List[Skill]:
    return list(db.scalars(select(Skill).order_by(Skill.name)))


# ============================================================================
# Tasks
# ============================================================================

def create_task(db: Session, task_data: Dict) -> Task:
    """Add a new task to the session and flush it to obtain its id."""
    task = Task(**task_data)
    db.add(task)
    db.flush()
    return task


def get_task_by_id(db: Session, task_id: int) -> Optional[Task]:
    return db.get(Task, task_id)


def require_task(db: Session, task_id: int) -> Task:
    task = get_task_by_id(db, task_id)
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")
    return task


def get_tasks_by_ids(db: Session, task_ids: Iterable[int]) -> List[Task]:
    ids = list(task_ids)
    if not ids:
        return []
    return list(db.scalars(select(Task).where(Task.task_id.in_(ids))))


def set_assigned_member(db: Session, task: Task, member_id: Optional[int], auto_assigned: bool) -> None:
    task.assigned_to = member_id
    task.auto_assigned = auto_assigned
    db.flush()


def _task_filters(project_id: Optional[int], assigned_to: Optional[int], status: Optional[str]) -> list:
    filters = []
    if project_id is not None:
        filters.append(Task.project_id == project_id)
    if assigned_to is not None:
        filters.append(Task.assigned_to == assigned_to)
    if status is not None:
        filters.append(Task.status == status)
    return filters


def list_tasks(
    db: Session,
    project_id: Optional[int] = None,
    assigned_to: Optional[int] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 50
) -> List[Task]:
    stmt = select(Task).where(*_task_filters(project_id, assigned_to, status))
    stmt = stmt.order_by(Task.task_id).offset(skip).limit(limit)
    return list(db.scalars(stmt))


def count_tasks(
    db: Session,
    project_id: Optional[int] = None,
    assigned_to: Optional[int] = None,
    status: Optional[str] = None
) -> int:
    """Number of tasks matching the filters, ignoring paging."""
    stmt = select(func.count(Task.task_id)).where(*_task_filters(project_id, assigned_to, status))
    return db.scalar(stmt) or 0


def count_members(db: Session) -> int:
    return db.scalar(select(func.count(Member.member_id))) or 0
