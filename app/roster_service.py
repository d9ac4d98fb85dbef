"""
Skills, members and project rosters.
"""
from typing import List

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app import repository
from app.errors import NotFoundError, ValidationError
from app.logger import get_logger
from app.models import Member, Project, ProjectMember, Skill, Task, COMPLETED_STATUS
from app.task_service import transaction
from schemas.members import MemberCreate, MemberSkillIn, MemberUpdate
from schemas.projects import ProjectCreate
from schemas.skills import SkillCreate

logger = get_logger(__name__)


# ============================================================================
# Skills
# ============================================================================

def create_skill(db: Session, payload: SkillCreate) -> Skill:
    if repository.get_skill_by_name(db, payload.name) is not None:
        raise ValidationError(f"Skill '{payload.name}' already exists")

    skill = Skill(name=payload.name.strip(), description=payload.description, category=payload.category)
    with transaction(db, "create skill"):
        db.add(skill)
    logger.info(f"Skill '{skill.name}' created")
    return skill


def list_skills(db: Session) -> List[Skill]:
    return repository.list_skills(db)


def _skill_for(db: Session, entry: MemberSkillIn) -> Skill:
    if entry.skill_id is not None:
        return repository.require_skill(db, entry.skill_id)
    if not entry.skill_name:
        raise ValidationError("skill_id or skill_name is required")
    skill = repository.get_skill_by_name(db, entry.skill_name)
    if skill is None:
        raise NotFoundError(f"Skill '{entry.skill_name}' not found")
    return skill


# ============================================================================
# Members
# ============================================================================

def create_member(db: Session, payload: MemberCreate) -> Member:
    existing = db.scalar(
        select(Member).where(or_(Member.username == payload.username, Member.email == payload.email))
    )
    if existing is not None:
        raise ValidationError("A member with this username or email already exists")

    member = Member(
        username=payload.username,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        experience_level=payload.experience_level,
        availability=payload.availability,
        performance_rating=payload.performance_rating,
        workload=0.0,
        is_active=True,
    )
    skills = [(_skill_for(db, entry), entry) for entry in payload.skills]

    with transaction(db, "create member"):
        db.add(member)
        for skill, entry in skills:
            repository.upsert_member_skill(
                db, member, skill, entry.proficiency_level, entry.years_of_experience
            )

    logger.info(f"Member '{member.username}' created with {len(skills)} skill(s)")
    return member


def get_member(db: Session, member_id: int) -> Member:
    return repository.require_member(db, member_id)


def list_members(db: Session, skip: int = 0, limit: int = 50) -> List[Member]:
    stmt = select(Member).order_by(Member.member_id).offset(skip).limit(limit)
    return list(db.scalars(stmt))


def count_members(db: Session) -> int:
    return repository.count_members(db)


def update_member(db: Session, member_id: int, payload: MemberUpdate) -> Member:
    """Change profile fields; deactivated members and non-member roles drop out of auto-assignment."""
    member = repository.require_member(db, member_id)
    changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}

    with transaction(db, "update member"):
        for key, value in changes.items():
            setattr(member, key, value)

    if changes:
        logger.info(f"Member {member.username} updated: {sorted(changes)}")
    return member


def set_member_skill(db: Session, member_id: int, entry: MemberSkillIn) -> Member:
    member = repository.require_member(db, member_id)
    skill = _skill_for(db, entry)
    with transaction(db, "set member skill"):
        repository.upsert_member_skill(db, member, skill, entry.proficiency_level, entry.years_of_experience)
    return member


def recompute_workload(db: Session, member_id: int) -> Member:
    """Reset a member's workload to the hours of their open tasks."""
    member = repository.require_member(db, member_id)
    with transaction(db, "recompute workload"):
        hours = repository.compute_open_hours(db, member_id)
        repository.set_workload(db, member_id, hours)
    repository.refresh_workload(db, member)
    logger.info(f"Workload of {member.username} recomputed: {member.workload:g}h")
    return member


# ============================================================================
# Projects
# ============================================================================

def create_project(db: Session, payload: ProjectCreate) -> Project:
    members = repository.get_members_by_ids(db, set(payload.member_ids))
    missing = set(payload.member_ids) - {m.member_id for m in members}
    if missing:
        raise NotFoundError(f"Member(s) not found: {sorted(missing)}")

    project = Project(
        name=payload.name,
        description=payload.description,
        category=payload.category,
        start_date=payload.start_date,
        deadline=payload.deadline,
    )
    for member in members:
        project.members.append(ProjectMember(member=member, role="member"))

    with transaction(db, "create project"):
        db.add(project)

    logger.info(f"Project '{project.name}' created with {len(members)} member(s)")
    return project


def get_project(db: Session, project_id: int) -> Project:
    return repository.require_project(db, project_id)


def add_project_member(db: Session, project_id: int, member_id: int, role: str = "member") -> Project:
    project = repository.require_project(db, project_id)
    member = repository.require_member(db, member_id)
    if any(entry.member_id == member_id for entry in project.members):
        raise ValidationError(f"Member {member_id} is already on project {project_id}")

    with transaction(db, "add project member"):
        project.members.append(ProjectMember(member=member, role=role))

    return project


def remove_project_member(db: Session, project_id: int, member_id: int) -> Project:
    """Take a member off a roster; their open tasks on the project must be reassigned first."""
    project = repository.require_project(db, project_id)
    entry = next((e for e in project.members if e.member_id == member_id), None)
    if entry is None:
        raise NotFoundError(f"Member {member_id} is not on project {project_id}")

    open_tasks = db.scalars(
        select(Task.task_id).where(
            Task.project_id == project_id,
            Task.assigned_to == member_id,
            Task.status != COMPLETED_STATUS,
        )
    ).all()
    if open_tasks:
        raise ValidationError(
            f"Member {member_id} still has open tasks on project {project_id}: {list(open_tasks)}"
        )

    with transaction(db, "remove project member"):
        project.members.remove(entry)

    return project
