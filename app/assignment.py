"""
Automatic task assignment.

Picks the best-fit project member for a task from:
- the skills the task type calls for, and any explicit skill requirements
- the member's proficiency and experience level against the task complexity
- the member's current workload and availability
- past performance

Candidates are filtered first (role, availability, skills, experience), each
filter falling back to the previous set when it would leave nobody. The
remaining members are scored, ranked deterministically and the winner gets
the task plus its estimated hours added to their workload.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import repository
from app.config import settings
from app.errors import (
    DependencyNotCompletedError,
    NoEligibleMembersError,
    NotFoundError,
    PersistenceError,
)
from app.logger import get_logger, log_ranking, timed_operation
from app.models import COMPLETED_STATUS, Member, MemberSkill, Project, Task
from app.skill_matching import calculate_similarity, is_skill_relevant, skills_for_task_type

logger = get_logger(__name__)


EXPERIENCE_LEVEL_SCORES: Dict[str, int] = {
    "intern": 30,
    "junior": 50,
    "mid-level": 70,
    "senior": 85,
    "expert": 95,
    "lead": 100,
}

# Highest complexity each experience level is expected to handle
EXPERIENCE_COMPLEXITY_CEILING: Dict[str, int] = {
    "intern": 3,
    "junior": 5,
    "mid-level": 7,
    "senior": 9,
    "expert": 10,
    "lead": 10,
}

DEFAULT_EXPERIENCE_LEVEL = "mid-level"
MIN_RELEVANT_PROFICIENCY = 3
MISSING_SKILLS_PENALTY = 20.0
EXPERIENCE_MISMATCH_PENALTY = 15.0
URGENT_PERFORMANCE_BONUS = 10.0
URGENT_DAYS = 3


@dataclass
class CandidateScore:
    """Score of one member for one task, with the parts it was built from."""
    member: Member
    score: float
    breakdown: Dict[str, float] = field(default_factory=dict)

    @property
    def workload(self) -> float:
        return self.member.workload or 0.0

    def sort_key(self):
        return (-self.score, self.workload, self.member.member_id or 0)


@dataclass
class AssignmentResult:
    task: Task
    member: Member
    score: float
    ranking: List[CandidateScore] = field(default_factory=list)


# ============================================================================
# Task and member attribute helpers
# ============================================================================

def task_hours(task: Task) -> float:
    hours = task.estimated_hours
    if hours is None or hours <= 0:
        return settings.default_estimated_hours
    return float(hours)


def task_complexity(task: Task) -> int:
    complexity = task.complexity
    if not complexity:
        return settings.default_complexity
    return max(1, min(10, int(complexity)))


def _experience_level(member: Member) -> str:
    level = member.experience_level or DEFAULT_EXPERIENCE_LEVEL
    return level if level in EXPERIENCE_LEVEL_SCORES else DEFAULT_EXPERIENCE_LEVEL


def _availability(member: Member) -> int:
    return 100 if member.availability is None else member.availability


def _performance_rating(member: Member) -> int:
    return member.performance_rating or 3


def _skill_name(entry: MemberSkill) -> Optional[str]:
    return entry.skill.name if entry.skill is not None else None


def relevant_skills(member: Member, task: Task) -> List[MemberSkill]:
    """Member skills that count for the task's type."""
    relevant = []
    for entry in member.skills or []:
        name = _skill_name(entry)
        if name and is_skill_relevant(name, task.task_type, settings.skill_match_threshold):
            relevant.append(entry)
    return relevant


def has_required_skills_for_task_type(member: Member, task: Task) -> bool:
    """
    True when the task type names no skills, or the member holds one of
    them at proficiency 3 or higher.
    """
    if not skills_for_task_type(task.task_type):
        return True
    return any(
        (entry.proficiency_level or 0) >= MIN_RELEVANT_PROFICIENCY
        for entry in relevant_skills(member, task)
    )


def is_experience_appropriate(member: Member, task: Task) -> bool:
    ceiling = EXPERIENCE_COMPLEXITY_CEILING[_experience_level(member)]
    return task_complexity(task) <= ceiling


# ============================================================================
# Score components (each 0-100)
# ============================================================================

def _requirement_level_score(level_difference: int) -> float:
    if level_difference >= 2:
        return 100.0
    if level_difference == 1:
        return 80.0
    if level_difference == 0:
        return 60.0
    return 30.0


def _find_member_skill(member: Member, skill_id: Optional[int], skill_name: Optional[str]) -> Optional[MemberSkill]:
    for entry in member.skills or []:
        if skill_id is not None and entry.skill_id == skill_id:
            return entry
    if skill_name:
        for entry in member.skills or []:
            name = _skill_name(entry)
            if name and calculate_similarity(name, skill_name) >= settings.skill_match_threshold:
                return entry
    return None


def evaluate_skills(member: Member, task: Task) -> float:
    """
    Skill match between a member and a task.

    Blends explicit task requirements (how far the member is above the
    minimum level) with the skills implied by the task type (proficiency
    scaled to 20-100).
    """
    if not member.skills:
        return 30.0

    requirement_scores = []
    for requirement in task.required_skills or []:
        skill_name = requirement.skill.name if requirement.skill is not None else None
        entry = _find_member_skill(member, requirement.skill_id, skill_name)
        if entry is None:
            continue
        difference = (entry.proficiency_level or 0) - (requirement.minimum_level or 1)
        requirement_scores.append(_requirement_level_score(difference))

    type_scores = [
        (entry.proficiency_level or 0) * 20.0
        for entry in relevant_skills(member, task)
    ]

    avg_requirement = sum(requirement_scores) / len(requirement_scores) if requirement_scores else 0.0
    avg_type = sum(type_scores) / len(type_scores) if type_scores else 0.0

    if requirement_scores and type_scores:
        return avg_requirement * 0.6 + avg_type * 0.4
    if requirement_scores:
        return avg_requirement * 0.8
    if type_scores:
        return avg_type * 0.7
    return 20.0


def evaluate_experience(member: Member, task: Task) -> float:
    """Experience level adjusted for task type and complexity band."""
    level = _experience_level(member)
    score = float(EXPERIENCE_LEVEL_SCORES[level])
    novice = level in ("intern", "junior")
    task_type = task.task_type

    if task_type in ("development", "bug-fix") and novice:
        score -= 10
    if task_type == "documentation":
        score += 5
    if task_type in ("maintenance", "DEVOPS") and novice:
        score -= 15
    if task_type == "design" and level == "intern":
        score -= 10

    complexity = task_complexity(task)
    if complexity >= 8:
        score += {"intern": -30, "junior": -20, "mid-level": -10}.get(level, 10)
    elif complexity >= 5:
        score += {"intern": -20, "junior": -10}.get(level, 0)
    elif novice:
        score += 10

    return max(0.0, min(100.0, score))


def evaluate_complexity_fit(member: Member, task: Task) -> float:
    """
    How well the member's experience and proficiency cover the task complexity.
    A member whose average proficiency is low loses points on hard tasks.
    """
    entries = relevant_skills(member, task) or list(member.skills or [])
    levels = [entry.proficiency_level or 0 for entry in entries]
    avg_proficiency = sum(levels) / len(levels) if levels else 1.0

    gap = task_complexity(task) - 2 * avg_proficiency
    proficiency_fit = max(0.0, min(100.0, 100.0 - 15.0 * max(0.0, gap)))

    return (evaluate_experience(member, task) + proficiency_fit) / 2


def evaluate_workload(member: Member) -> float:
    """Higher for members with spare hours and high availability."""
    workload = member.workload or 0.0
    workload_factor = max(0.0, 100.0 - (workload / settings.max_workload_hours) * 100.0)
    return (_availability(member) + workload_factor) / 2


def evaluate_performance(member: Member) -> float:
    return _performance_rating(member) * 20.0


def _days_until(due: Optional[date], today: Optional[date] = None) -> Optional[int]:
    if due is None:
        return None
    return max(0, (due - (today or date.today())).days)


def calculate_member_score(member: Member, task: Task, today: Optional[date] = None) -> CandidateScore:
    """
    Compute the fitness score (0-100) of a member for a task.

    The weighted mean of the components is adjusted by penalties for missing
    skills or an out-of-range experience level, and by a bonus for strong
    performers on tasks due within three days.
    """
    performance_weight = settings.weight_performance
    if task_complexity(task) >= 7:
        performance_weight = settings.weight_performance_complex

    components = {
        "skills": (evaluate_skills(member, task), settings.weight_skills),
        "complexity_fit": (evaluate_complexity_fit(member, task), settings.weight_experience),
        "workload": (evaluate_workload(member), settings.weight_workload),
        "performance": (evaluate_performance(member), performance_weight),
    }

    total_weight = sum(weight for _, weight in components.values()) or 1.0
    score = sum(value * weight for value, weight in components.values()) / total_weight

    breakdown = {name: round(value, 2) for name, (value, _) in components.items()}

    if not has_required_skills_for_task_type(member, task):
        score -= MISSING_SKILLS_PENALTY
        breakdown["missing_skills_penalty"] = -MISSING_SKILLS_PENALTY

    if not is_experience_appropriate(member, task):
        score -= EXPERIENCE_MISMATCH_PENALTY
        breakdown["experience_penalty"] = -EXPERIENCE_MISMATCH_PENALTY

    days_left = _days_until(task.due_date, today)
    if days_left is not None and days_left <= URGENT_DAYS and _performance_rating(member) >= 4:
        score += URGENT_PERFORMANCE_BONUS
        breakdown["urgency_bonus"] = URGENT_PERFORMANCE_BONUS

    score = round(max(0.0, min(100.0, score)), 2)
    return CandidateScore(member=member, score=score, breakdown=breakdown)


def rank_candidates(members: List[Member], task: Task, today: Optional[date] = None) -> List[CandidateScore]:
    """
    Score and sort members, best first.
    Ties go to the lower workload, then the lower member id.
    """
    scored = [calculate_member_score(member, task, today) for member in members]
    scored.sort(key=CandidateScore.sort_key)
    return scored


# ============================================================================
# Candidate selection
# ============================================================================

def _narrow(candidates: List[Member], keep, reason: str) -> List[Member]:
    narrowed = [member for member in candidates if keep(member)]
    if not narrowed:
        logger.warning(f"No member passes the {reason} filter, keeping {len(candidates)} candidate(s)")
        return candidates
    excluded = len(candidates) - len(narrowed)
    if excluded:
        logger.debug(f"{excluded} member(s) excluded by the {reason} filter")
    return narrowed


def select_candidates(project: Project, task: Task) -> List[Member]:
    """
    Narrow a project roster down to the members worth scoring.

    Only active accounts with the plain member role, placed on the roster as
    members, are eligible. Team leaders and admins never receive tasks.

    The availability, skill and experience filters never empty the set: when
    nobody passes one, it is skipped with a warning. A fully overloaded team
    therefore still gets the task, given to whoever scores best.

    Raises:
        NoEligibleMembersError: the roster is empty, or holds only admins,
            team leaders and inactive accounts
    """
    if not project.members:
        raise NoEligibleMembersError(f"Project {project.project_id} has no members")

    candidates = [
        entry.member
        for entry in project.members
        if entry.member is not None
        and entry.role == "member"
        and entry.member.role == "member"
        and entry.member.is_active
    ]
    if not candidates:
        raise NoEligibleMembersError(
            f"Project {project.project_id} has no active members eligible for assignment"
        )

    candidates = _narrow(
        candidates,
        lambda m: (m.workload or 0.0) < settings.max_workload_hours
        or _availability(m) > settings.min_availability,
        "availability",
    )
    candidates = _narrow(candidates, lambda m: has_required_skills_for_task_type(m, task), "skills")
    candidates = _narrow(candidates, lambda m: is_experience_appropriate(m, task), "experience")
    return candidates


def check_dependencies_completed(task: Task) -> None:
    """Raise when any task this one depends on is still open."""
    pending = [dep for dep in task.dependencies or [] if dep.status != COMPLETED_STATUS]
    if pending:
        titles = ", ".join(dep.title or str(dep.task_id) for dep in pending)
        raise DependencyNotCompletedError(f"Tasks this task depends on are not completed: {titles}")


def find_best_member(db: Session, task: Task, project_id: int) -> List[CandidateScore]:
    """
    Rank the project's candidates for a task without changing anything.

    Returns:
        Candidates best first; never empty
    """
    project = repository.get_project_by_id(db, project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found")

    check_dependencies_completed(task)
    candidates = select_candidates(project, task)
    ranking = rank_candidates(candidates, task)
    log_ranking(
        task.title or "untitled",
        ((c.member.username, c.score, c.workload) for c in ranking),
        logger,
    )
    return ranking


@timed_operation("auto_assign")
def auto_assign_task(db: Session, task: Task, project_id: int, commit: bool = True) -> AssignmentResult:
    """
    Assign a task to the best-fit member of a project.

    Sets `assigned_to` and `auto_assigned` on the task and adds its estimated
    hours to the member's workload in the same transaction. On any write
    failure the transaction is rolled back, so the task is never left pointing
    at a member whose workload was not updated.

    Args:
        db: Session holding the task
        task: Task to assign (new or already stored)
        project_id: Project whose roster to pick from
        commit: Commit on success; pass False when the caller owns the transaction

    Returns:
        AssignmentResult with the task, the chosen member and the score

    Raises:
        NotFoundError: project does not exist
        NoEligibleMembersError: project has no candidates
        DependencyNotCompletedError: a dependency is still open
        PersistenceError: a write failed; nothing was persisted
    """
    ranking = find_best_member(db, task, project_id)
    best = ranking[0]
    member = best.member
    hours = task_hours(task)

    try:
        task.estimated_hours = hours
        repository.set_assigned_member(db, task, member.member_id, auto_assigned=True)
        repository.increment_workload(db, member.member_id, hours)
        if commit:
            db.commit()
    except (SQLAlchemyError, PersistenceError) as e:
        db.rollback()
        logger.error(f"Assignment of task '{task.title}' to {member.username} failed: {e}")
        if isinstance(e, PersistenceError):
            raise
        raise PersistenceError(f"Could not persist assignment to member {member.member_id}: {e}") from e

    repository.refresh_workload(db, member)
    logger.info(
        f"Task '{task.title}' assigned to {member.username} "
        f"(score {best.score:.2f}, workload now {member.workload:g}h)"
    )
    return AssignmentResult(task=task, member=member, score=best.score, ranking=ranking)
