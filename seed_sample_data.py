from datetime import date, timedelta

from dotenv import load_dotenv

load_dotenv()

from app import roster_service, task_service
from app.db import get_db_session, init_db
from app.models import Member, MemberSkill, Project, ProjectMember, Skill, Task, TaskSkillRequirement
from schemas.members import MemberCreate, MemberSkillIn
from schemas.projects import ProjectCreate
from schemas.skills import SkillCreate
from schemas.tasks import TaskCreate


def main() -> None:
    init_db()

    skills = [
        ("JavaScript", "technical"),
        ("React", "technical"),
        ("Node.js", "technical"),
        ("Testing", "technical"),
        ("Docker", "technical"),
        ("Figma", "technical"),
        ("Technical Writing", "soft"),
    ]

    members = [
        ("amira", "amira@example.com", "senior", [("JavaScript", 5), ("Node.js", 4)]),
        ("yassine", "yassine@example.com", "junior", [("JavaScript", 3), ("React", 3)]),
        ("leila", "leila@example.com", "mid-level", [("Testing", 4), ("Docker", 3)]),
        ("omar", "omar@example.com", "expert", [("Figma", 5), ("Technical Writing", 4)]),
    ]

    tasks = [
        ("Build login API", "development", 12, 7),
        ("Write end-to-end checkout tests", "testing", 8, 5),
        ("Containerize the backend", "maintenance", 6, 6),
        ("Design onboarding screens", "design", 10, 4),
        ("Fix session expiry bug", "bug-fix", 4, 3),
    ]

    with get_db_session() as db:
        for model in (TaskSkillRequirement, Task, ProjectMember, Project, MemberSkill, Member, Skill):
            db.query(model).delete()

    with get_db_session() as db:
        for name, category in skills:
            roster_service.create_skill(db, SkillCreate(name=name, category=category))

        member_ids = []
        for username, email, level, member_skills in members:
            member = roster_service.create_member(db, MemberCreate(
                username=username,
                email=email,
                experience_level=level,
                skills=[MemberSkillIn(skill_name=s, proficiency_level=p) for s, p in member_skills],
            ))
            member_ids.append(member.member_id)

        project = roster_service.create_project(db, ProjectCreate(
            name="Customer Portal",
            description="Self-service portal for customers",
            category="web",
            start_date=date.today(),
            deadline=date.today() + timedelta(days=60),
            member_ids=member_ids,
        ))

        for index, (title, task_type, hours, complexity) in enumerate(tasks):
            result = task_service.create_task(db, TaskCreate(
                title=title,
                task_type=task_type,
                estimated_hours=hours,
                complexity=complexity,
                project_id=project.project_id,
                due_date=date.today() + timedelta(days=2 * (index + 1)),
                auto_assign=True,
            ))
            print(f"{title!r} -> {result.member.username} (score {result.score:.2f})")

        for member in roster_service.list_members(db):
            print(f"{member.username}: workload {member.workload:g}h")


if __name__ == "__main__":
    main()
