import os
import tempfile

# Point the module-level engine at a throwaway SQLite file before app modules load
os.environ["DATABASE_URL"] = f"sqlite:///{tempfile.mkdtemp()}/import.db"
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.db import build_engine, get_db, init_db
from app.models import Member, MemberSkill, Project, ProjectMember, Skill, Task
from app.notifications import InMemoryNotificationPublisher, get_publisher
from main import create_app


class RosterBuilder:
    """Creates skills, members, projects and tasks straight through the ORM."""

    def __init__(self, db):
        self.db = db
        self._skills = {}

    def skill(self, name: str) -> Skill:
        if name not in self._skills:
            skill = Skill(name=name, category="technical")
            self.db.add(skill)
            self.db.flush()
            self._skills[name] = skill
        return self._skills[name]

    def member(self, username: str, skills=None, **fields) -> Member:
        fields.setdefault("email", f"{username}@example.com")
        fields.setdefault("workload", 0.0)
        fields.setdefault("role", "member")
        fields.setdefault("is_active", True)
        member = Member(username=username, **fields)
        for name, level in (skills or {}).items():
            member.skills.append(MemberSkill(skill=self.skill(name), proficiency_level=level))
        self.db.add(member)
        self.db.flush()
        return member

    def project(self, members=(), admins=(), **fields) -> Project:
        fields.setdefault("name", "Demo project")
        project = Project(**fields)
        for member in members:
            project.members.append(ProjectMember(member=member, role="member"))
        for member in admins:
            project.members.append(ProjectMember(member=member, role="admin"))
        self.db.add(project)
        self.db.commit()
        return project

    def task(self, project: Project, **fields) -> Task:
        fields.setdefault("title", "Some task")
        fields.setdefault("estimated_hours", 8.0)
        fields.setdefault("complexity", 5)
        task = Task(project_id=project.project_id, **fields)
        self.db.add(task)
        self.db.commit()
        return task


@pytest.fixture
def engine(tmp_path):
    test_engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def roster(db):
    return RosterBuilder(db)


@pytest.fixture
def publisher():
    return InMemoryNotificationPublisher()


@pytest.fixture
def client(session_factory, publisher):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_publisher] = lambda: publisher
    return TestClient(app)


@pytest.fixture
def fresh_workload(session_factory):
    """Read a member's stored workload through a new session."""
    def read(member_id: int) -> float:
        session = session_factory()
        try:
            return session.get(Member, member_id).workload
        finally:
            session.close()
    return read
