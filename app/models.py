"""
SQLAlchemy models for the task assignment service.
Covers skills, members and their skills, projects and their rosters,
tasks with their skill requirements and dependencies.
"""
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


COMPLETED_STATUS = "completed"


task_dependencies = Table(
    "task_dependencies",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.task_id", ondelete="CASCADE"), primary_key=True),
    Column("depends_on_id", Integer, ForeignKey("tasks.task_id", ondelete="CASCADE"), primary_key=True),
)


class Skill(Base):
    """
    Model for skills that members hold and tasks require.
    """
    __tablename__ = "skills"

    skill_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    category = Column(String(20), nullable=False, default="technical")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Skill(skill_id={self.skill_id}, name={self.name})>"

    def to_dict(self) -> dict:
        return {
            "skill_id": self.skill_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
        }


class Member(Base):
    """
    Model for team members.
    `workload` holds the estimated hours of open tasks assigned to the member.
    """
    __tablename__ = "members"

    member_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(120), nullable=False, unique=True)
    email = Column(String(200), nullable=False, unique=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=False, default="member")
    experience_level = Column(String(20), nullable=False, default="mid-level")
    availability = Column(Integer, nullable=False, default=100)
    performance_rating = Column(Integer, nullable=False, default=3)
    workload = Column(Float, nullable=False, default=0.0)
    is_active = Column(Boolean, nullable=False, default=True)

    skills = relationship(
        "MemberSkill",
        back_populates="member",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tasks = relationship("Task", back_populates="assignee")

    def __repr__(self) -> str:
        return f"<Member(member_id={self.member_id}, username={self.username})>"

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "username": self.username,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "experience_level": self.experience_level,
            "availability": self.availability,
            "performance_rating": self.performance_rating,
            "workload": self.workload,
            "is_active": self.is_active,
            "skills": [s.to_dict() for s in self.skills],
        }


class MemberSkill(Base):
    """
    Model for a skill held by a member, with proficiency 1-5.
    """
    __tablename__ = "member_skills"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.member_id", ondelete="CASCADE"), nullable=False)
    skill_id = Column(Integer, ForeignKey("skills.skill_id", ondelete="CASCADE"), nullable=False)
    proficiency_level = Column(Integer, nullable=False, default=1)
    years_of_experience = Column(Float, nullable=False, default=0.0)

    member = relationship("Member", back_populates="skills")
    skill = relationship("Skill", lazy="joined")

    __table_args__ = (
        UniqueConstraint("member_id", "skill_id", name="uq_member_skill"),
    )

    def to_dict(self) -> dict:
        return {
            "skill_id": self.skill_id,
            "skill_name": self.skill.name if self.skill else None,
            "proficiency_level": self.proficiency_level,
            "years_of_experience": self.years_of_experience,
        }


class Project(Base):
    """
    Model for projects.
    """
    __tablename__ = "projects"

    project_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=False, default="general")
    start_date = Column(Date, nullable=True)
    deadline = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_updated = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    members = relationship(
        "ProjectMember",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProjectMember.member_id",
    )
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Project(project_id={self.project_id}, name={self.name})>"

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "members": [m.to_dict() for m in self.members],
        }


class ProjectMember(Base):
    """
    Model for a member's place on a project roster.
    """
    __tablename__ = "project_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    member_id = Column(Integer, ForeignKey("members.member_id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), nullable=False, default="member")
    added_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    project = relationship("Project", back_populates="members")
    member = relationship("Member", lazy="joined")

    __table_args__ = (
        UniqueConstraint("project_id", "member_id", name="uq_project_member"),
    )

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "username": self.member.username if self.member else None,
            "role": self.role,
        }


class TaskSkillRequirement(Base):
    """
    Model for an explicit skill requirement on a task.
    """
    __tablename__ = "task_skill_requirements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.task_id", ondelete="CASCADE"), nullable=False)
    skill_id = Column(Integer, ForeignKey("skills.skill_id", ondelete="CASCADE"), nullable=False)
    minimum_level = Column(Integer, nullable=False, default=1)

    task = relationship("Task", back_populates="required_skills")
    skill = relationship("Skill", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "skill_id": self.skill_id,
            "skill_name": self.skill.name if self.skill else None,
            "minimum_level": self.minimum_level,
        }


class Task(Base):
    """
    Model for tasks belonging to a project.
    """
    __tablename__ = "tasks"

    task_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    task_type = Column(String(30), nullable=False, default="development")
    priority = Column(String(10), nullable=False, default="medium")
    estimated_hours = Column(Float, nullable=False, default=8.0)
    actual_hours = Column(Float, nullable=False, default=0.0)
    complexity = Column(Integer, nullable=False, default=5)
    assigned_to = Column(Integer, ForeignKey("members.member_id", ondelete="SET NULL"), nullable=True)
    auto_assigned = Column(Boolean, nullable=False, default=False)
    project_id = Column(Integer, ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    due_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    assignee = relationship("Member", back_populates="tasks")
    project = relationship("Project", back_populates="tasks")
    required_skills = relationship(
        "TaskSkillRequirement",
        back_populates="task",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    dependencies = relationship(
        "Task",
        secondary=task_dependencies,
        primaryjoin=task_id == task_dependencies.c.task_id,
        secondaryjoin=task_id == task_dependencies.c.depends_on_id,
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_tasks_project", "project_id"),
        Index("ix_tasks_assigned_to", "assigned_to"),
    )

    def __repr__(self) -> str:
        return f"<Task(task_id={self.task_id}, assigned_to={self.assigned_to})>"

    @property
    def is_open(self) -> bool:
        return self.status != COMPLETED_STATUS

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "task_type": self.task_type,
            "priority": self.priority,
            "estimated_hours": self.estimated_hours,
            "actual_hours": self.actual_hours,
            "complexity": self.complexity,
            "assigned_to": self.assigned_to,
            "auto_assigned": self.auto_assigned,
            "project_id": self.project_id,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "dependencies": [d.task_id for d in self.dependencies],
            "required_skills": [r.to_dict() for r in self.required_skills],
        }
