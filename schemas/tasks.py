from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from schemas.members import MemberSummary

TaskStatus = Literal["pending", "in-progress", "in-review", "to-do", "backlog", "completed"]
TaskType = Literal[
    "development", "design", "testing", "documentation", "bug-fix",
    "feature", "maintenance", "DEVOPS", "JS", "JAVA", "other",
]
TaskPriority = Literal["low", "medium", "high"]


class SkillRequirementIn(BaseModel):
    skill_id: Optional[int] = None
    skill_name: Optional[str] = None
    minimum_level: int = Field(default=1, ge=1, le=5)

    @model_validator(mode="after")
    def check_reference(self):
        if self.skill_id is None and not self.skill_name:
            raise ValueError("skill_id or skill_name is required")
        return self


class SkillRequirementOut(BaseModel):
    skill_id: int
    skill_name: Optional[str] = None
    minimum_level: int


class TaskCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    status: TaskStatus = "pending"
    task_type: TaskType = "development"
    priority: TaskPriority = "medium"
    estimated_hours: Optional[float] = Field(default=None, gt=0)
    complexity: Optional[int] = Field(default=None, ge=1, le=10)
    project_id: int
    assigned_to: Optional[int] = None
    due_date: Optional[date] = None
    dependencies: List[int] = Field(default_factory=list)
    required_skills: List[SkillRequirementIn] = Field(default_factory=list)
    auto_assign: bool = Field(default=False, alias="autoAssign")


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    task_type: Optional[TaskType] = None
    priority: Optional[TaskPriority] = None
    estimated_hours: Optional[float] = Field(default=None, gt=0)
    actual_hours: Optional[float] = Field(default=None, ge=0)
    complexity: Optional[int] = Field(default=None, ge=1, le=10)
    due_date: Optional[date] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskReassign(BaseModel):
    member_id: int


class TaskOut(BaseModel):
    task_id: int
    title: str
    description: Optional[str] = None
    status: str
    task_type: str
    priority: str
    estimated_hours: float
    actual_hours: float
    complexity: int
    assigned_to: Optional[int] = None
    auto_assigned: bool
    project_id: int
    due_date: Optional[str] = None
    dependencies: List[int] = []
    required_skills: List[SkillRequirementOut] = []


class TaskCreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    task: TaskOut
    assigned_member: Optional[MemberSummary] = Field(default=None, alias="assignedMember")
    score: Optional[float] = None


class TaskListResponse(BaseModel):
    tasks: List[TaskOut]
    total: int


class CandidateOut(BaseModel):
    member: MemberSummary
    score: float
    breakdown: Dict[str, float]


class CandidateListResponse(BaseModel):
    task_id: int
    candidates: List[CandidateOut]
