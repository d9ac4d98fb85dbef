from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ProjectRole = Literal["admin", "member"]


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category: str = "general"
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    member_ids: List[int] = Field(default_factory=list)


class ProjectMemberIn(BaseModel):
    member_id: int
    role: ProjectRole = "member"


class ProjectMemberOut(BaseModel):
    member_id: int
    username: Optional[str] = None
    role: str


class ProjectOut(BaseModel):
    project_id: int
    name: str
    description: str
    category: str
    start_date: Optional[str] = None
    deadline: Optional[str] = None
    members: List[ProjectMemberOut] = []
