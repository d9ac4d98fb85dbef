from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ExperienceLevel = Literal["intern", "junior", "mid-level", "senior", "expert", "lead"]
MemberRole = Literal["admin", "TeamLeader", "member"]


class MemberSkillIn(BaseModel):
    skill_id: Optional[int] = None
    skill_name: Optional[str] = None
    proficiency_level: int = Field(..., ge=1, le=5)
    years_of_experience: float = Field(default=0.0, ge=0)


class MemberSkillOut(BaseModel):
    skill_id: int
    skill_name: Optional[str] = None
    proficiency_level: int
    years_of_experience: float


class MemberCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=200)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: MemberRole = "member"
    experience_level: ExperienceLevel = "mid-level"
    availability: int = Field(default=100, ge=0, le=100)
    performance_rating: int = Field(default=3, ge=1, le=5)
    skills: List[MemberSkillIn] = Field(default_factory=list)


class MemberUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[MemberRole] = None
    experience_level: Optional[ExperienceLevel] = None
    availability: Optional[int] = Field(default=None, ge=0, le=100)
    performance_rating: Optional[int] = Field(default=None, ge=1, le=5)
    is_active: Optional[bool] = None


class MemberSummary(BaseModel):
    member_id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    workload: float


class MemberOut(BaseModel):
    member_id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    experience_level: str
    availability: int
    performance_rating: int
    workload: float
    is_active: bool
    skills: List[MemberSkillOut] = []


class MemberListResponse(BaseModel):
    members: List[MemberOut]
    total: int
