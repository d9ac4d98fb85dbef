from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SkillCategory = Literal["technical", "soft", "domain", "other"]


class SkillCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    category: SkillCategory = "technical"


class SkillOut(BaseModel):
    skill_id: int
    name: str
    description: Optional[str] = None
    category: str


class SkillListResponse(BaseModel):
    skills: List[SkillOut]
    total: int
