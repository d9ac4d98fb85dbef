from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import roster_service
from app.db import get_db
from schemas.skills import SkillCreate, SkillListResponse, SkillOut

router = APIRouter(prefix="/api/skills", tags=["Skills"])


@router.post("", response_model=SkillOut, status_code=201)
def create_skill(payload: SkillCreate, db: Session = Depends(get_db)):
    skill = roster_service.create_skill(db, payload)
    return SkillOut(**skill.to_dict())


@router.get("", response_model=SkillListResponse)
def list_skills(db: Session = Depends(get_db)):
    skills = roster_service.list_skills(db)
    return SkillListResponse(skills=[SkillOut(**s.to_dict()) for s in skills], total=len(skills))
