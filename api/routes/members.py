from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import roster_service
from app.db import get_db
from schemas.members import MemberCreate, MemberListResponse, MemberOut, MemberSkillIn, MemberUpdate

router = APIRouter(prefix="/api/members", tags=["Members"])


@router.post("", response_model=MemberOut, status_code=201)
def create_member(payload: MemberCreate, db: Session = Depends(get_db)):
    """Create a member, optionally with skills."""
    member = roster_service.create_member(db, payload)
    return MemberOut(**member.to_dict())


@router.get("", response_model=MemberListResponse)
def list_members(skip: int = 0, limit: int = 50, db: Session = Depends(get_db)):
    members = roster_service.list_members(db, skip, limit)
    return MemberListResponse(
        members=[MemberOut(**m.to_dict()) for m in members],
        total=roster_service.count_members(db),
    )


@router.get("/{member_id}", response_model=MemberOut)
def get_member(member_id: int, db: Session = Depends(get_db)):
    return MemberOut(**roster_service.get_member(db, member_id).to_dict())


@router.patch("/{member_id}", response_model=MemberOut)
def update_member(member_id: int, payload: MemberUpdate, db: Session = Depends(get_db)):
    """Update a member's profile, e.g. deactivate the account."""
    member = roster_service.update_member(db, member_id, payload)
    return MemberOut(**member.to_dict())


@router.put("/{member_id}/skills", response_model=MemberOut)
def set_member_skill(member_id: int, payload: MemberSkillIn, db: Session = Depends(get_db)):
    """Add a skill to a member or change its proficiency."""
    member = roster_service.set_member_skill(db, member_id, payload)
    return MemberOut(**member.to_dict())


@router.post("/{member_id}/workload/recompute", response_model=MemberOut)
def recompute_workload(member_id: int, db: Session = Depends(get_db)):
    """Reset the member's workload from their open tasks."""
    member = roster_service.recompute_workload(db, member_id)
    return MemberOut(**member.to_dict())
