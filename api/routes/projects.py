from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import roster_service
from app.db import get_db
from schemas.projects import ProjectCreate, ProjectMemberIn, ProjectOut

router = APIRouter(prefix="/api/projects", tags=["Projects"])


@router.post("", response_model=ProjectOut, status_code=201)
def create_project(payload: ProjectCreate, db: Session = Depends(get_db)):
    project = roster_service.create_project(db, payload)
    return ProjectOut(**project.to_dict())


@router.get("/{project_id}", response_model=ProjectOut)
def get_project(project_id: int, db: Session = Depends(get_db)):
    return ProjectOut(**roster_service.get_project(db, project_id).to_dict())


@router.post("/{project_id}/members", response_model=ProjectOut, status_code=201)
def add_project_member(project_id: int, payload: ProjectMemberIn, db: Session = Depends(get_db)):
    project = roster_service.add_project_member(db, project_id, payload.member_id, payload.role)
    return ProjectOut(**project.to_dict())


@router.delete("/{project_id}/members/{member_id}", response_model=ProjectOut)
def remove_project_member(project_id: int, member_id: int, db: Session = Depends(get_db)):
    """Remove a member from the roster. Fails while they hold open tasks on the project."""
    project = roster_service.remove_project_member(db, project_id, member_id)
    return ProjectOut(**project.to_dict())
