# routers/subject_router.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from huda.crud.grades import add_subject, get_catalog, remove_subject
from huda.database import get_db
from huda.models.all_models import User
from huda.schemas.grades_schemas import SubjectCreate, SubjectListResponse
from huda.utils.auth import get_current_user, verify_principal


router = APIRouter(prefix="/api/subjects", tags=["Subjects"])


@router.get("/", response_model=SubjectListResponse)
def get_all_subjects(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return {"subjects": get_catalog(db)}


@router.post("/", response_model=SubjectListResponse, status_code=status.HTTP_201_CREATED)
def create_subject(
    subject: SubjectCreate,
    db: Session = Depends(get_db),
    _: User = Depends(verify_principal)
):
    add_subject(db, subject.name)
    return {"subjects": get_catalog(db)}


@router.delete("/{name}", response_model=SubjectListResponse)
def delete_subject(
    name: str,
    db: Session = Depends(get_db),
    _: User = Depends(verify_principal)
):
    remove_subject(db, name)
    return {"subjects": get_catalog(db)}
