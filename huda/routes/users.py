from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field
from huda.core.records import UserRole
from huda.crud.students import create_user
from huda.database import get_db
from huda.models.all_models import Student, User
from huda.schemas.auth import UserCreate, UserResponse
from huda.utils.auth import get_current_user, get_password_hash, verify_password, verify_principal

router = APIRouter(prefix="/api/users", tags=["users"])

# ----------------------
# SCHEMAS
# ----------------------

class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    whatsapp: Optional[str] = None
    assigned_classes: Optional[List[str]] = None
    is_active: Optional[bool] = None

class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=4)

# ----------------------
# ROUTES
# ----------------------

@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_new_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    _: User = Depends(verify_principal)
):
    if db.query(User).filter(User.username == user_in.username).first():
        raise HTTPException(status_code=400, detail="Username already registered")

    if user_in.role == UserRole.STUDENT:
        if not user_in.student_id:
            raise HTTPException(status_code=400, detail="Student accounts must reference a student")
        if not db.query(Student).filter(Student.id == user_in.student_id).first():
            raise HTTPException(status_code=404, detail="Student not found")
    elif user_in.student_id:
        raise HTTPException(status_code=400, detail="Only student accounts may reference a student")

    user = create_user(
        db,
        username=user_in.username,
        password=user_in.password,
        name=user_in.name,
        role=user_in.role,
        whatsapp=user_in.whatsapp,
        assigned_classes=user_in.assigned_classes,
        student_id=user_in.student_id,
    )
    db.commit()
    db.refresh(user)
    return user

@router.get("/", response_model=List[UserResponse])
def list_users(
    role: Optional[UserRole] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(verify_principal)
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    return query.order_by(User.role, User.name).all()

@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    update: UserUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(verify_principal)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user

@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    request: PasswordChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if not verify_password(request.current_password, current_user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    current_user.password_hash = get_password_hash(request.new_password)
    db.commit()
    return None
