import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db, transaction
from ..errors import (
    FOREIGN_KEY_VIOLATION,
    UNIQUE_VIOLATION,
    ConflictError,
    NotFoundError,
    ValidationError,
    integrity_error_code,
)
from ..models import User
from ..shared.validators import (
    clean_description,
    normalize_name,
    validate_email,
    validate_positive_id,
    validate_us_phone,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


class UserCreate(BaseModel):
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None
    description: Optional[str] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def validate_names(cls, v, info):
        return normalize_name(v, info.field_name.replace("_", " "))

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone_field(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValidationError("phone cannot be empty")
        return validate_us_phone(v)

    @field_validator("email", mode="before")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v):
        return clean_description(v)


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def validate_names(cls, v, info):
        if v is None:
            return v
        return normalize_name(v, info.field_name.replace("_", " "))

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone_field(cls, v):
        if v is None:
            return v
        return validate_us_phone(v)

    @field_validator("email", mode="before")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v):
        return clean_description(v)


class UserResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str]
    phone: str
    description: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def _get_user_or_404(db: Session, user_id) -> User:
    user = db.query(User).filter(User.id == validate_positive_id(user_id)).first()
    if not user:
        raise NotFoundError("user not found")
    return user


@router.get("", response_model=list[UserResponse])
def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.id.desc()).all()


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return _get_user_or_404(db, user_id)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(data: UserCreate, db: Session = Depends(get_db)):
    logger.info(f"📥 Creating user: {data.first_name} {data.last_name}")
    try:
        with transaction(db):
            user = User(**data.model_dump())
            db.add(user)
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == UNIQUE_VIOLATION:
            raise ConflictError("email already exists") from e
        raise

    db.refresh(user)
    return user


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(user_id: str, data: UserUpdate, db: Session = Depends(get_db)):
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("no fields provided for update")

    try:
        with transaction(db):
            user = _get_user_or_404(db, user_id)
            for field, value in updates.items():
                if field in ("first_name", "last_name", "phone") and value is None:
                    raise ValidationError(f"{field.replace('_', ' ')} cannot be empty")
                setattr(user, field, value)
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == UNIQUE_VIOLATION:
            raise ConflictError("email already exists") from e
        raise

    db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    try:
        with transaction(db):
            user = _get_user_or_404(db, user_id)
            db.delete(user)
            db.flush()
    except IntegrityError as e:
        if integrity_error_code(e) == FOREIGN_KEY_VIOLATION:
            raise ConflictError("cannot delete user with appointments") from e
        raise
    logger.info(f"🗑️ Deleted user {user_id}")
    return Response(status_code=204)
