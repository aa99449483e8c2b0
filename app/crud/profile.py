"""
CRUD operations for Profile model.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.profile import Profile
from app.schemas.profile import ProfileCreateRequest, ProfileUpdateRequest


def create(db: Session, user_id: UUID, profile_data: ProfileCreateRequest, phone_verified: bool = False) -> Profile:
    """
    Create a profile owned by `user_id`.

    `phone_verified` is decided by the caller after binding a verification
    code; it is never taken from the request body.
    """
    db_profile = Profile(
        **profile_data.model_dump(),
        user_id=user_id,
        phone_verified=phone_verified
    )

    db.add(db_profile)
    db.commit()
    db.refresh(db_profile)

    return db_profile


def get_by_id(db: Session, profile_id: int) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.id == profile_id).first()


def get_by_user_id(db: Session, user_id: UUID) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.user_id == user_id).order_by(Profile.id).first()


def update(db: Session, db_profile: Profile, updates: ProfileUpdateRequest, phone_verified: Optional[bool] = None) -> Profile:
    """
    Apply the fields present in `updates`.

    Args:
        phone_verified: New verification stamp when the phone number changed,
            None to leave it as is
    """
    for field, value in updates.model_dump(exclude_unset=True).items():
        setattr(db_profile, field, value)

    if phone_verified is not None:
        db_profile.phone_verified = phone_verified

    db.commit()
    db.refresh(db_profile)

    return db_profile


def mark_phone_verified(db: Session, db_profile: Profile) -> Profile:
    db_profile.phone_verified = True
    db.commit()
    db.refresh(db_profile)
    return db_profile


def delete(db: Session, db_profile: Profile) -> None:
    db.delete(db_profile)
    db.commit()
