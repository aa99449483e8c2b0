"""
Profile endpoints.

A phone number submitted with a profile is only stamped verified when the
owner has a verified, not yet used code for that exact number; saving the
profile uses the code up.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.celery_utils import queue_task_safely
from app.core.database import get_db
from app.core.deps import get_current_user, get_verification_service
from app.core.verification import PhoneVerificationService
from app.crud import profile as profile_crud
from app.models.profile import Profile
from app.models.user import User
from app.schemas.profile import ProfileCreateRequest, ProfileUpdateRequest, ProfileResponse
from app.tasks.email_tasks import send_profile_notification_task

router = APIRouter(prefix="/profiles", tags=["Profiles"])
logger = logging.getLogger(__name__)


def notify_profile_change(action: str, profile: Profile) -> None:
    """Queue the operations notification email, if an inbox is configured."""
    if not settings.PROFILE_NOTIFICATION_EMAIL:
        return

    queued = queue_task_safely(
        send_profile_notification_task,
        action=action,
        profile_id=profile.id,
        profile_data={
            "first_name": profile.first_name,
            "last_name": profile.last_name,
            "gender": profile.gender,
            "location": profile.location,
            "denomination": profile.denomination,
        }
    )
    if not queued:
        # Notification is best-effort; the profile is already saved
        logger.error(f"Profile {profile.id} {action} notification not queued")


def get_owned_profile(profile_id: int, current_user: User, db: Session) -> Profile:
    profile = profile_crud.get_by_id(db, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    if profile.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    return profile


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProfileResponse)
def create_profile(
    request: ProfileCreateRequest,
    current_user: User = Depends(get_current_user),
    service: PhoneVerificationService = Depends(get_verification_service),
    db: Session = Depends(get_db)
):
    """
    Create a profile for the current user (or a family member they manage).

    Raises:
        400: Validation error, or unverified phone number when verification
            is required
    """
    # The code is claimed in the same transaction that inserts the profile
    phone_verified = False
    try:
        if request.phone_number:
            phone_verified = service.bind_to_profile(current_user.id, request.phone_number, commit=False)

        profile = profile_crud.create(db, current_user.id, request, phone_verified=phone_verified)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Profile {profile.id} created by user {current_user.id} (phone verified: {phone_verified})")

    notify_profile_change("created", profile)
    return profile


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    profile = profile_crud.get_by_user_id(db, current_user.id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.get("/{profile_id}", response_model=ProfileResponse)
def get_profile(profile_id: int, db: Session = Depends(get_db)):
    profile = profile_crud.get_by_id(db, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.put("/{profile_id}", response_model=ProfileResponse)
def update_profile(
    profile_id: int,
    request: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: PhoneVerificationService = Depends(get_verification_service),
    db: Session = Depends(get_db)
):
    """
    Update the caller's profile.

    Changing the phone number re-runs verification binding: the profile is
    verified again only if a verified code exists for the new number.
    """
    profile = get_owned_profile(profile_id, current_user, db)

    phone_verified = None
    try:
        if "phone_number" in request.model_fields_set and request.phone_number != profile.phone_number:
            phone_verified = False
            if request.phone_number:
                phone_verified = service.bind_to_profile(current_user.id, request.phone_number, commit=False)

        profile = profile_crud.update(db, profile, request, phone_verified=phone_verified)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Profile {profile.id} updated by user {current_user.id}")

    notify_profile_change("updated", profile)
    return profile


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_profile(
    profile_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    profile = get_owned_profile(profile_id, current_user, db)
    profile_crud.delete(db, profile)
    logger.info(f"Profile {profile_id} deleted by user {current_user.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
