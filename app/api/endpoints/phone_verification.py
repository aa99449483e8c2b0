"""
Phone verification endpoints.

- POST /phone/send-code: Issue a 6-digit code and deliver it to the phone
- POST /phone/verify-code: Confirm the code
- GET /phone/status: Lifecycle state of the code for a phone number

Error responses are produced by the exception handlers in main.py.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_user, get_verification_service
from app.core.verification import PhoneVerificationService
from app.crud import profile as profile_crud
from app.models.user import User
from app.schemas.phone import (
    SendCodeRequest,
    VerifyCodeRequest,
    PhoneVerificationResponse,
    PhoneVerificationStatusResponse
)

router = APIRouter(prefix="/phone", tags=["Phone Verification"])
logger = logging.getLogger(__name__)


@router.post("/send-code", response_model=PhoneVerificationResponse)
def send_code(
    request: SendCodeRequest,
    current_user: User = Depends(get_current_user),
    service: PhoneVerificationService = Depends(get_verification_service)
):
    """
    Generate a verification code and deliver it to `phoneNumber`.

    Any earlier code for the same number is replaced.

    Raises:
        400: Validation error, invalid number, VOIP number, non US/Canada number
        500: Verification not configured or delivery failed
    """
    service.send_code(current_user.id, request.phone_number)

    return PhoneVerificationResponse(success=True, message="Verification code sent")


@router.post("/verify-code", response_model=PhoneVerificationResponse)
def verify_code(
    request: VerifyCodeRequest,
    current_user: User = Depends(get_current_user),
    service: PhoneVerificationService = Depends(get_verification_service),
    db: Session = Depends(get_db)
):
    """
    Confirm the code sent to `phoneNumber`.

    When `profileId` names one of the caller's profiles carrying the same
    phone number, the code is claimed for that profile immediately.

    Raises:
        400: Invalid or expired verification code
        404: `profileId` is not one of the caller's profiles
    """
    profile = None
    if request.profile_id is not None:
        profile = profile_crud.get_by_id(db, request.profile_id)
        if not profile or profile.user_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Profile not found"
            )

    service.verify_code(current_user.id, request.phone_number, request.code)

    if profile is not None and profile.phone_number == request.phone_number:
        try:
            if service.bind_to_profile(current_user.id, request.phone_number, commit=False):
                profile_crud.mark_phone_verified(db, profile)
                logger.info(f"Profile {profile.id} stamped phone-verified")
        except Exception:
            db.rollback()
            raise

    return PhoneVerificationResponse(success=True, message="Phone number verified successfully")


@router.get("/status", response_model=PhoneVerificationStatusResponse)
def verification_status(
    phone_number: str = Query(..., alias="phoneNumber", min_length=1),
    current_user: User = Depends(get_current_user),
    service: PhoneVerificationService = Depends(get_verification_service)
):
    """Report whether a code for `phoneNumber` is pending, expired, verified or consumed."""
    return PhoneVerificationStatusResponse(
        phone_number=phone_number,
        state=service.status(current_user.id, phone_number)
    )
