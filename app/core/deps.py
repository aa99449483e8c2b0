"""
FastAPI dependencies for authentication and phone verification wiring.
"""

from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.security import decode_token
from app.core.verification import PhoneVerificationService
from app.crud.phone_verification import SQLAlchemyVerificationStore, VerificationStore
from app.models.user import User
from app.services.sms_gateway import DeliveryGateway

# HTTP Bearer token scheme (Authorization: Bearer <token>)
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the signed-in user from the session token.

    Raises:
        HTTPException 401: Missing/invalid token or unknown user
        HTTPException 403: Inactive account
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    try:
        payload = decode_token(credentials.credentials)
        user_id = UUID(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return user


def get_delivery_gateway(request: Request) -> DeliveryGateway:
    """The gateway built once during application startup."""
    return request.app.state.delivery_gateway


def get_verification_store(db: Session = Depends(get_db)) -> VerificationStore:
    return SQLAlchemyVerificationStore(
        db,
        expiration_minutes=settings.VERIFICATION_CODE_EXPIRATION_MINUTES
    )


def get_verification_service(
    store: VerificationStore = Depends(get_verification_store),
    gateway: DeliveryGateway = Depends(get_delivery_gateway)
) -> PhoneVerificationService:
    return PhoneVerificationService(
        store,
        gateway,
        require_verification=settings.REQUIRE_PHONE_VERIFICATION
    )
