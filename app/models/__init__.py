"""
Database models package.
"""

from app.models.user import User
from app.models.profile import Profile
from app.models.phone_verification import PhoneVerification, VerificationState

__all__ = ["User", "Profile", "PhoneVerification", "VerificationState"]
