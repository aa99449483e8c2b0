"""
Phone verification model for 6-digit one-time codes.

One row per (user, phone number) pair. Issuing a new code overwrites the
row in place, so a pair never has more than one outstanding code. Rows are
never swept: expired codes stay in the table and simply stop matching.
"""

import enum
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Uuid, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from app.core.database import Base


class VerificationState(str, enum.Enum):
    """Lifecycle state of a (user, phone number) pair; derived, never stored."""
    NONE = "none"
    PENDING = "pending"
    EXPIRED = "expired"
    VERIFIED = "verified"
    CONSUMED = "consumed"


class PhoneVerification(Base):
    """
    Lifecycle: pending -> verified -> consumed.

    - `verified` flips to True once, when the matching code is submitted
      before `expires_at`
    - `consumed` flips to True once, when profile creation claims the
      verified code
    """
    __tablename__ = "phone_verifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # As submitted by the client; the delivery gateway normalizes its own copy
    phone_number = Column(String, nullable=False)

    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    verified = Column(Boolean, nullable=False, default=False)
    consumed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="phone_verifications")

    __table_args__ = (
        UniqueConstraint('user_id', 'phone_number', name='uq_phone_verifications_user_phone'),
        Index('ix_phone_verifications_expires_at', 'expires_at'),
    )

    def __repr__(self):
        return (
            f"<PhoneVerification(user_id={self.user_id}, verified={self.verified}, "
            f"consumed={self.consumed}, expires_at={self.expires_at})>"
        )
