"""
Matrimony profile model.

A profile may be created by the member themselves or on their behalf by a
family member (recorded in `created_by`).
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Uuid, ForeignKey, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(String, nullable=False)  # 'Male' | 'Female'
    denomination = Column(String, nullable=False)
    location = Column(String, nullable=False)
    occupation = Column(String, nullable=True)
    about_me = Column(Text, nullable=True)
    partner_preferences = Column(Text, nullable=True)
    photo_url = Column(String, nullable=True)

    # Stored as submitted; only stamped verified through a consumed phone verification
    phone_number = Column(String, nullable=True)
    phone_verified = Column(Boolean, nullable=False, default=False)

    created_by = Column(String, nullable=False)  # 'Self', 'Parent', 'Sibling', ...
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="profiles")

    def __repr__(self):
        return f"<Profile(id={self.id}, user_id={self.user_id}, phone_verified={self.phone_verified})>"
