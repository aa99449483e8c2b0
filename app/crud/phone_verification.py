"""
Persistence for phone verification codes.

`VerificationStore` is the interface the verification service depends on;
`SQLAlchemyVerificationStore` is the database-backed implementation used by
the API. Every write is a single statement, so the guards on `verified`,
`consumed` and `expires_at` are evaluated by the database at write time.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.models.phone_verification import PhoneVerification

Clock = Callable[[], datetime]

CODE_EXPIRATION_MINUTES = 10


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VerificationStore(ABC):
    """
    One outstanding verification record per (user, phone number) pair.

    `clock` is the time source for expiry; readers of the store derive
    states from the same clock.
    """

    clock: Clock = staticmethod(utc_now)

    @abstractmethod
    def create_pending(self, user_id: uuid.UUID, phone_number: str, code: str) -> PhoneVerification:
        """Issue a fresh pending record, replacing any earlier one for the pair."""
        pass

    @abstractmethod
    def try_verify(self, user_id: uuid.UUID, phone_number: str, code: str) -> bool:
        """
        Mark the pair's record verified if `code` matches, it has not expired,
        and it is neither verified nor consumed yet.

        Returns:
            bool: True if a record was marked verified
        """
        pass

    @abstractmethod
    def is_verified_unconsumed(self, user_id: uuid.UUID, phone_number: str) -> bool:
        pass

    @abstractmethod
    def consume(self, user_id: uuid.UUID, phone_number: str, commit: bool = True) -> bool:
        """
        Mark the verified, unconsumed record for the pair consumed.

        Check and write are one conditional statement, so of two concurrent
        callers only one sees True.

        Args:
            commit: False to leave the write in the caller's open transaction,
                so it commits or rolls back together with the caller's own writes

        Returns:
            bool: True if this call consumed the record
        """
        pass

    @abstractmethod
    def get(self, user_id: uuid.UUID, phone_number: str) -> Optional[PhoneVerification]:
        pass


class SQLAlchemyVerificationStore(VerificationStore):
    """
    Verification store backed by the `phone_verifications` table.

    `create_pending` is an INSERT ... ON CONFLICT DO UPDATE on the
    (user_id, phone_number) unique constraint, so two concurrent sends for
    the same pair can never leave two rows behind.
    """

    def __init__(
        self,
        db: Session,
        clock: Clock = utc_now,
        expiration_minutes: int = CODE_EXPIRATION_MINUTES,
    ):
        self.db = db
        self.clock = clock
        self.expiration_minutes = expiration_minutes

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'")

    def _pair(self, user_id: uuid.UUID, phone_number: str):
        return self.db.query(PhoneVerification).filter(
            PhoneVerification.user_id == user_id,
            PhoneVerification.phone_number == phone_number,
        )

    def create_pending(self, user_id: uuid.UUID, phone_number: str, code: str) -> PhoneVerification:
        now = self.clock()
        insert = self._insert()

        stmt = insert(PhoneVerification).values(
            id=uuid.uuid4(),
            user_id=user_id,
            phone_number=phone_number,
            code=code,
            expires_at=now + timedelta(minutes=self.expiration_minutes),
            verified=False,
            consumed=False,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "phone_number"],
            set_={
                "id": stmt.excluded.id,
                "code": stmt.excluded.code,
                "expires_at": stmt.excluded.expires_at,
                "verified": False,
                "consumed": False,
                "created_at": stmt.excluded.created_at,
            },
        )

        self.db.execute(stmt)
        self.db.commit()

        return self._pair(user_id, phone_number).one()

    def try_verify(self, user_id: uuid.UUID, phone_number: str, code: str) -> bool:
        updated = self._pair(user_id, phone_number).filter(
            PhoneVerification.code == code,
            PhoneVerification.expires_at > self.clock(),
            PhoneVerification.verified.is_(False),
            PhoneVerification.consumed.is_(False),
        ).update({"verified": True}, synchronize_session=False)
        self.db.commit()

        return updated > 0

    def is_verified_unconsumed(self, user_id: uuid.UUID, phone_number: str) -> bool:
        return self._pair(user_id, phone_number).filter(
            PhoneVerification.verified.is_(True),
            PhoneVerification.consumed.is_(False),
        ).first() is not None

    def consume(self, user_id: uuid.UUID, phone_number: str, commit: bool = True) -> bool:
        updated = self._pair(user_id, phone_number).filter(
            PhoneVerification.verified.is_(True),
            PhoneVerification.consumed.is_(False),
        ).update({"consumed": True}, synchronize_session=False)
        if commit:
            self.db.commit()

        return updated > 0

    def get(self, user_id: uuid.UUID, phone_number: str) -> Optional[PhoneVerification]:
        return self._pair(user_id, phone_number).first()
