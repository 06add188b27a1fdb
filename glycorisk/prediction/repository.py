from typing import List, Optional

from sqlalchemy import select, text
from sqlalchemy.orm import Session, sessionmaker

from glycorisk.models import Notification, Patient, User


class RecordStore:
    """Database access for decision records and their notifications.

    Each method opens its own session from the injected factory, so one
    store instance can be shared by concurrent requests.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def create_decision_with_notification(
        self,
        record: Patient,
        notification: Notification,
        timeout_seconds: Optional[float] = None,
    ) -> Patient:
        """Insert ``record`` and ``notification`` in one transaction.

        The record is flushed first so the notification can reference its id;
        both become visible on the single commit. Any failure rolls both back
        and is re-raised unchanged for the caller to classify.

        ``timeout_seconds`` bounds the transaction's statements on Postgres
        (``statement_timeout``, local to this transaction). A cancelled
        statement surfaces as ``OperationalError``.
        """
        db: Session = self.session_factory()
        try:
            if timeout_seconds is not None and db.get_bind().dialect.name == "postgresql":
                db.execute(
                    text("SELECT set_config('statement_timeout', :timeout, true)"),
                    {"timeout": str(max(int(timeout_seconds * 1000), 1))},
                )
            db.add(record)
            db.flush()
            notification.patient_id = record.id
            db.add(notification)
            db.commit()
            return record
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get_owner(self, user_id: int) -> Optional[User]:
        db: Session = self.session_factory()
        try:
            return db.get(User, user_id)
        finally:
            db.close()

    def list_by_owner(self, user_id: int, skip: int = 0, limit: int = 100) -> List[Patient]:
        db: Session = self.session_factory()
        try:
            stmt = (
                select(Patient)
                .where(Patient.user_id == user_id)
                .order_by(Patient.created_at.desc(), Patient.id.desc())
                .offset(skip)
                .limit(limit)
            )
            return list(db.execute(stmt).scalars())
        finally:
            db.close()

    def get_by_id(self, record_id: int, owner_id: Optional[int] = None) -> Optional[Patient]:
        db: Session = self.session_factory()
        try:
            stmt = select(Patient).where(Patient.id == record_id)
            if owner_id is not None:
                stmt = stmt.where(Patient.user_id == owner_id)
            return db.execute(stmt).scalars().first()
        finally:
            db.close()

    def list_notifications(self, record_id: int) -> List[Notification]:
        db: Session = self.session_factory()
        try:
            stmt = select(Notification).where(Notification.patient_id == record_id).order_by(Notification.id)
            return list(db.execute(stmt).scalars())
        finally:
            db.close()
