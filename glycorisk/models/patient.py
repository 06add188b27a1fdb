from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from glycorisk.db.base import Base
from glycorisk.utils.timezone import utc_now_naive


class Patient(Base):
    """One scored measurement set with its decision and risk tier."""

    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(Text, nullable=False, default="Unknown")

    # Measurements
    pregnancies = Column(Integer, nullable=False)
    glucose = Column(Float, nullable=False)
    blood_pressure = Column(Float, nullable=False)
    skin_thickness = Column(Float, nullable=False)
    insulin = Column(Float, nullable=False)
    bmi = Column(Float, nullable=False)
    diabetes_pedigree_function = Column(Float, nullable=False)
    age = Column(Integer, nullable=False)

    # Decision
    prediction = Column(Boolean, nullable=False)
    confidence = Column(Float, nullable=False)
    model_used = Column(Text, nullable=False)
    risk_level = Column(String(16), nullable=False)
    recommendation = Column(String(255), nullable=False)

    created_at = Column(DateTime, nullable=False, default=utc_now_naive)

    user = relationship("User", back_populates="patients")
    notifications = relationship("Notification", back_populates="patient")

    __table_args__ = (
        Index("idx_patients_user_created", "user_id", "created_at"),
    )


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now_naive)

    patient = relationship("Patient", back_populates="notifications")
