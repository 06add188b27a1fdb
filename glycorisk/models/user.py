from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from glycorisk.db.base import Base
from glycorisk.utils.timezone import utc_now_naive


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utc_now_naive)

    # Relationships
    patients = relationship("Patient", back_populates="user")
