from sqlalchemy import (Boolean, CheckConstraint, Column, DateTime, Integer,
                        String, func)
from sqlalchemy.orm import relationship

from digital_library.schemas.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(String(20), default="reader", nullable=False)
    status = Column(String(20), default="active", nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    library_entries = relationship("LibraryEntry", back_populates="user")
    reviews = relationship("Review", back_populates="user")

    __table_args__ = (
        CheckConstraint("role IN ('reader', 'admin', 'super_admin')", name="check_user_role"),
        CheckConstraint("status IN ('active', 'suspended', 'deleted')", name="check_user_status"),
    )
