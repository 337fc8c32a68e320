"""
AttributeClass Model

Declares an attribute key ("email", "plan") for the people of one
environment. Automatic classes are created by the platform and cannot be
deleted.
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from survey_platform.database import Base
from survey_platform.utils.datetime import utcnow
import uuid
import enum


class AttributeClassType(str, enum.Enum):
    CODE = "code"
    NO_CODE = "noCode"
    AUTOMATIC = "automatic"


class AttributeClass(Base):
    __tablename__ = "attribute_classes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    environment_id = Column(
        String(36),
        ForeignKey("environments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(
        SQLEnum(AttributeClassType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    archived = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    environment = relationship("Environment", back_populates="attribute_classes")
    attributes = relationship("Attribute", back_populates="attribute_class", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_attribute_class_environment_name', 'environment_id', 'name', unique=True),
    )

    def __repr__(self):
        return f"<AttributeClass {self.name} (environment={self.environment_id})>"
