"""
Person and Attribute Models

A person is an end user of the customer's app, identified inside one
environment by the customer-supplied user_id. Attributes are string values
keyed by an attribute class of the same environment.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from survey_platform.database import Base
from survey_platform.utils.datetime import utcnow
import uuid


class Person(Base):
    __tablename__ = "people"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    environment_id = Column(
        String(36),
        ForeignKey("environments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    environment = relationship("Environment", back_populates="people")
    attributes = relationship("Attribute", back_populates="person", cascade="all, delete-orphan")
    actions = relationship("Action", back_populates="person", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_person_environment_user', 'environment_id', 'user_id', unique=True),
    )

    def __repr__(self):
        return f"<Person {self.user_id} (environment={self.environment_id})>"


class Attribute(Base):
    __tablename__ = "attributes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    person_id = Column(
        String(36),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    attribute_class_id = Column(
        String(36),
        ForeignKey("attribute_classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    value = Column(Text, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    person = relationship("Person", back_populates="attributes")
    attribute_class = relationship("AttributeClass", back_populates="attributes")

    __table_args__ = (
        Index('idx_attribute_person_class', 'person_id', 'attribute_class_id', unique=True),
    )

    def __repr__(self):
        return f"<Attribute person={self.person_id} class={self.attribute_class_id}>"
