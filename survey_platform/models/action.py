"""
Action and ActionClass Models

An action class names something a person can do ("New Session", "Clicked
Upgrade"); an action is one occurrence of it by one person. Actions are the
raw input for the time-window counts used in survey targeting.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from survey_platform.database import Base
from survey_platform.utils.datetime import utcnow
import uuid
import enum


class ActionClassType(str, enum.Enum):
    """
    CODE: tracked from the customer's code via the SDK
    NO_CODE: matched in the browser by URL/CSS rules
    AUTOMATIC: emitted by the SDK itself, read-only for users
    """
    CODE = "code"
    NO_CODE = "noCode"
    AUTOMATIC = "automatic"


class ActionClass(Base):
    __tablename__ = "action_classes"

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
        SQLEnum(ActionClassType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )

    # URL/CSS matching rules for noCode classes
    no_code_config = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    environment = relationship("Environment", back_populates="action_classes")
    actions = relationship("Action", back_populates="action_class", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_action_class_environment_name', 'environment_id', 'name', unique=True),
    )

    def __repr__(self):
        return f"<ActionClass {self.name} type={self.type} (environment={self.environment_id})>"


class Action(Base):
    __tablename__ = "actions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    action_class_id = Column(
        String(36),
        ForeignKey("action_classes.id", ondelete="CASCADE"),
        nullable=False
    )
    person_id = Column(
        String(36),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False
    )
    properties = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    action_class = relationship("ActionClass", back_populates="actions")
    person = relationship("Person", back_populates="actions")

    __table_args__ = (
        # Counts by class within a window, and by class + person
        Index('idx_action_class_created', 'action_class_id', 'created_at'),
        Index('idx_action_person_class_created', 'person_id', 'action_class_id', 'created_at'),
    )

    def __repr__(self):
        return f"<Action class={self.action_class_id} person={self.person_id}>"
