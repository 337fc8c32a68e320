"""
Webhook Model

Outbound notifications for survey responses. The source records which
integration created the webhook; survey_ids narrows it to specific surveys
(empty means all).
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from survey_platform.database import Base
from survey_platform.utils.datetime import utcnow
import uuid
import enum


class WebhookSource(str, enum.Enum):
    USER = "user"
    ZAPIER = "zapier"
    MAKE = "make"
    N8N = "n8n"


class WebhookTrigger(str, enum.Enum):
    RESPONSE_CREATED = "responseCreated"
    RESPONSE_UPDATED = "responseUpdated"
    RESPONSE_FINISHED = "responseFinished"


class Webhook(Base):
    __tablename__ = "webhooks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    environment_id = Column(
        String(36),
        ForeignKey("environments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(255), nullable=True)
    url = Column(String(2048), nullable=False)
    source = Column(
        SQLEnum(WebhookSource, values_callable=lambda e: [m.value for m in e]),
        default=WebhookSource.USER,
        nullable=False
    )

    # Lists of trigger names / survey ids
    triggers = Column(JSON, nullable=False, default=list)
    survey_ids = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    environment = relationship("Environment", back_populates="webhooks")

    __table_args__ = (
        Index('idx_webhook_environment_source', 'environment_id', 'source'),
    )

    def __repr__(self):
        return f"<Webhook {self.url} source={self.source} (environment={self.environment_id})>"
