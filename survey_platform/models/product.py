"""
Product and Environment Models

A product belongs to a team and always has exactly two environments,
production and development. Environments are the scope for every piece of
customer data: people, actions, attribute classes and webhooks.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from survey_platform.database import Base
from survey_platform.utils.datetime import utcnow
import uuid
import enum


class EnvironmentType(str, enum.Enum):
    PRODUCTION = "production"
    DEVELOPMENT = "development"


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    team_id = Column(
        String(36),
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    team = relationship("Team", back_populates="products")
    environments = relationship("Environment", back_populates="product", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_product_team_name', 'team_id', 'name', unique=True),
    )

    def __repr__(self):
        return f"<Product {self.name} (team={self.team_id})>"


class Environment(Base):
    __tablename__ = "environments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id = Column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    type = Column(SQLEnum(EnvironmentType), nullable=False)

    # Set once the JS widget has called the client API from this environment
    widget_setup_completed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    product = relationship("Product", back_populates="environments")
    people = relationship("Person", back_populates="environment", cascade="all, delete-orphan")
    action_classes = relationship("ActionClass", back_populates="environment", cascade="all, delete-orphan")
    attribute_classes = relationship("AttributeClass", back_populates="environment", cascade="all, delete-orphan")
    webhooks = relationship("Webhook", back_populates="environment", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Environment {self.type} (product={self.product_id})>"
