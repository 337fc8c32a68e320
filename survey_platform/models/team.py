"""
Team and Membership Models

The team is the billing and isolation boundary. Everything a customer owns
hangs off a team: products, their environments, and all environment-scoped
data below them.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from survey_platform.database import Base
from survey_platform.utils.datetime import utcnow
import uuid
import enum


class MembershipRole(str, enum.Enum):
    """
    Team roles, highest first.

    OWNER/ADMIN manage the team and its memberships.
    DEVELOPER/EDITOR change environment data.
    VIEWER is read-only.
    """
    OWNER = "owner"
    ADMIN = "admin"
    DEVELOPER = "developer"
    EDITOR = "editor"
    VIEWER = "viewer"


ROLE_HIERARCHY = {
    MembershipRole.VIEWER: 1,
    MembershipRole.EDITOR: 2,
    MembershipRole.DEVELOPER: 3,
    MembershipRole.ADMIN: 4,
    MembershipRole.OWNER: 5,
}


class Team(Base):
    __tablename__ = "teams"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)

    # Paid add-ons; free teams are capped by PRICING_* settings
    in_app_survey_subscription = Column(Boolean, default=False, nullable=False)
    user_targeting_subscription = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    memberships = relationship("Membership", back_populates="team", cascade="all, delete-orphan")
    products = relationship("Product", back_populates="team", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Team {self.name}>"


class Membership(Base):
    __tablename__ = "memberships"

    team_id = Column(String(36), ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    role = Column(SQLEnum(MembershipRole), default=MembershipRole.DEVELOPER, nullable=False)
    accepted = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    team = relationship("Team", back_populates="memberships")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        Index('idx_membership_user', 'user_id'),
    )

    def __repr__(self):
        return f"<Membership user={self.user_id} team={self.team_id} role={self.role}>"

    def has_role(self, required_role: MembershipRole) -> bool:
        return ROLE_HIERARCHY[self.role] >= ROLE_HIERARCHY[required_role]
