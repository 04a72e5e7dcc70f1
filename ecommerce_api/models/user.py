"""
User model and affiliate extension
Handles identity, roles and the affiliate profile
"""

from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Index, DateTime, Enum, CheckConstraint
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel, TimestampedModel, IDModel, enum_values

class UserRole(str, enum.Enum):
    VISITOR = "visitor"
    AFFILIATE = "affiliate"
    ADMIN = "admin"
    ADMIN_GENERAL = "admin_general"

ADMIN_ROLES = (UserRole.ADMIN, UserRole.ADMIN_GENERAL)

class AffiliateStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

class User(BaseModel, TimestampedModel, IDModel):
    """Platform user; never hard-deleted"""

    __tablename__ = "users"

    dni = Column(String(12), unique=True, nullable=False, index=True)
    full_name = Column(String(150), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.VISITOR,
        nullable=False
    )

    # Status fields
    is_active = Column(Boolean, default=True, nullable=False)
    max_referrals = Column(Integer, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    affiliate = relationship(
        "Affiliate",
        foreign_keys="Affiliate.id",
        back_populates="user",
        uselist=False
    )
    admin_regions = relationship("AdminRegion", back_populates="admin", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_users_role_active", "role", "is_active"),
    )

    @property
    def is_affiliate(self) -> bool:
        return self.role == UserRole.AFFILIATE

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def __repr__(self):
        return f"<User {self.dni}>"

class Affiliate(BaseModel, TimestampedModel):
    """1:1 extension of a user with role=affiliate"""

    __tablename__ = "affiliates"

    id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    sponsor_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    phone = Column(String(20), nullable=False, default="")
    region = Column(String(100), nullable=True, index=True)
    city = Column(String(100), nullable=True)
    address = Column(String(500), nullable=True)
    reference = Column(String(500), nullable=True)

    status = Column(
        Enum(AffiliateStatus, name="affiliate_status", values_callable=enum_values),
        default=AffiliateStatus.ACTIVE,
        nullable=False
    )
    points = Column(Integer, default=0, nullable=False)

    # Relationships
    user = relationship("User", foreign_keys=[id], back_populates="affiliate")
    sponsor = relationship("User", foreign_keys=[sponsor_id])

    __table_args__ = (
        CheckConstraint("points >= 0", name="check_non_negative_points"),
    )

class AdminRegion(BaseModel, IDModel):
    """Regions a regional admin is allowed to manage"""

    __tablename__ = "admin_regions"

    admin_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    region = Column(String(100), nullable=False)

    admin = relationship("User", back_populates="admin_regions")
