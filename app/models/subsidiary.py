# app/models/subsidiary.py
"""
Subsidiaries (tenants) and the per-user access grants on them.
Every operational table carries a subsidiary_id pointing here.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, UniqueConstraint
from app.database import Base


class Subsidiary(Base):
    __tablename__ = "subsidiaries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subsidiary_name = Column(String(200), nullable=False)
    subsidiary_code = Column(String(50), unique=True, nullable=False)
    business_type = Column(String(50), nullable=False, default="other")  # construction | hospitality | education | other
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Subsidiary {self.subsidiary_code} active={self.is_active}>"


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(200), unique=True, nullable=False)
    role = Column(String(50), default="user")
    is_super_admin = Column(Boolean, default=False, nullable=False)
    default_subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"))

    def __repr__(self):
        return f"<UserProfile {self.email} super_admin={self.is_super_admin}>"


class UserSubsidiaryPermission(Base):
    __tablename__ = "user_subsidiary_permissions"
    __table_args__ = (UniqueConstraint("user_id", "subsidiary_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user_profiles.id"), nullable=False, index=True)
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)
    permission_level = Column(String(50), nullable=False)  # full_access | operational_access | read_only_access | ...
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<UserSubsidiaryPermission user={self.user_id} sub={self.subsidiary_id} {self.permission_level}>"


class ScopePreference(Base):
    """Last scope a user selected. One row per user, last write wins."""
    __tablename__ = "scope_preferences"

    user_id = Column(Integer, ForeignKey("user_profiles.id"), primary_key=True)
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"))   # null in consolidated mode
    all_subsidiaries = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<ScopePreference user={self.user_id} sub={self.subsidiary_id} all={self.all_subsidiaries}>"
