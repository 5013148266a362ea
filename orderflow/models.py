"""
SQLAlchemy Database Models

Only the columns the availability subsystem reads or writes are mapped in
detail; the rest of each row belongs to the platform's CRUD layer.

- Tenant: timezone and sold-out reset bookkeeping
- MenuItem: sold-out flags and prep time

Author: Khalil Bannouri
Version: 3.1.0
"""

import uuid

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from orderflow.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Tenant(Base):
    """
    One restaurant account.

    ``last_sold_out_reset_at`` is the instant of the last automatic sold-out
    reset; its local calendar date is the once-per-day guard.
    """
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)

    # =========================================================================
    # LOCAL TIME
    # =========================================================================
    timezone = Column(String(64), nullable=True)  # IANA name, e.g. "America/Chicago"
    utc_offset_minutes = Column(Integer, nullable=True)  # used when timezone is null

    # =========================================================================
    # STATUS
    # =========================================================================
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    last_sold_out_reset_at = Column(DateTime(timezone=True), nullable=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    menu_items = relationship("MenuItem", back_populates="tenant")

    def __repr__(self):
        return f"<Tenant {self.slug} - {self.timezone or self.utc_offset_minutes}>"


class MenuItem(Base):
    """
    A dish on a tenant's menu.

    ``is_sold_out`` is the temporary daily flag, independent of the
    persistent ``is_available`` setting.
    """
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=_new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)

    # =========================================================================
    # AVAILABILITY
    # =========================================================================
    is_available = Column(Boolean, default=True, nullable=False)
    is_sold_out = Column(Boolean, default=False, nullable=False, index=True)
    sold_out_auto_reset = Column(Boolean, default=True, nullable=False)

    # =========================================================================
    # KITCHEN
    # =========================================================================
    prep_time_minutes = Column(Integer, nullable=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    tenant = relationship("Tenant", back_populates="menu_items")

    def __repr__(self):
        return f"<MenuItem {self.name} - sold_out={self.is_sold_out}>"
