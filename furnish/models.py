from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


class OrderStatus(str, enum.Enum):
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    MANUFACTURING = "manufacturing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Designs and orders are separate tables, each with its own columns.


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=True)  # Nullable for provisional accounts
    display_name = Column(String, nullable=True)
    is_provisional = Column(Boolean, default=True)
    is_admin = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    auth_tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")
    designs = relationship("DesignRecord", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("OrderRecord", back_populates="user", cascade="all, delete-orphan")


class AuthToken(Base):
    """JWT refresh token storage — access tokens are stateless."""
    __tablename__ = "auth_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    token_hash = Column(String, nullable=False)
    token_type = Column(String, default="refresh")
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="auth_tokens")


class DesignRecord(Base):
    """
    A persisted Design. parts/material are the facts; total_cost is a cache
    of the Cost Model and is re-derived on every read.
    """
    __tablename__ = "designs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    furniture_type = Column(String, nullable=False)
    material = Column(String, nullable=False)
    material_color = Column(String, nullable=False)
    dimensions_json = Column(JSON, nullable=False)    # {length, width, height} cm
    parts_json = Column(JSON, nullable=False)         # [Part]
    instructions_json = Column(JSON, nullable=False)  # [str]
    total_cost = Column(Float, default=0.0)           # cache, recomputed on read
    assembly_time = Column(Integer, default=0)        # minutes
    ai_enhanced = Column(Boolean, default=False)
    user_query = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="designs")
    orders = relationship("OrderRecord", back_populates="design")


class OrderRecord(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    design_id = Column(Integer, ForeignKey("designs.id"), nullable=True)
    submitted_total = Column(Float, nullable=False)
    verified_total = Column(Float, nullable=False)  # Cost Model output at acceptance
    currency = Column(String, default="INR")
    shipping_address = Column(JSON, nullable=False)
    design_snapshot = Column(JSON, nullable=False)  # Design as ordered
    status = Column(String, default=OrderStatus.PROCESSING.value)
    status_history = Column(JSON, default=list)     # [{status, timestamp, note}]
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="orders")
    design = relationship("DesignRecord", back_populates="orders")


class MaterialRateRecord(Base):
    """Admin-editable overrides of the engine's default rate table."""
    __tablename__ = "material_rates"

    id = Column(Integer, primary_key=True, index=True)
    material = Column(String, unique=True, nullable=False)
    unit_cost = Column(Float, nullable=False)               # per cm³
    labor_minutes_per_part = Column(Float, nullable=False)
    assembly_surcharge = Column(Float, default=0.0)
    notes = Column(String)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
