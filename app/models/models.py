"""
Studio Split - SQLAlchemy Models
Compatible with SQLite and MySQL
"""
import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Boolean, Integer, Numeric,
    DateTime, ForeignKey, JSON
)
from sqlalchemy.orm import relationship

from app.database import Base


def generate_uuid():
    return str(uuid.uuid4())


class AppUser(Base):
    """Creators, clients and admins."""
    __tablename__ = "app_user"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    name = Column(String(255), nullable=True)
    role = Column(String(50), default="client")  # 'client', 'artist', 'producer', 'engineer', 'studio'
    bio = Column(Text, nullable=True)
    media = Column(JSON, nullable=True)  # ["https://.../cover.jpg", ...]
    completed_bookings = Column(Integer, default=0)
    is_admin = Column(Boolean, default=False)
    tier_frozen = Column(Boolean, default=False)
    freeze_reason = Column(String(255), nullable=True)
    frozen_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    notifications = relationship("Notification", back_populates="user")


class Studio(Base):
    """Bookable studio rooms."""
    __tablename__ = "studio"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(36), ForeignKey("app_user.id"), nullable=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    split_bookings = relationship("SplitBooking", back_populates="studio")


class SplitBooking(Base):
    """A studio session shared by two paying clients."""
    __tablename__ = "split_booking"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    studio_id = Column(String(36), ForeignKey("studio.id"), nullable=False, index=True)
    created_by = Column(String(36), nullable=False)
    client_a_uid = Column(String(36), nullable=False, index=True)
    client_b_uid = Column(String(36), nullable=False, index=True)
    split_ratio = Column(Numeric(5, 4), nullable=False)
    scheduled_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    total_cost = Column(Numeric(10, 2), nullable=False)
    client_a_share = Column(Numeric(10, 2), nullable=False)
    client_b_share = Column(Numeric(10, 2), nullable=False)
    session_title = Column(String(255), default="Split Studio Session")
    session_description = Column(Text, nullable=True)
    requested_talent = Column(JSON, nullable=True)  # {"artist_id": ..., "producer_id": ..., "engineer_id": ...}
    talent_status = Column(JSON, nullable=True)  # {"artist": "pending", ...}
    status = Column(String(50), default="pending")  # 'pending', 'confirmed', 'in_progress', 'completed', 'cancelled'
    client_a_payment_status = Column(String(50), default="pending")  # 'pending', 'paid', 'refunded'
    client_b_payment_status = Column(String(50), default="pending")
    stripe_session_ids = Column(JSON, nullable=True)  # {"clientA": "cs_...", "clientB": "cs_..."}
    studio_name = Column(String(255), nullable=True)
    studio_location = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    studio = relationship("Studio", back_populates="split_bookings")


class Booking(Base):
    """Single-client bookings of a provider; the history abuse scans read."""
    __tablename__ = "booking"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    provider_id = Column(String(36), ForeignKey("app_user.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("app_user.id"), nullable=True)
    status = Column(String(50), default="pending")  # 'pending', 'confirmed', 'completed', 'cancelled'
    refunded = Column(Boolean, default=False)
    amount = Column(Numeric(10, 2), nullable=True)
    scheduled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class Review(Base):
    """Client reviews of a provider."""
    __tablename__ = "review"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    target_id = Column(String(36), ForeignKey("app_user.id"), nullable=False, index=True)
    author_id = Column(String(36), ForeignKey("app_user.id"), nullable=False)
    booking_id = Column(String(36), nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    visible = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class AbuseFlagRecord(Base):
    """Append-only review queue entry produced by an abuse scan."""
    __tablename__ = "abuse_flag"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("app_user.id"), nullable=False, index=True)
    flags = Column(JSON, nullable=False)
    trigger_type = Column(String(100), nullable=False, default="manual")
    status = Column(String(50), default="pending_review")  # 'pending_review', 'resolved'
    created_at = Column(DateTime, default=datetime.utcnow)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(36), nullable=True)
    resolution = Column(Text, nullable=True)


class Notification(Base):
    """In-app notifications."""
    __tablename__ = "notification"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("app_user.id"), nullable=False)
    type = Column(String(50), nullable=False)  # 'split_booking_invite', 'talent_request', ...
    booking_id = Column(String(36), nullable=True)
    sender_id = Column(String(36), nullable=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    data = Column(JSON, nullable=True)
    read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("AppUser", back_populates="notifications")


class AuditLog(Base):
    """Audit trail for moderation actions."""
    __tablename__ = "audit_log"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    actor_user_id = Column(String(36), nullable=True)
    action = Column(String(100), nullable=False)
    target = Column(String(255), nullable=True)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
