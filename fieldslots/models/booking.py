"""
Booking model: one concrete reservation of a field for a time range on a day.

Key design decisions:
- `date` is a naive calendar day; start/end are normalized "HH:MM" strings.
- Status is kept rather than deleting rows so cancelled history survives.
- A partial unique index on (subscription_id, date) for every status other
  than cancelled is the idempotency key for recurring materialization: two
  scheduler runs racing on the same occurrence cannot both insert.
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, text,
)
from sqlalchemy.orm import relationship

from fieldslots.db.base import Base, TimestampMixin

PENDING = "pending"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"
COMPLETED = "completed"

BOOKING_STATUSES = (PENDING, CONFIRMED, CANCELLED, COMPLETED)

# Allowed forward moves; anything else is rejected.
STATUS_TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED},
    CONFIRMED: {CANCELLED, COMPLETED},
    CANCELLED: set(),
    COMPLETED: set(),
}


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    field_id = Column(Integer, ForeignKey("fields.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(String(10), nullable=False)
    end_time = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default=CONFIRMED)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id"), nullable=True, index=True)
    reminder_sent = Column(Boolean, nullable=False, default=False)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(String(255), nullable=True)

    field = relationship("Field", back_populates="bookings", lazy="noload")
    subscription = relationship("Subscription", back_populates="bookings", lazy="noload")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name="check_booking_status",
        ),
        # Availability lookups are always "this field on this day"
        Index("ix_bookings_field_date", "field_id", "date"),
        Index(
            "uq_bookings_subscription_date_active",
            "subscription_id",
            "date",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, field={self.field_id}, date={self.date}, "
            f"{self.start_time}-{self.end_time}, status={self.status})>"
        )
