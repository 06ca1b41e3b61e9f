"""
Subscription model: a customer's recurring claim on a field's time range.

Key design decisions:
- `interval` selects which anchor column is meaningful: `day_of_week` for
  weekly, `day_of_month` for monthly, neither for everyday.
- `anchor_date` is the first requested occurrence; cadence is derived from it
  when the explicit anchor column is missing.
- `last_booking_date` advances every time the scheduler materializes a booking.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from fieldslots.db.base import Base, TimestampMixin

ACTIVE = "active"
CANCELLED = "cancelled"

EVERYDAY = "everyday"
WEEKLY = "weekly"
MONTHLY = "monthly"

INTERVALS = (EVERYDAY, WEEKLY, MONTHLY)


class Subscription(Base, TimestampMixin):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    field_id = Column(Integer, ForeignKey("fields.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    interval = Column(String(20), nullable=False)
    anchor_date = Column(Date, nullable=False)
    day_of_week = Column(String(10), nullable=True)
    day_of_month = Column(Integer, nullable=True)
    start_time = Column(String(10), nullable=False)
    end_time = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default=ACTIVE)
    cancel_at_period_end = Column(Boolean, nullable=False, default=False)
    canceled_at = Column(DateTime(timezone=True), nullable=True)
    last_booking_date = Column(Date, nullable=True)

    field = relationship("Field", back_populates="subscriptions", lazy="noload")
    bookings = relationship("Booking", back_populates="subscription", lazy="noload")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'cancelled')", name="check_subscription_status"),
        CheckConstraint(
            "day_of_month IS NULL OR (day_of_month >= 1 AND day_of_month <= 31)",
            name="check_subscription_day_of_month",
        ),
        # The scheduler scans active subscriptions; lookups are per field
        Index("ix_subscriptions_field_status", "field_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id}, field={self.field_id}, interval={self.interval}, "
            f"{self.start_time}-{self.end_time}, status={self.status})>"
        )
