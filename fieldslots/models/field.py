"""
Field (venue) model holding the operating configuration slots are built from.

Key design decisions:
- Opening/closing times are stored as normalized "HH:MM" strings and parsed
  by the time-of-day codec; a string that fails to parse is a data-integrity
  problem, not a user error.
- `slot_duration_minutes` is nullable; NULL means "use the configured default".
- `operating_days` holds weekday names and/or the aggregate tokens
  "everyday", "weekdays", "weekends". An empty list means open every day.
"""

from sqlalchemy import Column, Integer, String, Boolean, JSON, CheckConstraint
from sqlalchemy.orm import relationship

from fieldslots.db.base import Base, TimestampMixin


class Field(Base, TimestampMixin):
    __tablename__ = "fields"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    owner_id = Column(Integer, nullable=True, index=True)
    opening_time = Column(String(10), nullable=False, default="06:00")
    closing_time = Column(String(10), nullable=False, default="21:00")
    slot_duration_minutes = Column(Integer, nullable=True)
    operating_days = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, nullable=False, default=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    is_blocked = Column(Boolean, nullable=False, default=False)

    bookings = relationship("Booking", back_populates="field", lazy="noload")
    subscriptions = relationship("Subscription", back_populates="field", lazy="noload")

    __table_args__ = (
        CheckConstraint(
            "slot_duration_minutes IS NULL OR slot_duration_minutes > 0",
            name="check_field_slot_duration_positive",
        ),
    )

    @property
    def accepts_bookings(self) -> bool:
        return bool(self.is_active and self.is_approved and not self.is_blocked)

    def __repr__(self) -> str:
        return f"<Field(id={self.id}, name={self.name}, hours={self.opening_time}-{self.closing_time})>"
