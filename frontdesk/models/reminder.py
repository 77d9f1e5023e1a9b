from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from frontdesk.database import Base


class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    reminder_time = Column(DateTime, nullable=False, index=True)
    reminder_type = Column(String(8), nullable=False)  # 24hr, 1hr

    booking = relationship("Booking", back_populates="reminders")


class ScheduledJob(Base):
    """One-shot timer persisted so it survives restarts and can be cancelled by booking."""

    __tablename__ = "scheduled_jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_type = Column(String(40), nullable=False)  # booking_follow_up, id_verification_expiry, checkin_welcome
    booking_id = Column(Integer, ForeignKey("bookings.id"), index=True)
    phone = Column(String(32), nullable=False)
    run_at = Column(DateTime, nullable=False, index=True)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
