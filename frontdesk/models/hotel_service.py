from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from frontdesk.database import Base


class HotelService(Base):
    __tablename__ = "hotel_services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    category = Column(String(40), nullable=False, index=True)  # Food, Housekeeping, Amenities, Maintenance
    description = Column(Text, default="")
    price = Column(Numeric(10, 2))
    availability = Column(Boolean, nullable=False, default=True)


class ServiceRequest(Base):
    __tablename__ = "service_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("hotel_services.id"), nullable=False)
    status = Column(String(16), nullable=False, default="pending")  # pending, confirmed, declined
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    completed_at = Column(DateTime)

    booking = relationship("Booking")
    service = relationship("HotelService")


class ServiceSchedule(Base):
    __tablename__ = "service_schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_name = Column(String(80), nullable=False)  # Breakfast, Lunch, Dinner, ...
    service_category = Column(String(40), nullable=False, default="Food")
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    message_template = Column(Text, nullable=False)
    active = Column(Boolean, nullable=False, default=True)


class ServiceReminderSent(Base):
    __tablename__ = "service_reminders_sent"
    __table_args__ = (UniqueConstraint("booking_id", "schedule_id", "sent_date", name="uq_service_reminder_day"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    schedule_id = Column(Integer, ForeignKey("service_schedules.id"), nullable=False)
    sent_date = Column(Date, nullable=False)
    sent_at = Column(DateTime, nullable=False, default=datetime.now)
