from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Time
from sqlalchemy.orm import relationship

from frontdesk.database import Base

VERIFIED_STATES = {"awaiting_confirmation", "awaiting_payment", "checked_in"}


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    room_type = Column(String(80), nullable=False)
    check_in_date = Column(Date, nullable=False)
    check_in_time = Column(Time, nullable=False)
    check_out_date = Column(Date, nullable=False)
    check_out_time = Column(Time, nullable=False)
    guest_count = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    paid_status = Column(String(16), nullable=False, default="unpaid")  # paid, unpaid
    # confirmed, awaiting_id_type, awaiting_image, verification_expired, awaiting_confirmation,
    # verification_declined, awaiting_payment, checked_in, cancelled
    state = Column(String(32), nullable=False, default="confirmed", index=True)
    state_version = Column(Integer, nullable=False, default=0)
    selected_id_type = Column(String(16))
    room_number = Column(String(16))
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    user = relationship("User", back_populates="bookings")
    reminders = relationship("Reminder", back_populates="booking")
    verified_ids = relationship("VerifiedId", back_populates="booking")

    # UPDATEs are guarded with WHERE state_version = <loaded value>; transitions bump it themselves.
    __mapper_args__ = {"version_id_col": state_version, "version_id_generator": False}

    @property
    def status(self) -> str:
        return "cancelled" if self.state == "cancelled" else "confirmed"

    @property
    def checkin_status(self) -> str:
        return "checked_in" if self.state == "checked_in" else "pending"

    @property
    def verification_status(self) -> str | None:
        if self.state == "awaiting_image":
            return "pending"
        if self.state == "verification_expired":
            return "expired"
        if self.state == "verification_declined":
            return "declined"
        if self.state in VERIFIED_STATES:
            return "verified"
        return None

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days
