from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from frontdesk.database import Base


class VerifiedId(Base):
    __tablename__ = "verified_ids"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    id_type = Column(String(16), nullable=False)
    id_number = Column(String(64))
    name = Column(String(200))
    dob = Column(String(32))
    verification_status = Column(String(16), nullable=False, default="verified")
    ocr_text = Column(Text)
    verification_time = Column(DateTime, nullable=False, default=datetime.now)

    booking = relationship("Booking", back_populates="verified_ids")
