from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text

from frontdesk.database import Base


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1..5
    comment = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
