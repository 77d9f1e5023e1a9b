from sqlalchemy import Column, Integer, Numeric, String, Text

from frontdesk.database import Base


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(80), nullable=False, unique=True)  # referenced by value from bookings.room_type
    price = Column(Numeric(10, 2), nullable=False)  # per night
    availability = Column(Integer, nullable=False)  # physical rooms of this type
    description = Column(Text)
    photo_url = Column(Text)
