from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class BookingCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=3)
    room_type: str = Field(validation_alias=_alias("room_type", "roomType"))
    check_in_date: date = Field(validation_alias=_alias("check_in_date", "checkInDate"))
    check_in_time: time = Field(default=time(14, 0), validation_alias=_alias("check_in_time", "checkInTime"))
    check_out_date: date = Field(validation_alias=_alias("check_out_date", "checkOutDate"))
    check_out_time: time = Field(default=time(11, 0), validation_alias=_alias("check_out_time", "checkOutTime"))
    guest_count: int = Field(ge=1, validation_alias=_alias("guest_count", "guestCount"))
    notes: Optional[str] = None


class BookingUpdate(BaseModel):
    room_type: Optional[str] = Field(default=None, validation_alias=_alias("room_type", "roomType"))
    check_in_date: Optional[date] = Field(default=None, validation_alias=_alias("check_in_date", "checkInDate"))
    check_in_time: Optional[time] = Field(default=None, validation_alias=_alias("check_in_time", "checkInTime"))
    check_out_date: Optional[date] = Field(default=None, validation_alias=_alias("check_out_date", "checkOutDate"))
    check_out_time: Optional[time] = Field(default=None, validation_alias=_alias("check_out_time", "checkOutTime"))
    guest_count: Optional[int] = Field(default=None, ge=1, validation_alias=_alias("guest_count", "guestCount"))
    notes: Optional[str] = None
    room_number: Optional[str] = Field(default=None, validation_alias=_alias("room_number", "roomNumber"))


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    room_type: str
    check_in_date: date
    check_in_time: time
    check_out_date: date
    check_out_time: time
    guest_count: int
    total_price: Decimal
    nights: int
    status: str
    state: str
    checkin_status: str
    verification_status: Optional[str] = None
    paid_status: str
    selected_id_type: Optional[str] = None
    room_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class BookingMutationResponse(BaseModel):
    message: str
    booking: BookingResponse


class AvailabilityRequest(BaseModel):
    room_type: str = Field(validation_alias=_alias("room_type", "roomType"))
    check_in_date: date = Field(validation_alias=_alias("check_in_date", "checkInDate"))
    check_out_date: date = Field(validation_alias=_alias("check_out_date", "checkOutDate"))


class AvailabilityResponse(BaseModel):
    available: bool
    remaining_rooms: int
    room_price_per_night: Decimal
    estimated_total_price: Decimal
    number_of_nights: int


class PaymentResponse(BaseModel):
    booking_id: int
    paid_status: str
    checked_in: bool


class FeedbackRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class FeedbackResponse(BaseModel):
    id: int
    booking_id: int
    rating: int


class TokenResponse(BaseModel):
    token: str
    purpose: str
    url: str


class TokenRecord(BaseModel):
    purpose: str
    data: dict
