from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from frontdesk.logging_config import get_logger
from frontdesk.models import Booking, HotelService, ServiceRequest
from frontdesk.services.result import ErrorCode, Result

logger = get_logger("service_request_service")

SERVICE_CATEGORIES = ("Food", "Housekeeping", "Amenities", "Maintenance")


def list_services(db: Session, category: str) -> List[HotelService]:
    return (
        db.query(HotelService)
        .filter(HotelService.category == category, HotelService.availability.is_(True))
        .order_by(HotelService.id)
        .all()
    )


def get_service(db: Session, service_id: int) -> Optional[HotelService]:
    return db.query(HotelService).filter(HotelService.id == service_id).first()


def create_service_request(db: Session, booking: Booking, service_id: int) -> Result[ServiceRequest]:
    service = get_service(db, service_id)
    if not service:
        return Result.failure(f"Service {service_id} not found", ErrorCode.NOT_FOUND)
    if not service.availability:
        return Result.failure(f"Service {service.name} is unavailable", ErrorCode.UNAVAILABLE)

    request = ServiceRequest(booking_id=booking.id, service_id=service.id, status="pending")
    db.add(request)
    db.flush()
    logger.info(
        "Service requested",
        extra={"context": {"booking_id": booking.id, "service_id": service.id, "request_id": request.id}},
    )
    return Result.success(request)


def decide_service_request(
    db: Session, service_id: int, booking_id: int, approve: bool, now: Optional[datetime] = None
) -> Result[ServiceRequest]:
    """Confirm or decline the oldest pending request for this booking and service."""
    request = (
        db.query(ServiceRequest)
        .filter(
            ServiceRequest.booking_id == booking_id,
            ServiceRequest.service_id == service_id,
            ServiceRequest.status == "pending",
        )
        .order_by(ServiceRequest.id)
        .first()
    )
    if not request:
        return Result.failure("No pending request for this service", ErrorCode.NOT_FOUND)

    request.status = "confirmed" if approve else "declined"
    request.completed_at = now or datetime.now()
    db.flush()
    logger.info(
        "Service request decided",
        extra={"context": {"request_id": request.id, "booking_id": booking_id, "status": request.status}},
    )
    return Result.success(request)
