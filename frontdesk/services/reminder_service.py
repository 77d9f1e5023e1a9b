from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from frontdesk.logging_config import get_logger
from frontdesk.models import Booking, Reminder, ScheduledJob
from frontdesk.schemas.reminder import ReminderItem, ScheduledJobItem

logger = get_logger("reminder_service")

BOOKING_FOLLOW_UP = "booking_follow_up"
ID_VERIFICATION_EXPIRY = "id_verification_expiry"
CHECKIN_WELCOME = "checkin_welcome"

REMINDER_OFFSETS = {
    "24hr": timedelta(hours=24),
    "1hr": timedelta(hours=1),
}


def schedule_job(
    db: Session,
    job_type: str,
    phone: str,
    run_at: datetime,
    booking_id: Optional[int] = None,
    payload: Optional[dict] = None,
) -> ScheduledJob:
    job = ScheduledJob(job_type=job_type, phone=phone, run_at=run_at, booking_id=booking_id, payload=payload or {})
    db.add(job)
    db.flush()
    logger.info(
        "Job scheduled",
        extra={"context": {"job_type": job_type, "booking_id": booking_id, "run_at": run_at.isoformat()}},
    )
    return job


def cancel_jobs(db: Session, booking_id: int, job_type: Optional[str] = None) -> int:
    """Delete pending one-shot jobs for a booking. Returns how many were removed."""
    query = db.query(ScheduledJob).filter(ScheduledJob.booking_id == booking_id)
    if job_type:
        query = query.filter(ScheduledJob.job_type == job_type)
    removed = query.delete(synchronize_session=False)
    if removed:
        logger.info("Jobs cancelled", extra={"context": {"booking_id": booking_id, "job_type": job_type, "count": removed}})
    return removed


def cancel_follow_ups(db: Session, phone: str) -> int:
    return (
        db.query(ScheduledJob)
        .filter(ScheduledJob.phone == phone, ScheduledJob.job_type == BOOKING_FOLLOW_UP)
        .delete(synchronize_session=False)
    )


def cancel_booking_reminders(db: Session, booking_id: int) -> int:
    removed = db.query(Reminder).filter(Reminder.booking_id == booking_id).delete(synchronize_session=False)
    if removed:
        logger.info("Reminders cancelled", extra={"context": {"booking_id": booking_id, "count": removed}})
    return removed


def schedule_booking_reminders(db: Session, booking: Booking, now: Optional[datetime] = None) -> List[Reminder]:
    """Create the 24hr and 1hr pre-arrival reminders that are still in the future."""
    now = now or datetime.now()
    arrival = datetime.combine(booking.check_in_date, booking.check_in_time)
    created = []

    for reminder_type, offset in REMINDER_OFFSETS.items():
        reminder_time = arrival - offset
        if reminder_time <= now:
            continue
        reminder = Reminder(booking_id=booking.id, reminder_time=reminder_time, reminder_type=reminder_type)
        db.add(reminder)
        created.append(reminder)

    db.flush()
    return created


def rearm_booking_reminders(db: Session, booking: Booking, now: Optional[datetime] = None) -> List[Reminder]:
    """Drop reminders for the old dates before scheduling ones for the current dates."""
    cancel_booking_reminders(db, booking.id)
    return schedule_booking_reminders(db, booking, now)


def list_pending_reminders(db: Session) -> List[ReminderItem]:
    reminders = db.query(Reminder).order_by(Reminder.reminder_time).all()
    return [
        ReminderItem(
            id=reminder.id,
            booking_id=reminder.booking_id,
            reminder_type=reminder.reminder_type,
            reminder_time=reminder.reminder_time,
        )
        for reminder in reminders
    ]


def list_pending_jobs(db: Session) -> List[ScheduledJobItem]:
    jobs = db.query(ScheduledJob).order_by(ScheduledJob.run_at).all()
    return [
        ScheduledJobItem(
            id=job.id,
            job_type=job.job_type,
            booking_id=job.booking_id,
            phone=job.phone,
            run_at=job.run_at,
        )
        for job in jobs
    ]
