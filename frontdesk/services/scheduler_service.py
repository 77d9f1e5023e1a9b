from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from frontdesk.logging_config import get_logger
from frontdesk.models import Booking, Reminder, ScheduledJob, ServiceReminderSent, ServiceSchedule
from frontdesk.services import menus, messages
from frontdesk.services.alert_service import alert_error
from frontdesk.services.booking_service import get_booking, has_active_booking_for_phone
from frontdesk.services.booking_state import PRE_CHECKIN_STATES, BookingState, expire_verification
from frontdesk.services.kv_store import InMemoryKeyValueStore, KeyValueStore
from frontdesk.services.reminder_service import BOOKING_FOLLOW_UP, CHECKIN_WELCOME, ID_VERIFICATION_EXPIRY
from frontdesk.services.whatsapp_service import WhatsAppService

logger = get_logger("scheduler_service")

PRE_CHECKIN_STATE_VALUES = {state.value for state in PRE_CHECKIN_STATES}


def _run_follow_up(db: Session, gateway: WhatsAppService, job: ScheduledJob, now: datetime) -> bool:
    if has_active_booking_for_phone(db, job.phone):
        logger.info("Follow-up skipped, booking exists", extra={"context": {"phone": job.phone}})
        return False
    gateway.send(job.phone, menus.follow_up_menu())
    return True


def _run_verification_expiry(db: Session, gateway: WhatsAppService, job: ScheduledJob, now: datetime) -> bool:
    """Expire an ID upload window only if nothing has touched the booking since it was armed."""
    booking = get_booking(db, job.booking_id) if job.booking_id else None
    if not booking:
        return False

    armed_version = (job.payload or {}).get("state_version")
    if booking.state != BookingState.AWAITING_IMAGE.value or booking.state_version != armed_version:
        logger.info(
            "Verification expiry skipped, booking moved on",
            extra={"context": {"booking_id": booking.id, "state": booking.state, "version": booking.state_version}},
        )
        return False

    expire_verification(booking)
    try:
        db.flush()
    except StaleDataError:
        db.rollback()
        logger.info(
            "Verification expiry lost to a concurrent update", extra={"context": {"booking_id": job.booking_id}}
        )
        return False
    gateway.send_text(job.phone, messages.VERIFICATION_EXPIRED)
    gateway.send(job.phone, menus.id_type_menu())
    return True


def todays_meal_windows(db: Session) -> List[Tuple[str, object, object]]:
    schedules = (
        db.query(ServiceSchedule)
        .filter(ServiceSchedule.active.is_(True), ServiceSchedule.service_category == "Food")
        .order_by(ServiceSchedule.start_time)
        .all()
    )
    return [(schedule.service_name, schedule.start_time, schedule.end_time) for schedule in schedules]


def send_checkin_welcome(db: Session, gateway: WhatsAppService, booking: Booking, phone: str) -> None:
    """Welcome announcement for a freshly checked-in guest, with today's meal times."""
    gateway.send_text(phone, messages.checkin_welcome(booking, todays_meal_windows(db)))
    gateway.send(phone, menus.services_menu())


def _run_checkin_welcome(db: Session, gateway: WhatsAppService, job: ScheduledJob, now: datetime) -> bool:
    booking = get_booking(db, job.booking_id) if job.booking_id else None
    if not booking or booking.state != BookingState.CHECKED_IN.value:
        return False
    send_checkin_welcome(db, gateway, booking, job.phone)
    return True


JOB_HANDLERS = {
    BOOKING_FOLLOW_UP: _run_follow_up,
    ID_VERIFICATION_EXPIRY: _run_verification_expiry,
    CHECKIN_WELCOME: _run_checkin_welcome,
}


def process_due_jobs(db: Session, gateway: WhatsAppService, now: Optional[datetime] = None) -> int:
    """Run one-shot jobs whose time has come. Each job is removed once attempted."""
    now = now or datetime.now()
    due = (
        db.query(ScheduledJob.id, ScheduledJob.job_type, ScheduledJob.booking_id)
        .filter(ScheduledJob.run_at <= now)
        .order_by(ScheduledJob.run_at)
        .all()
    )
    fired = 0

    for job_id, job_type, booking_id in due:
        handler = JOB_HANDLERS.get(job_type)
        try:
            job = db.get(ScheduledJob, job_id)
            if job is None:
                logger.info("Scheduled job already cancelled", extra={"context": {"job_id": job_id, "job_type": job_type}})
                continue
            if handler is None:
                logger.warning(f"Unknown job type: {job_type}", extra={"context": {"job_id": job_id}})
            elif handler(db, gateway, job, now):
                fired += 1
            db.delete(job)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(
                f"Scheduled job failed: {e}",
                exc_info=True,
                extra={"context": {"job_id": job_id, "job_type": job_type, "booking_id": booking_id}},
            )
            alert_error("Scheduled job failed", {"job_id": job_id, "job_type": job_type, "error": str(e)[:200]})
            db.query(ScheduledJob).filter(ScheduledJob.id == job_id).delete(synchronize_session=False)
            db.commit()

    return fired


def process_due_reminders(db: Session, gateway: WhatsAppService, now: Optional[datetime] = None) -> int:
    """Send pre-arrival reminders that are due. Fired reminders are deleted."""
    now = now or datetime.now()
    due = db.query(Reminder).filter(Reminder.reminder_time <= now).order_by(Reminder.reminder_time).all()
    sent = 0

    for reminder in due:
        booking = reminder.booking
        if booking and booking.state in PRE_CHECKIN_STATE_VALUES and booking.user:
            result = gateway.send(booking.user.phone, menus.checkin_reminder_menu(booking, reminder.reminder_type))
            if result.get("ok"):
                sent += 1
        db.delete(reminder)
        db.commit()

    return sent


def process_service_reminders(db: Session, gateway: WhatsAppService, now: Optional[datetime] = None) -> int:
    """Announce open service windows to checked-in guests, at most once per booking, schedule and day."""
    now = now or datetime.now()
    today = now.date()
    current_time = now.time()

    schedules = (
        db.query(ServiceSchedule)
        .filter(
            ServiceSchedule.active.is_(True),
            ServiceSchedule.start_time <= current_time,
            ServiceSchedule.end_time > current_time,
        )
        .all()
    )
    if not schedules:
        return 0

    bookings = (
        db.query(Booking)
        .filter(Booking.state == BookingState.CHECKED_IN.value, Booking.check_out_date >= today)
        .all()
    )
    sent = 0

    for booking in bookings:
        for schedule in schedules:
            already_sent = (
                db.query(ServiceReminderSent.id)
                .filter(
                    ServiceReminderSent.booking_id == booking.id,
                    ServiceReminderSent.schedule_id == schedule.id,
                    ServiceReminderSent.sent_date == today,
                )
                .first()
            )
            if already_sent:
                continue

            db.add(ServiceReminderSent(booking_id=booking.id, schedule_id=schedule.id, sent_date=today, sent_at=now))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                continue

            gateway.send_text(booking.user.phone, schedule.message_template)
            sent += 1

    return sent


def run_scheduler_tick(
    db: Session,
    gateway: WhatsAppService,
    now: Optional[datetime] = None,
    kv_store: Optional[KeyValueStore] = None,
) -> dict:
    now = now or datetime.now()
    summary = {
        "jobs_run": process_due_jobs(db, gateway, now),
        "reminders_sent": process_due_reminders(db, gateway, now),
        "service_reminders_sent": process_service_reminders(db, gateway, now),
        "tokens_swept": kv_store.sweep() if isinstance(kv_store, InMemoryKeyValueStore) else 0,
    }
    if any(summary.values()):
        logger.info("Scheduler tick", extra={"context": summary})
    return summary
