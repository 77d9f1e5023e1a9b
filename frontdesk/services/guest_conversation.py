"""Guest conversation flow: maps an inbound event plus booking state to replies and side effects."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from frontdesk.config import settings
from frontdesk.logging_config import BookingLoggerAdapter, get_logger
from frontdesk.models import Booking, User, VerifiedId
from frontdesk.schemas.webhook import InboundEvent
from frontdesk.services import menus, messages
from frontdesk.services.alert_service import alert_error
from frontdesk.services.booking_service import (
    cancel_booking,
    get_active_booking,
    get_or_create_user,
    get_user_by_phone,
    list_rooms,
    rooms_available_on,
    schedule_checkin_welcome,
)
from frontdesk.services.booking_state import (
    BookingState,
    can_transition,
    confirm_identity,
    decline_extraction,
    id_extracted,
    select_id_type,
    start_checkin,
)
from frontdesk.services.commands import (
    GuestAction,
    GuestCommand,
    SelectIdTypeCommand,
    ServiceDecisionCommand,
    ServiceRequestCommand,
    parse_selection,
)
from frontdesk.services.id_verification_service import IdVerificationClient, IdVerificationError, wait_until_readable
from frontdesk.services.kv_store import KeyValueStore
from frontdesk.services.reminder_service import (
    BOOKING_FOLLOW_UP,
    ID_VERIFICATION_EXPIRY,
    cancel_booking_reminders,
    cancel_follow_ups,
    cancel_jobs,
    schedule_job,
)
from frontdesk.services.service_request_service import create_service_request, list_services
from frontdesk.services.token_service import build_booking_link, build_modify_link, build_payment_link
from frontdesk.services.whatsapp_service import MediaDownloadError, WhatsAppService

logger = get_logger("guest_conversation")

CATEGORY_MENUS = {
    GuestAction.FOOD_MENU: "Food",
    GuestAction.HOUSEKEEPING_MENU: "Housekeeping",
    GuestAction.AMENITIES_MENU: "Amenities",
    GuestAction.MAINTENANCE_MENU: "Maintenance",
}
CHECKIN_RESTART_STATES = {
    BookingState.CONFIRMED.value,
    BookingState.VERIFICATION_EXPIRED.value,
    BookingState.VERIFICATION_DECLINED.value,
}


def remove_temp_file(path: Path) -> None:
    Path(path).unlink(missing_ok=True)
    logger.info("Temp file removed", extra={"context": {"path": str(path)}})


@dataclass
class GuestContext:
    phone: str
    event: InboundEvent
    user: Optional[User]
    booking: Optional[Booking]
    log: BookingLoggerAdapter

    @property
    def name(self) -> Optional[str]:
        return self.user.name if self.user else self.event.contact_name

    @property
    def checked_in(self) -> bool:
        return bool(self.booking and self.booking.state == BookingState.CHECKED_IN.value)


class GuestConversation:
    def __init__(
        self,
        db: Session,
        gateway: WhatsAppService,
        kv_store: KeyValueStore,
        verifier: IdVerificationClient,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.gateway = gateway
        self.kv_store = kv_store
        self.verifier = verifier
        self.clock = clock
        self._actions = {
            GuestAction.BOOK_ROOM: self._book_room,
            GuestAction.VIEW_BOOKINGS: self._view_bookings,
            GuestAction.MODIFY_BOOKING: self._modify_booking,
            GuestAction.CANCEL_BOOKING: self._cancel_booking,
            GuestAction.CONFIRM_CANCEL: self._confirm_cancel,
            GuestAction.KEEP_BOOKING: self._keep_booking,
            GuestAction.CONTACT_US: self._contact_us,
            GuestAction.LOCATION: self._location,
            GuestAction.OUR_SERVICES: self._our_services,
            GuestAction.ROOMS_GALLERY: self._rooms_gallery,
            GuestAction.CHECK_AVAILABILITY: self._check_availability,
            GuestAction.DINING: self._dining,
            GuestAction.SPA: self._spa,
            GuestAction.SERVICES: self._services,
            GuestAction.ROOM_SERVICE: self._services,
            GuestAction.FOOD_MENU: self._category_menu,
            GuestAction.HOUSEKEEPING_MENU: self._category_menu,
            GuestAction.AMENITIES_MENU: self._category_menu,
            GuestAction.MAINTENANCE_MENU: self._category_menu,
            GuestAction.START_CHECKIN: self._start_checkin,
            GuestAction.VERIFY_CORRECT: self._verify_correct,
            GuestAction.VERIFY_INCORRECT: self._verify_incorrect,
        }
        missing = set(GuestAction) - set(self._actions)
        if missing:
            raise RuntimeError(f"Guest actions without handler: {sorted(a.value for a in missing)}")

    def handle(self, event: InboundEvent) -> None:
        """Boundary handler: every event ends in a reply, an apology if anything fails."""
        log = BookingLoggerAdapter(logger, {"phone": event.sender})
        try:
            user = get_user_by_phone(self.db, event.sender)
            booking = get_active_booking(self.db, user.id) if user else None
            if booking:
                log.bind(booking_id=booking.id)
            ctx = GuestContext(phone=event.sender, event=event, user=user, booking=booking, log=log)
            self._dispatch(ctx)
        except Exception as e:
            self.db.rollback()
            log.error(f"Guest handler failed: {e}", exc_info=True, context={"kind": event.kind})
            self.gateway.send_text(event.sender, messages.APOLOGY)
            alert_error("Guest message handling failed", {"kind": event.kind, "error": str(e)[:200]})

    def _dispatch(self, ctx: GuestContext) -> None:
        event = ctx.event
        if event.kind == "text":
            self._handle_text(ctx, (event.body or "").strip().lower())
        elif event.kind == "selection":
            self._handle_selection(ctx, event.selection_id)
        elif event.kind == "image":
            self._handle_image(ctx, event.media_id)
        else:
            self._reply(ctx, messages.FALLBACK)

    def _reply(self, ctx: GuestContext, text: str) -> None:
        self.gateway.send_text(ctx.phone, text)

    def _handle_text(self, ctx: GuestContext, text: str) -> None:
        if text == "hi":
            self._greeting(ctx)
        elif text == "services":
            self._services(ctx)
        elif text == "menu":
            self._category_menu(ctx, GuestAction.FOOD_MENU)
        elif text == "help":
            self._contact_us(ctx)
        else:
            self._reply(ctx, messages.TEXT_HINT)

    def _handle_selection(self, ctx: GuestContext, selection_id: Optional[str]) -> None:
        command = parse_selection(selection_id)
        ctx.log.info("Selection received", context={"selection_id": selection_id, "command": type(command).__name__})

        if isinstance(command, GuestCommand):
            handler = self._actions[command.action]
            if command.action in CATEGORY_MENUS:
                handler(ctx, command.action)
            else:
                handler(ctx)
        elif isinstance(command, SelectIdTypeCommand):
            self._select_id_type(ctx, command.id_type.value)
        elif isinstance(command, ServiceRequestCommand):
            self._service_request(ctx, command.service_id)
        elif isinstance(command, ServiceDecisionCommand):
            self._reply(ctx, messages.STAFF_ONLY)
        else:
            self._reply(ctx, messages.FALLBACK)

    # Greeting and booking management

    def _greeting(self, ctx: GuestContext) -> None:
        try:
            self.gateway.send_image(ctx.phone, settings.hotel_welcome_image_url, messages.welcome_caption())
        except Exception as e:
            ctx.log.warning(f"Welcome image failed: {e}")

        if ctx.user is None and ctx.event.contact_name:
            ctx.user = get_or_create_user(self.db, ctx.phone, ctx.event.contact_name)
            self.db.commit()

        self.gateway.send(ctx.phone, menus.greeting_menu(ctx.name, has_booking=ctx.booking is not None))

    def _book_room(self, ctx: GuestContext) -> None:
        if ctx.booking:
            self.gateway.send(ctx.phone, menus.existing_booking_menu(ctx.booking))
            return

        link = build_booking_link(self.kv_store, ctx.phone, ctx.name or "")
        cancel_follow_ups(self.db, ctx.phone)
        schedule_job(
            self.db,
            BOOKING_FOLLOW_UP,
            ctx.phone,
            self.clock() + timedelta(minutes=settings.booking_follow_up_minutes),
        )
        self.db.commit()
        self._reply(ctx, messages.booking_link(link))

    def _view_bookings(self, ctx: GuestContext) -> None:
        if not ctx.booking:
            self.gateway.send(ctx.phone, menus.no_booking_menu())
            return
        self.gateway.send(ctx.phone, menus.booking_actions_menu(ctx.booking, can_check_in=not ctx.checked_in))

    def _modify_booking(self, ctx: GuestContext) -> None:
        if not ctx.booking:
            self.gateway.send(ctx.phone, menus.no_booking_menu())
            return
        if ctx.checked_in:
            self._reply(ctx, "Your stay has already started. Please contact the front desk to change it.")
            return
        self._reply(ctx, messages.modify_link(build_modify_link(self.kv_store, ctx.booking.id)))

    def _cancel_booking(self, ctx: GuestContext) -> None:
        if not ctx.booking:
            self.gateway.send(ctx.phone, menus.no_booking_menu())
            return
        if ctx.checked_in:
            self._reply(ctx, "Your stay has already started and can't be cancelled here. Please contact the front desk.")
            return
        self.gateway.send(ctx.phone, menus.cancel_confirm_menu(ctx.booking))

    def _confirm_cancel(self, ctx: GuestContext) -> None:
        if not ctx.booking:
            self.gateway.send(ctx.phone, menus.no_booking_menu())
            return

        result = cancel_booking(self.db, ctx.booking.id)
        if not result.ok:
            self.db.rollback()
            ctx.log.warning("Cancellation declined", context={"error": result.error, "code": result.error_code})
            self._reply(ctx, "Sorry, this booking can't be cancelled. Please contact the front desk.")
            return

        self.db.commit()
        self.gateway.send(ctx.phone, menus.book_new_menu(result.value))

    def _keep_booking(self, ctx: GuestContext) -> None:
        self._reply(ctx, messages.KEEP_BOOKING)

    # Hotel information

    def _contact_us(self, ctx: GuestContext) -> None:
        self.gateway.send(ctx.phone, menus.contact_menu())

    def _location(self, ctx: GuestContext) -> None:
        self._reply(ctx, messages.location())

    def _our_services(self, ctx: GuestContext) -> None:
        self.gateway.send(ctx.phone, menus.our_services_menu())

    def _rooms_gallery(self, ctx: GuestContext) -> None:
        rooms = list_rooms(self.db)
        if not rooms:
            self._reply(ctx, "Our room gallery is being updated. Please check back soon.")
            return
        for room in rooms:
            if room.photo_url:
                self.gateway.send_image(ctx.phone, room.photo_url, messages.room_caption(room))
            else:
                self._reply(ctx, messages.room_caption(room))
        self.gateway.send(ctx.phone, menus.gallery_follow_up_menu())

    def _check_availability(self, ctx: GuestContext) -> None:
        self._reply(ctx, messages.availability_report(rooms_available_on(self.db, self.clock().date())))

    def _dining(self, ctx: GuestContext) -> None:
        self._image_or_text(ctx, settings.hotel_restaurant_image_url, messages.dining())

    def _spa(self, ctx: GuestContext) -> None:
        self._image_or_text(ctx, settings.hotel_spa_image_url, messages.spa())

    def _image_or_text(self, ctx: GuestContext, link: Optional[str], text: str) -> None:
        if link:
            self.gateway.send_image(ctx.phone, link, text)
        else:
            self._reply(ctx, text)

    # In-stay services

    def _require_checked_in(self, ctx: GuestContext) -> bool:
        if ctx.checked_in:
            return True
        self._reply(ctx, messages.SERVICES_REFUSAL)
        return False

    def _services(self, ctx: GuestContext) -> None:
        if self._require_checked_in(ctx):
            self.gateway.send(ctx.phone, menus.services_menu())

    def _category_menu(self, ctx: GuestContext, action: GuestAction) -> None:
        if not self._require_checked_in(ctx):
            return
        category = CATEGORY_MENUS[action]
        services = list_services(self.db, category)
        if not services:
            self._reply(ctx, f"No {category.lower()} services are available right now.")
            return
        self.gateway.send(ctx.phone, menus.service_catalog_menu(category, services))

    def _service_request(self, ctx: GuestContext, service_id: int) -> None:
        if not self._require_checked_in(ctx):
            return

        result = create_service_request(self.db, ctx.booking, service_id)
        if not result.ok:
            ctx.log.info("Service request declined", context={"service_id": service_id, "code": result.error_code})
            self._reply(ctx, messages.SERVICE_UNAVAILABLE)
            return
        self.db.commit()

        service = result.value.service
        self._reply(ctx, messages.service_acknowledgement(service.category, service.name))
        if settings.admin_phone:
            self.gateway.send(settings.admin_phone, menus.service_decision_menu(ctx.booking, service))

    # Check-in and ID verification

    def _start_checkin(self, ctx: GuestContext) -> None:
        booking = ctx.booking
        if not booking:
            self.gateway.send(ctx.phone, menus.no_booking_menu())
            return

        if booking.state in CHECKIN_RESTART_STATES:
            start_checkin(booking)
            self.db.commit()
            self.gateway.send(ctx.phone, menus.id_type_menu())
        elif booking.state in (BookingState.AWAITING_ID_TYPE.value, BookingState.AWAITING_IMAGE.value):
            self.gateway.send(ctx.phone, menus.id_type_menu())
        elif booking.state == BookingState.AWAITING_CONFIRMATION.value:
            self._reply(ctx, "Please confirm the ID details we sent you to continue check-in.")
        elif booking.state == BookingState.AWAITING_PAYMENT.value:
            self._request_payment(ctx, booking)
        else:
            self._reply(ctx, messages.ALREADY_CHECKED_IN)

    def _select_id_type(self, ctx: GuestContext, id_type: str) -> None:
        booking = ctx.booking
        if not booking:
            self.gateway.send(ctx.phone, menus.no_booking_menu())
            return

        if booking.state == BookingState.CONFIRMED.value:
            start_checkin(booking)
        if not can_transition(BookingState(booking.state), BookingState.AWAITING_IMAGE):
            self.db.rollback()
            self._reply(ctx, "There is no ID verification in progress for your booking.")
            return

        select_id_type(booking, id_type)
        cancel_jobs(self.db, booking.id, ID_VERIFICATION_EXPIRY)
        schedule_job(
            self.db,
            ID_VERIFICATION_EXPIRY,
            ctx.phone,
            self.clock() + timedelta(minutes=settings.id_verification_expiry_minutes),
            booking_id=booking.id,
            payload={"state_version": booking.state_version},
        )
        self.db.commit()
        ctx.log.info("ID type selected", context={"id_type": id_type})
        self._reply(ctx, messages.upload_instructions(id_type))

    def _handle_image(self, ctx: GuestContext, media_id: Optional[str]) -> None:
        booking = ctx.booking
        if (
            not booking
            or booking.state != BookingState.AWAITING_IMAGE.value
            or not booking.selected_id_type
            or not media_id
        ):
            self._reply(ctx, messages.IMAGE_NOT_EXPECTED)
            return

        id_type = booking.selected_id_type
        armed_version = booking.state_version
        self._reply(ctx, messages.IMAGE_PROCESSING)

        path = None
        try:
            path = self.gateway.download_media(media_id, settings.media_temp_dir)
            wait_until_readable(path)
            result = self.verifier.verify(path, id_type, booking.id)
        except (MediaDownloadError, IdVerificationError) as e:
            ctx.log.warning(f"ID verification failed: {e}", context={"id_type": id_type})
            self._reply(ctx, messages.VERIFICATION_FAILED)
            return
        finally:
            if path is not None:
                remove_temp_file(path)

        self.db.refresh(booking)
        if booking.state != BookingState.AWAITING_IMAGE.value or booking.state_version != armed_version:
            ctx.log.info("Verification result discarded, booking moved on", context={"state": booking.state})
            self._reply(ctx, messages.VERIFICATION_EXPIRED)
            return

        self.db.add(
            VerifiedId(
                booking_id=booking.id,
                id_type=id_type,
                id_number=result.id_number,
                name=result.name,
                dob=result.dob,
                verification_status="verified",
                ocr_text=result.ocr_text,
            )
        )
        id_extracted(booking)
        cancel_jobs(self.db, booking.id, ID_VERIFICATION_EXPIRY)
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            ctx.log.info("Verification result discarded, booking updated concurrently")
            self._reply(ctx, messages.VERIFICATION_EXPIRED)
            return

        self.gateway.send(ctx.phone, menus.verification_confirm_menu(result.name, result.id_number, result.dob))

    def _verify_correct(self, ctx: GuestContext) -> None:
        booking = ctx.booking
        if not booking or booking.state != BookingState.AWAITING_CONFIRMATION.value:
            self._reply(ctx, "There are no ID details waiting for your confirmation.")
            return

        new_state = confirm_identity(booking)
        if new_state == BookingState.AWAITING_PAYMENT:
            self.db.commit()
            self._request_payment(ctx, booking)
            return

        cancel_booking_reminders(self.db, booking.id)
        schedule_checkin_welcome(self.db, booking, self.clock())
        self.db.commit()
        ctx.log.info("Guest checked in")
        self._reply(ctx, messages.checkin_complete(booking))

    def _verify_incorrect(self, ctx: GuestContext) -> None:
        booking = ctx.booking
        if not booking or booking.state != BookingState.AWAITING_CONFIRMATION.value:
            self._reply(ctx, "There are no ID details waiting for your confirmation.")
            return

        decline_extraction(booking)
        self.db.commit()
        self.gateway.send(
            ctx.phone,
            menus.id_type_menu("Sorry about that. Please select your ID type again and send a clearer photo."),
        )

    def _request_payment(self, ctx: GuestContext, booking: Booking) -> None:
        self._reply(ctx, messages.payment_link(booking, build_payment_link(self.kv_store, booking.id)))
