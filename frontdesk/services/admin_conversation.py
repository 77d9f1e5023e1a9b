"""Admin conversation flow: reports menu and service request decisions."""

from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from frontdesk.logging_config import get_logger
from frontdesk.schemas.webhook import InboundEvent
from frontdesk.services import menus, messages, report_service
from frontdesk.services.booking_service import get_booking
from frontdesk.services.commands import AdminAction, AdminCommand, ServiceDecisionCommand, parse_selection
from frontdesk.services.service_request_service import decide_service_request
from frontdesk.services.whatsapp_service import WhatsAppService

logger = get_logger("admin_conversation")

INVALID_OPTION = "Invalid option selected. Type \"hi\" to open the admin menu."
ADMIN_TEXT_HINT = "Type \"hi\" to open the admin menu."

REPORTS = {
    AdminAction.DASHBOARD_SUMMARY: report_service.dashboard_summary,
    AdminAction.URGENT_ACTIONS: report_service.urgent_actions,
    AdminAction.VIEW_ALL_BOOKINGS: report_service.all_bookings,
    AdminAction.TODAY_CHECKINS: report_service.today_checkins,
    AdminAction.TODAY_CHECKOUTS: report_service.today_checkouts,
    AdminAction.PENDING_VERIFICATIONS: report_service.pending_verifications,
    AdminAction.UNPAID_BOOKINGS: report_service.unpaid_bookings,
    AdminAction.DAILY_REVENUE: report_service.daily_revenue,
    AdminAction.OCCUPANCY_REPORT: report_service.occupancy_report,
    AdminAction.FEEDBACK_SUMMARY: report_service.feedback_summary,
}


class AdminConversation:
    def __init__(self, db: Session, gateway: WhatsAppService, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.gateway = gateway
        self.clock = clock

    def handle(self, event: InboundEvent) -> None:
        try:
            if event.kind == "text":
                text = (event.body or "").strip().lower()
                if text in ("hi", "menu"):
                    self.gateway.send(event.sender, menus.admin_menu())
                else:
                    self.gateway.send_text(event.sender, ADMIN_TEXT_HINT)
            elif event.kind == "selection":
                self._handle_selection(event)
            else:
                self.gateway.send_text(event.sender, ADMIN_TEXT_HINT)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Admin handler failed: {e}", exc_info=True, extra={"context": {"kind": event.kind}})
            self.gateway.send_text(event.sender, messages.APOLOGY)

    def _handle_selection(self, event: InboundEvent) -> None:
        command = parse_selection(event.selection_id)
        if isinstance(command, AdminCommand):
            report = REPORTS[command.action]
            self.gateway.send_text(event.sender, report(self.db, self.clock().date()))
        elif isinstance(command, ServiceDecisionCommand):
            self._decide(event.sender, command)
        else:
            self.gateway.send_text(event.sender, INVALID_OPTION)

    def _decide(self, admin_phone: str, command: ServiceDecisionCommand) -> None:
        result = decide_service_request(
            self.db, command.service_id, command.booking_id, command.approve, now=self.clock()
        )
        if not result.ok:
            self.gateway.send_text(admin_phone, "No pending request found for this service. It may already be handled.")
            return
        self.db.commit()

        request = result.value
        booking = get_booking(self.db, command.booking_id)
        service = request.service
        if booking and booking.user:
            self.gateway.send_text(
                booking.user.phone, messages.service_decision(command.approve, service.category, service.name)
            )
        logger.info(
            "Service request decided by admin",
            extra={"context": {"request_id": request.id, "status": request.status}},
        )
        self.gateway.send_text(admin_phone, f"✅ Request #{request.id} ({service.name}) marked {request.status}.")
