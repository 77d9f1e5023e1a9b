"""Operational alerts for the hotel admin, delivered over WhatsApp."""

from typing import Optional

from frontdesk.config import settings
from frontdesk.logging_config import get_logger
from frontdesk.services.whatsapp_service import get_whatsapp_service

logger = get_logger("alert_service")

LEVEL_ICONS = {"INFO": "ℹ️", "WARNING": "⚠️", "ERROR": "❌", "CRITICAL": "🔥"}


def format_alert(level: str, message: str, context: Optional[dict] = None) -> str:
    lines = [f"{LEVEL_ICONS.get(level, '📢')} *{level}* | {settings.hotel_name}", "", message]
    if context:
        lines.append("")
        lines.extend(f"{key}: {value}" for key, value in context.items())
    return "\n".join(lines)


def send_alert(level: str, message: str, context: Optional[dict] = None) -> bool:
    """Best-effort alert to the admin phone. Never raises; returns whether the gateway accepted it."""
    if not settings.admin_phone or not settings.whatsapp_access_token:
        logger.warning("Admin alert skipped, gateway or admin phone not configured", extra={"context": {"level": level}})
        return False

    try:
        result = get_whatsapp_service().send_text(settings.admin_phone, format_alert(level, message, context))
    except Exception as e:
        logger.error(f"Admin alert failed: {e}", extra={"context": {"level": level}})
        return False
    return bool(result.get("ok"))


def alert_error(message: str, context: Optional[dict] = None) -> bool:
    return send_alert("ERROR", message, context)


def alert_critical(message: str, context: Optional[dict] = None) -> bool:
    return send_alert("CRITICAL", message, context)
