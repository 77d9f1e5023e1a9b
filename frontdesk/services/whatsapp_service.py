import secrets
import time
from pathlib import Path
from typing import Optional

import httpx

from frontdesk.config import settings
from frontdesk.logging_config import get_logger
from frontdesk.schemas.outbound import (
    Button,
    InteractiveMessage,
    ListSection,
    MediaMessage,
    OutboundMessage,
    TextMessage,
)

logger = get_logger("whatsapp_service")


class MediaDownloadError(Exception):
    pass


class WhatsAppService:
    """Service for sending messages through the WhatsApp Cloud API."""

    def __init__(
        self,
        access_token: Optional[str],
        api_url: str,
        graph_url: str,
        timeout: float = 30.0,
    ):
        self.access_token = access_token
        self.api_url = api_url
        self.graph_url = graph_url.rstrip("/")
        self.timeout = timeout

    @property
    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.access_token}", "Content-Type": "application/json"}

    def _make_request(self, data: dict) -> dict:
        """POST a message payload. Never raises; failures come back as {"ok": False}."""
        if not self.access_token:
            logger.error("WhatsApp access token is missing (WHATSAPP_ACCESS_TOKEN not set)")
            return {"ok": False, "error": "missing_access_token"}

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.api_url, json=data, headers=self._headers)
            if response.status_code >= 400:
                logger.error(
                    "WhatsApp API rejected message",
                    extra={"context": {"to": data.get("to"), "status": response.status_code, "body": response.text[:300]}},
                )
                return {"ok": False, "error": response.text[:300], "status_code": response.status_code}
            return {"ok": True, "result": response.json()}
        except Exception as e:
            logger.error(f"WhatsApp API error: {e}", extra={"context": {"to": data.get("to")}})
            return {"ok": False, "error": str(e)}

    def send(self, to: str, message: OutboundMessage) -> dict:
        """Send one outbound message to a phone number."""
        data = {"messaging_product": "whatsapp", "recipient_type": "individual", "to": to}
        data.update(message.to_payload())
        return self._make_request(data)

    def send_text(self, to: str, body: str) -> dict:
        return self.send(to, TextMessage(body=body))

    def send_image(self, to: str, link: Optional[str], caption: str = "") -> dict:
        if not link:
            logger.warning("Image send skipped, no link configured", extra={"context": {"to": to}})
            return {"ok": False, "error": "missing_link"}
        return self.send(to, MediaMessage(link=link, caption=caption))

    def send_buttons(self, to: str, body: str, buttons: list[tuple[str, str]], header: Optional[str] = None) -> dict:
        message = InteractiveMessage(
            body=body,
            header=header,
            buttons=[Button(id=button_id, title=title) for button_id, title in buttons],
        )
        return self.send(to, message)

    def send_list(
        self,
        to: str,
        body: str,
        list_button: str,
        sections: list[ListSection],
        header: Optional[str] = None,
        footer: Optional[str] = None,
    ) -> dict:
        message = InteractiveMessage(
            body=body,
            header=header,
            footer=footer,
            list_button=list_button,
            sections=sections,
        )
        return self.send(to, message)

    def get_media_url(self, media_id: str) -> str:
        """Resolve a media id to its short-lived download URL."""
        with httpx.Client(timeout=self.timeout) as client:
            response = client.get(f"{self.graph_url}/{media_id}", headers=self._headers)
            response.raise_for_status()
            url = response.json().get("url")
        if not url:
            raise MediaDownloadError(f"No media URL for {media_id}")
        return url

    def download_media(self, media_id: str, dest_dir: str | Path) -> Path:
        """Download inbound media to a uniquely named temp file and return its path."""
        dest = Path(dest_dir)
        dest.mkdir(parents=True, exist_ok=True)
        path = dest / f"{int(time.time() * 1000)}-{secrets.token_hex(4)}.jpg"

        try:
            url = self.get_media_url(media_id)
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, headers=self._headers)
                response.raise_for_status()
            path.write_bytes(response.content)
        except MediaDownloadError:
            raise
        except Exception as e:
            path.unlink(missing_ok=True)
            raise MediaDownloadError(f"Failed to download media {media_id}: {e}") from e

        logger.info("Media downloaded", extra={"context": {"media_id": media_id, "path": str(path)}})
        return path


def get_whatsapp_service() -> WhatsAppService:
    return WhatsAppService(
        access_token=settings.whatsapp_access_token,
        api_url=settings.whatsapp_api_url,
        graph_url=settings.whatsapp_graph_url,
        timeout=settings.whatsapp_timeout_seconds,
    )
