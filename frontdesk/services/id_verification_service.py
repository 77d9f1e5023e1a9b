"""ID document verification: OCR collaborator client and field extraction."""

import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import httpx

from frontdesk.config import settings
from frontdesk.logging_config import get_logger

logger = get_logger("id_verification_service")

ID_NUMBER_PATTERNS = {
    "passport": re.compile(r"^[A-Z][0-9]{7}$"),
    "voter": re.compile(r"^[A-Z]{3}[0-9]{7}$"),
    "license": re.compile(r"^[A-Z]{2}[0-9]{13}$"),
}
AADHAAR_NUMBER = re.compile(r"[2-9][0-9]{3}\s?[0-9]{4}\s?[0-9]{4}")
AADHAAR_NAME = re.compile(r"To[\s:]+([A-Z][A-Z\s]+)$")
NAME_LINE = re.compile(r"^[A-Z][a-z]+ ([A-Z][a-z]+ )?[A-Z][a-z]+$")
DOB = re.compile(r"\d{2}[/-]\d{2}[/-]\d{4}")
AADHAAR_YEAR_OF_BIRTH = re.compile(r"(?:DOB|Year of Birth)[\s:]+([0-9]{4})\b", re.IGNORECASE)

SUPPORTED_ID_TYPES = {"passport", "aadhar", "voter", "license"}


class IdVerificationError(Exception):
    pass


@dataclass
class VerificationResult:
    name: str
    id_number: str
    dob: Optional[str]
    ocr_text: str


def extract_id_info(text: str, id_type: str) -> dict:
    """Pull name, ID number and date of birth out of OCR text, line by line."""
    info = {"name": None, "id_number": None, "dob": None}

    for line in (raw.strip() for raw in text.splitlines()):
        if not line:
            continue

        if not info["name"]:
            if NAME_LINE.match(line):
                info["name"] = line
            elif id_type == "aadhar":
                match = AADHAAR_NAME.search(line)
                if match:
                    info["name"] = match.group(1).strip()

        if not info["id_number"]:
            if id_type == "aadhar":
                match = AADHAAR_NUMBER.search(line)
                if match:
                    info["id_number"] = re.sub(r"\s", "", match.group(0))
            else:
                pattern = ID_NUMBER_PATTERNS.get(id_type)
                if pattern and pattern.match(line):
                    info["id_number"] = line

        if not info["dob"]:
            match = DOB.search(line)
            if match:
                info["dob"] = match.group(0)
            elif id_type == "aadhar":
                match = AADHAAR_YEAR_OF_BIRTH.search(line)
                if match:
                    info["dob"] = match.group(1)

    return info


def wait_until_readable(
    path: Path,
    attempts: Optional[int] = None,
    backoff_seconds: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll until the downloaded file exists and is non-empty, with a small bounded retry."""
    attempts = attempts if attempts is not None else settings.media_read_attempts
    backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.media_read_backoff_seconds

    for attempt in range(1, attempts + 1):
        try:
            if path.stat().st_size > 0:
                return
        except OSError:
            pass
        if attempt < attempts:
            sleep(backoff_seconds * attempt)

    raise IdVerificationError(f"Image file is not readable: {path.name}")


class IdVerificationClient:
    """Client for the OCR collaborator: posts an ID photo, receives its text."""

    def __init__(self, url: Optional[str], timeout: float = 20.0):
        self.url = url
        self.timeout = timeout

    def recognize(self, image_path: Path, id_type: str) -> str:
        if not self.url:
            raise IdVerificationError("ID verification service is not configured")

        lang = "eng+hin" if id_type == "aadhar" else "eng"
        try:
            with httpx.Client(timeout=self.timeout) as client, open(image_path, "rb") as image:
                response = client.post(
                    self.url,
                    files={"image": (image_path.name, image, "image/jpeg")},
                    data={"id_type": id_type, "lang": lang},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as e:
            raise IdVerificationError("ID verification timed out") from e
        except (httpx.HTTPError, OSError, ValueError) as e:
            raise IdVerificationError(f"ID verification request failed: {e}") from e

        text = payload.get("text") if isinstance(payload, dict) else None
        if not text:
            raise IdVerificationError("ID verification returned no text")
        return text

    def verify(self, image_path: Path, id_type: str, booking_id: int) -> VerificationResult:
        if id_type not in SUPPORTED_ID_TYPES:
            raise IdVerificationError(f"Unsupported ID type: {id_type}")

        text = self.recognize(image_path, id_type)
        info = extract_id_info(text, id_type)
        if not info["name"] or not info["id_number"]:
            logger.warning(
                "Could not extract required fields from ID",
                extra={"context": {"booking_id": booking_id, "id_type": id_type}},
            )
            raise IdVerificationError("Could not extract required information from ID")

        logger.info("ID fields extracted", extra={"context": {"booking_id": booking_id, "id_type": id_type}})
        return VerificationResult(name=info["name"], id_number=info["id_number"], dob=info["dob"], ocr_text=text)


def get_id_verifier() -> IdVerificationClient:
    return IdVerificationClient(url=settings.id_verification_url, timeout=settings.id_verification_timeout_seconds)
