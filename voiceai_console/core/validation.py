"""
Client-side Form Validation
Validates form and wizard input before any request reaches the backend
"""
import re
import logging
from typing import Dict, List, Optional, Iterable
from dataclasses import dataclass

from voiceai_console.core.errors import ValidationError

logger = logging.getLogger(__name__)


# Country-specific E.164 patterns, checked by dial-code prefix
PHONE_PATTERNS = {
    "+1": re.compile(r"^\+1[2-9]\d{9}$"),       # US/Canada
    "+44": re.compile(r"^\+44[1-9]\d{8,9}$"),   # UK
    "+91": re.compile(r"^\+91[6-9]\d{9}$"),     # India
}
FALLBACK_PHONE_PATTERN = re.compile(r"^\+\d{7,15}$")

AGENT_NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")
OTP_PATTERN = re.compile(r"^\d{4,8}$")

SUPPORTED_AUDIO_FORMATS = ["mp3", "wav", "m4a", "mp4", "mpeg", "webm", "ogg"]
MAX_AUDIO_FILE_SIZE = 100 * 1024 * 1024  # 100MB


@dataclass
class ValidationResult:
    """Result of validating a single form field."""
    field: str
    is_valid: bool
    message: str = ""


class FormValidator:
    """
    Collects per-field results for one form submission.

    Usage:
        validator = FormValidator()
        validator.check("first_name", validate_required(value, "First name"))
        validator.raise_if_invalid()
    """

    def __init__(self):
        self.results: List[ValidationResult] = []

    def check(self, field: str, error: Optional[str]) -> bool:
        """Record the outcome for a field; error=None means valid."""
        self.results.append(ValidationResult(
            field=field,
            is_valid=error is None,
            message=error or ""
        ))
        return error is None

    @property
    def field_errors(self) -> Dict[str, str]:
        """First error message per invalid field."""
        errors: Dict[str, str] = {}
        for r in self.results:
            if not r.is_valid and r.field not in errors:
                errors[r.field] = r.message
        return errors

    @property
    def is_valid(self) -> bool:
        return all(r.is_valid for r in self.results)

    def raise_if_invalid(self) -> None:
        """Raise ValidationError carrying the field map if any check failed."""
        if not self.is_valid:
            errors = self.field_errors
            logger.debug(f"Form validation failed: {sorted(errors)}")
            raise ValidationError(errors)


def validate_required(value: Optional[str], label: str) -> Optional[str]:
    if value is None or not str(value).strip():
        return f"{label} is required"
    return None


def normalize_phone_number(phone: str) -> str:
    """
    Normalize raw phone input to E.164 format.

    Args:
        phone: Raw phone number string

    Returns:
        Normalized phone in E.164 format (+1234567890)

    Raises:
        ValueError: If phone is empty or has the wrong number of digits
    """
    if not phone:
        raise ValueError("Phone number is empty")

    has_plus = phone.strip().startswith('+')
    cleaned = re.sub(r'[^\d]', '', phone)

    if not cleaned:
        raise ValueError("Phone number contains no digits")

    if len(cleaned) < 7:
        raise ValueError("Phone number too short (minimum 7 digits)")

    if len(cleaned) > 15:
        raise ValueError("Phone number too long (maximum 15 digits)")

    if has_plus:
        return f"+{cleaned}"

    # 10 digits: US/Canada without country code
    if len(cleaned) == 10:
        return f"+1{cleaned}"

    if len(cleaned) == 11 and cleaned.startswith('1'):
        return f"+{cleaned}"

    return f"+{cleaned}"


def is_valid_phone(phone: Optional[str]) -> bool:
    """Check an E.164 number against the known country patterns."""
    if not phone:
        return False

    for code, pattern in PHONE_PATTERNS.items():
        if phone.startswith(code):
            return bool(pattern.match(phone))

    return bool(FALLBACK_PHONE_PATTERN.match(phone))


def validate_phone(phone: Optional[str]) -> Optional[str]:
    if not phone or not phone.strip():
        return "Phone number is required"
    if not is_valid_phone(phone.strip()):
        return "Enter a valid phone number in international format (e.g. +14155550123)"
    return None


def validate_agent_name(name: Optional[str]) -> Optional[str]:
    name = (name or "").strip()
    if not name:
        return "Agent name is required"
    if len(name) < 3:
        return "Agent name must be at least 3 characters"
    if not AGENT_NAME_PATTERN.match(name):
        return "Agent name can only contain letters and spaces"
    return None


def validate_agent_basic_info(
    agent_name: Optional[str],
    intended_role: Optional[str],
    target_industry: Optional[str],
    company_name: Optional[str]
) -> None:
    """
    Validate the first page of the agent wizard.

    Raises:
        ValidationError: With one entry per invalid field
    """
    validator = FormValidator()
    validator.check("agent_name", validate_agent_name(agent_name))
    validator.check("intended_role", None if intended_role else "Agent role is required")
    validator.check("target_industry", None if target_industry else "Industry is required")
    validator.check("company_name", validate_required(company_name, "Company name"))
    validator.raise_if_invalid()


def validate_lead_form(first_name: Optional[str], agent_id: Optional[str], phone: Optional[str]) -> None:
    """Validate the add-lead form."""
    validator = FormValidator()
    validator.check("first_name", validate_required(first_name, "First name"))
    validator.check("agent_id", validate_required(agent_id, "Agent"))
    validator.check("phone_e164", validate_phone(phone))
    validator.raise_if_invalid()


def validate_onboarding(name: Optional[str], phone: Optional[str], company_name: Optional[str]) -> None:
    validator = FormValidator()
    validator.check("name", validate_required(name, "Name"))
    validator.check("phone", validate_phone(phone))
    validator.check("company_name", validate_required(company_name, "Company name"))
    validator.raise_if_invalid()


def validate_otp_code(code: Optional[str]) -> None:
    validator = FormValidator()
    if not code or not code.strip():
        validator.check("otp_code", "Verification code is required")
    else:
        validator.check("otp_code", None if OTP_PATTERN.match(code.strip()) else "Enter the numeric code sent to the lead")
    validator.raise_if_invalid()


def validate_csv_file(filename: Optional[str]) -> None:
    validator = FormValidator()
    if not filename or not filename.lower().endswith(".csv"):
        validator.check("file", "Please select a valid CSV file")
    validator.raise_if_invalid()


def validate_audio_file(
    filename: Optional[str],
    size: int,
    supported_formats: Iterable[str] = SUPPORTED_AUDIO_FORMATS,
    max_size: int = MAX_AUDIO_FILE_SIZE
) -> None:
    """Validate an audio file before a CallIQ upload."""
    formats = list(supported_formats)
    validator = FormValidator()
    extension = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else ""

    if extension not in formats:
        validator.check("file", f"Unsupported file format. Supported formats: {', '.join(formats)}")
    elif size > max_size:
        validator.check("file", f"File size exceeds {max_size // (1024 * 1024)}MB limit")
    validator.raise_if_invalid()


def clean_phone(phone: Optional[str]) -> str:
    """Normalize phone input to E.164, returning the raw input when it cannot be normalized."""
    if not phone:
        return ""
    try:
        return normalize_phone_number(phone)
    except ValueError:
        return phone.strip()
