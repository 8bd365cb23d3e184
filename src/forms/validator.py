"""
Server-side validation for the employment application form.

validate_application(form) -> ValidationResult
    form: any mapping of field name -> submitted string (Flask's request.form,
    a plain dict in tests). Every rule runs; the failing field ids come back
    in rule order, each listed once.

The browser mirrors these rules, but only this module is authoritative.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from email_validator import validate_email, EmailNotValidError

from src.core.errors import ValidationFailed

PHONE_RE = re.compile(r"^\d{3}-\d{3}-\d{4}$")
ZIP_RE = re.compile(r"^\d{5}(-\d{4})?$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# CR/LF and other C0 controls; these fields end up in mail headers
CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")

MIN_NAME_LEN = 2
MAX_APT_LEN = 100
MIN_COVER_LETTER_LEN = 20

CHECKBOX_OFF = ("", "0", "false", "off", "no")

# Order used for error reporting and for the notification table
FIELD_ORDER = [
    "full_name", "email", "phone",
    "street_address", "apt_suite", "city", "state", "zip",
    "years_experience", "desired_pay", "drivers_license", "reliable_transport",
    "cover_letter", "agreement", "application_date", "printed_name",
]


@dataclass(frozen=True)
class SubmissionRecord:
    """One normalized application. Built once per request, never mutated."""

    full_name: str
    email: str
    phone: str
    street_address: str
    city: str
    state: str
    zip: str
    cover_letter: str
    application_date: date
    printed_name: str
    apt_suite: str = ""
    years_experience: float = 0.0
    desired_pay: float = 0.0
    drivers_license: bool = False
    reliable_transport: bool = False
    agreement: bool = False

    @property
    def address_line(self) -> str:
        """Street and apartment on one line."""
        if self.apt_suite:
            return f"{self.street_address}, {self.apt_suite}"
        return self.street_address

    @property
    def locality_line(self) -> str:
        return f"{self.city}, {self.state} {self.zip}".strip()

    @property
    def years_display(self) -> str:
        # 3.0 -> "3", 2.5 -> "2.5"
        return f"{self.years_experience:g}"

    @property
    def pay_display(self) -> str:
        return f"${self.desired_pay:,.2f}"

    @property
    def date_display(self) -> str:
        return self.application_date.isoformat()


@dataclass
class ValidationResult:
    record: Optional[SubmissionRecord] = None
    errors: list = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and self.record is not None

    def unwrap(self) -> SubmissionRecord:
        """The record, or ValidationFailed listing the failing fields."""
        if not self.ok:
            raise ValidationFailed(self.errors)
        return self.record


# ═══════════════════════════════════════════════════════════════════════
# Field helpers
# ═══════════════════════════════════════════════════════════════════════

def _text(form, name: str) -> str:
    value = form.get(name)
    return str(value).strip() if value is not None else ""


def _checkbox(form, name: str) -> bool:
    return _text(form, name).lower() not in CHECKBOX_OFF


def _number(form, name: str):
    """Absent or blank -> 0.0. Returns None when the value isn't a finite number."""
    raw = _text(form, name).replace(",", "")
    if not raw:
        return 0.0
    try:
        value = float(raw)
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def has_control_chars(value: str) -> bool:
    return bool(CONTROL_RE.search(value))


def _is_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


def _parse_date(value: str) -> Optional[date]:
    if not DATE_RE.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


# ═══════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════

def validate_application(form, today: date = None) -> ValidationResult:
    """Apply every field rule and build a SubmissionRecord if none fail."""
    errors = []

    def fail(name):
        if name not in errors:
            errors.append(name)

    full_name = _text(form, "full_name")
    email = _text(form, "email")
    phone = _text(form, "phone")
    street = _text(form, "street_address")
    apt = _text(form, "apt_suite")
    city = _text(form, "city")
    state = _text(form, "state")
    zip_code = _text(form, "zip")
    cover_letter = _text(form, "cover_letter")
    printed_name = _text(form, "printed_name")

    years = _number(form, "years_experience")
    pay = _number(form, "desired_pay")

    # A missing date key means the browser never sent one; use today.
    if "application_date" in form:
        date_raw = _text(form, "application_date")
    else:
        date_raw = (today or date.today()).isoformat()
    app_date = _parse_date(date_raw)

    if len(full_name) < MIN_NAME_LEN or has_control_chars(full_name):
        fail("full_name")
    if not email or has_control_chars(email) or not _is_email(email):
        fail("email")
    if has_control_chars(phone) or not PHONE_RE.match(phone):
        fail("phone")
    if not street:
        fail("street_address")
    if len(apt) > MAX_APT_LEN:
        fail("apt_suite")
    if not city:
        fail("city")
    if not state:
        fail("state")
    if not ZIP_RE.match(zip_code):
        fail("zip")
    if years is None or years < 0:
        fail("years_experience")
    if pay is None or pay < 0:
        fail("desired_pay")
    if len(cover_letter) < MIN_COVER_LETTER_LEN:
        fail("cover_letter")
    if not _checkbox(form, "agreement"):
        fail("agreement")
    if app_date is None:
        fail("application_date")
    if (not printed_name or printed_name != full_name
            or has_control_chars(printed_name)):
        fail("printed_name")

    if errors:
        return ValidationResult(errors=errors)

    record = SubmissionRecord(
        full_name=full_name,
        email=email,
        phone=phone,
        street_address=street,
        apt_suite=apt,
        city=city,
        state=state,
        zip=zip_code,
        years_experience=years,
        desired_pay=pay,
        drivers_license=_checkbox(form, "drivers_license"),
        reliable_transport=_checkbox(form, "reliable_transport"),
        cover_letter=cover_letter,
        agreement=True,
        application_date=app_date,
        printed_name=printed_name,
    )
    return ValidationResult(record=record)
