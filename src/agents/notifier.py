"""
notifier.py — Admin notification for employment applications

One email per application to ADMIN_EMAIL:
  Subject: "New Employment Application: <full name>"
  Body:    HTML table mirroring the PDF layout, one row per captured field
  Attach:  the filled application PDF, when one was generated

Email outcome (result["email"]):
  sent                     — delivered with the PDF attached
  sent-without-attachment  — delivered, no PDF available
  failed                   — transport error; logged (debug mode), never raised
"""

import os
import html
import logging

from src.core.errors import TransportFailed

log = logging.getLogger("hiring.notify")

EMAIL_SENT = "sent"
EMAIL_SENT_NO_ATTACHMENT = "sent-without-attachment"
EMAIL_FAILED = "failed"

SUBJECT_PREFIX = "New Employment Application: "
COMPANY = "Discount Cuts & Services"


def _esc(value) -> str:
    return html.escape(str(value), quote=True)


def _multiline(value) -> str:
    """Escape, then keep the applicant's line breaks."""
    return "<br>\n".join(_esc(value).splitlines())


def _checkbox(flag: bool) -> str:
    return "Yes [X]" if flag else "No"


def application_rows(record) -> list:
    """(label, html_value) pairs in the same order as the PDF."""
    address = record.street_address
    if record.apt_suite:
        address += "\n" + record.apt_suite
    address += "\n" + record.locality_line
    return [
        ("Full Name", _esc(record.full_name)),
        ("Email", _esc(record.email)),
        ("Phone", _esc(record.phone)),
        ("Street Address", _multiline(address)),
        ("Years of Relevant Experience", _esc(record.years_display)),
        ("Desired Pay", _esc(record.pay_display)),
        ("Valid Driver's License", _checkbox(record.drivers_license)),
        ("Reliable Transportation", _checkbox(record.reliable_transport)),
        ("Cover Letter", _multiline(record.cover_letter)),
        ("Agreement", _checkbox(record.agreement)),
        ("Date", _esc(record.date_display)),
        ("Printed Name (Signature)", _esc(record.printed_name)),
    ]


def build_application_html(record) -> str:
    rows = "\n".join(
        f"    <tr><td><strong>{_esc(label)}:</strong></td><td>{value}</td></tr>"
        for label, value in application_rows(record)
    )
    return f"""<h2>Employment Application - {_esc(COMPANY)}</h2>
<table border="1" cellpadding="5" style="width:100%; border-collapse: collapse;">
{rows}
</table>
<p><em>Full PDF attached below if generated.</em></p>
"""


class Notifier:
    """Build and send the admin email. Transport errors stay in here."""

    def __init__(self, config, transport):
        self.admin_email = config.admin_email
        self.debug = config.debug
        self.transport = transport

    def subject_for(self, record) -> str:
        return SUBJECT_PREFIX + record.full_name

    def notify(self, record, pdf_path: str = None) -> dict:
        """
        Send the application summary, attaching pdf_path if it exists.

        Returns:
            {"email": sent|sent-without-attachment|failed, "attached": bool, "error": str|None}
        """
        attach = bool(pdf_path) and os.path.exists(pdf_path)
        body = build_application_html(record)
        try:
            self.transport.send(
                to=self.admin_email,
                subject=self.subject_for(record),
                html=body,
                attachments=[pdf_path] if attach else [],
            )
        except TransportFailed as e:
            if self.debug:
                log.error("Application email failed for %s: %s", record.full_name[:40], e)
            return {"email": EMAIL_FAILED, "attached": False, "error": str(e)}

        status = EMAIL_SENT if attach else EMAIL_SENT_NO_ATTACHMENT
        log.info("Application email %s for %s", status, record.full_name[:40])
        return {"email": status, "attached": attach, "error": None}

    def notify_late_attachment(self, record, first: dict, pdf_path: str = None) -> dict:
        """
        Resend once the PDF exists, after a first send that went out without it.

        Only resends when the first attempt was delivered; a failed first
        send is not retried. Returns the outcome that should stand.
        """
        if first.get("email") != EMAIL_SENT_NO_ATTACHMENT:
            return first
        if not pdf_path or not os.path.exists(pdf_path):
            return first
        second = self.notify(record, pdf_path)
        if second["email"] == EMAIL_FAILED:
            # The summary already reached the mailbox
            return {**first, "error": second["error"]}
        return second
