"""
General contact form → admin mailbox.

Same anti-abuse check as the application (Turnstile on POST), all five
fields required, reply-to set to the visitor so the admin can answer
straight from the mail client. Responds with a small status dict that the
route returns as JSON.
"""

import html
import logging
from datetime import datetime

from email_validator import validate_email, EmailNotValidError

from src.agents.turnstile import TOKEN_FIELD
from src.core.errors import TransportFailed
from src.forms.validator import has_control_chars

log = logging.getLogger("hiring.contact")

CONTACT_FIELDS = ("name", "email", "subject", "property-address", "message")
# These end up in the Subject / Reply-To headers
HEADER_FIELDS = ("name", "email", "subject")

MSG_SPAM = "Spam protection failed. Please try again."
MSG_REQUIRED = "Please fill in all required fields."
MSG_EMAIL = "Please enter a valid email address."
MSG_SINGLE_LINE = "Name, email and subject must each be on a single line."
MSG_SENT = "Your message has been sent. Thank you!"
MSG_SEND_FAILED = "Message could not be sent. Please try again later."


def _clean(value) -> str:
    return str(value or "").strip()


def build_contact_html(fields: dict, sent_at: datetime = None) -> str:
    esc = {k: html.escape(v, quote=True) for k, v in fields.items()}
    message = "<br>\n".join(esc["message"].splitlines())
    stamp = (sent_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    return f"""<html>
<body>
    <h2>New Contact Form Submission</h2>
    <p><strong>Name:</strong> {esc['name']}</p>
    <p><strong>Email:</strong> {esc['email']}</p>
    <p><strong>Property Address:</strong> {esc['property-address']}</p>
    <p><strong>Message:</strong></p>
    <p>{message}</p>
    <hr>
    <p><em>This email was sent via Discount Cuts &amp; Services website on {stamp}</em></p>
</body>
</html>
"""


class ContactPipeline:

    def __init__(self, config, verifier, transport):
        self.admin_email = config.admin_email
        self.debug = config.debug
        self.verifier = verifier
        self.transport = transport

    def process(self, method: str, form, remote_ip: str = "") -> dict:
        """Returns {"status": "success"|"error", "message": str}."""
        if (method or "").upper() == "POST":
            token = _clean(form.get(TOKEN_FIELD))
            if not self.verifier.verify(token, remote_ip):
                return {"status": "error", "message": MSG_SPAM}

        fields = {name: _clean(form.get(name)) for name in CONTACT_FIELDS}
        if not all(fields.values()):
            return {"status": "error", "message": MSG_REQUIRED}

        if any(has_control_chars(fields[name]) for name in HEADER_FIELDS):
            return {"status": "error", "message": MSG_SINGLE_LINE}

        try:
            validate_email(fields["email"], check_deliverability=False)
        except EmailNotValidError:
            return {"status": "error", "message": MSG_EMAIL}

        subject = f"New Website message from {fields['name']} - {fields['subject']}"
        try:
            self.transport.send(
                to=self.admin_email,
                subject=subject,
                html=build_contact_html(fields),
                reply_to=fields["email"],
            )
        except TransportFailed as e:
            if self.debug:
                log.error("Contact email failed: %s", e)
            return {"status": "error", "message": MSG_SEND_FAILED}

        log.info("Contact message from %s relayed", fields["email"])
        return {"status": "success", "message": MSG_SENT}
