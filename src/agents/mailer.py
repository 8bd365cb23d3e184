"""
SMTP mail transport.

SMTPMailer.send(to, subject, html, attachments=[], reply_to=None)
    STARTTLS + login on every call, one message per connection.
    Raises TransportFailed on auth/connection/protocol errors, unreadable
    attachments and headers the generator refuses to write, so callers can
    decide whether the failure is fatal.
"""

import os
import re
import logging
import smtplib
from email import encoders
from email.errors import MessageError
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from src.core.errors import TransportFailed

log = logging.getLogger("hiring.mailer")

_TAGS = re.compile(r"<[^>]+>")


def html_to_text(html: str) -> str:
    """Rough plain-text alternative for clients that refuse HTML."""
    text = re.sub(r"(?i)<br\s*/?>|</tr>|</p>|</h\d>", "\n", html)
    text = _TAGS.sub(" ", text)
    lines = [" ".join(line.split()) for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


class SMTPMailer:
    """Send HTML mail (with optional file attachments) via SMTP."""

    def __init__(self, config):
        self.smtp_host = config.smtp_host
        self.smtp_port = config.smtp_port
        self.username = config.smtp_user
        self.password = config.smtp_password
        self.from_email = config.from_email
        self.from_name = config.from_name
        self.timeout = 30

    def build_message(self, to, subject, html, attachments=None, reply_to=None):
        msg = MIMEMultipart("mixed")
        msg["From"] = formataddr((self.from_name, self.from_email))
        msg["To"] = to
        msg["Subject"] = subject
        if reply_to:
            msg["Reply-To"] = reply_to

        alt = MIMEMultipart("alternative")
        alt.attach(MIMEText(html_to_text(html), "plain", "utf-8"))
        alt.attach(MIMEText(html, "html", "utf-8"))
        msg.attach(alt)

        for filepath in attachments or []:
            if not os.path.exists(filepath):
                log.warning("Attachment vanished before send: %s", filepath)
                continue
            with open(filepath, "rb") as f:
                part = MIMEBase("application", "pdf")
                part.set_payload(f.read())
            encoders.encode_base64(part)
            part.add_header("Content-Disposition", "attachment",
                            filename=os.path.basename(filepath))
            msg.attach(part)
        return msg

    def send(self, to, subject, html, attachments=None, reply_to=None) -> bool:
        try:
            msg = self.build_message(to, subject, html, attachments, reply_to)
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError, MessageError) as e:
            raise TransportFailed(f"{type(e).__name__}: {e}") from e

        log.info("Mail sent: %s → %s (%d attachment(s))",
                 subject[:60], to, len(msg.get_payload()) - 1)
        return True
