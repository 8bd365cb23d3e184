"""
Shared pytest fixtures for the hiring intake test suite.

Nothing here touches the network: SMTP and Turnstile are replaced with
in-memory fakes, and the application template is drawn with reportlab
into the per-test tmp directory.
"""
import os
import sys
import pytest

_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from src.core.config import HiringConfig
from src.core.errors import TransportFailed


# ── Fakes ─────────────────────────────────────────────────────────────────────

class FakeTransport:
    """Records every send. Set fail=True (or a count) to raise TransportFailed."""

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, to, subject, html, attachments=None, reply_to=None):
        if self.fail:
            if isinstance(self.fail, int) and not isinstance(self.fail, bool):
                self.fail -= 1
            raise TransportFailed("SMTPAuthenticationError: 535 bad credentials")
        # Snapshot attachment bytes now; cleanup deletes the file afterwards
        files = []
        for path in attachments or []:
            with open(path, "rb") as f:
                files.append({"path": path, "name": os.path.basename(path), "data": f.read()})
        self.sent.append({"to": to, "subject": subject, "html": html,
                          "attachments": files, "reply_to": reply_to})
        return True


class FakeVerifier:
    def __init__(self, ok=True):
        self.ok = ok
        self.calls = []

    def verify(self, token, remote_ip=""):
        self.calls.append((token, remote_ip))
        return self.ok and bool(token)


# ── Template / config ─────────────────────────────────────────────────────────

def draw_template(path):
    """A one-page A4 'application form' with printed labels."""
    from reportlab.lib.pagesizes import A4
    from reportlab.lib.units import mm
    from reportlab.pdfgen import canvas

    w, h = A4
    c = canvas.Canvas(str(path), pagesize=A4)
    c.setFont("Helvetica-Bold", 14)
    c.drawString(20 * mm, h - 15 * mm, "EMPLOYMENT APPLICATION")
    c.setFont("Helvetica", 9)
    for label, top in (("Name", 34), ("Email", 44), ("Phone", 54), ("Address", 64)):
        c.drawString(20 * mm, h - top * mm, label)
    c.save()
    return str(path)


@pytest.fixture
def template_pdf(tmp_path):
    return draw_template(tmp_path / "application_template.pdf")


@pytest.fixture
def output_dir(tmp_path):
    d = tmp_path / "output"
    d.mkdir()
    return str(d)


@pytest.fixture
def config(template_pdf, output_dir, tmp_path):
    return HiringConfig(
        smtp_host="smtp.example.com",
        smtp_user="mailer",
        smtp_password="secret",
        from_email="noreply@discountcuts.com",
        admin_email="admin@discountcuts.com",
        turnstile_secret="0x4AAAAAAA-secret",
        site_url="https://discountcuts.com",
        template_path=template_pdf,
        font_path=str(tmp_path / "fonts" / "missing.ttf"),
        output_dir=output_dir,
        debug=True,
    )


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def verifier():
    return FakeVerifier()


# ── Form data ─────────────────────────────────────────────────────────────────

@pytest.fixture
def valid_form():
    """A submission that passes every rule."""
    return {
        "full_name": "Jane Doe",
        "email": "jane.doe@gmail.com",
        "phone": "555-123-4567",
        "street_address": "742 Evergreen Terrace",
        "apt_suite": "Unit 4",
        "city": "Springfield",
        "state": "IL",
        "zip": "62704",
        "years_experience": "3",
        "desired_pay": "18.50",
        "drivers_license": "on",
        "reliable_transport": "on",
        "cover_letter": "I have three years of lawn care and snow removal experience.",
        "agreement": "on",
        "application_date": "2026-02-19",
        "printed_name": "Jane Doe",
        "cf-turnstile-response": "XXXX.DUMMY.TOKEN",
        "honeypot": "",
    }


@pytest.fixture
def contact_form():
    return {
        "name": "Bob Smith",
        "email": "bob.smith@gmail.com",
        "subject": "Spring cleanup quote",
        "property-address": "12 Oak Lane, Springfield, IL",
        "message": "Can you quote a spring cleanup?\nFront and back yard.",
        "cf-turnstile-response": "XXXX.DUMMY.TOKEN",
    }


# ── Pipelines / Flask ─────────────────────────────────────────────────────────

@pytest.fixture
def pipeline(config, transport, verifier):
    from app import build_pipelines
    return build_pipelines(config, transport, verifier)["application"]


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    from src.core.security import _limiter
    _limiter.reset()
    yield
    _limiter.reset()


@pytest.fixture
def app(config, transport, verifier):
    from app import create_app
    flask_app = create_app(config, transport=transport, verifier=verifier, run_checks=False)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
