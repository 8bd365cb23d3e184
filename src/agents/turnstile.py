"""
Anti-abuse gate for public form posts.

Order matters:
  1. honeypot   — hidden field a person never fills; any value at all → "spam" (no network call)
  2. method     — anything but POST → "method"
  3. turnstile  — Cloudflare siteverify with token + client IP → "turnstile"

A verifier outage rejects the submission. There is no retry: letting spam
through is worse than asking a real applicant to try again.
"""

import logging

import requests

from src.core.errors import AbuseRejected

log = logging.getLogger("hiring.turnstile")

HONEYPOT_FIELD = "honeypot"
TOKEN_FIELD = "cf-turnstile-response"

REASON_SPAM = "spam"
REASON_METHOD = "method"
REASON_TURNSTILE = "turnstile"


class TurnstileVerifier:
    """Single blocking call to the Turnstile siteverify endpoint."""

    def __init__(self, config):
        self.secret = config.turnstile_secret
        self.url = config.turnstile_verify_url
        self.timeout = config.turnstile_timeout
        self.debug = config.debug

    def verify(self, token: str, remote_ip: str = "") -> bool:
        if not token or not self.secret:
            return False

        data = {"secret": self.secret, "response": token, "remoteip": remote_ip or ""}
        try:
            r = requests.post(self.url, data=data, timeout=self.timeout)
        except requests.exceptions.Timeout:
            log.warning("Turnstile verify timeout")
            return False
        except requests.exceptions.RequestException as e:
            if self.debug:
                log.error("Turnstile verify error: %s", e)
            return False

        try:
            result = r.json()
        except ValueError:
            log.warning("Turnstile verify returned non-JSON (HTTP %s)", r.status_code)
            return False

        if not isinstance(result, dict):
            return False
        ok = result.get("success") is True
        if not ok and self.debug:
            log.info("Turnstile rejected token: %s", result.get("error-codes", []))
        return ok


class AbuseGate:

    def __init__(self, verifier):
        self.verifier = verifier

    def check(self, method: str, form, remote_ip: str = "") -> dict:
        """Returns {"ok": True, "reason": None} or {"ok": False, "reason": <code>}."""
        if form.get(HONEYPOT_FIELD):
            log.info("Honeypot tripped from %s", remote_ip or "unknown")
            return {"ok": False, "reason": REASON_SPAM}

        if (method or "").upper() != "POST":
            return {"ok": False, "reason": REASON_METHOD}

        token = str(form.get(TOKEN_FIELD) or "").strip()
        if not self.verifier.verify(token, remote_ip):
            return {"ok": False, "reason": REASON_TURNSTILE}

        return {"ok": True, "reason": None}

    def require(self, method: str, form, remote_ip: str = ""):
        """Like check(), but raises AbuseRejected instead of returning a verdict."""
        result = self.check(method, form, remote_ip)
        if not result["ok"]:
            raise AbuseRejected(result["reason"])
