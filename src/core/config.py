"""
config.py — Explicit configuration for the hiring intake pipeline

Env vars (read once, at app startup, by HiringConfig.from_env):
  SMTP_HOST              — outbound mail server
  SMTP_PORT              — STARTTLS port (default 587)
  SMTP_USER / SMTP_PASS  — SMTP login
  SMTP_FROM_NAME         — display name on outgoing mail
  SMTP_FROM_EMAIL        — sender address
  ADMIN_EMAIL            — mailbox that receives applications
  TURNSTILE_SECRET_KEY   — Cloudflare Turnstile secret
  TURNSTILE_VERIFY_URL   — siteverify endpoint (override for testing)
  TURNSTILE_TIMEOUT      — seconds before the verifier call is abandoned
  SITE_URL               — public site root, used for redirects
  APPLICATION_TEMPLATE   — fixed-layout PDF the overlay is drawn on
  APPLICATION_FONT       — TrueType font for overlay text
  APPLICATION_OUTPUT_DIR — where transient artifacts are written
  DEBUG_MODE             — log absorbed failures (template, font, SMTP)
  RESEND_WITH_ATTACHMENT — legacy order: email first, resend with PDF

Components never touch os.environ themselves; they receive a HiringConfig.
"""

import os
import logging
from dataclasses import dataclass, field

from dotenv import load_dotenv

from src.core.paths import TEMPLATE_PATH, FONT_PATH, OUTPUT_DIR, PROJECT_ROOT

log = logging.getLogger("hiring.config")

TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


def _env_flag(env: dict, name: str, default: str = "false") -> bool:
    return str(env.get(name, default)).strip().lower() not in ("", "false", "0", "off", "no")


@dataclass(frozen=True)
class HiringConfig:
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = field(default="", repr=False)
    from_name: str = "Discount Cuts"
    from_email: str = ""
    admin_email: str = ""
    turnstile_secret: str = field(default="", repr=False)
    turnstile_verify_url: str = TURNSTILE_VERIFY_URL
    turnstile_timeout: float = 10.0
    site_url: str = "http://localhost:8080/discountcutsandservices"
    template_path: str = TEMPLATE_PATH
    font_path: str = FONT_PATH
    output_dir: str = OUTPUT_DIR
    debug: bool = False
    resend_with_attachment: bool = False

    @classmethod
    def from_env(cls, env: dict = None, dotenv_path: str = None) -> "HiringConfig":
        """Build a config from the process environment.

        A .env file at the project root (or dotenv_path) is loaded first
        without overriding variables that are already set.
        """
        if env is None:
            load_dotenv(dotenv_path or os.path.join(PROJECT_ROOT, ".env"), override=False)
            env = os.environ

        try:
            port = int(env.get("SMTP_PORT", "587") or 587)
        except ValueError:
            log.warning("SMTP_PORT=%r is not a number, using 587", env.get("SMTP_PORT"))
            port = 587
        try:
            timeout = float(env.get("TURNSTILE_TIMEOUT", "10") or 10)
        except ValueError:
            timeout = 10.0

        return cls(
            smtp_host=env.get("SMTP_HOST", ""),
            smtp_port=port,
            smtp_user=env.get("SMTP_USER", ""),
            smtp_password=env.get("SMTP_PASS", ""),
            from_name=env.get("SMTP_FROM_NAME", "Discount Cuts"),
            from_email=env.get("SMTP_FROM_EMAIL", ""),
            admin_email=env.get("ADMIN_EMAIL", ""),
            turnstile_secret=env.get("TURNSTILE_SECRET_KEY", ""),
            turnstile_verify_url=env.get("TURNSTILE_VERIFY_URL", TURNSTILE_VERIFY_URL),
            turnstile_timeout=timeout,
            site_url=env.get("SITE_URL", cls.site_url).rstrip("/"),
            template_path=env.get("APPLICATION_TEMPLATE", TEMPLATE_PATH),
            font_path=env.get("APPLICATION_FONT", FONT_PATH),
            output_dir=env.get("APPLICATION_OUTPUT_DIR", OUTPUT_DIR),
            debug=_env_flag(env, "DEBUG_MODE"),
            resend_with_attachment=_env_flag(env, "RESEND_WITH_ATTACHMENT"),
        )

    def missing_settings(self) -> list:
        """Names of settings that must be set for mail + verification to work."""
        required = {
            "SMTP_HOST": self.smtp_host,
            "SMTP_USER": self.smtp_user,
            "SMTP_PASS": self.smtp_password,
            "SMTP_FROM_EMAIL": self.from_email,
            "ADMIN_EMAIL": self.admin_email,
            "TURNSTILE_SECRET_KEY": self.turnstile_secret,
        }
        return [name for name, value in required.items() if not value]
