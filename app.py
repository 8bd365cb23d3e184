#!/usr/bin/env python3
"""
Discount Cuts Hiring — Application Entry Point
Creates the Flask app, wires the intake pipelines, registers the form Blueprint.
"""

import os
import logging
from flask import Flask

from src.agents.contact import ContactPipeline
from src.agents.mailer import SMTPMailer
from src.agents.notifier import Notifier
from src.agents.orchestrator import ApplicationPipeline
from src.agents.turnstile import AbuseGate, TurnstileVerifier
from src.core.config import HiringConfig
from src.forms.application_filler import ApplicationFiller


def build_pipelines(config, transport=None, verifier=None) -> dict:
    """Assemble both pipelines around one transport and one verifier."""
    transport = transport or SMTPMailer(config)
    verifier = verifier or TurnstileVerifier(config)
    return {
        "config": config,
        "application": ApplicationPipeline(
            config,
            gate=AbuseGate(verifier),
            filler=ApplicationFiller(config),
            notifier=Notifier(config, transport),
        ),
        "contact": ContactPipeline(config, verifier, transport),
    }


def create_app(config=None, transport=None, verifier=None, run_checks=True):
    """Application factory."""
    config = config or HiringConfig.from_env()

    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "discountcuts-hiring")
    app.extensions["hiring"] = build_pipelines(config, transport, verifier)

    from src.api.routes_forms import bp
    app.register_blueprint(bp)

    # ── Security middleware (rate limiting, headers) ──────────────────────
    try:
        from src.core.security import init_security
        init_security(app)
    except Exception as e:
        logging.getLogger("hiring").warning("Security init skipped: %s", e)

    # ── Runtime self-test — catches path/config bugs at boot ──────────────
    if run_checks:
        try:
            from src.core.startup_checks import run_startup_checks
            checks = run_startup_checks(config, app)
            if checks["failed"] > 0:
                logging.getLogger("hiring").error(
                    "STARTUP: %d checks FAILED — review logs", checks["failed"])
        except Exception as e:
            logging.getLogger("hiring").warning("Startup checks skipped: %s", e)

    return app


if __name__ == "__main__":
    from logging_config import setup_logging
    setup_logging()
    port = int(os.environ.get("PORT", 8080))
    create_app().run(host="0.0.0.0", port=port, debug=False)
