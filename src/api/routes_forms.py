# routes_forms.py
# Public form endpoints. Thin: translate the pipeline outcome into the
# redirect / JSON the static site expects, nothing more.

import os
import logging
from urllib.parse import urlencode

from flask import Blueprint, current_app, jsonify, redirect, request

from src.agents.orchestrator import OUTCOME_SUCCESS, OUTCOME_WARNING
from src.core.security import rate_limit

log = logging.getLogger("hiring.routes")

bp = Blueprint("forms", __name__)

HIRING_PAGE = "hiring.html"


def _hiring():
    return current_app.extensions["hiring"]


def outcome_redirect_url(result: dict, site_url: str) -> str:
    """Map a pipeline outcome to the hiring page URL with its status query."""
    base = f"{site_url.rstrip('/')}/{HIRING_PAGE}"
    outcome = result.get("outcome") or ""

    if outcome == OUTCOME_SUCCESS:
        params = {"success": "1"}
    elif outcome == OUTCOME_WARNING:
        params = {"success": "1", "error": "backend"}
    elif outcome.startswith("invalid:"):
        params = {"error": "validation", "fields": ",".join(result.get("fields", []))}
    elif outcome == "rejected:method":
        return base
    elif outcome in ("rejected:spam", "rejected:turnstile"):
        params = {"error": outcome.split(":", 1)[1]}
    else:
        params = {"error": "backend"}

    return f"{base}?{urlencode(params, safe=',')}"


# ═══════════════════════════════════════════════════════════════════════
# Employment application
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/forms/employment_application", methods=["GET", "POST"])
@rate_limit("form")
def employment_application():
    hiring = _hiring()
    result = hiring["application"].run(request.method, request.form, request.remote_addr or "")
    return redirect(outcome_redirect_url(result, hiring["config"].site_url), code=302)


# ═══════════════════════════════════════════════════════════════════════
# Contact form
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/forms/contact", methods=["GET", "POST"])
@rate_limit("form")
def contact():
    result = _hiring()["contact"].process(request.method, request.form,
                                          request.remote_addr or "")
    return jsonify(result)


@bp.route("/health")
def health():
    cfg = _hiring()["config"]
    return jsonify({
        "ok": True,
        "template": os.path.exists(cfg.template_path),
        "font": os.path.exists(cfg.font_path),
        "missing_settings": cfg.missing_settings(),
    })
